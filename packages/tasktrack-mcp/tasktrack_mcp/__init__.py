"""
Tasktrack MCP server package.
"""
