"""
MCP tool modules for the Stagehand MCP server.

    - definitions: Names, descriptions and argument models of the five tools
    - browser_tools: BrowserToolDispatcher, which runs them on the browser
    - results: ToolResult, the response shape shared by every tool
"""
