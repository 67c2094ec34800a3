# Importing the tool modules registers them with the MCP server
from xcode_ui_mcp.tools import xcode_ui  # noqa: F401
