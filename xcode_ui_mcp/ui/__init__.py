"""UI automation backends and their dispatcher"""

from xcode_ui_mcp.ui.dispatcher import backend_supports_action, execute_ui_action, resolve_backend
from xcode_ui_mcp.ui.envelope import ToolError, UiActionResult, format_result
from xcode_ui_mcp.ui.types import Action, Backend, ExecutionContext

__all__ = [
    "Action",
    "Backend",
    "ExecutionContext",
    "ToolError",
    "UiActionResult",
    "backend_supports_action",
    "execute_ui_action",
    "format_result",
    "resolve_backend",
]
