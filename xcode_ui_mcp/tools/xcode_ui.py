#!/usr/bin/env python3
"""xcode_ui tool - UI automation and capture for simulator and macOS apps"""

from typing import Any, Dict, Optional

import anyio

from xcode_ui_mcp.server import mcp
from xcode_ui_mcp.config_manager import resolve_runner_command
from xcode_ui_mcp.exceptions import InvalidParameterError
from xcode_ui_mcp.ui import Action, Backend, ExecutionContext, UiActionResult, execute_ui_action, format_result
from xcode_ui_mcp.ui.types import AUTO_BACKEND
from xcode_ui_mcp.utils.applescript import show_error_notification, show_notification

VALID_ACTIONS = [a.value for a in Action]
VALID_BACKENDS = [AUTO_BACKEND] + [b.value for b in Backend]


def build_context(action: str,
                  backend: Optional[str] = AUTO_BACKEND,
                  device_id: Optional[str] = None,
                  application: Optional[str] = None,
                  runner_command: Optional[str] = None,
                  scheme: Optional[str] = None,
                  params: Optional[Dict[str, Any]] = None) -> ExecutionContext:
    """
    Validate tool arguments and build the execution context for one call.

    Raises:
        InvalidParameterError: For an unknown action or backend, or non-object params
    """
    if not action or action not in VALID_ACTIONS:
        raise InvalidParameterError(f"Unknown action '{action}'. Valid actions: {', '.join(VALID_ACTIONS)}")

    backend = backend or AUTO_BACKEND
    if backend not in VALID_BACKENDS:
        raise InvalidParameterError(f"Unknown backend '{backend}'. Valid backends: {', '.join(VALID_BACKENDS)}")

    if params is not None and not isinstance(params, dict):
        raise InvalidParameterError("params must be an object")

    return ExecutionContext(
        action=Action(action),
        backend_mode=backend,
        device_id=device_id,
        application=application,
        runner_command=resolve_runner_command(runner_command, scheme),
        params=dict(params or {}),
    )


def run_action(ctx: ExecutionContext) -> UiActionResult:
    """Run one call on the worker thread, notifications included"""
    show_notification("Xcode UI MCP", subtitle=ctx.backend_mode, message=f"xcode_ui {ctx.action.value}")
    result = execute_ui_action(ctx)
    if not result.ok:
        errors = result.normalized_errors(ctx.action.value)
        show_error_notification(f"{ctx.action.value} failed", errors[0].code if errors else None)
    return result


@mcp.tool()
async def xcode_ui(action: str,
                   backend: str = AUTO_BACKEND,
                   device_id: Optional[str] = None,
                   application: Optional[str] = None,
                   runner_command: Optional[str] = None,
                   scheme: Optional[str] = None,
                   params: Optional[Dict[str, Any]] = None) -> str:
    """
    Run one UI automation or capture action.

    Args:
        action: One of tap, type, clear_text, swipe, scroll, describe_ui,
            query_text, query_controls, wait_for, assert, screenshot,
            video_start, video_stop, logs_start, logs_stop, crash_list,
            crash_export, export_report.
        backend: auto (default, same as xcuitest), xcuitest, idb or axorcist.
            Use axorcist for macOS native apps.
        device_id: Optional simulator UDID. Defaults to the booted simulator.
        application: App name or bundle id. Required for backend=axorcist.
        runner_command: Command that runs the UI test harness. It receives
            the action as one JSON argument. Defaults to the configured
            runner command.
        scheme: Optional scheme name used to pick a configured runner command.
        params: Action parameters, e.g. {"identifier": "save-button"},
            {"text": "hello", "identifier": "name-field"}, {"timeout": 5},
            {"pid": 1234} for video_stop/logs_stop, {"path": "..."} for output files.

    Returns:
        Text result with status, data, artifacts, errors and warnings
    """
    ctx = build_context(action, backend, device_id, application, runner_command, scheme, params)

    try:
        result = await anyio.to_thread.run_sync(run_action, ctx, abandon_on_cancel=True)
    except anyio.get_cancelled_exc_class():
        # Stops polling loops and kills running subprocesses in the worker thread
        ctx.cancel.set()
        raise

    return format_result(action, result)
