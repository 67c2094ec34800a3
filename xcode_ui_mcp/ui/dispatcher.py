#!/usr/bin/env python3
"""
UI backend dispatcher.

Routes xcode_ui actions to a backend strategy:
- axorcist: macOS native apps via the Accessibility API (owns all its actions)
- xcuitest / idb: shared device actions via simctl, everything else via the runner
"""

import sys
import traceback
from typing import Optional, Union

from xcode_ui_mcp.ui.envelope import UiActionResult, failure
from xcode_ui_mcp.ui.native import execute_native_action, native_supports_action
from xcode_ui_mcp.ui.runner import execute_runner_action
from xcode_ui_mcp.ui.shared import execute_shared_action
from xcode_ui_mcp.ui.types import (
    AUTO_BACKEND,
    DEFAULT_BACKEND,
    INTERACTIVE_ACTIONS,
    SHARED_ACTIONS,
    Action,
    Backend,
    ExecutionContext,
)

ROUTE_NATIVE = "native"
ROUTE_SHARED = "shared"
ROUTE_RUNNER = "runner"

RUNNER_BACKEND_ACTIONS = SHARED_ACTIONS | INTERACTIVE_ACTIONS


def resolve_backend(mode: Optional[Union[str, Backend]]) -> Backend:
    """Unset or "auto" resolves to the default backend; raises ValueError for unknown names"""
    if not mode or mode == AUTO_BACKEND:
        return DEFAULT_BACKEND
    return Backend(mode)


def backend_supports_action(backend: Backend, action: Action) -> bool:
    return route_for(backend, action) is not None


def route_for(backend: Backend, action: Action) -> Optional[str]:
    """Which strategy handles the pair, or None when the backend does not support it"""
    if backend == Backend.AXORCIST:
        return ROUTE_NATIVE if native_supports_action(action) else None
    if backend in (Backend.XCUITEST, Backend.IDB):
        if action in SHARED_ACTIONS:
            return ROUTE_SHARED
        if action in RUNNER_BACKEND_ACTIONS:
            return ROUTE_RUNNER
        return None
    raise ValueError(f"no routing for backend {backend!r}")


def execute_ui_action(ctx: ExecutionContext) -> UiActionResult:
    """Run one UI action; always returns a result, never raises"""
    try:
        backend = resolve_backend(ctx.backend_mode)
    except ValueError:
        return failure(str(ctx.backend_mode), f"unknown backend '{ctx.backend_mode}'", "UNSUPPORTED_BACKEND",
                       f"use one of: {AUTO_BACKEND}, {', '.join(b.value for b in Backend)}")

    route = route_for(backend, ctx.action)
    if route is None:
        return failure(backend.value, f"action '{ctx.action.value}' is not supported on backend '{backend.value}'",
                       "UNSUPPORTED_ACTION")

    print(f"Debug: dispatching {ctx.action.value} to {route} ({backend.value})", file=sys.stderr)
    try:
        if route == ROUTE_NATIVE:
            return execute_native_action(ctx)
        if route == ROUTE_SHARED:
            return execute_shared_action(backend, ctx)
        return execute_runner_action(backend, ctx)
    except Exception as e:
        traceback.print_exc(file=sys.stderr)
        return failure(backend.value, f"unexpected error running {ctx.action.value}: {e}", "INTERNAL_ERROR")
