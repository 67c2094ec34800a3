#!/usr/bin/env python3
"""
Wrapper around the `axorc` CLI (AXorcist) for macOS accessibility queries.

Commands are sent as a JSON object on stdin; axorc answers with a single JSON
object shaped {command_id, status: "success"|"error", data?, error?}.
A status of "error" is a failure regardless of the process exit code.
"""

import json
import threading
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from xcode_ui_mcp.utils import process

AXORC_COMMAND = ["axorc", "--stdin", "--scan-all"]
AXORC_TIMEOUT = 30

DEFAULT_COLLECT_ATTRIBUTES = [
    "AXRole",
    "AXTitle",
    "AXIdentifier",
    "AXValue",
    "AXEnabled",
    "AXDescription",
    "AXPlaceholderValue",
]
DEFAULT_QUERY_ATTRIBUTES = ["AXRole", "AXTitle", "AXIdentifier", "AXEnabled"]


@dataclass
class AxorcResult:
    ok: bool
    data: Any = None
    error: Optional[str] = None
    cancelled: bool = False


def has_axorc() -> bool:
    return process.has_command("axorc")


def run_axorc(command: Dict[str, Any], cancel: Optional[threading.Event] = None) -> AxorcResult:
    """Send one command to axorc and interpret its response"""
    result = process.run(AXORC_COMMAND, cancel=cancel, input=json.dumps(command), timeout=AXORC_TIMEOUT)
    if result.cancelled:
        return AxorcResult(ok=False, error="aborted", cancelled=True)

    stdout = result.stdout.strip()
    try:
        parsed = json.loads(stdout)
    except ValueError:
        return AxorcResult(
            ok=False,
            error=result.stderr.strip() or stdout or "axorc returned no valid JSON",
            data={"exitCode": result.exit_code, "stdout": stdout, "stderr": result.stderr.strip()}
        )

    if not isinstance(parsed, dict):
        return AxorcResult(ok=False, error="axorc returned a non-object JSON value", data=parsed)

    if parsed.get("status") == "error":
        error = parsed.get("error")
        if isinstance(error, str):
            message = error
        elif isinstance(error, dict) and error.get("message"):
            message = str(error["message"])
        else:
            message = "axorc command failed"
        return AxorcResult(ok=False, error=message, data=parsed)

    data = parsed.get("data")
    return AxorcResult(ok=True, data=data if data is not None else parsed)


def collect_all(application: str, max_depth: int = 5,
                attributes: Optional[List[str]] = None,
                cancel: Optional[threading.Event] = None) -> AxorcResult:
    return run_axorc({
        "command_id": "collect_all",
        "command": "collectAll",
        "application": application,
        "attributes": attributes or DEFAULT_COLLECT_ATTRIBUTES,
        "max_depth": max_depth,
    }, cancel)


def perform_action(application: str, locator: Dict[str, Any], action_name: str,
                   action_value: Any = None, max_depth: int = 15,
                   cancel: Optional[threading.Event] = None) -> AxorcResult:
    command = {
        "command_id": "perform_action",
        "command": "performAction",
        "application": application,
        "locator": locator,
        "action_name": action_name,
        "max_depth": max_depth,
    }
    if action_value is not None:
        command["action_value"] = action_value
    return run_axorc(command, cancel)


def extract_text(application: str, locator: Optional[Dict[str, Any]] = None,
                 include_children: bool = True, max_depth: int = 10,
                 cancel: Optional[threading.Event] = None) -> AxorcResult:
    command = {
        "command_id": "extract_text",
        "command": "extractText",
        "application": application,
        "include_children": include_children,
        "max_depth": max_depth,
    }
    if locator:
        command["locator"] = locator
    return run_axorc(command, cancel)


def query(application: str, locator: Dict[str, Any],
          attributes: Optional[List[str]] = None, max_depth: int = 10,
          cancel: Optional[threading.Event] = None) -> AxorcResult:
    return run_axorc({
        "command_id": "query",
        "command": "query",
        "application": application,
        "locator": locator,
        "attributes": attributes or DEFAULT_QUERY_ATTRIBUTES,
        "max_depth": max_depth,
    }, cancel)


def set_focused_value(application: str, value: str,
                      cancel: Optional[threading.Event] = None) -> AxorcResult:
    return run_axorc({
        "command_id": "set_focused_value",
        "command": "setFocusedValue",
        "application": application,
        "action_value": {"value": value},
    }, cancel)


# Attribute values come wrapped as {"any_value": {"string": "x"}} (or "anyValue");
# {} means the attribute is unset, {"any_value": null} means present but opaque.

def _unwrap(wrapper: Any, kind: str) -> Any:
    if not isinstance(wrapper, dict):
        return None
    value = wrapper.get("any_value", wrapper.get("anyValue"))
    if isinstance(value, dict) and kind in value:
        return value[kind]
    return None


def unwrap_string(wrapper: Any) -> Optional[str]:
    value = _unwrap(wrapper, "string")
    return value if isinstance(value, str) else None


def unwrap_bool(wrapper: Any) -> Optional[bool]:
    value = _unwrap(wrapper, "bool")
    return value if isinstance(value, bool) else None
