#!/usr/bin/env python3
"""
AXorcist backend: macOS native app automation through the Accessibility API.

Actions run against the running app's AX tree via the `axorc` CLI, with no
test harness involved. Some controls reject the primary action verb (SwiftUI
buttons do not advertise AXPress, SwiftUI text fields refuse AXSetValue), so
tap and type run as ordered fallback chains.
"""

import re
import sys
import math
import threading
from typing import Any, Callable, Dict, Optional

from xcode_ui_mcp.ui.envelope import UiActionResult, failure, success
from xcode_ui_mcp.ui.fallback import FallbackTier, TierOutcome, run_fallback_chain
from xcode_ui_mcp.ui.helpers import make_default_artifact_path
from xcode_ui_mcp.ui.locator import build_locator
from xcode_ui_mcp.ui.types import Action, Backend, ExecutionContext
from xcode_ui_mcp.utils import applescript, axorc, screencapture, swift

BACKEND = Backend.AXORCIST.value

NATIVE_ACTIONS = frozenset({
    Action.DESCRIBE_UI,
    Action.TAP,
    Action.TYPE,
    Action.CLEAR_TEXT,
    Action.QUERY_TEXT,
    Action.WAIT_FOR,
    Action.ASSERT,
    Action.SCREENSHOT,
})

POLL_INTERVAL_MS = 500
DEFAULT_WAIT_TIMEOUT = 10
DEFAULT_DESCRIBE_DEPTH = 5
FOCUS_SETTLE_SECONDS = 0.1

LOCATOR_HINT = "pass at least one of: identifier, title, label, role, description, placeholder, value"


def native_supports_action(action: Action) -> bool:
    return action in NATIVE_ACTIONS


def _wait(cancel: threading.Event, seconds: float) -> bool:
    """Sleep unless cancelled; returns True if the cancel event fired"""
    return cancel.wait(seconds)


def _aborted(data: Any = None) -> UiActionResult:
    return failure(BACKEND, "aborted", "ABORTED", data=data)


def _axorc_failure(result: axorc.AxorcResult, fallback_message: str) -> UiActionResult:
    if result.cancelled:
        return _aborted()
    message = result.error or fallback_message
    lowered = message.lower()
    if "element_not_found" in lowered or "element not found" in lowered:
        return failure(BACKEND, message, "ELEMENT_NOT_FOUND", "check locator criteria with describe_ui",
                       data=result.data)
    return failure(BACKEND, message, "AXORC_ERROR", data=result.data)


def _with_method(data: Any, method: str) -> Dict[str, Any]:
    out = dict(data) if isinstance(data, dict) else ({"result": data} if data is not None else {})
    out["method"] = method
    return out


def execute_native_action(ctx: ExecutionContext) -> UiActionResult:
    if not axorc.has_axorc():
        return failure(
            BACKEND,
            "axorc command not found",
            "AXORC_NOT_FOUND",
            "install AXorcist: git clone https://github.com/steipete/AXorcist && cd AXorcist && "
            "swift build -c release && cp .build/release/axorc /usr/local/bin/"
        )

    if not ctx.application or not ctx.application.strip():
        return failure(
            BACKEND,
            "axorcist backend requires 'application' (app name or bundle id)",
            "MISSING_APPLICATION",
            "pass application, e.g. application='com.example.MyApp' or application='MyApp'"
        )

    application = resolve_application_id(ctx.application.strip(), ctx.cancel)
    params = ctx.params or {}

    handler = _HANDLERS.get(ctx.action)
    if handler is None:
        return failure(BACKEND, f"action '{ctx.action.value}' is not supported on axorcist backend",
                       "UNSUPPORTED_ACTION")
    return handler(application, params, ctx.cancel)


def resolve_application_id(application: str, cancel: threading.Event) -> str:
    """
    Resolve a display name to a bundle id; axorc only finds non-system apps
    reliably by bundle id. Falls back to the name as given.
    """
    if "." in application:
        return application

    ok, output = applescript.lookup_bundle_id(application, cancel)
    if ok and "." in output:
        print(f"Debug: resolved application '{application}' to '{output}'", file=sys.stderr)
        return output

    print(f"Debug: could not resolve bundle id for '{application}', using it as given", file=sys.stderr)
    return application


# ---------------------------------------------------------------------------
# describe_ui
# ---------------------------------------------------------------------------

def describe_ui(application: str, params: Dict[str, Any], cancel: threading.Event) -> UiActionResult:
    max_depth = params.get("maxDepth", params.get("max_depth"))
    if not isinstance(max_depth, int) or isinstance(max_depth, bool) or max_depth < 1:
        max_depth = DEFAULT_DESCRIBE_DEPTH

    result = axorc.collect_all(application, max_depth=max_depth, cancel=cancel)
    if not result.ok:
        return _axorc_failure(result, "collectAll failed")

    raw_elements = result.data.get("elements") if isinstance(result.data, dict) else None
    elements = [normalize_element(el) for el in raw_elements or [] if isinstance(el, dict)]
    return success(BACKEND, data={"count": len(elements), "elements": elements})


def parse_brief_description(brief: str) -> Dict[str, str]:
    """
    Best-effort scrape of axorc's one-line element summary, e.g.
    "Role: AXButton, Title: 'Save', ID: 'save-button'".
    """
    found = {}
    if not brief:
        return found

    match = re.search(r"Role:\s*(\S+)", brief)
    if match:
        found["role"] = match.group(1).rstrip(",")
    match = re.search(r"Title:\s*'([^']*)'", brief)
    if match:
        found["title"] = match.group(1)
    match = re.search(r"ID:\s*'([^']*)'", brief)
    if match:
        found["id"] = match.group(1)
    return found


def normalize_element(element: Dict[str, Any]) -> Dict[str, Any]:
    attrs = element.get("attributes") or {}
    text_content = element.get("textual_content") or ""
    parsed = parse_brief_description(element.get("brief_description") or "")

    def first(*values):
        for value in values:
            if value is not None:
                return value
        return None

    title = first(axorc.unwrap_string(attrs.get("AXTitle")), parsed.get("title"), text_content)
    out = {
        "role": first(axorc.unwrap_string(attrs.get("AXRole")), element.get("role"), parsed.get("role"), ""),
        "title": title,
        "identifier": first(axorc.unwrap_string(attrs.get("AXIdentifier")), parsed.get("id"), ""),
        "value": axorc.unwrap_string(attrs.get("AXValue")) or "",
        "description": axorc.unwrap_string(attrs.get("AXDescription")) or "",
        "placeholder": axorc.unwrap_string(attrs.get("AXPlaceholderValue")) or "",
    }
    enabled = axorc.unwrap_bool(attrs.get("AXEnabled"))
    if enabled is not None:
        out["enabled"] = enabled
    if text_content and text_content != title:
        out["text"] = text_content
    return out


# ---------------------------------------------------------------------------
# tap
# ---------------------------------------------------------------------------

def _direct_search_key(params: Dict[str, Any]):
    """The single attribute the direct-API fallbacks search by"""
    if isinstance(params.get("identifier"), str):
        return "AXIdentifier", params["identifier"]
    if isinstance(params.get("title"), str):
        return "AXTitle", params["title"]
    return None


def _swift_tier_outcome(response: Dict[str, Any], failed_code: str) -> TierOutcome:
    """Map a direct-API helper response; only a rejected action advances the chain"""
    if response.get("ok"):
        data = {k: v for k, v in response.items() if k not in ("ok", "reason")}
        return TierOutcome(success(BACKEND, data=data))

    reason = response.get("reason")
    message = str(response.get("error") or "accessibility fallback failed")
    if reason == "aborted":
        return TierOutcome(_aborted())
    if reason == "not_found":
        return TierOutcome(failure(BACKEND, message, "ELEMENT_NOT_FOUND", "check locator criteria with describe_ui"))
    if reason == "app_not_found":
        return TierOutcome(failure(BACKEND, message, "APPLICATION_NOT_FOUND",
                                   "launch the app first, or pass its bundle id"))
    if reason in ("press_failed", "no_geometry"):
        return TierOutcome(failure(BACKEND, message, failed_code), advance=True)
    return TierOutcome(failure(BACKEND, message, failed_code, data=response))


def tap(application: str, params: Dict[str, Any], cancel: threading.Event) -> UiActionResult:
    locator = build_locator(params)
    if locator is None:
        return failure(BACKEND, "tap requires an element locator", "MISSING_PARAMS", LOCATOR_HINT)

    search = _direct_search_key(params)

    def validated_press() -> TierOutcome:
        result = axorc.perform_action(application, locator.to_axorc(), "AXPress", max_depth=15, cancel=cancel)
        if result.ok:
            return TierOutcome(success(BACKEND, data=_with_method(result.data, "axorc_press")))
        if result.cancelled:
            return TierOutcome(_aborted())
        return TierOutcome(failure(BACKEND, result.error or "AXPress rejected", "AXORC_ERROR"), advance=True)

    def direct_press() -> TierOutcome:
        if search is None:
            return TierOutcome(failure(BACKEND, "AXPress fallback requires identifier or title", "MISSING_PARAMS",
                                       "axorc rejected AXPress; pass identifier or title so the element can be "
                                       "pressed directly"))
        outcome = _swift_tier_outcome(swift.press_element(application, search[0], search[1], cancel),
                                      "AXPRESS_FALLBACK_FAILED")
        if outcome.result.ok:
            outcome.result.data["note"] = "AXPress via direct AXUIElementPerformAction (axorc fallback)"
        return outcome

    def coordinate_click() -> TierOutcome:
        return _swift_tier_outcome(swift.click_element_center(application, search[0], search[1], cancel),
                                   "COORDINATE_CLICK_FAILED")

    tiers = [
        FallbackTier("axorc_press", validated_press),
        FallbackTier("direct_press", direct_press),
        FallbackTier("coordinate_click", coordinate_click),
    ]
    return run_fallback_chain(tiers, BACKEND, "TAP_FALLBACK_EXHAUSTED", f"tap {locator.describe()}", cancel)


# ---------------------------------------------------------------------------
# type / clear_text
# ---------------------------------------------------------------------------

def type_text(application: str, params: Dict[str, Any], cancel: threading.Event) -> UiActionResult:
    text = params.get("text")
    if not isinstance(text, str) or not text:
        return failure(BACKEND, "type requires 'text' param", "MISSING_PARAMS", "pass params={'text': '...'}")

    locator = build_locator(params)

    def set_value() -> TierOutcome:
        if locator is not None:
            result = axorc.perform_action(application, locator.to_axorc(), "AXSetValue",
                                          action_value=text, max_depth=10, cancel=cancel)
        else:
            result = axorc.set_focused_value(application, text, cancel=cancel)
        if result.ok:
            return TierOutcome(success(BACKEND, data=_with_method(result.data, "AXSetValue")))
        if result.cancelled:
            return TierOutcome(_aborted())
        return TierOutcome(failure(BACKEND, result.error or "AXSetValue rejected", "AXORC_ERROR"), advance=True)

    def keystrokes() -> TierOutcome:
        warnings = []
        if locator is not None:
            tap_result = tap(application, params, cancel)
            if not tap_result.ok:
                return TierOutcome(failure(BACKEND, "AXSetValue not supported and tap-to-focus failed",
                                           "TYPE_FALLBACK_FAILED", data={"tap": tap_result.to_dict()}))
            warnings = tap_result.warnings or []
            if _wait(cancel, FOCUS_SETTLE_SECONDS):
                return TierOutcome(_aborted())

        ok, output = applescript.send_keystrokes(text, cancel)
        if not ok:
            return TierOutcome(failure(BACKEND, f"keystroke fallback failed: {output}", "KEYSTROKE_FALLBACK_FAILED"),
                               advance=True)
        return TierOutcome(success(BACKEND, data={"typed": text, "method": "keystroke_fallback"},
                                   warnings=list(warnings) or None))

    tiers = [
        FallbackTier("set_value", set_value),
        FallbackTier("keystroke", keystrokes),
    ]
    return run_fallback_chain(tiers, BACKEND, "TYPE_FALLBACK_EXHAUSTED", "type", cancel)


def clear_text(application: str, params: Dict[str, Any], cancel: threading.Event) -> UiActionResult:
    # No keystroke fallback here, unlike type
    locator = build_locator(params)
    if locator is None:
        return failure(BACKEND, "clear_text requires an element locator", "MISSING_PARAMS", LOCATOR_HINT)

    result = axorc.perform_action(application, locator.to_axorc(), "AXSetValue",
                                  action_value="", max_depth=10, cancel=cancel)
    if not result.ok:
        return _axorc_failure(result, "AXSetValue failed")
    return success(BACKEND, data=result.data)


# ---------------------------------------------------------------------------
# query_text / wait_for / assert
# ---------------------------------------------------------------------------

def query_text(application: str, params: Dict[str, Any], cancel: threading.Event) -> UiActionResult:
    locator = build_locator(params)
    result = axorc.extract_text(application, locator=locator.to_axorc() if locator else None,
                                include_children=True, max_depth=10, cancel=cancel)
    if not result.ok:
        return _axorc_failure(result, "extractText failed")

    text = result.data.get("text") if isinstance(result.data, dict) else None
    text = text if isinstance(text, str) else ""
    return success(BACKEND, data={"text": text, "matches": [text] if text else []})


def wait_for(application: str, params: Dict[str, Any], cancel: threading.Event) -> UiActionResult:
    locator = build_locator(params)
    if locator is None:
        return failure(BACKEND, "wait_for requires an element locator", "MISSING_PARAMS", LOCATOR_HINT)

    timeout = params.get("timeout")
    if not isinstance(timeout, (int, float)) or isinstance(timeout, bool) or timeout <= 0:
        timeout = DEFAULT_WAIT_TIMEOUT
    max_attempts = max(1, math.ceil(timeout * 1000 / POLL_INTERVAL_MS))

    for attempt in range(1, max_attempts + 1):
        if cancel.is_set():
            return _aborted(data={"found": False, "attempts": attempt - 1})

        result = axorc.query(application, locator.to_axorc(), max_depth=10, cancel=cancel)
        if result.ok:
            data = dict(result.data) if isinstance(result.data, dict) else {}
            data.update(found=True, attempts=attempt)
            return success(BACKEND, data=data)
        if result.cancelled:
            return _aborted(data={"found": False, "attempts": attempt})

        if attempt < max_attempts and _wait(cancel, POLL_INTERVAL_MS / 1000):
            return _aborted(data={"found": False, "attempts": attempt})

    return failure(
        BACKEND,
        f"element not found after {timeout}s ({locator.describe()})",
        "WAIT_TIMEOUT",
        "element may not exist or criteria may be too strict",
        data={"found": False, "attempts": max_attempts}
    )


def assert_element(application: str, params: Dict[str, Any], cancel: threading.Event) -> UiActionResult:
    locator = build_locator(params)
    if locator is None:
        return failure(BACKEND, "assert requires an element locator", "MISSING_PARAMS", LOCATOR_HINT)

    result = axorc.query(application, locator.to_axorc(),
                         attributes=["AXRole", "AXTitle", "AXIdentifier", "AXValue", "AXEnabled"],
                         max_depth=10, cancel=cancel)
    if result.cancelled:
        return _aborted()
    if not result.ok:
        return failure(BACKEND, f"element not found ({locator.describe()})", "ASSERT_NOT_FOUND",
                       "check locator criteria", data=result.data)

    expected = params.get("expected", params.get("value"))
    if isinstance(expected, str):
        attrs = result.data.get("attributes") if isinstance(result.data, dict) else None
        actual = axorc.unwrap_string((attrs or {}).get("AXValue"))
        if actual != expected:
            return failure(
                BACKEND,
                f"expected value '{expected}', got '{actual if actual is not None else '(none)'}'",
                "ASSERT_VALUE_MISMATCH",
                data={"expected": expected, "actual": actual}
            )

    data = dict(result.data) if isinstance(result.data, dict) else {}
    data["found"] = True
    return success(BACKEND, data=data)


# ---------------------------------------------------------------------------
# screenshot
# ---------------------------------------------------------------------------

def screenshot(application: str, params: Dict[str, Any], cancel: threading.Event) -> UiActionResult:
    path = str(params["path"]) if params.get("path") else make_default_artifact_path("screenshots", "png")

    result = screencapture.capture_display(path, cancel)
    if result.cancelled:
        return _aborted()
    if not result.ok:
        return failure(BACKEND, result.stderr.strip() or "screencapture failed", "SCREENSHOT_FAILED")
    return success(BACKEND, data={"path": path}, artifacts={"screenshot": path})


_HANDLERS: Dict[Action, Callable[[str, Dict[str, Any], threading.Event], UiActionResult]] = {
    Action.DESCRIBE_UI: describe_ui,
    Action.TAP: tap,
    Action.TYPE: type_text,
    Action.CLEAR_TEXT: clear_text,
    Action.QUERY_TEXT: query_text,
    Action.WAIT_FOR: wait_for,
    Action.ASSERT: assert_element,
    Action.SCREENSHOT: screenshot,
}
