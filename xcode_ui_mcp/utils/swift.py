#!/usr/bin/env python3
"""Inline Swift helpers that call the macOS Accessibility API directly"""

import os
import json
import tempfile
import threading
from typing import Any, Dict, Optional

from xcode_ui_mcp.utils import process

# First run of a script includes compilation
SWIFT_TIMEOUT = 120

# Finds the running app by bundle id (or name) and walks its AX tree for the
# first element whose search attribute equals the search value.
_FIND_ELEMENT = '''
import AppKit
import ApplicationServices
import CoreGraphics

let appKey = "%(application)s"
let searchAttr = "%(attribute)s" as CFString
let searchValue = "%(value)s"

guard let app = NSWorkspace.shared.runningApplications.first(where: {
    $0.bundleIdentifier == appKey || $0.localizedName == appKey
}) else {
    print("{\\"ok\\": false, \\"reason\\": \\"app_not_found\\", \\"error\\": \\"app not found: \\(appKey)\\"}")
    exit(1)
}

let axApp = AXUIElementCreateApplication(app.processIdentifier)

func findElement(root: AXUIElement, depth: Int = 0) -> AXUIElement? {
    if depth > 20 { return nil }
    var val: CFTypeRef?
    if AXUIElementCopyAttributeValue(root, searchAttr, &val) == .success,
       let str = val as? String, str == searchValue {
        return root
    }
    var children: CFTypeRef?
    guard AXUIElementCopyAttributeValue(root, "AXChildren" as CFString, &children) == .success,
          let arr = children as? [AXUIElement] else { return nil }
    for child in arr {
        if let found = findElement(root: child, depth: depth + 1) { return found }
    }
    return nil
}

guard let el = findElement(root: axApp) else {
    print("{\\"ok\\": false, \\"reason\\": \\"not_found\\", \\"error\\": \\"element not found\\"}")
    exit(1)
}
'''

_PRESS = _FIND_ELEMENT + '''
if AXUIElementPerformAction(el, "AXPress" as CFString) == .success {
    print("{\\"ok\\": true, \\"method\\": \\"AXPress\\"}")
    exit(0)
}
print("{\\"ok\\": false, \\"reason\\": \\"press_failed\\", \\"error\\": \\"AXUIElementPerformAction(AXPress) failed\\"}")
exit(1)
'''

_CLICK_CENTER = _FIND_ELEMENT + '''
var posRef: CFTypeRef?
var sizeRef: CFTypeRef?
guard AXUIElementCopyAttributeValue(el, "AXPosition" as CFString, &posRef) == .success,
      AXUIElementCopyAttributeValue(el, "AXSize" as CFString, &sizeRef) == .success else {
    print("{\\"ok\\": false, \\"reason\\": \\"no_geometry\\", \\"error\\": \\"cannot get position\\"}")
    exit(1)
}
var pt = CGPoint.zero
var sz = CGSize.zero
AXValueGetValue(posRef as! AXValue, .cgPoint, &pt)
AXValueGetValue(sizeRef as! AXValue, .cgSize, &sz)
let cx = pt.x + sz.width / 2, cy = pt.y + sz.height / 2
CGEvent(mouseEventSource: nil, mouseType: .leftMouseDown, mouseCursorPosition: CGPoint(x: cx, y: cy), mouseButton: .left)?.post(tap: .cghidEventTap)
CGEvent(mouseEventSource: nil, mouseType: .leftMouseUp, mouseCursorPosition: CGPoint(x: cx, y: cy), mouseButton: .left)?.post(tap: .cghidEventTap)
print("{\\"ok\\": true, \\"method\\": \\"coordinate_click\\", \\"x\\": \\(cx), \\"y\\": \\(cy)}")
'''


def escape_swift_string(s: str) -> str:
    # Escape backslashes first, then quotes and line breaks
    s = s.replace("\\", "\\\\")
    s = s.replace('"', '\\"')
    s = s.replace("\n", "\\n")
    s = s.replace("\r", "\\r")
    return s


def run_swift(source: str, cancel: Optional[threading.Event] = None) -> Dict[str, Any]:
    """
    Run a Swift script that prints one JSON object and return that object.

    Returns:
        The parsed object, or {"ok": False, "error": ...} when the script
        produced no JSON.
    """
    with tempfile.NamedTemporaryFile(mode='w', suffix='.swift', delete=False) as f:
        f.write(source)
        temp_file = f.name

    try:
        result = process.run(['swift', temp_file], cancel=cancel, timeout=SWIFT_TIMEOUT)
    finally:
        os.unlink(temp_file)

    if result.cancelled:
        return {"ok": False, "reason": "aborted", "error": "aborted"}

    stdout = result.stdout.strip()
    try:
        parsed = json.loads(stdout.splitlines()[-1]) if stdout else None
    except ValueError:
        parsed = None
    if isinstance(parsed, dict) and isinstance(parsed.get("ok"), bool):
        return parsed
    return {
        "ok": False,
        "reason": "no_output",
        "error": result.stderr.strip() or stdout or "swift helper failed",
        "exitCode": result.exit_code,
    }


def _render(template: str, application: str, attribute: str, value: str) -> str:
    return template % {
        "application": escape_swift_string(application),
        "attribute": escape_swift_string(attribute),
        "value": escape_swift_string(value),
    }


def press_element(application: str, attribute: str, value: str,
                  cancel: Optional[threading.Event] = None) -> Dict[str, Any]:
    """Call AXPress on the element directly, skipping the advertised-actions check"""
    return run_swift(_render(_PRESS, application, attribute, value), cancel)


def click_element_center(application: str, attribute: str, value: str,
                         cancel: Optional[threading.Event] = None) -> Dict[str, Any]:
    """Post a synthesized left click at the center of the element's frame"""
    return run_swift(_render(_CLICK_CENTER, application, attribute, value), cancel)
