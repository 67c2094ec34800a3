#!/usr/bin/env python3
"""Wrapper around macOS `screencapture`"""

import threading
from typing import Optional

from xcode_ui_mcp.utils import process


def capture_display(path: str, cancel: Optional[threading.Event] = None) -> process.RunResult:
    """Capture the whole display silently to path"""
    return process.run(["screencapture", "-x", path], cancel=cancel, timeout=10)
