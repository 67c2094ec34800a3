#!/usr/bin/env python3
"""Actions, backends and the per-call execution context"""

import threading
from enum import Enum
from dataclasses import dataclass, field
from typing import Any, Dict, Optional


class Action(str, Enum):
    TAP = "tap"
    TYPE = "type"
    CLEAR_TEXT = "clear_text"
    SWIPE = "swipe"
    SCROLL = "scroll"
    DESCRIBE_UI = "describe_ui"
    QUERY_TEXT = "query_text"
    QUERY_CONTROLS = "query_controls"
    WAIT_FOR = "wait_for"
    ASSERT = "assert"
    SCREENSHOT = "screenshot"
    VIDEO_START = "video_start"
    VIDEO_STOP = "video_stop"
    LOGS_START = "logs_start"
    LOGS_STOP = "logs_stop"
    CRASH_LIST = "crash_list"
    CRASH_EXPORT = "crash_export"
    EXPORT_REPORT = "export_report"


class Backend(str, Enum):
    XCUITEST = "xcuitest"
    IDB = "idb"
    AXORCIST = "axorcist"


AUTO_BACKEND = "auto"
DEFAULT_BACKEND = Backend.XCUITEST

INTERACTIVE_ACTIONS = frozenset({
    Action.TAP,
    Action.TYPE,
    Action.SWIPE,
    Action.SCROLL,
    Action.CLEAR_TEXT,
    Action.DESCRIBE_UI,
    Action.QUERY_TEXT,
    Action.QUERY_CONTROLS,
    Action.WAIT_FOR,
    Action.ASSERT,
})

# Device/session-level actions that do not touch the UI tree
SHARED_ACTIONS = frozenset({
    Action.SCREENSHOT,
    Action.VIDEO_START,
    Action.VIDEO_STOP,
    Action.LOGS_START,
    Action.LOGS_STOP,
    Action.CRASH_LIST,
    Action.CRASH_EXPORT,
    Action.EXPORT_REPORT,
})


@dataclass
class ExecutionContext:
    """Everything one xcode_ui call needs; created per call and never shared"""
    action: Action
    backend_mode: Optional[str] = None
    device_id: Optional[str] = None
    application: Optional[str] = None
    runner_command: Optional[str] = None
    params: Dict[str, Any] = field(default_factory=dict)
    cancel: threading.Event = field(default_factory=threading.Event)
