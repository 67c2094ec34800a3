#!/usr/bin/env python3
"""Wrappers around `xcrun simctl` used for device-level capture"""

import threading
from typing import List, Optional

from xcode_ui_mcp.utils import process

SIMCTL_TIMEOUT = 30


def resolve_device_target(device_id: Optional[str]) -> str:
    """Use the given simulator UDID, or the booted one"""
    if device_id and device_id.strip():
        return device_id.strip()
    return "booted"


def screenshot(device: str, path: str, cancel: Optional[threading.Event] = None) -> process.RunResult:
    return process.run(['xcrun', 'simctl', 'io', device, 'screenshot', path],
                       cancel=cancel, timeout=SIMCTL_TIMEOUT)


def record_video_command(device: str, path: str) -> List[str]:
    return ['xcrun', 'simctl', 'io', device, 'recordVideo', '--force', path]


def log_stream_command(device: str) -> List[str]:
    return ['xcrun', 'simctl', 'spawn', device, 'log', 'stream', '--style', 'compact']
