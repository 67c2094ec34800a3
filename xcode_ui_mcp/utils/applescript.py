#!/usr/bin/env python3
"""AppleScript execution and notification utilities"""

import threading
from typing import Tuple, Optional

from xcode_ui_mcp.utils import process

# Global notification setting - initialized by CLI
NOTIFICATIONS_ENABLED = False


def set_notifications_enabled(enabled: bool):
    """Set the global notification setting"""
    global NOTIFICATIONS_ENABLED
    NOTIFICATIONS_ENABLED = enabled


def escape_applescript_string(s: str) -> str:
    """
    Escape a string for safe use in AppleScript.

    Args:
        s: String to escape

    Returns:
        Escaped string safe for AppleScript
    """
    # Escape backslashes first, then quotes
    s = s.replace("\\", "\\\\")
    s = s.replace('"', '\\"')
    return s


def run_applescript(script: str, cancel: Optional[threading.Event] = None,
                    timeout: float = 15) -> Tuple[bool, str]:
    """Run an AppleScript and return success status and output"""
    result = process.run(['osascript', '-e', script], cancel=cancel, timeout=timeout)
    if result.ok:
        return True, result.stdout.strip()
    return False, (result.stderr or result.stdout).strip()


def send_keystrokes(text: str, cancel: Optional[threading.Event] = None) -> Tuple[bool, str]:
    """Type literal text into the frontmost focused control via System Events"""
    escaped = escape_applescript_string(text)
    return run_applescript(f'tell application "System Events" to keystroke "{escaped}"', cancel)


def lookup_bundle_id(app_name: str, cancel: Optional[threading.Event] = None) -> Tuple[bool, str]:
    """Ask LaunchServices for the bundle identifier of an application name"""
    return run_applescript(f'id of app "{escape_applescript_string(app_name)}"', cancel)


def show_notification(title: str, subtitle: str = None, message: str = None, sound: bool = False):
    """Show a macOS notification if notifications are enabled

    Args:
        title: Notification title
        subtitle: Optional subtitle (shown below title)
        message: Notification message body
        sound: Whether to play a sound (for errors/important events)
    """
    if NOTIFICATIONS_ENABLED:
        # Build AppleScript command - message is required by AppleScript
        msg = escape_applescript_string(message or subtitle or title)
        script = f'display notification "{msg}" with title "{escape_applescript_string(title)}"'
        if subtitle:
            script += f' subtitle "{escape_applescript_string(subtitle)}"'
        if sound:
            script += ' sound name "Frog"'
        # Notification failures are not worth reporting
        process.run(['osascript', '-e', script], timeout=5)


def show_error_notification(message: str, details: str = None):
    """Show an error notification with sound"""
    show_notification("Xcode UI MCP", subtitle=details, message=f"❌ {message}", sound=True)


def show_result_notification(message: str, details: str = None):
    """Show a result notification"""
    show_notification("Xcode UI MCP", subtitle=details, message=message)
