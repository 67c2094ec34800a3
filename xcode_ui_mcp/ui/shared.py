#!/usr/bin/env python3
"""
Device-level actions shared by the runner backends: screenshots, video and
log capture, crash reports and report export. None of them touch the UI tree.
"""

import os
import sys
import json
import glob
import shutil
import signal
import datetime
from contextlib import contextmanager
from dataclasses import dataclass, asdict
from typing import Any, Dict, Iterator, List, Optional

from xcode_ui_mcp.ui.envelope import UiActionResult, failure, success
from xcode_ui_mcp.ui.helpers import make_default_artifact_path
from xcode_ui_mcp.ui.types import Action, Backend, ExecutionContext
from xcode_ui_mcp.utils import process, simctl

CRASH_REPORT_DIR = os.path.expanduser("~/Library/Logs/DiagnosticReports")
CRASH_REPORT_PATTERNS = ("*.crash", "*.ips")
MAX_CRASH_REPORTS = 20

DEFAULT_VIDEO_PATH = "./xcode-ui-recording.mp4"
DEFAULT_LOG_PATH = "./xcode-ui-device.log"
DEFAULT_CRASH_EXPORT_PATH = "./crash-export.txt"
DEFAULT_REPORT_PATH = "./xcode-ui-report.json"


@dataclass
class CaptureHandle:
    """
    A background capture process started by video_start or logs_start.

    Calls are stateless, so the caller keeps the handle (or its pid) and
    passes the pid back to the matching stop action. A lost pid leaks the
    capture process.
    """
    kind: str
    pid: int
    path: str
    device: str

    def stop(self):
        """Send SIGINT so the capture finalizes its output file"""
        os.kill(self.pid, signal.SIGINT)


def start_capture(kind: str, device: str, path: str) -> CaptureHandle:
    """Start a video or log capture; raises OSError when it cannot be started"""
    if kind == "video":
        pid = process.spawn_background(simctl.record_video_command(device, path))
    else:
        pid = process.spawn_background(simctl.log_stream_command(device), output_path=path)
    return CaptureHandle(kind=kind, pid=pid, path=path, device=device)


@contextmanager
def capture_session(kind: str, device: str, path: str) -> Iterator[CaptureHandle]:
    """Run a capture for the duration of a with-block; it is always stopped on exit"""
    handle = start_capture(kind, device, path)
    try:
        yield handle
    finally:
        try:
            handle.stop()
        except ProcessLookupError:
            pass


def _parse_pid(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    try:
        pid = int(str(value).strip())
    except ValueError:
        return None
    return pid if pid > 0 else None


def execute_shared_action(backend: Backend, ctx: ExecutionContext) -> UiActionResult:
    device = simctl.resolve_device_target(ctx.device_id)
    params = ctx.params or {}
    action = ctx.action

    if action == Action.SCREENSHOT:
        return _screenshot(backend, device, params, ctx)
    if action == Action.VIDEO_START:
        return _start_capture(backend, "video", device, str(params.get("path") or DEFAULT_VIDEO_PATH))
    if action == Action.VIDEO_STOP:
        return _stop_capture(backend, "video", params)
    if action == Action.LOGS_START:
        return _start_capture(backend, "logs", device, str(params.get("path") or DEFAULT_LOG_PATH))
    if action == Action.LOGS_STOP:
        return _stop_capture(backend, "logs", params)
    if action == Action.CRASH_LIST:
        return success(backend.value, data={"crashes": list_crash_reports()})
    if action == Action.CRASH_EXPORT:
        return _crash_export(backend, params)
    if action == Action.EXPORT_REPORT:
        return _export_report(backend, action, params)

    return failure(backend.value, f"unsupported shared action '{action.value}'", "UNSUPPORTED_ACTION")


def _screenshot(backend: Backend, device: str, params: Dict[str, Any], ctx: ExecutionContext) -> UiActionResult:
    path = str(params["path"]) if params.get("path") else make_default_artifact_path("screenshots", "png")
    result = simctl.screenshot(device, path, ctx.cancel)
    if result.cancelled:
        return failure(backend.value, "aborted", "ABORTED")
    if not result.ok:
        return failure(backend.value, (result.stderr or result.stdout).strip() or "simctl screenshot failed",
                       "SIMCTL_SCREENSHOT_FAILED")
    return success(backend.value, data={"path": path}, artifacts={"screenshot": path})


_START_FAILED_CODES = {"video": "SIMCTL_VIDEO_START_FAILED", "logs": "LOG_STREAM_START_FAILED"}
_STOP_FAILED_CODES = {"video": "SIMCTL_VIDEO_STOP_FAILED", "logs": "LOG_STREAM_STOP_FAILED"}


def _start_capture(backend: Backend, kind: str, device: str, path: str) -> UiActionResult:
    try:
        handle = start_capture(kind, device, path)
    except OSError as e:
        return failure(backend.value, f"failed to start {kind} capture: {e}", _START_FAILED_CODES[kind])

    stop_action = "video_stop" if kind == "video" else "logs_stop"
    return success(
        backend.value,
        data={"pid": handle.pid, "path": path, "handle": asdict(handle)},
        artifacts={kind: path},
        warnings=[f"{kind} capture runs as background process. stop with {stop_action} and pid {handle.pid}."]
    )


def _stop_capture(backend: Backend, kind: str, params: Dict[str, Any]) -> UiActionResult:
    stop_action = "video_stop" if kind == "video" else "logs_stop"
    raw_pid = params.get("pid")
    if raw_pid is None or raw_pid == "":
        return failure(backend.value, f"{stop_action} requires pid", "MISSING_PID",
                       f"pass the pid returned by {'video_start' if kind == 'video' else 'logs_start'}")

    pid = _parse_pid(raw_pid)
    if pid is None:
        return failure(backend.value, f"invalid pid: {raw_pid!r}", "INVALID_PID")

    handle = CaptureHandle(kind=kind, pid=pid, path=str(params.get("path") or ""), device="")
    try:
        handle.stop()
    except OSError as e:
        return failure(backend.value, f"failed to stop {kind} capture (pid {pid}): {e}", _STOP_FAILED_CODES[kind])

    print(f"Debug: stopped {kind} capture pid {pid}", file=sys.stderr)
    data = {"pid": pid}
    if handle.path:
        data["path"] = handle.path
    return success(backend.value, data=data)


def list_crash_reports(directory: str = CRASH_REPORT_DIR) -> List[str]:
    """Most recent crash reports first"""
    paths = []
    for pattern in CRASH_REPORT_PATTERNS:
        paths.extend(glob.glob(os.path.join(directory, pattern)))

    reports = []
    for path in paths:
        try:
            reports.append((os.path.getmtime(path), path))
        except OSError:
            continue
    reports.sort(reverse=True)
    return [path for _, path in reports[:MAX_CRASH_REPORTS]]


def _crash_export(backend: Backend, params: Dict[str, Any]) -> UiActionResult:
    crash_path = str(params.get("crashPath") or "")
    output_path = str(params.get("outputPath") or DEFAULT_CRASH_EXPORT_PATH)
    if not crash_path:
        return failure(backend.value, "crash_export requires crashPath", "MISSING_CRASH_PATH",
                       "use crash_list to find crash report paths")

    try:
        output_path = shutil.copy(crash_path, output_path)
    except OSError as e:
        return failure(backend.value, f"failed to export crash report: {e}", "CRASH_EXPORT_FAILED")

    return success(backend.value, data={"path": output_path}, artifacts={"crash": output_path})


def _export_report(backend: Backend, action: Action, params: Dict[str, Any]) -> UiActionResult:
    report_path = str(params.get("path") or DEFAULT_REPORT_PATH)
    report = {
        "backend": backend.value,
        "action": action.value,
        "timestamp": datetime.datetime.now(datetime.timezone.utc).isoformat(),
        "steps": params.get("steps") or [],
        "artifacts": params.get("artifacts") or {},
        "verdict": params.get("verdict") or "unknown",
    }

    try:
        with open(report_path, "w") as f:
            json.dump(report, f, indent=2, default=str)
            f.write("\n")
    except OSError as e:
        return failure(backend.value, f"failed to write report: {e}", "REPORT_EXPORT_FAILED")

    return success(backend.value, data={"path": report_path}, artifacts={"report": report_path})
