"""Tests for device-level actions shared by the xcuitest and idb backends"""

import os
import json
import signal

import pytest

from xcode_ui_mcp.ui import shared
from xcode_ui_mcp.ui.dispatcher import execute_ui_action
from xcode_ui_mcp.ui.types import Action, Backend, ExecutionContext
from xcode_ui_mcp.utils.process import RunResult


def _ctx(action, params=None, **kwargs):
    return ExecutionContext(action=action, backend_mode="xcuitest", params=params or {}, **kwargs)


@pytest.fixture
def kills(monkeypatch):
    sent = []
    monkeypatch.setattr(shared.os, "kill", lambda pid, sig: sent.append((pid, sig)))
    return sent


# ---------------------------------------------------------------------------
# screenshot
# ---------------------------------------------------------------------------

def test_screenshot_targets_booted_device_by_default(fake_process, tmp_path):
    path = str(tmp_path / "shot.png")

    result = execute_ui_action(_ctx(Action.SCREENSHOT, {"path": path}))

    assert result.ok is True
    assert result.artifacts == {"screenshot": path}
    assert fake_process.calls[0].command == ["xcrun", "simctl", "io", "booted", "screenshot", path]


def test_screenshot_uses_device_id(fake_process, tmp_path):
    execute_ui_action(_ctx(Action.SCREENSHOT, {"path": str(tmp_path / "s.png")}, device_id="ABC-123"))
    assert fake_process.calls[0].command[3] == "ABC-123"


def test_screenshot_default_path(fake_process, monkeypatch, tmp_path):
    monkeypatch.setattr("xcode_ui_mcp.ui.helpers.ARTIFACT_ROOT", str(tmp_path))

    result = execute_ui_action(_ctx(Action.SCREENSHOT))

    path = result.artifacts["screenshot"]
    assert path.startswith(str(tmp_path / "screenshots"))
    assert path.endswith(".png")


def test_screenshot_failure(fake_process, tmp_path):
    fake_process.on("xcrun", RunResult("", "No devices are booted.", 149))

    result = execute_ui_action(_ctx(Action.SCREENSHOT, {"path": str(tmp_path / "s.png")}))

    assert result.errors[0].code == "SIMCTL_SCREENSHOT_FAILED"
    assert result.errors[0].message == "No devices are booted."


# ---------------------------------------------------------------------------
# video / logs
# ---------------------------------------------------------------------------

def test_video_start_returns_pid_and_handle(fake_process):
    result = execute_ui_action(_ctx(Action.VIDEO_START, {"path": "/tmp/run.mp4"}))

    assert result.ok is True
    assert result.data["pid"] == 4242
    assert result.data["handle"] == {"kind": "video", "pid": 4242, "path": "/tmp/run.mp4", "device": "booted"}
    assert result.artifacts == {"video": "/tmp/run.mp4"}
    assert "video_stop" in result.warnings[0]
    assert fake_process.spawned[0]["command"] == [
        "xcrun", "simctl", "io", "booted", "recordVideo", "--force", "/tmp/run.mp4",
    ]


def test_logs_start_writes_to_file(fake_process):
    result = execute_ui_action(_ctx(Action.LOGS_START, device_id="SIM-9"))

    assert result.ok is True
    spawned = fake_process.spawned[0]
    assert spawned["command"][:4] == ["xcrun", "simctl", "spawn", "SIM-9"]
    assert spawned["output_path"] == shared.DEFAULT_LOG_PATH


def test_start_failure(monkeypatch):
    def fail(command, output_path=None):
        raise FileNotFoundError("xcrun")

    monkeypatch.setattr("xcode_ui_mcp.utils.process.spawn_background", fail)

    result = execute_ui_action(_ctx(Action.VIDEO_START))

    assert result.errors[0].code == "SIMCTL_VIDEO_START_FAILED"


def test_video_stop_sends_sigint(kills):
    result = execute_ui_action(_ctx(Action.VIDEO_STOP, {"pid": "4242"}))

    assert result.ok is True
    assert result.data == {"pid": 4242}
    assert kills == [(4242, signal.SIGINT)]


def test_stop_without_pid(kills):
    result = execute_ui_action(_ctx(Action.LOGS_STOP))

    assert result.errors[0].code == "MISSING_PID"
    assert kills == []


@pytest.mark.parametrize("pid", ["abc", -3, 0, True])
def test_stop_with_invalid_pid(kills, pid):
    result = execute_ui_action(_ctx(Action.VIDEO_STOP, {"pid": pid}))

    assert result.errors[0].code == "INVALID_PID"
    assert kills == []


def test_stop_of_dead_process(monkeypatch):
    def gone(pid, sig):
        raise ProcessLookupError("No such process")

    monkeypatch.setattr(shared.os, "kill", gone)

    result = execute_ui_action(_ctx(Action.LOGS_STOP, {"pid": 99999}))

    assert result.errors[0].code == "LOG_STREAM_STOP_FAILED"


def test_capture_session_stops_on_exit(fake_process, kills):
    with shared.capture_session("video", "booted", "/tmp/v.mp4") as handle:
        assert handle.pid == 4242
        assert kills == []

    assert kills == [(4242, signal.SIGINT)]


def test_capture_session_stops_after_error(fake_process, kills):
    with pytest.raises(RuntimeError):
        with shared.capture_session("logs", "booted", "/tmp/l.log"):
            raise RuntimeError("test failed")

    assert kills == [(4242, signal.SIGINT)]


# ---------------------------------------------------------------------------
# crash reports
# ---------------------------------------------------------------------------

def test_crash_list_newest_first_and_capped(tmp_path):
    for i in range(25):
        report = tmp_path / f"App-{i:02d}.{'ips' if i % 2 else 'crash'}"
        report.write_text("crash")
        os.utime(report, (1_000_000 + i, 1_000_000 + i))
    (tmp_path / "notes.txt").write_text("ignored")

    reports = shared.list_crash_reports(str(tmp_path))

    assert len(reports) == shared.MAX_CRASH_REPORTS
    assert os.path.basename(reports[0]) == "App-24.crash"
    assert os.path.basename(reports[-1]) == "App-05.ips"


def test_crash_list_missing_directory(tmp_path):
    assert shared.list_crash_reports(str(tmp_path / "nope")) == []


def test_crash_list_action(monkeypatch):
    monkeypatch.setattr(shared, "list_crash_reports", lambda: ["/a.crash"])

    result = execute_ui_action(_ctx(Action.CRASH_LIST))

    assert result.data == {"crashes": ["/a.crash"]}


def test_crash_export_copies_report(tmp_path):
    source = tmp_path / "App.crash"
    source.write_text("Exception Type: EXC_CRASH")
    target = tmp_path / "out.txt"

    result = execute_ui_action(_ctx(Action.CRASH_EXPORT, {"crashPath": str(source), "outputPath": str(target)}))

    assert result.ok is True
    assert target.read_text() == "Exception Type: EXC_CRASH"
    assert result.artifacts == {"crash": str(target)}


def test_crash_export_into_directory(tmp_path):
    source = tmp_path / "App.ips"
    source.write_text("{}")
    target_dir = tmp_path / "exports"
    target_dir.mkdir()

    result = execute_ui_action(_ctx(Action.CRASH_EXPORT, {"crashPath": str(source), "outputPath": str(target_dir)}))

    assert result.ok is True
    assert (target_dir / "App.ips").read_text() == "{}"
    assert result.data == {"path": str(target_dir / "App.ips")}


def test_crash_export_requires_path():
    result = execute_ui_action(_ctx(Action.CRASH_EXPORT))
    assert result.errors[0].code == "MISSING_CRASH_PATH"


def test_crash_export_failure(tmp_path):
    result = execute_ui_action(_ctx(Action.CRASH_EXPORT, {
        "crashPath": str(tmp_path / "missing.crash"),
        "outputPath": str(tmp_path / "out.txt"),
    }))
    assert result.errors[0].code == "CRASH_EXPORT_FAILED"


# ---------------------------------------------------------------------------
# export_report
# ---------------------------------------------------------------------------

def test_export_report_writes_json(tmp_path):
    path = tmp_path / "report.json"

    result = shared.execute_shared_action(Backend.IDB, _ctx(Action.EXPORT_REPORT, {
        "path": str(path),
        "steps": [{"action": "tap", "ok": True}],
        "verdict": "pass",
    }))

    assert result.ok is True
    assert result.artifacts == {"report": str(path)}
    report = json.loads(path.read_text())
    assert report["backend"] == "idb"
    assert report["action"] == "export_report"
    assert report["steps"] == [{"action": "tap", "ok": True}]
    assert report["artifacts"] == {}
    assert report["verdict"] == "pass"
    assert report["timestamp"]


def test_export_report_defaults(tmp_path):
    path = tmp_path / "report.json"

    execute_ui_action(_ctx(Action.EXPORT_REPORT, {"path": str(path)}))

    report = json.loads(path.read_text())
    assert report["verdict"] == "unknown"
    assert report["steps"] == []


def test_export_report_unwritable(tmp_path):
    result = execute_ui_action(_ctx(Action.EXPORT_REPORT, {"path": str(tmp_path / "no" / "dir" / "r.json")}))
    assert result.errors[0].code == "REPORT_EXPORT_FAILED"
