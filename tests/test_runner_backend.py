"""Tests for the runner backend: payload shape, output parsing and result normalization"""

import json
import shlex

from xcode_ui_mcp.ui.dispatcher import execute_ui_action
from xcode_ui_mcp.ui.helpers import parse_runner_json
from xcode_ui_mcp.ui.runner import build_runner_shell_command, execute_runner_action
from xcode_ui_mcp.ui.types import Action, Backend, ExecutionContext
from xcode_ui_mcp.utils.process import RunResult


def _ctx(**kwargs):
    kwargs.setdefault("action", Action.TAP)
    kwargs.setdefault("runner_command", "./run-ui.sh")
    return ExecutionContext(**kwargs)


# ---------------------------------------------------------------------------
# parse_runner_json
# ---------------------------------------------------------------------------

def test_parse_whole_output():
    assert parse_runner_json('  {"ok": true, "data": {"a": 1}}\n') == {"ok": True, "data": {"a": 1}}


def test_parse_trailing_json_after_log_lines():
    assert parse_runner_json('INFO: starting\n{"ok":true,"data":{}}\n') == {"ok": True, "data": {}}


def test_parse_takes_last_valid_object_line():
    stdout = '{"ok": false}\nnoise\n{"ok": true}\n{not json}\n'
    assert parse_runner_json(stdout) == {"ok": True}


def test_parse_returns_none_without_object_line():
    assert parse_runner_json("building...\nTest Succeeded\n") is None
    assert parse_runner_json("") is None
    assert parse_runner_json("[1, 2]") is None


# ---------------------------------------------------------------------------
# Preconditions
# ---------------------------------------------------------------------------

def test_missing_runner_spawns_nothing(fake_process):
    result = execute_ui_action(_ctx(runner_command=None))

    assert result.ok is False
    assert result.backend == "xcuitest"
    assert result.errors[0].code == "MISSING_RUNNER"
    assert result.errors[0].hint
    assert fake_process.calls == []


def test_blank_runner_is_missing(fake_process):
    result = execute_runner_action(Backend.XCUITEST, _ctx(runner_command="   "))
    assert result.errors[0].code == "MISSING_RUNNER"
    assert fake_process.calls == []


def test_idb_backend_requires_idb(fake_process):
    fake_process.available.discard("idb")

    result = execute_runner_action(Backend.IDB, _ctx())

    assert result.errors[0].code == "IDB_NOT_FOUND"
    assert "install" in result.errors[0].hint
    assert fake_process.calls == []


# ---------------------------------------------------------------------------
# Invocation
# ---------------------------------------------------------------------------

def test_payload_passed_as_single_shell_argument(fake_process):
    fake_process.on("bash", RunResult('{"ok": true}', "", 0))
    ctx = _ctx(device_id="SIM-1", params={"identifier": "it's-quoted"})

    execute_runner_action(Backend.XCUITEST, ctx)

    (call,) = fake_process.calls
    assert call.command[:2] == ["bash", "-lc"]
    words = shlex.split(call.command[2])
    assert words[0] == "./run-ui.sh"
    assert json.loads(words[1]) == {
        "action": "tap",
        "backend": "xcuitest",
        "deviceId": "SIM-1",
        "params": {"identifier": "it's-quoted"},
    }


def test_build_runner_shell_command_quotes_payload():
    command = build_runner_shell_command("runner --flag", '{"a": "b\'c"}')
    assert shlex.split(command[2]) == ["runner", "--flag", '{"a": "b\'c"}']


# ---------------------------------------------------------------------------
# Output handling
# ---------------------------------------------------------------------------

def test_log_lines_before_json_are_tolerated(fake_process):
    fake_process.on("bash", RunResult('INFO: starting\n{"ok":true,"data":{}}\n', "", 0))

    result = execute_runner_action(Backend.XCUITEST, _ctx())

    assert result.ok is True
    assert result.data == {}


def test_nonzero_exit_without_json_is_runner_failed(fake_process):
    fake_process.on("bash", RunResult("partial output", "xcodebuild: error", 65))

    result = execute_runner_action(Backend.XCUITEST, _ctx())

    assert result.ok is False
    assert result.errors[0].code == "RUNNER_FAILED"
    assert result.data == {"exitCode": 65, "stdout": "partial output", "stderr": "xcodebuild: error"}
    assert len(fake_process.calls) == 1


def test_zero_exit_without_json_is_invalid_output(fake_process):
    fake_process.on("bash", RunResult("all good, no json\n", "", 0))

    result = execute_runner_action(Backend.XCUITEST, _ctx())

    assert result.errors[0].code == "RUNNER_INVALID_OUTPUT"


def test_json_without_boolean_ok_is_invalid_json(fake_process):
    fake_process.on("bash", RunResult('{"ok": "yes"}', "", 0))

    result = execute_runner_action(Backend.XCUITEST, _ctx())

    assert result.ok is False
    assert result.errors[0].code == "RUNNER_INVALID_JSON"
    assert result.data == {"ok": "yes"}


def test_nonzero_exit_with_failure_json_is_passed_through(fake_process):
    stdout = json.dumps({
        "ok": False,
        "errors": [{"message": "no element", "code": "ELEMENT_NOT_FOUND", "hint": "check id"}],
    })
    fake_process.on("bash", RunResult(stdout, "", 1))

    result = execute_runner_action(Backend.XCUITEST, _ctx())

    assert result.ok is False
    assert result.errors[0].to_dict() == {"message": "no element", "code": "ELEMENT_NOT_FOUND", "hint": "check id"}


def test_result_fields_are_normalized(fake_process):
    stdout = json.dumps({
        "ok": True,
        "data": {"identifier": "save"},
        "artifacts": {"screenshot": "/tmp/s.png", "meta": {"w": 1}},
        "warnings": ["slow", 3, None],
        "errors": ["odd but allowed", {"code": 7}, 5, {"message": None, "code": "X"}],
    })
    fake_process.on("bash", RunResult(stdout, "", 0))

    result = execute_runner_action(Backend.XCUITEST, _ctx())

    assert result.ok is True
    assert result.data == {"identifier": "save"}
    assert result.artifacts == {"screenshot": "/tmp/s.png", "meta": '{"w": 1}'}
    assert result.warnings == ["slow"]
    assert [e.to_dict() for e in result.errors] == [
        {"message": "odd but allowed"},
        {"message": "runner error"},
        {"message": "runner error"},
        {"message": "runner error", "code": "X"},
    ]


def test_failure_without_errors_gets_generic_error(fake_process):
    fake_process.on("bash", RunResult('{"ok": false}', "", 1))

    result = execute_runner_action(Backend.XCUITEST, _ctx())

    assert result.errors[0].code == "RUNNER_ACTION_FAILED"


def test_cancelled_runner_reports_aborted(fake_process):
    fake_process.on("bash", RunResult("", "", -9, cancelled=True))

    result = execute_runner_action(Backend.XCUITEST, _ctx())

    assert result.errors[0].code == "ABORTED"


def test_timed_out_runner_reports_timeout(fake_process):
    fake_process.on("bash", RunResult("", "timed out", -9, timed_out=True))

    result = execute_runner_action(Backend.XCUITEST, _ctx())

    assert result.errors[0].code == "TIMEOUT"
