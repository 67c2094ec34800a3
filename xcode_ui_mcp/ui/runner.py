#!/usr/bin/env python3
"""
Runner backend for xcuitest and idb.

Interactive actions are delegated to a user-configured runner command, which
receives one JSON argument {action, backend, deviceId, params} and prints one
JSON object {ok, data?, artifacts?, warnings?, errors?}. The runner's exit
code only matters when no JSON could be parsed.
"""

import json
import shlex
import sys

from xcode_ui_mcp.ui.envelope import UiActionResult, err, failure
from xcode_ui_mcp.ui.helpers import parse_runner_json, to_string_record
from xcode_ui_mcp.ui.types import Backend, ExecutionContext
from xcode_ui_mcp.utils import process


def build_runner_shell_command(runner_command: str, payload: str):
    """Append the payload to the runner command as one single-quoted shell word"""
    return ["bash", "-lc", f"{runner_command} {shlex.quote(payload)}"]


def _normalize_errors(raw_errors, ok: bool):
    errors = []
    if isinstance(raw_errors, list):
        for e in raw_errors:
            if isinstance(e, str):
                errors.append(err(e))
            elif isinstance(e, dict):
                message = e.get("message")
                errors.append(err(
                    str(message) if message is not None else "runner error",
                    e.get("code") if isinstance(e.get("code"), str) else None,
                    e.get("hint") if isinstance(e.get("hint"), str) else None
                ))
            else:
                errors.append(err("runner error"))
    if not errors and not ok:
        errors.append(err("ui runner returned ok=false", "RUNNER_ACTION_FAILED"))
    return errors or None


def execute_runner_action(backend: Backend, ctx: ExecutionContext) -> UiActionResult:
    if not ctx.runner_command or not ctx.runner_command.strip():
        return failure(
            backend.value,
            f"action '{ctx.action.value}' requires a UI runner command",
            "MISSING_RUNNER",
            "pass runner_command, or configure one with --runner-command NAME=COMMAND. "
            "example: runner_command='xcodebuild test -scheme <UITestScheme> -destination <dest>'. "
            "For macOS native apps, use backend='axorcist'.",
            warnings=["best practice: use an XCUITest runner harness. backend default is xcuitest."]
        )

    if backend == Backend.IDB and not process.has_command("idb"):
        return failure(backend.value, "idb command not found", "IDB_NOT_FOUND",
                       "install idb (https://fbidb.io) or use backend=xcuitest")

    payload = json.dumps({
        "action": ctx.action.value,
        "backend": backend.value,
        "deviceId": ctx.device_id,
        "params": ctx.params or {},
    })

    print(f"Debug: invoking runner for {ctx.action.value} ({backend.value})", file=sys.stderr)
    result = process.run(build_runner_shell_command(ctx.runner_command, payload), cancel=ctx.cancel)

    if result.cancelled:
        return failure(backend.value, "aborted", "ABORTED")

    # The runner exits non-zero on ok=false, but its JSON result is still valid
    parsed = parse_runner_json(result.stdout)

    if result.timed_out and parsed is None:
        return failure(backend.value, "ui runner timed out", "TIMEOUT",
                       data={"stdout": result.stdout.strip(), "stderr": result.stderr.strip()})

    if result.exit_code != 0 and parsed is None:
        return failure(
            backend.value,
            f"ui runner failed: {result.stderr.strip() or result.stdout.strip() or 'no output'}",
            "RUNNER_FAILED",
            data={"exitCode": result.exit_code, "stdout": result.stdout.strip(), "stderr": result.stderr.strip()}
        )

    if parsed is None:
        return failure(
            backend.value,
            "ui runner returned non-json output",
            "RUNNER_INVALID_OUTPUT",
            "runner must print a single JSON result with at least { ok: boolean }",
            data={"stdout": result.stdout.strip(), "stderr": result.stderr.strip()}
        )

    ok = parsed.get("ok")
    if not isinstance(ok, bool):
        return failure(
            backend.value,
            "ui runner JSON missing boolean field 'ok'",
            "RUNNER_INVALID_JSON",
            "runner result must include { ok: true|false }",
            data=parsed
        )

    artifacts = parsed.get("artifacts")
    warnings = parsed.get("warnings")
    return UiActionResult(
        ok=ok,
        backend=backend.value,
        data=parsed.get("data"),
        artifacts=to_string_record(artifacts) if isinstance(artifacts, dict) else None,
        warnings=[w for w in warnings if isinstance(w, str)] if isinstance(warnings, list) else None,
        errors=_normalize_errors(parsed.get("errors"), ok)
    )
