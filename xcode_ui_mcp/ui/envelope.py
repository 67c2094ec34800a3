#!/usr/bin/env python3
"""
Result envelope shared by every UI backend.

Each backend returns exactly one UiActionResult per call and never raises:
process and platform failures become ok=False results carrying error codes.
"""

import json
from dataclasses import dataclass
from typing import Any, Dict, List, Optional


@dataclass
class ToolError:
    message: str
    code: Optional[str] = None
    hint: Optional[str] = None

    def to_dict(self) -> Dict[str, str]:
        out = {"message": self.message}
        if self.code:
            out["code"] = self.code
        if self.hint:
            out["hint"] = self.hint
        return out


def err(message: str, code: Optional[str] = None, hint: Optional[str] = None) -> ToolError:
    return ToolError(message, code, hint)


@dataclass
class UiActionResult:
    ok: bool
    backend: str
    data: Any = None
    artifacts: Optional[Dict[str, str]] = None
    warnings: Optional[List[str]] = None
    errors: Optional[List[ToolError]] = None

    def normalized_errors(self, action: str = "action") -> List[ToolError]:
        """Errors to show; a failed result without errors gets a generic one"""
        if self.errors:
            return list(self.errors)
        if not self.ok:
            return [err(f"{action} failed", "UNKNOWN_ERROR")]
        return []

    def add_warning(self, warning: str):
        self.warnings = (self.warnings or []) + [warning]

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {"ok": self.ok, "backend": self.backend}
        if self.data is not None:
            out["data"] = self.data
        if self.artifacts:
            out["artifacts"] = dict(self.artifacts)
        if self.warnings:
            out["warnings"] = list(self.warnings)
        errors = self.normalized_errors()
        if errors:
            out["errors"] = [e.to_dict() for e in errors]
        return out


def success(backend: str, data: Any = None, artifacts: Optional[Dict[str, str]] = None,
            warnings: Optional[List[str]] = None) -> UiActionResult:
    return UiActionResult(ok=True, backend=backend, data=data, artifacts=artifacts, warnings=warnings)


def failure(backend: str, message: str, code: Optional[str] = None, hint: Optional[str] = None,
            data: Any = None, warnings: Optional[List[str]] = None) -> UiActionResult:
    return UiActionResult(ok=False, backend=backend, data=data, warnings=warnings,
                          errors=[err(message, code, hint)])


def summarize_errors(errors: List[ToolError]) -> str:
    lines = []
    for e in errors:
        line = f"[{e.code}] {e.message}" if e.code else e.message
        if e.hint:
            line += f"\n  hint: {e.hint}"
        lines.append(line)
    return "\n".join(lines)


# Keys whose long string values are elided from rendered output
DATA_EXCLUDE_KEYS = {"stdout", "stderr", "command", "raw"}
MAX_OUTPUT_LINES = 500
MAX_OUTPUT_BYTES = 30_000


def _serialize_data(data: Any) -> Optional[str]:
    if data is None:
        return None
    if isinstance(data, str):
        return data or None
    if isinstance(data, dict):
        data = {
            k: (f"[{len(v)} chars, see details]"
                if k in DATA_EXCLUDE_KEYS and isinstance(v, str) and len(v) > 500 else v)
            for k, v in data.items()
        }
    try:
        rendered = json.dumps(data, indent=2, default=str)
    except (TypeError, ValueError):
        return str(data)
    return None if rendered in ("{}", "[]") else rendered


def _truncate(text: str) -> str:
    lines = text.split("\n")
    truncated = len(lines) > MAX_OUTPUT_LINES
    text = "\n".join(lines[:MAX_OUTPUT_LINES])
    encoded = text.encode("utf-8")
    if len(encoded) > MAX_OUTPUT_BYTES:
        text = encoded[:MAX_OUTPUT_BYTES].decode("utf-8", errors="ignore")
        truncated = True
    if truncated:
        text += "\n... (output truncated)"
    return text


def format_result(action: str, result: UiActionResult) -> str:
    """
    Render a result as text for the calling agent.

    Includes a summary line, the data as JSON, artifact paths, errors with
    codes and hints, and warnings.
    """
    errors = result.normalized_errors(action)
    if result.ok:
        summary = f"{action} ok ({result.backend})"
    else:
        code = errors[0].code if errors else None
        summary = f"{action} failed ({code})" if code else f"{action} failed"

    parts = [summary]

    data_text = _serialize_data(result.data)
    if data_text:
        parts.append(data_text)

    if result.artifacts:
        parts.append("Artifacts:\n" + "\n".join(f"  {k}: {v}" for k, v in result.artifacts.items()))

    if errors:
        parts.append(summarize_errors(errors))

    if result.warnings:
        parts.append("Warnings:\n" + "\n".join(f"  - {w}" for w in result.warnings))

    return _truncate("\n\n".join(parts))
