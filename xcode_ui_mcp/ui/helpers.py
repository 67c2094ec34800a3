#!/usr/bin/env python3
"""Helpers shared by the UI backends"""

import os
import json
import time
import uuid
import tempfile
from typing import Any, Dict, Optional

ARTIFACT_ROOT = os.path.join(tempfile.gettempdir(), "xcode-ui-mcp")


def make_default_artifact_path(kind: str, extension: str) -> str:
    """Generate a unique artifact path under <tmp>/xcode-ui-mcp/<kind>/"""
    base_dir = os.path.join(ARTIFACT_ROOT, kind)
    os.makedirs(base_dir, exist_ok=True)
    timestamp = time.strftime("%Y%m%d_%H%M%S")
    return os.path.join(base_dir, f"{timestamp}-{uuid.uuid4().hex[:6]}.{extension}")


def parse_runner_json(stdout: str) -> Optional[Dict[str, Any]]:
    """
    Parse the JSON object printed by a runner.

    The whole output is tried first. Runners may log before their result, so
    failing that, non-empty lines are scanned from the end for the last one
    that looks like and parses as a JSON object.
    """
    trimmed = stdout.strip()
    if not trimmed:
        return None

    try:
        parsed = json.loads(trimmed)
        return parsed if isinstance(parsed, dict) else None
    except ValueError:
        pass

    lines = [line.strip() for line in trimmed.split("\n") if line.strip()]
    for line in reversed(lines):
        if not (line.startswith("{") and line.endswith("}")):
            continue
        try:
            parsed = json.loads(line)
        except ValueError:
            continue
        if isinstance(parsed, dict):
            return parsed
    return None


def to_string_record(value: Dict[str, Any]) -> Dict[str, str]:
    return {str(k): v if isinstance(v, str) else json.dumps(v) for k, v in value.items()}
