import json
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Union

import pytest

from xcode_ui_mcp.ui import native
from xcode_ui_mcp.utils import process
from xcode_ui_mcp.utils.process import RunResult

Responder = Union[RunResult, Callable[..., RunResult]]


@dataclass
class Call:
    command: List[str]
    input: Optional[str]

    @property
    def payload(self):
        return json.loads(self.input) if self.input else None


class FakeProcess:
    """Stands in for utils.process: records every command and answers from handlers"""

    def __init__(self):
        self.calls: List[Call] = []
        self.handlers: Dict[str, Responder] = {}
        self.available = {"axorc", "idb", "xcrun", "osascript", "swift"}
        self.spawned: List[dict] = []
        self.next_pid = 4242

    def on(self, program: str, responder: Responder):
        self.handlers[program] = responder

    def run(self, command, cancel=None, input=None, timeout=None, cwd=None):
        call = Call(list(command), input)
        self.calls.append(call)
        responder = self.handlers.get(command[0])
        if responder is None:
            return RunResult("", "", 0)
        if isinstance(responder, RunResult):
            return responder
        return responder(call)

    def has_command(self, name):
        return name in self.available

    def spawn_background(self, command, output_path=None):
        self.spawned.append({"command": list(command), "output_path": output_path})
        return self.next_pid

    def calls_to(self, program: str) -> List[Call]:
        return [c for c in self.calls if c.command[0] == program]


def axorc_ok(data=None) -> RunResult:
    return RunResult(json.dumps({"command_id": "x", "status": "success", "data": data}), "", 0)


def axorc_error(message: str) -> RunResult:
    return RunResult(json.dumps({"command_id": "x", "status": "error", "error": message}), "", 1)


@pytest.fixture
def fake_process(monkeypatch):
    fake = FakeProcess()
    monkeypatch.setattr(process, "run", fake.run)
    monkeypatch.setattr(process, "has_command", fake.has_command)
    monkeypatch.setattr(process, "spawn_background", fake.spawn_background)
    return fake


@pytest.fixture
def waits(monkeypatch):
    """Replace native polling sleeps with an instant, recorded no-op"""
    recorded = []

    def fake_wait(cancel, seconds):
        recorded.append(seconds)
        return cancel.is_set()

    monkeypatch.setattr(native, "_wait", fake_wait)
    return recorded
