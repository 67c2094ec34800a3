#!/usr/bin/env python3
"""Subprocess execution with cancellation and timeouts"""

import os
import sys
import time
import shutil
import subprocess
import threading
from dataclasses import dataclass
from typing import List, Optional

# How often a running process is checked for cancellation
POLL_INTERVAL = 0.1


@dataclass
class RunResult:
    stdout: str
    stderr: str
    exit_code: int
    cancelled: bool = False
    timed_out: bool = False

    @property
    def ok(self) -> bool:
        return self.exit_code == 0 and not self.cancelled and not self.timed_out


def run(command: List[str],
        cancel: Optional[threading.Event] = None,
        input: Optional[str] = None,
        timeout: Optional[float] = None,
        cwd: Optional[str] = None) -> RunResult:
    """
    Run a command and wait for it to exit, the cancel event to fire, or the timeout to pass.

    Args:
        command: Argument list, command first
        cancel: Optional event; when set the process is killed
        input: Optional text written to the process's stdin
        timeout: Optional timeout in seconds
        cwd: Optional working directory

    Returns:
        RunResult. A command that cannot be started yields exit code 127.
    """
    if cancel is not None and cancel.is_set():
        return RunResult("", "aborted before start", -1, cancelled=True)

    print(f"Debug: running {command[0]}", file=sys.stderr)

    try:
        proc = subprocess.Popen(
            command,
            stdin=subprocess.PIPE if input is not None else subprocess.DEVNULL,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            text=True,
            cwd=cwd
        )
    except OSError as e:
        return RunResult("", f"{command[0]}: {e}", 127)

    deadline = time.monotonic() + timeout if timeout is not None else None
    pending_input = input

    while True:
        try:
            stdout, stderr = proc.communicate(input=pending_input, timeout=POLL_INTERVAL)
            return RunResult(stdout or "", stderr or "", proc.returncode)
        except subprocess.TimeoutExpired:
            # stdin can only be written on the first communicate() call
            pending_input = None

        if cancel is not None and cancel.is_set():
            proc.kill()
            stdout, stderr = proc.communicate()
            print(f"Debug: {command[0]} cancelled", file=sys.stderr)
            return RunResult(stdout or "", stderr or "", proc.returncode, cancelled=True)

        if deadline is not None and time.monotonic() > deadline:
            proc.kill()
            stdout, stderr = proc.communicate()
            print(f"Debug: {command[0]} timed out after {timeout}s", file=sys.stderr)
            stderr = (stderr or "") + f"\n{command[0]} timed out after {timeout}s"
            return RunResult(stdout or "", stderr.strip(), proc.returncode, timed_out=True)


def spawn_background(command: List[str], output_path: Optional[str] = None) -> int:
    """
    Start a detached background process and return its pid.

    The process outlives the call; stdout/stderr go to output_path when given,
    otherwise they are discarded. Raises OSError if the process cannot be started.
    """
    if output_path:
        with open(output_path, "w") as out:
            proc = subprocess.Popen(command, stdin=subprocess.DEVNULL, stdout=out,
                                    stderr=subprocess.STDOUT, start_new_session=True)
    else:
        proc = subprocess.Popen(command, stdin=subprocess.DEVNULL, stdout=subprocess.DEVNULL,
                                stderr=subprocess.DEVNULL, start_new_session=True)
    print(f"Debug: started background {command[0]} with pid {proc.pid}", file=sys.stderr)
    return proc.pid


def has_command(name: str) -> bool:
    """Check if a CLI command is on PATH and executable"""
    path = shutil.which(name)
    return bool(path) and os.access(path, os.X_OK)
