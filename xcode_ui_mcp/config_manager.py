#!/usr/bin/env python3
"""Runner command configuration - initialized by CLI"""

import os
import sys
import json
from typing import Dict, List, Optional

from xcode_ui_mcp.exceptions import InvalidParameterError

RUNNER_COMMANDS_ENV = "XCODEUI_RUNNER_COMMANDS"

# Scheme name -> UI runner command
UI_RUNNER_COMMANDS: Dict[str, str] = {}


def set_runner_commands(commands: Dict[str, str]):
    """Set the global runner command mapping"""
    global UI_RUNNER_COMMANDS
    UI_RUNNER_COMMANDS = dict(commands)


def get_runner_commands() -> Dict[str, str]:
    return UI_RUNNER_COMMANDS.copy()


def _string_mapping(value, source: str) -> Dict[str, str]:
    if not isinstance(value, dict):
        raise InvalidParameterError(f"{source} must be a JSON object mapping scheme name to runner command")
    commands = {}
    for name, command in value.items():
        if not isinstance(command, str) or not command.strip():
            print(f"Warning: Skipping empty runner command for '{name}' in {source}", file=sys.stderr)
            continue
        commands[str(name)] = command.strip()
    return commands


def parse_runner_command_args(entries: Optional[List[str]]) -> Dict[str, str]:
    """Parse NAME=COMMAND pairs; a bare COMMAND is stored as 'default'"""
    commands = {}
    for entry in entries or []:
        name, sep, command = entry.partition("=")
        if not sep or " " in name.strip() or not name.strip():
            name, command = "default", entry
        if not command.strip():
            raise InvalidParameterError(f"Empty runner command in '{entry}'")
        commands[name.strip()] = command.strip()
    return commands


def load_runner_commands(config_path: Optional[str] = None,
                         command_line_entries: Optional[List[str]] = None) -> Dict[str, str]:
    """
    Load runner commands from the environment, a config file and the command line.

    Later sources override earlier ones per scheme name.

    Args:
        config_path: Optional JSON file of the form {"uiRunnerCommands": {...}}
        command_line_entries: NAME=COMMAND strings from --runner-command

    Returns:
        Mapping of scheme name to runner command
    """
    commands: Dict[str, str] = {}

    env_value = os.environ.get(RUNNER_COMMANDS_ENV)
    if env_value:
        print(f"Using runner commands from environment: {RUNNER_COMMANDS_ENV}", file=sys.stderr)
        try:
            commands.update(_string_mapping(json.loads(env_value), RUNNER_COMMANDS_ENV))
        except ValueError as e:
            raise InvalidParameterError(f"{RUNNER_COMMANDS_ENV} is not valid JSON: {e}")

    if config_path:
        config_path = os.path.expanduser(config_path)
        try:
            with open(config_path) as f:
                config = json.load(f)
        except (OSError, ValueError) as e:
            raise InvalidParameterError(f"Cannot read config file {config_path}: {e}")
        if not isinstance(config, dict):
            raise InvalidParameterError(f"Config file {config_path} must contain a JSON object")
        commands.update(_string_mapping(config.get("uiRunnerCommands", {}), config_path))
        print(f"Loaded config file: {config_path}", file=sys.stderr)

    commands.update(parse_runner_command_args(command_line_entries))
    return commands


def resolve_runner_command(explicit_command: Optional[str] = None,
                           scheme: Optional[str] = None,
                           commands: Optional[Dict[str, str]] = None) -> Optional[str]:
    """
    Pick the runner command for a call.

    Order: explicit command, the scheme's command, the only configured
    command, the 'default' entry, the first entry.
    """
    if explicit_command and explicit_command.strip():
        return explicit_command.strip()

    if commands is None:
        commands = UI_RUNNER_COMMANDS
    if not commands:
        return None
    if scheme and scheme in commands:
        return commands[scheme]
    if len(commands) == 1:
        return next(iter(commands.values()))
    if "default" in commands:
        return commands["default"]
    return next(iter(commands.values()))
