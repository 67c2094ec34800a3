#!/usr/bin/env python3
import sys
import argparse

from xcode_ui_mcp import __version__
from xcode_ui_mcp.config_manager import RUNNER_COMMANDS_ENV, load_runner_commands, set_runner_commands
from xcode_ui_mcp.exceptions import InvalidParameterError
from xcode_ui_mcp.server import mcp
from xcode_ui_mcp.utils.applescript import set_notifications_enabled
from xcode_ui_mcp.utils.process import has_command


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Xcode UI MCP Server")
    parser.add_argument("--version", action="version", version=f"xcode-ui-mcp {__version__}")
    parser.add_argument("--runner-command", action="append", metavar="NAME=COMMAND",
                        help="Add a UI runner command for a scheme (can be used multiple times)")
    parser.add_argument("--config", help="JSON config file with a uiRunnerCommands mapping")
    parser.add_argument("--show-notifications", action="store_true", help="Enable notifications for tool invocations")
    parser.add_argument("--hide-notifications", action="store_true", help="Disable notifications for tool invocations")
    return parser.parse_args(argv)


def main(argv=None):
    args = parse_args(argv)

    # Handle notification settings
    if args.show_notifications and args.hide_notifications:
        print("Error: Cannot use both --show-notifications and --hide-notifications", file=sys.stderr)
        sys.exit(1)
    elif args.show_notifications:
        set_notifications_enabled(True)
        print("Notifications enabled", file=sys.stderr)
    elif args.hide_notifications:
        set_notifications_enabled(False)
        print("Notifications disabled", file=sys.stderr)

    try:
        commands = load_runner_commands(args.config, args.runner_command)
    except InvalidParameterError as e:
        print(f"Error: {e.message}", file=sys.stderr)
        sys.exit(1)
    set_runner_commands(commands)

    if commands:
        print(f"Configured runner commands: {', '.join(sorted(commands))}", file=sys.stderr)
    else:
        print("Warning: No UI runner commands configured.", file=sys.stderr)
        print(f"Set {RUNNER_COMMANDS_ENV} or use --runner-command; xcuitest/idb actions will need "
              "runner_command per call.", file=sys.stderr)

    for tool in ("xcrun", "axorc"):
        if not has_command(tool):
            print(f"Warning: '{tool}' not found on PATH", file=sys.stderr)

    # Register tools
    import xcode_ui_mcp.tools  # noqa: F401

    # Run the server
    mcp.run()


# Main entry point for the server
if __name__ == "__main__":
    main()
