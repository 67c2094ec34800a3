#!/usr/bin/env python3
"""MCP server instance"""

from mcp.server.fastmcp import FastMCP

mcp = FastMCP("Xcode UI MCP Server",
    instructions="""
        This server drives UI automation for Apple-platform apps: iOS
        simulator apps through an XCUITest runner harness (or idb), and
        macOS native apps through the Accessibility API (backend
        `axorcist`).

        Call `xcode_ui` with an `action` and optional `backend`:
        - interaction: tap, type, clear_text, swipe, scroll
        - query: describe_ui, query_text, query_controls
        - synchronization: wait_for, assert
        - capture: screenshot, video_start, video_stop, logs_start,
          logs_stop, crash_list, crash_export, export_report

        Elements are located with params such as identifier, title,
        label, role, description, placeholder or value.

        The xcuitest and idb backends need a runner command, passed as
        `runner_command` or configured when the server starts. For macOS
        apps use backend='axorcist' and pass `application` (app name or
        bundle id).

        Every call returns a result with ok/failed status, data, artifact
        paths, errors (with codes and hints) and warnings. Video and log
        capture return a pid that must be passed back to video_stop or
        logs_stop.
    """
)
