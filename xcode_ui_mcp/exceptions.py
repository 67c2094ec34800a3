#!/usr/bin/env python3
"""Exceptions raised by the MCP tool layer"""


class XCodeMCPError(Exception):
    def __init__(self, message, code=None):
        self.message = message
        self.code = code
        super().__init__(self.message)


class InvalidParameterError(XCodeMCPError):
    pass
