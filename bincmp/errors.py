#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""Exceptions raised by bincmp."""


class BincmpError(Exception):
    pass


class ConfigError(BincmpError):
    """Invalid pattern or incompatible option combination."""


class ToolError(BincmpError):
    """An external provider (nm, readelf, objdump) could not be run or failed."""

    def __init__(self, command, message):
        self.command = list(command)
        super().__init__(f"{' '.join(self.command)}: {message}")


class DisassemblyParseError(BincmpError):
    """A strict disassembly grammar met a line it cannot place."""

    def __init__(self, line_no: int, line: str, reason: str):
        self.line_no = line_no
        self.line = line
        super().__init__(f"line {line_no}: {reason}: {line!r}")
