#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Option values threaded through the comparison.

Nothing here is global: the CLI builds one DiffOptions and one ToolPaths
and passes them down.
"""

import re
import sys
from dataclasses import dataclass, field
from enum import Enum
from typing import Pattern, Tuple

from .errors import ConfigError


class SortPolicy(Enum):
    NAME = "name"
    NEW_SIZE = "size"
    SIZE_DELTA = "difference"
    PERCENT_DELTA = "relative"


class DisasmFormat(Enum):
    GNU = "gnu"   # objdump -d --no-show-raw-insn
    GO = "go"     # go tool objdump


def default_tool_path(tool_name: str) -> str:
    """GNU binutils are installed with a 'g' prefix on macOS."""
    if sys.platform == "darwin" and tool_name in ("nm", "objdump"):
        return "g" + tool_name
    if sys.platform == "win32":
        return tool_name + ".exe"
    return tool_name


@dataclass
class DiffOptions:
    pattern: str = ""
    sort_policies: Tuple[SortPolicy, ...] = (SortPolicy.SIZE_DELTA,)
    only_larger: bool = False
    disassemble: bool = False
    exact: bool = False
    compiled: Pattern = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        try:
            self.compiled = re.compile(self.pattern or "")
        except re.error as e:
            raise ConfigError(f"invalid pattern {self.pattern!r}: {e}") from e
        self.sort_policies = tuple(self.sort_policies)

    @property
    def needs_disassembly(self) -> bool:
        return self.disassemble or self.exact


@dataclass
class ToolPaths:
    nm: str = field(default_factory=lambda: default_tool_path("nm"))
    readelf: str = field(default_factory=lambda: default_tool_path("readelf"))
    objdump: str = field(default_factory=lambda: default_tool_path("objdump"))
    go: str = field(default_factory=lambda: default_tool_path("go"))
    disasm_format: DisasmFormat = DisasmFormat.GNU
