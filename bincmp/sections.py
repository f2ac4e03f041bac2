#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Section header parsing.

Input is the text of `readelf -S <binary>`. Only the lines between
"Section Headers:" and "Key to Flags:" are looked at, and every section
takes two physical lines:

  [Nr] Name              Type             Address           Offset
       Size              EntSize          Flags  Link  Info  Align
  [14] .text             PROGBITS         0000000000402a00  00002a00
       0000000000011289  0000000000000000  AX       0     0     16
"""

import logging
import re
from dataclasses import dataclass
from typing import Dict, Iterable

from .tools import run_tool

logger = logging.getLogger(__name__)

FRAME_START = "Section Headers:"
FRAME_END = "Key to Flags:"

# [Nr] Name Type Address Offset
_LINE1_RE = re.compile(r"\[\s*(\d+)\]\s+(\S+)?\s+(\S+)\s+([0-9a-fA-F]+)\s+([0-9a-fA-F]+)")
# Size EntSize Flags Link Info Align
_LINE2_RE = re.compile(r"([0-9a-fA-F]+)\s+([0-9a-fA-F]+)\s+(\w+)?\s+(\d+)\s+(\d+)\s+(\d+)")


@dataclass(frozen=True)
class Section:
    name: str
    kind: str
    address: int
    offset: int
    size: int
    entry_size: int

    @classmethod
    def empty(cls) -> "Section":
        return cls(name="", kind="", address=0, offset=0, size=0, entry_size=0)

    def is_empty(self) -> bool:
        return not self.name and self.size == 0


def _parse_hex(s: str) -> int:
    try:
        return int(s, 16)
    except ValueError:
        logger.warning(f"error parsing hex {s!r}")
        return 0


def parse_section_table(lines: Iterable[str]) -> Dict[str, Section]:
    """
    Parse readelf section headers into a mapping from section name.

    A pair whose first line does not look like a section header (the
    column titles) is skipped quietly; a pair whose second line does not
    match is skipped with a warning. Either way the next pair starts at
    the line after the skipped pair. Sections without a name are dropped.
    """
    sections: Dict[str, Section] = {}
    started = False
    it = iter(lines)
    for line1 in it:
        if line1.startswith(FRAME_START):
            started = True
            continue
        if line1.startswith(FRAME_END):
            started = False
            continue
        if not started:
            continue

        line2 = next(it, None)
        if line2 is None:
            logger.warning(f"section header without a second line: {line1!r}")
            break
        if line2.startswith(FRAME_END):
            logger.warning(f"section header without a second line: {line1!r}")
            started = False
            continue

        m1 = _LINE1_RE.search(line1)
        if m1 is None:
            # column titles
            continue
        m2 = _LINE2_RE.search(line2)
        if m2 is None:
            logger.warning(f"skipping bad readelf parse on line 2: {line2!r}")
            continue

        name = m1.group(2) or ""
        if not name:
            continue
        sections[name] = Section(
            name=name,
            kind=m1.group(3),
            address=_parse_hex(m1.group(4)),
            offset=_parse_hex(m1.group(5)),
            size=_parse_hex(m2.group(1)),
            entry_size=_parse_hex(m2.group(2)),
        )
    return sections


def list_sections(filename: str, readelf: str = "readelf") -> Dict[str, Section]:
    return parse_section_table(run_tool([readelf, "-S", filename]))
