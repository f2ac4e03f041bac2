#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Symbol table parsing.

Input is the text of `nm -S <binary>`, one symbol per line:

    0000000000456730 0000000000000009 T runtime.prefetchnta
    <address>        <size>           <kind> <name, may contain spaces>

Lines without a size column (undefined symbols, absolute symbols printed
without size) have fewer than four fields and are skipped.
"""

import logging
from collections import defaultdict
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Iterable, List, Tuple

from .tools import run_tool

logger = logging.getLogger(__name__)


class SymbolKind(Enum):
    UNKNOWN = "unknown"
    BSS = "bss"
    GLOBAL_BSS = "global bss"
    DATA = "data"
    GLOBAL_DATA = "global data"
    TEXT = "text (code)"
    GLOBAL_TEXT = "global text (code)"
    READ_ONLY_DATA = "read-only data"
    GLOBAL_READ_ONLY_DATA = "global read-only data"

    @property
    def label(self) -> str:
        return self.value

    @classmethod
    def from_letter(cls, letter: str) -> "SymbolKind":
        kind = _KIND_LETTERS.get(letter)
        if kind is None:
            logger.debug(f"unknown symbol kind {letter!r}")
            return cls.UNKNOWN
        return kind


_KIND_LETTERS = {
    "b": SymbolKind.BSS,
    "B": SymbolKind.GLOBAL_BSS,
    "d": SymbolKind.DATA,
    "D": SymbolKind.GLOBAL_DATA,
    "t": SymbolKind.TEXT,
    "T": SymbolKind.GLOBAL_TEXT,
    "r": SymbolKind.READ_ONLY_DATA,
    "R": SymbolKind.GLOBAL_READ_ONLY_DATA,
}


@dataclass(frozen=True)
class Symbol:
    name: str
    kind: SymbolKind
    size: int
    address: int

    @classmethod
    def empty(cls) -> "Symbol":
        return cls(name="", kind=SymbolKind.UNKNOWN, size=0, address=0)

    def is_empty(self) -> bool:
        """An empty symbol stands for 'not present in this binary'."""
        return not self.name and self.size == 0

    def __str__(self):
        return f"<{self.name} {self.kind.label} {self.size}>"


def parse_symbol(fields: List[str]) -> Symbol:
    """Build a Symbol from the whitespace-split fields of one nm line."""
    if len(fields) < 4 or len(fields[2]) != 1:
        raise ValueError(f"unexpected format {fields}")
    try:
        address = int(fields[0], 16)
    except ValueError:
        raise ValueError(f"couldn't parse value {fields[0]}")
    try:
        size = int(fields[1], 16)
    except ValueError:
        raise ValueError(f"couldn't parse size {fields[1]}")
    if size < 0:
        raise ValueError(f"negative size {fields[1]}")
    name = " ".join(fields[3:])
    return Symbol(name, SymbolKind.from_letter(fields[2]), size, address)


def parse_symbol_table(lines: Iterable[str]) -> Tuple[Dict[str, Symbol], Dict[SymbolKind, int]]:
    """
    Parse nm output into (symbols by name, total size per kind).

    A malformed line is logged and dropped; it never stops the parse.
    When a name occurs twice the last line wins in the mapping, while
    both sizes count towards the per-kind total.
    """
    symbols: Dict[str, Symbol] = {}
    totals: Dict[SymbolKind, int] = defaultdict(int)
    for line_no, line in enumerate(lines, 1):
        if line.lstrip().startswith("#"):
            continue
        fields = line.split()
        # format is "address size kind name", kind being one character
        if len(fields) < 4 or len(fields[2]) != 1:
            continue
        try:
            sym = parse_symbol(fields)
        except ValueError as e:
            logger.warning(f"error parsing symbol on line {line_no}: {e}")
            continue
        symbols[sym.name] = sym
        totals[sym.kind] += sym.size
    return symbols, dict(totals)


def list_symbols(filename: str, nm: str = "nm") -> Tuple[Dict[str, Symbol], Dict[SymbolKind, int]]:
    return parse_symbol_table(run_tool([nm, "-S", filename]))
