#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Text report.

Every table is built as rows of cells and padded column by column before
it is written, so the output lines up the way `column -t` would. Colors
are applied after padding; escape codes never count towards a width.
"""

import sys
from typing import Callable, Iterable, List, Optional, Sequence, TextIO

from colorama import Fore, Style

from .align import Alignment
from .compare import EntryDiff, KindSummary, SizeDelta, entry_totals
from .elfinfo import BinaryInfo

MAX_NAME_LEN = 60
COLUMN_PADDING = 2


def shorten_name(name: str, max_len: int = MAX_NAME_LEN) -> str:
    if len(name) <= max_len:
        return name
    head = (max_len - 3) // 2
    tail = max_len - 3 - head
    return name[:head] + "..." + name[-tail:]


def format_percent(p: Optional[float]) -> str:
    return "n/a" if p is None else f"{p:.2f}%"


def format_table(rows: Sequence[Sequence[str]], padding: int = COLUMN_PADDING) -> List[str]:
    """Pad every column to its widest cell; trailing whitespace is dropped."""
    if not rows:
        return []
    ncols = max(len(r) for r in rows)
    widths = [0] * ncols
    for r in rows:
        for i, cell in enumerate(r):
            widths[i] = max(widths[i], len(cell))
    lines = []
    for r in rows:
        cells = [cell.ljust(widths[i] + padding) for i, cell in enumerate(r)]
        lines.append("".join(cells).rstrip())
    return lines


def entry_row(entry: EntryDiff) -> List[str]:
    return [
        shorten_name(entry.name),
        str(entry.delta),
        "" if entry.old.is_empty() else str(entry.old_size),
        "" if entry.new.is_empty() else str(entry.new_size),
        format_percent(entry.percent),
    ]


def delta_row(d: SizeDelta) -> List[str]:
    return [d.name, str(d.delta), str(d.old_size), str(d.new_size), format_percent(d.percent)]


class ReportWriter:
    def __init__(self, out: Optional[TextIO] = None, color: Optional[bool] = None):
        self.out = out if out is not None else sys.stdout
        if color is None:
            color = hasattr(self.out, "isatty") and self.out.isatty()
        self.color = color

    def _write_lines(self, lines: Iterable[str]) -> None:
        for line in lines:
            self.out.write(line + "\n")

    def _paint(self, text: str, color: str) -> str:
        if not self.color or not text:
            return text
        return f"{color}{text}{Style.RESET_ALL}"

    def blank(self) -> None:
        self.out.write("\n")

    # --- files

    def write_files(self, files: SizeDelta, old: Optional[BinaryInfo] = None, new: Optional[BinaryInfo] = None) -> None:
        rows = [["binary", "delta", "old", "new", "%"], delta_row(files)]
        self._write_lines(format_table(rows))
        if old is not None and new is not None:
            self._write_lines(format_table([
                ["old:", old.path, old.arch],
                ["new:", new.path, new.arch],
            ]))

    # --- symbols

    def write_symbols(
        self,
        entries: Sequence[EntryDiff],
        disassembly: Optional[Callable[[str], Optional[Alignment]]] = None,
    ) -> None:
        """
        Symbol table with an optional side-by-side disassembly under each
        row. `disassembly(name)` returns None when there is nothing to show.
        """
        if not entries:
            return
        rows = [["symbol name", "delta", "old", "new", "%"]]
        for entry in entries:
            rows.append(entry_row(entry))
            alignment = disassembly(entry.name) if disassembly is not None else None
            if alignment is not None and len(alignment):
                self._write_lines(format_table(rows))
                rows = []
                self.write_disassembly(alignment)
        rows.append(delta_row(entry_totals(entries)))
        self._write_lines(format_table(rows))

    def write_disassembly(self, alignment: Alignment) -> None:
        for row in alignment.rows:
            left = row.left_text.ljust(alignment.left_width)
            if row.differs:
                line = f"{left} {self._paint('!', Fore.YELLOW)} {self._paint(row.right_text, Fore.LIGHTGREEN_EX)}"
            else:
                line = f"{left}   {row.right_text}"
            self.out.write(line.rstrip() + "\n")
        self.blank()

    # --- sections

    def write_sections(self, entries: Sequence[EntryDiff]) -> None:
        if not entries:
            return
        rows = [["name", "delta", "old", "new", "%"]]
        rows.extend(entry_row(e) for e in entries)
        rows.append(delta_row(entry_totals(entries)))
        self._write_lines(format_table(rows))

    # --- per-kind summary

    def write_kind_summary(self, summary: KindSummary) -> None:
        rows = [["kind", "delta", "old", "new", "%"]]
        rows.extend(delta_row(r) for r in summary.rows)
        rows.append(delta_row(summary.total))
        self._write_lines(format_table(rows))
