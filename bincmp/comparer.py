#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""Drive the providers, the diff engine and the report for one pair of binaries."""

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from .align import Alignment, align_functions
from .compare import (
    EntryDiff,
    KindSummary,
    SizeDelta,
    compare_files,
    diff_sections,
    diff_symbols,
    summarize_kinds,
)
from .config import DiffOptions, ToolPaths
from .disasm import Function, disassemble, grammar_for, trim_padding
from .elfinfo import BinaryInfo, check_compatible, describe_binary
from .report import ReportWriter
from .sections import list_sections
from .symbols import Symbol, SymbolKind, list_symbols

logger = logging.getLogger(__name__)


@dataclass
class BinaryData:
    path: str
    symbols: Dict[str, Symbol] = field(default_factory=dict)
    kind_totals: Dict[SymbolKind, int] = field(default_factory=dict)
    functions: Dict[str, Function] = field(default_factory=dict)


class Comparer:
    """
    Compare `old_path` against `new_path`.

    Each compare_* method runs the providers it needs, writes its part of
    the report and returns the computed rows.
    """

    def __init__(self, old_path: str, new_path: str, options: DiffOptions,
                 tools: Optional[ToolPaths] = None, writer: Optional[ReportWriter] = None):
        self.old_path = old_path
        self.new_path = new_path
        self.options = options
        self.tools = tools or ToolPaths()
        self.writer = writer or ReportWriter()
        self.kind_summary: Optional[KindSummary] = None

    def compare_files(self) -> SizeDelta:
        files = compare_files(self.old_path, self.new_path)
        old_info = describe_binary(self.old_path)
        new_info = describe_binary(self.new_path)
        check_compatible(old_info, new_info)
        self.writer.write_files(files, old_info, new_info)
        return files

    def load_binary(self, path: str) -> BinaryData:
        data = BinaryData(path)
        data.symbols, data.kind_totals = list_symbols(path, self.tools.nm)
        logger.debug(f"{path}: {len(data.symbols)} symbols")
        if self.options.needs_disassembly:
            data.functions = disassemble(path, self.tools)
            logger.debug(f"{path}: {len(data.functions)} functions disassembled")
        if self.options.exact:
            grammar = grammar_for(self.tools.disasm_format)
            data.functions, data.symbols, data.kind_totals = trim_padding(
                data.functions, data.symbols, data.kind_totals, grammar)
        return data

    def compare_symbols(self) -> List[EntryDiff]:
        old = self.load_binary(self.old_path)
        new = self.load_binary(self.new_path)
        entries = diff_symbols(old.symbols, new.symbols, self.options)

        def disassembly_for(name: str) -> Optional[Alignment]:
            left = old.functions.get(name)
            right = new.functions.get(name)
            # neither side is a function: data symbol
            if left is None and right is None:
                return None
            return align_functions(left, right)

        self.writer.write_symbols(entries, disassembly_for if self.options.disassemble else None)
        self.kind_summary = summarize_kinds(old.kind_totals, new.kind_totals)
        self.writer.blank()
        self.writer.write_kind_summary(self.kind_summary)
        return entries

    def compare_sections(self) -> List[EntryDiff]:
        old = list_sections(self.old_path, self.tools.readelf)
        new = list_sections(self.new_path, self.tools.readelf)
        entries = diff_sections(old, new, self.options)
        self.writer.write_sections(entries)
        return entries
