#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
bincmp [options] old_binary new_binary

Report file, symbol and section size differences between two builds.
Symbols come from nm, sections from readelf, and with --disassemble the
differing functions are listed side by side from objdump.
"""

import argparse
import logging
import os
import sys
from typing import List, Optional

import colorama

from .comparer import Comparer
from .config import DiffOptions, DisasmFormat, SortPolicy, ToolPaths
from .errors import BincmpError, ConfigError
from .report import ReportWriter

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    defaults = ToolPaths()
    p = argparse.ArgumentParser(
        prog="bincmp",
        usage="%(prog)s [options] old_binary new_binary",
        description="Compare symbol, section and file sizes of two binaries.",
    )
    p.add_argument("binaries", nargs="*", help="old binary, then new binary")
    p.add_argument("--pattern", default="", help="regular expression to match against symbol and section names")
    p.add_argument("--disassemble", action="store_true", help="display disassembly of non-matching functions")
    p.add_argument("--exact", action="store_true",
                   help="remove padding bytes from the symbol sizes of functions by examining disassembly")
    p.add_argument("--sort", action="append", choices=[s.value for s in SortPolicy], dest="sort",
                   help="sort policy; repeat to apply several stable passes in order (default: difference)")
    p.add_argument("--larger", action="store_true", help="only display entries that grew")
    p.add_argument("--no-symtab", action="store_true", help="only show file and section size differences")
    p.add_argument("--color", action="store_true", help="force color output, regardless of terminal")
    p.add_argument("--no-color", action="store_true", help="force disable of color output")

    tools = p.add_argument_group("external tools")
    tools.add_argument("--nm", default=defaults.nm, help=f"nm executable (default: {defaults.nm})")
    tools.add_argument("--readelf", default=defaults.readelf, help=f"readelf executable (default: {defaults.readelf})")
    tools.add_argument("--objdump", default=defaults.objdump, help=f"objdump executable (default: {defaults.objdump})")
    tools.add_argument("--go", default=defaults.go, help=f"go executable for 'go tool objdump' (default: {defaults.go})")
    tools.add_argument("--disasm-format", choices=[f.value for f in DisasmFormat], default=DisasmFormat.GNU.value,
                       help="disassembly provider: gnu objdump or go tool objdump (default: gnu)")

    out = p.add_argument_group("output")
    out.add_argument("--csv-dir", help="also write symbols.csv, sections.csv and summary.csv to this directory")
    out.add_argument("--plot", help="write a bar chart of the largest symbol deltas to this image file")
    out.add_argument("--plot-top", type=int, default=15, help="number of symbols in the chart (default: 15)")
    out.add_argument("--verbose", action="store_true", help="debug logging")
    return p


def options_from_args(args: argparse.Namespace) -> DiffOptions:
    if args.color and args.no_color:
        raise ConfigError("--color and --no-color are incompatible")
    policies = tuple(SortPolicy(s) for s in (args.sort or [SortPolicy.SIZE_DELTA.value]))
    return DiffOptions(
        pattern=args.pattern,
        sort_policies=policies,
        only_larger=args.larger,
        disassemble=args.disassemble,
        exact=args.exact,
    )


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if len(args.binaries) != 2:
        parser.print_usage()
        return 0

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s - %(levelname)s - %(message)s",
    )

    try:
        options = options_from_args(args)
    except ConfigError as e:
        sys.stderr.write(f"ERROR: {e}\n")
        return 1

    old_path, new_path = args.binaries
    for path in (old_path, new_path):
        if not os.path.exists(path):
            sys.stderr.write(f"ERROR: {path} doesn't exist\n")
            return 1

    tools = ToolPaths(
        nm=args.nm,
        readelf=args.readelf,
        objdump=args.objdump,
        go=args.go,
        disasm_format=DisasmFormat(args.disasm_format),
    )
    color = True if args.color else (False if args.no_color else None)
    colorama.just_fix_windows_console()
    writer = ReportWriter(sys.stdout, color=color)
    comparer = Comparer(old_path, new_path, options, tools, writer)

    try:
        files = comparer.compare_files()
        writer.blank()
        symbols = []
        if not args.no_symtab:
            symbols = comparer.compare_symbols()
            writer.blank()
        sections = comparer.compare_sections()

        if args.csv_dir or args.plot:
            # imported here: pandas and matplotlib are slow to load
            from .export import export_csv, plot_symbol_deltas
            if args.csv_dir:
                export_csv(args.csv_dir, symbols, sections, comparer.kind_summary, files)
            if args.plot:
                plot_symbol_deltas(symbols, args.plot, top=args.plot_top)
    except BincmpError as e:
        sys.stderr.write(f"ERROR: {e}\n")
        return 1
    except OSError as e:
        sys.stderr.write(f"ERROR: {e}\n")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
