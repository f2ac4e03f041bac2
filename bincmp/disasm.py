#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Disassembly parsing.

Two providers are understood, each described by a grammar object:

GnuObjdumpGrammar  (objdump -d --no-show-raw-insn), lenient
    0000000000401000 <main.init.1>:
      401013:	sub    $0x48,%rsp
      401496:	callq  489780 <runtime.writebarrierptr>

GoObjdumpGrammar  (go tool objdump), strict
    TEXT strings.EqualFold(SB) /usr/lib/go/src/strings/strings.go
      strings.go:128	0x5997a0	4883ec30	SUBQ $0x30, SP

A blank line closes the current function. A new function header also
closes it. The grammar decides what an unreadable instruction line means:
the GNU grammar drops it, the Go grammar raises DisassemblyParseError.
"""

import logging
import re
from dataclasses import dataclass, field, replace
from typing import Dict, Iterable, List, Optional, Tuple

from .config import DisasmFormat, ToolPaths
from .errors import DisassemblyParseError
from .symbols import Symbol, SymbolKind
from .tools import run_tool

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Instruction:
    source_file: str
    source_line: int
    offset: int
    encoded_bytes: str
    text: str

    @property
    def rendered(self) -> str:
        return f"{self.offset:x}:    {self.text}"


@dataclass
class Function:
    name: str = ""
    source_file: str = ""
    instructions: List[Instruction] = field(default_factory=list)
    max_width: int = 0

    def is_empty(self) -> bool:
        return not self.name

    def append(self, insn: Instruction) -> None:
        self.instructions.append(insn)
        self.max_width = max(self.max_width, len(insn.rendered))


# ---------------------------
# Grammars
# ---------------------------

class DisassemblyGrammar:
    """Line grammar of one disassembly provider."""

    strict = False
    filler_text = ""

    def parse_boundary_line(self, line: str) -> Optional[Tuple[str, str]]:
        """Return (function name, source file) when `line` starts a function."""
        raise NotImplementedError

    def parse_instruction_line(self, line: str) -> Optional[Instruction]:
        raise NotImplementedError

    def is_filler(self, insn: Instruction) -> bool:
        """
        One-byte padding emitted after a function body.

        Only the AMD64 trap used by the Go and GNU toolchains is known.
        """
        return insn.text.endswith(self.filler_text)

    def command(self, tools: ToolPaths, filename: str) -> List[str]:
        raise NotImplementedError


def clean_instruction(line: str) -> str:
    """Normalize tabs and strip trailing comments and <symbol> annotations."""
    code = line.replace("\t", "    ")
    idx = code.find("#")
    if idx != -1:
        code = code[:idx]
    idx = code.find("<")
    if idx != -1:
        code = code[:idx]
    return code.strip()


class GnuObjdumpGrammar(DisassemblyGrammar):
    strict = False
    filler_text = "int3"

    boundary_re = re.compile(r"^[0-9a-f]+ <(.*?)>:$")
    # "401017:  48 8b 0d 12 a2 71 00  mov 0x71a212(%rip),%rcx", bytes optional
    instruction_re = re.compile(r"^([0-9a-fA-F]+):\s*((?:[0-9a-f]{2} )+)?\s*(.*)$")

    def parse_boundary_line(self, line):
        m = self.boundary_re.match(line)
        if m is None:
            return None
        return m.group(1), ""

    def parse_instruction_line(self, line):
        code = clean_instruction(line)
        if not code:
            return None
        m = self.instruction_re.match(code)
        if m is None or not m.group(3):
            return None
        return Instruction(
            source_file="",
            source_line=0,
            offset=int(m.group(1), 16),
            encoded_bytes=(m.group(2) or "").replace(" ", ""),
            text=m.group(3).strip(),
        )

    def command(self, tools, filename):
        return [tools.objdump, "-d", "--no-show-raw-insn", filename]


class GoObjdumpGrammar(DisassemblyGrammar):
    strict = True
    filler_text = "INT $0x3"

    boundary_re = re.compile(r"^TEXT ([^(]+)\(SB\) (.*)$")
    instruction_re = re.compile(r"\s+([^:]*):(\d*)\s+(0x[0-9a-fA-F]+)\s+([0-9a-fA-F]+)\s+(.*)$")

    def parse_boundary_line(self, line):
        if not line.startswith("TEXT"):
            return None
        m = self.boundary_re.match(line)
        if m is None:
            raise ValueError("unable to parse function header")
        return m.group(1), m.group(2)

    def parse_instruction_line(self, line):
        m = self.instruction_re.search(line)
        if m is None:
            return None
        return Instruction(
            source_file=m.group(1),
            source_line=int(m.group(2)) if m.group(2) else 0,
            offset=int(m.group(3)[2:], 16),
            encoded_bytes=m.group(4),
            text=m.group(5).strip(),
        )

    def command(self, tools, filename):
        return [tools.go, "tool", "objdump", filename]


GRAMMARS = {
    DisasmFormat.GNU: GnuObjdumpGrammar,
    DisasmFormat.GO: GoObjdumpGrammar,
}


def grammar_for(fmt: DisasmFormat) -> DisassemblyGrammar:
    return GRAMMARS[fmt]()


# ---------------------------
# Parsing
# ---------------------------

def parse_disassembly(lines: Iterable[str], grammar: DisassemblyGrammar) -> Dict[str, Function]:
    functions: Dict[str, Function] = {}
    current = Function()

    def close():
        nonlocal current
        if not current.is_empty():
            functions[current.name] = current
        current = Function()

    for line_no, line in enumerate(lines, 1):
        if not line.strip():
            close()
            continue

        try:
            boundary = grammar.parse_boundary_line(line)
        except ValueError as e:
            raise DisassemblyParseError(line_no, line, str(e))
        if boundary is not None:
            close()
            current.name, current.source_file = boundary
            continue

        if current.is_empty():
            if grammar.strict:
                raise DisassemblyParseError(line_no, line, "input with no function")
            continue

        insn = grammar.parse_instruction_line(line)
        if insn is None:
            if grammar.strict:
                raise DisassemblyParseError(line_no, line, "unrecognized instruction")
            logger.debug(f"dropping line {line_no} in {current.name}: {line!r}")
            continue
        current.append(insn)

    close()
    return functions


def disassemble(filename: str, tools: ToolPaths) -> Dict[str, Function]:
    grammar = grammar_for(tools.disasm_format)
    return parse_disassembly(run_tool(grammar.command(tools, filename)), grammar)


# ---------------------------
# Padding
# ---------------------------

def trim_padding(
    functions: Dict[str, Function],
    symbols: Dict[str, Symbol],
    totals: Dict[SymbolKind, int],
    grammar: DisassemblyGrammar,
) -> Tuple[Dict[str, Function], Dict[str, Symbol], Dict[SymbolKind, int]]:
    """
    Remove trailing filler instructions and their bytes from symbol sizes.

    Returns new mappings; the arguments are left untouched.
    """
    functions = dict(functions)
    symbols = dict(symbols)
    totals = dict(totals)
    for name, fn in functions.items():
        keep = len(fn.instructions)
        while keep > 0 and grammar.is_filler(fn.instructions[keep - 1]):
            keep -= 1
        padding = len(fn.instructions) - keep
        if padding == 0:
            continue

        trimmed = Function(name=fn.name, source_file=fn.source_file)
        for insn in fn.instructions[:keep]:
            trimmed.append(insn)
        functions[name] = trimmed

        sym = symbols.get(name)
        if sym is None:
            continue
        padding = min(padding, sym.size)
        symbols[name] = replace(sym, size=sym.size - padding)
        totals[sym.kind] = totals.get(sym.kind, 0) - padding
        logger.debug(f"{name}: {padding} padding bytes removed")
    return functions, symbols, totals
