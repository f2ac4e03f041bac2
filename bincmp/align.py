#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Side-by-side listing of two disassembled functions.

Rows are paired by position, not by a minimal edit script: one inserted
instruction makes every later row differ. Rows are marked as differing
when the instruction text differs; addresses are not compared.
"""

from dataclasses import dataclass
from typing import List, Optional

from .disasm import Function, Instruction


@dataclass(frozen=True)
class AlignedRow:
    left: Optional[Instruction]
    right: Optional[Instruction]

    @property
    def left_text(self) -> str:
        return self.left.rendered if self.left is not None else ""

    @property
    def right_text(self) -> str:
        return self.right.rendered if self.right is not None else ""

    @property
    def differs(self) -> bool:
        a = self.left.text if self.left is not None else None
        b = self.right.text if self.right is not None else None
        return a != b


@dataclass(frozen=True)
class Alignment:
    name: str
    rows: List[AlignedRow]
    left_width: int

    def __len__(self):
        return len(self.rows)

    @property
    def differing_rows(self) -> int:
        return sum(1 for r in self.rows if r.differs)


def align_functions(left: Optional[Function], right: Optional[Function]) -> Alignment:
    """
    Pair the instructions of `left` and `right` index by index.

    Either side may be missing or empty (symbol added or removed); that
    column stays blank. When both are empty the alignment has no rows.
    """
    left_insns = left.instructions if left is not None else []
    right_insns = right.instructions if right is not None else []
    name = (left.name if left is not None and left.name else None) or (right.name if right is not None else "")

    rows = []
    for i in range(max(len(left_insns), len(right_insns))):
        rows.append(AlignedRow(
            left_insns[i] if i < len(left_insns) else None,
            right_insns[i] if i < len(right_insns) else None,
        ))

    width = left.max_width if left is not None else 0
    return Alignment(name or "", rows, width)
