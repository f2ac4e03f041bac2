#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""Identify the input binaries before handing them to the text providers."""

import logging
import os
from dataclasses import dataclass
from typing import Optional

from elftools.common.exceptions import ELFError
from elftools.elf.elffile import ELFFile

logger = logging.getLogger(__name__)

ELF_MAGIC = b"\x7fELF"
MACHO_MAGICS = {
    b"\xcf\xfa\xed\xfe",  # MH_MAGIC_64 (LE)
    b"\xfe\xed\xfa\xcf",  # MH_CIGAM_64 (BE)
    b"\xfe\xed\xfa\xce",  # MH_CIGAM (BE 32)
    b"\xce\xfa\xed\xfe",  # MH_MAGIC (LE 32)
}

MACHINE_NAMES = {
    "EM_X86_64": "x86-64",
    "EM_386": "x86 (32-bit)",
    "EM_ARM": "ARM",
    "EM_AARCH64": "AArch64",
    "EM_RISCV": "RISC-V",
    "EM_PPC64": "PowerPC64",
    "EM_MIPS": "MIPS",
}


@dataclass(frozen=True)
class BinaryInfo:
    path: str
    size: int
    format: str                     # ELF, Mach-O or unknown
    machine: Optional[str] = None
    elfclass: Optional[int] = None
    little_endian: Optional[bool] = None

    @property
    def arch(self) -> str:
        if self.machine is None:
            return self.format
        name = MACHINE_NAMES.get(self.machine, self.machine)
        endian = "LE" if self.little_endian else "BE"
        return f"{name} ELF{self.elfclass} {endian}"


def read_magic(path: str) -> bytes:
    with open(path, "rb") as f:
        return f.read(4)


def describe_binary(path: str) -> BinaryInfo:
    """
    Read just enough of `path` to name its format and architecture.

    Raises OSError when the file cannot be read. A file that has the ELF
    magic but a broken header is reported as 'ELF' without a machine.
    """
    size = os.path.getsize(path)
    magic = read_magic(path)
    if magic in MACHO_MAGICS:
        return BinaryInfo(path, size, "Mach-O")
    if magic != ELF_MAGIC:
        return BinaryInfo(path, size, "unknown")

    try:
        with open(path, "rb") as f:
            elf = ELFFile(f)
            return BinaryInfo(
                path,
                size,
                "ELF",
                machine=elf.header["e_machine"],
                elfclass=elf.elfclass,
                little_endian=elf.little_endian,
            )
    except ELFError as e:
        logger.warning(f"{path}: unreadable ELF header: {e}")
        return BinaryInfo(path, size, "ELF")


def check_compatible(old: BinaryInfo, new: BinaryInfo) -> bool:
    """Log a warning when the two binaries target different architectures."""
    if old.arch != new.arch:
        logger.warning(
            f"Architectures of the two files differ ({old.arch} vs {new.arch}); "
            "comparison results might not be meaningful."
        )
        return False
    return True
