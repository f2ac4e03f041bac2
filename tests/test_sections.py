"""Tests for readelf section header parsing."""

import logging

from bincmp import sections
from bincmp.sections import Section, parse_section_table

READELF_OUTPUT = """\
There are 29 section headers, starting at offset 0x1e738:

Section Headers:
  [Nr] Name              Type             Address           Offset
       Size              EntSize          Flags  Link  Info  Align
  [ 0]                   NULL             0000000000000000  00000000
       0000000000000000  0000000000000000           0     0     0
  [ 1] .interp           PROGBITS         0000000000400238  00000238
       000000000000001c  0000000000000000   A       0     0     1
  [ 2] .note.ABI-tag     NOTE             0000000000400254  00000254
       0000000000000020  0000000000000000   A       0     0     4
  [ 3] .note.gnu.build-i NOTE             0000000000400274  00000274
       0000000000000024  0000000000000000   A       0     0     4
  [ 4] .gnu.hash         GNU_HASH         0000000000400298  00000298
       00000000000000c0  0000000000000000   A       5     0     8
  [ 5] .dynsym           DYNSYM           0000000000400358  00000358
       0000000000000cd8  0000000000000018   A       6     1     8
  [ 6] .dynstr           STRTAB           0000000000401030  00001030
       00000000000005dc  0000000000000000   A       0     0     1
  [ 7] .gnu.version      VERSYM           000000000040160c  0000160c
       0000000000000112  0000000000000002   A       5     0     2
  [ 8] .gnu.version_r    VERNEED          0000000000401720  00001720
       0000000000000070  0000000000000000   A       6     1     8
  [ 9] .rela.dyn         RELA             0000000000401790  00001790
       00000000000000a8  0000000000000018   A       5     0     8
  [10] .rela.plt         RELA             0000000000401838  00001838
       0000000000000a80  0000000000000018  AI       5    24     8
  [11] .init             PROGBITS         00000000004022b8  000022b8
       000000000000001a  0000000000000000  AX       0     0     4
  [12] .plt              PROGBITS         00000000004022e0  000022e0
       0000000000000710  0000000000000010  AX       0     0     16
  [13] .plt.got          PROGBITS         00000000004029f0  000029f0
       0000000000000008  0000000000000000  AX       0     0     8
  [14] .text             PROGBITS         0000000000402a00  00002a00
       0000000000011289  0000000000000000  AX       0     0     16
  [15] .fini             PROGBITS         0000000000413c8c  00013c8c
       0000000000000009  0000000000000000  AX       0     0     4
  [16] .rodata           PROGBITS         0000000000413ca0  00013ca0
       00000000000069b4  0000000000000000   A       0     0     32
  [17] .eh_frame_hdr     PROGBITS         000000000041a654  0001a654
       000000000000080c  0000000000000000   A       0     0     4
  [18] .eh_frame         PROGBITS         000000000041ae60  0001ae60
       0000000000002c84  0000000000000000   A       0     0     8
  [19] .init_array       INIT_ARRAY       000000000061de00  0001de00
       0000000000000008  0000000000000000  WA       0     0     8
  [20] .fini_array       FINI_ARRAY       000000000061de08  0001de08
       0000000000000008  0000000000000000  WA       0     0     8
  [21] .jcr              PROGBITS         000000000061de10  0001de10
       0000000000000008  0000000000000000  WA       0     0     8
  [22] .dynamic          DYNAMIC          000000000061de18  0001de18
       00000000000001e0  0000000000000010  WA       6     0     8
  [23] .got              PROGBITS         000000000061dff8  0001dff8
       0000000000000008  0000000000000008  WA       0     0     8
  [24] .got.plt          PROGBITS         000000000061e000  0001e000
       0000000000000398  0000000000000008  WA       0     0     8
  [25] .data             PROGBITS         000000000061e3a0  0001e3a0
       0000000000000260  0000000000000000  WA       0     0     32
  [26] .bss              NOBITS           000000000061e600  0001e600
       0000000000000d68  0000000000000000  WA       0     0     32
  [27] .gnu_debuglink    PROGBITS         0000000000000000  0001e600
       0000000000000034  0000000000000000           0     0     1
  [28] .shstrtab         STRTAB           0000000000000000  0001e634
       0000000000000102  0000000000000000           0     0     1
Key to Flags:
  W (write), A (alloc), X (execute), M (merge), S (strings), l (large)
  I (info), L (link order), G (group), T (TLS), E (exclude), x (unknown)
  O (extra OS processing required) o (OS specific), p (processor specific)
"""


class TestParseSectionTable:
    def test_all_named_sections(self):
        sects = parse_section_table(READELF_OUTPUT.splitlines())
        assert len(sects) == 28
        assert "" not in sects
        assert list(sects)[0] == ".interp"
        assert list(sects)[-1] == ".shstrtab"

    def test_field_values(self):
        sects = parse_section_table(READELF_OUTPUT.splitlines())
        assert sects[".text"] == Section(
            name=".text", kind="PROGBITS", address=0x402a00, offset=0x2a00, size=0x11289, entry_size=0)
        assert sects[".dynsym"].entry_size == 0x18
        assert sects[".bss"].kind == "NOBITS"
        assert sects[".bss"].size == 0xd68
        assert sects[".gnu_debuglink"].size == 0x34

    def test_truncated_name_is_kept_as_printed(self):
        sects = parse_section_table(READELF_OUTPUT.splitlines())
        assert ".note.gnu.build-i" in sects

    def test_bad_second_line_skips_only_that_section(self, caplog):
        broken = READELF_OUTPUT.replace(
            "       000000000000001c  0000000000000000   A       0     0     1",
            "       000000000000001c  0000000000000000   A",
        )
        with caplog.at_level(logging.WARNING, logger="bincmp.sections"):
            sects = parse_section_table(broken.splitlines())
        assert ".interp" not in sects
        assert ".note.ABI-tag" in sects
        assert len(sects) == 27
        assert "skipping bad readelf parse on line 2" in caplog.text

    def test_text_outside_frame_is_ignored(self):
        lines = [
            "  [ 1] .outside          PROGBITS         0000000000400238  00000238",
            "       000000000000001c  0000000000000000   A       0     0     1",
        ] + READELF_OUTPUT.splitlines() + [
            "  [29] .after            PROGBITS         0000000000400238  00000238",
            "       000000000000001c  0000000000000000   A       0     0     1",
        ]
        sects = parse_section_table(lines)
        assert ".outside" not in sects
        assert ".after" not in sects
        assert len(sects) == 28

    def test_missing_second_line_at_end(self, caplog):
        lines = [
            "Section Headers:",
            "  [ 1] .interp           PROGBITS         0000000000400238  00000238",
            "       000000000000001c  0000000000000000   A       0     0     1",
            "  [ 2] .note.ABI-tag     NOTE             0000000000400254  00000254",
        ]
        with caplog.at_level(logging.WARNING, logger="bincmp.sections"):
            sects = parse_section_table(lines)
        assert list(sects) == [".interp"]
        assert "without a second line" in caplog.text

    def test_empty_input(self):
        assert parse_section_table([]) == {}


def test_empty_section_sentinel():
    assert Section.empty().is_empty()
    assert not Section(".tbss", "NOBITS", 0, 0, 0, 0).is_empty()


def test_list_sections_runs_readelf(monkeypatch):
    calls = []

    def fake_run_tool(command):
        calls.append(command)
        return iter(READELF_OUTPUT.splitlines())

    monkeypatch.setattr(sections, "run_tool", fake_run_tool)
    sects = sections.list_sections("a.out")
    assert calls == [["readelf", "-S", "a.out"]]
    assert len(sects) == 28
