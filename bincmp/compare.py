#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Size comparison of two parsed binaries.

Direction is fixed: the first binary is "old", the second is "new", and
every delta is new minus old. Records are joined by name; a name missing
on one side is represented there by the record type's empty() value.
"""

import logging
import os
import re
from dataclasses import dataclass
from typing import Callable, Dict, Iterable, List, Mapping, Optional, Pattern, Sequence, Tuple, Union

from .config import DiffOptions, SortPolicy
from .errors import ConfigError
from .sections import Section
from .symbols import Symbol, SymbolKind

logger = logging.getLogger(__name__)

Record = Union[Symbol, Section]


def percent_change(old: int, new: int) -> Optional[float]:
    """100 * (new/old - 1), or None when there is no old size to compare to."""
    if old == 0:
        return None
    return 100.0 * (new / old - 1)


@dataclass(frozen=True)
class SizeDelta:
    """A named old/new size pair: a summary line or a totals row."""
    name: str
    old_size: int
    new_size: int

    @property
    def delta(self) -> int:
        return self.new_size - self.old_size

    @property
    def percent(self) -> Optional[float]:
        return percent_change(self.old_size, self.new_size)


@dataclass(frozen=True)
class EntryDiff:
    """Old and new record sharing one name; at most one side is empty."""
    name: str
    old: Record
    new: Record

    @property
    def old_size(self) -> int:
        return self.old.size

    @property
    def new_size(self) -> int:
        return self.new.size

    @property
    def delta(self) -> int:
        return self.new.size - self.old.size

    @property
    def percent(self) -> Optional[float]:
        if self.old.is_empty() or self.new.is_empty():
            return None
        return percent_change(self.old.size, self.new.size)

    @property
    def status(self) -> str:
        if self.old.is_empty():
            return "added"
        if self.new.is_empty():
            return "removed"
        return "changed"

    @property
    def kind(self) -> str:
        rec = self.old if self.new.is_empty() else self.new
        if isinstance(rec, Symbol):
            return rec.kind.label
        return rec.kind


# ---------------------------
# Name handling
# ---------------------------

def union_names(a: Iterable[str], b: Iterable[str]) -> List[str]:
    return sorted(set(a).union(b))


def filter_by_pattern(names: Iterable[str], pattern: Union[str, Pattern, None]) -> List[str]:
    """Keep names the pattern matches anywhere in; an empty pattern keeps all."""
    if not pattern:
        return list(names)
    if isinstance(pattern, str):
        try:
            pattern = re.compile(pattern)
        except re.error as e:
            raise ConfigError(f"invalid pattern {pattern!r}: {e}") from e
    return [n for n in names if pattern.search(n)]


# ---------------------------
# Entries
# ---------------------------

def diff_entry(name: str, old: Record, new: Record) -> Optional[EntryDiff]:
    """None when the sizes match, since unchanged entries are never reported."""
    if old.size == new.size:
        return None
    return EntryDiff(name, old, new)


def _percent_key(entry: EntryDiff) -> Tuple[bool, float]:
    # undefined percentages go after every defined one
    p = entry.percent
    return (p is None, p if p is not None else 0.0)


def by_name(entry: EntryDiff):
    return entry.name


def by_new_size(entry: EntryDiff):
    return entry.new_size


def by_size_delta(entry: EntryDiff):
    return (entry.delta, _percent_key(entry))


def by_percent_delta(entry: EntryDiff):
    return (_percent_key(entry), entry.delta)


SORT_KEYS: Dict[SortPolicy, Callable[[EntryDiff], object]] = {
    SortPolicy.NAME: by_name,
    SortPolicy.NEW_SIZE: by_new_size,
    SortPolicy.SIZE_DELTA: by_size_delta,
    SortPolicy.PERCENT_DELTA: by_percent_delta,
}


def sort_entries(entries: Iterable[EntryDiff], policies: Sequence[SortPolicy] = ()) -> List[EntryDiff]:
    """
    Sort by name, then apply each policy in turn as a stable sort.

    A later policy dominates an earlier one; entries it considers equal keep
    the order the earlier passes gave them.
    """
    result = sorted(entries, key=by_name)
    for policy in policies:
        result.sort(key=SORT_KEYS[policy])
    return result


def only_larger(entries: Iterable[EntryDiff]) -> List[EntryDiff]:
    return [e for e in entries if e.new_size > e.old_size]


def diff_records(
    old: Mapping[str, Record],
    new: Mapping[str, Record],
    empty: Callable[[], Record],
    options: DiffOptions,
) -> List[EntryDiff]:
    entries = []
    for name in filter_by_pattern(union_names(old, new), options.compiled):
        a = old.get(name)
        b = new.get(name)
        entry = diff_entry(name, a if a is not None else empty(), b if b is not None else empty())
        if entry is not None:
            entries.append(entry)
    if options.only_larger:
        entries = only_larger(entries)
    logger.debug(f"{len(entries)} differing entries out of {len(old)} old, {len(new)} new")
    return sort_entries(entries, options.sort_policies)


def diff_symbols(old: Mapping[str, Symbol], new: Mapping[str, Symbol], options: DiffOptions) -> List[EntryDiff]:
    return diff_records(old, new, Symbol.empty, options)


def diff_sections(old: Mapping[str, Section], new: Mapping[str, Section], options: DiffOptions) -> List[EntryDiff]:
    return diff_records(old, new, Section.empty, options)


def entry_totals(entries: Iterable[EntryDiff]) -> SizeDelta:
    old_total = new_total = 0
    for e in entries:
        old_total += e.old_size
        new_total += e.new_size
    return SizeDelta("total", old_total, new_total)


# ---------------------------
# Per-kind summary and files
# ---------------------------

@dataclass(frozen=True)
class KindSummary:
    rows: List[SizeDelta]
    total: SizeDelta


def summarize_kinds(old_totals: Mapping[SymbolKind, int], new_totals: Mapping[SymbolKind, int]) -> KindSummary:
    """
    Per-kind size change; kinds that did not change are left out of the
    rows but still count in the grand total.
    """
    rows = []
    old_sum = new_sum = 0
    for kind in SymbolKind:
        if kind not in old_totals and kind not in new_totals:
            continue
        row = SizeDelta(kind.label, old_totals.get(kind, 0), new_totals.get(kind, 0))
        old_sum += row.old_size
        new_sum += row.new_size
        if row.delta != 0:
            rows.append(row)
    return KindSummary(rows, SizeDelta("total", old_sum, new_sum))


def compare_files(old_path: str, new_path: str) -> SizeDelta:
    return SizeDelta(
        os.path.basename(new_path),
        os.path.getsize(old_path),
        os.path.getsize(new_path),
    )
