#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Machine-readable outputs: CSV tables and a bar chart of symbol deltas.

CSV files written by export_csv(directory, ...):
  symbols.csv   name, kind, status, old_size, new_size, delta, delta_pct
  sections.csv  same columns, kind is the readelf section type
  summary.csv   group, old_total, new_total, delta_total, delta_pct
"""

import logging
import os
from typing import List, Optional, Sequence

import matplotlib

matplotlib.use("Agg")
import matplotlib.pyplot as plt  # noqa: E402
import pandas as pd  # noqa: E402

from .compare import EntryDiff, KindSummary, SizeDelta  # noqa: E402
from .report import shorten_name  # noqa: E402

logger = logging.getLogger(__name__)

ENTRY_COLUMNS = ["name", "kind", "status", "old_size", "new_size", "delta", "delta_pct"]
SUMMARY_COLUMNS = ["group", "old_total", "new_total", "delta_total", "delta_pct"]


def entries_frame(entries: Sequence[EntryDiff]) -> pd.DataFrame:
    rows = []
    for e in entries:
        rows.append({
            "name": e.name,
            "kind": e.kind,
            "status": e.status,
            "old_size": e.old_size,
            "new_size": e.new_size,
            "delta": e.delta,
            "delta_pct": e.percent,
        })
    return pd.DataFrame(rows, columns=ENTRY_COLUMNS)


def summary_frame(summary: Optional[KindSummary], files: Optional[SizeDelta] = None) -> pd.DataFrame:
    rows: List[SizeDelta] = []
    if files is not None:
        rows.append(SizeDelta("file", files.old_size, files.new_size))
    if summary is not None:
        rows.extend(summary.rows)
        rows.append(summary.total)
    return pd.DataFrame(
        [[r.name, r.old_size, r.new_size, r.delta, r.percent] for r in rows],
        columns=SUMMARY_COLUMNS,
    )


def export_csv(
    directory: str,
    symbols: Sequence[EntryDiff],
    sections: Sequence[EntryDiff],
    summary: Optional[KindSummary] = None,
    files: Optional[SizeDelta] = None,
) -> List[str]:
    os.makedirs(directory, exist_ok=True)
    written = []
    for fname, df in (
        ("symbols.csv", entries_frame(symbols)),
        ("sections.csv", entries_frame(sections)),
        ("summary.csv", summary_frame(summary, files)),
    ):
        path = os.path.join(directory, fname)
        df.to_csv(path, index=False)
        written.append(path)
    logger.info(f"Wrote {', '.join(written)}")
    return written


def readable_size(num) -> str:
    if abs(num) < 1024:
        return f"{num:.0f} B"
    elif abs(num) < 1024 ** 2:
        return f"{num / 1024:.2f} KB"
    return f"{num / (1024 ** 2):.2f} MB"


def plot_symbol_deltas(entries: Sequence[EntryDiff], path: str, top: int = 15, title: str = "Symbol size change") -> Optional[str]:
    """Horizontal bars for the `top` largest absolute deltas; None when there is nothing to draw."""
    df = entries_frame(entries)
    if df.empty:
        logger.info("No differing symbols, chart not written")
        return None
    df = df.reindex(df["delta"].abs().sort_values(ascending=False).index)
    df_top = df.head(top).reset_index(drop=True)

    fig, ax = plt.subplots(figsize=(12, max(3, 0.4 * len(df_top) + 1)))
    colors = ["steelblue" if d > 0 else "indianred" for d in df_top["delta"]]
    positions = list(range(len(df_top)))
    ax.barh(positions, df_top["delta"], color=colors)
    ax.set_yticks(positions)
    ax.set_yticklabels([shorten_name(n, 40) for n in df_top["name"]])
    ax.axvline(0, color="black", linewidth=0.8)
    ax.set_xlabel("Delta (bytes)")
    ax.set_title(title)
    ax.invert_yaxis()

    for i, delta in enumerate(df_top["delta"]):
        ax.text(delta, i, f" {readable_size(delta)} ",
                va="center",
                ha="left" if delta >= 0 else "right",
                fontsize=9)

    fig.savefig(path, dpi=200, bbox_inches="tight")
    plt.close(fig)
    logger.info(f"Wrote {path}")
    return path
