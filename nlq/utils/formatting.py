from __future__ import annotations

from typing import Any, Dict, List, Sequence

import pandas as pd

from nlq.core.normalizer import ColumnSpec, Grid

NO_DATA = "No data"


def display_cell(value: Any) -> str:
    return NO_DATA if value is None else str(value)


def column_titles(columns: Sequence[ColumnSpec]) -> List[str]:
    """Column titles made unique so they can label a DataFrame."""
    seen: Dict[str, int] = {}
    out: List[str] = []
    for c in columns:
        n = seen.get(c.title, 0) + 1
        seen[c.title] = n
        out.append(c.title if n == 1 else f"{c.title} ({n})")
    return out


def grid_to_frame(grid: Grid) -> pd.DataFrame:
    """One column per ColumnSpec; short rows padded with the placeholder, extra cells dropped."""
    titles = column_titles(grid.columns)
    records = [
        [display_cell(grid.cell(row, col)) for col in grid.columns]
        for row in grid.rows
    ]
    index = [str(row.get("key", i)) for i, row in enumerate(grid.rows)]
    return pd.DataFrame(records, columns=titles, index=index)


def grid_to_markdown(grid: Grid, max_rows: int = 50) -> str:
    if not grid.rows:
        return "_No data available._"

    shown = grid.rows[:max_rows]

    def esc(x: Any) -> str:
        return display_cell(x).replace("|", "\\|").replace("\n", " ")

    header = "| " + " | ".join(esc(t) for t in column_titles(grid.columns)) + " |"
    sep = "| " + " | ".join(["---"] * len(grid.columns)) + " |"
    body_lines = [
        "| " + " | ".join(esc(grid.cell(r, c)) for c in grid.columns) + " |"
        for r in shown
    ]

    extra = ""
    if len(grid.rows) > max_rows:
        extra = f"\n\n_Showing first {max_rows} of {len(grid.rows)} rows._"

    return "\n".join([header, sep, *body_lines]) + extra


def page_count(total_rows: int, page_size: int) -> int:
    if total_rows <= 0:
        return 1
    return (total_rows + page_size - 1) // page_size
