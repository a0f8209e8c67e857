from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional, Tuple

logger = logging.getLogger(__name__)

Cell = Any  # str | int | float | None
RowRecord = Dict[Any, Cell]


class GridStatus(str, Enum):
    OK = "ok"
    EMPTY = "empty"
    MALFORMED = "malformed"


@dataclass(frozen=True)
class ColumnSpec:
    key: int
    title: str


@dataclass(frozen=True)
class Grid:
    columns: Tuple[ColumnSpec, ...]
    rows: Tuple[RowRecord, ...]

    def cell(self, row: RowRecord, column: ColumnSpec) -> Cell:
        """Cell value for a column, or None when the row is short."""
        return row.get(column.key)


@dataclass(frozen=True)
class NormalizedGrid:
    """Tagged normalizer result: a grid only when status is OK."""

    status: GridStatus
    grid: Optional[Grid] = None
    reason: str = ""

    @property
    def usable(self) -> bool:
        return self.status is GridStatus.OK


def _is_sequence(value: Any) -> bool:
    # str/bytes are sequences too, but never a row or a column list
    return isinstance(value, (list, tuple))


def _dataset(payload: Any) -> Optional[Dict[str, Any]]:
    """Return the inner ``data.data`` mapping of a query reply, if present."""
    outer = payload.get("data") if isinstance(payload, dict) else None
    inner = outer.get("data") if isinstance(outer, dict) else None
    return inner if isinstance(inner, dict) else None


def _column(idx: int, col: Any) -> ColumnSpec:
    name = col.get("name") if isinstance(col, dict) else None
    if not name:
        logger.warning("Invalid column at index %s: %r", idx, col)
        return ColumnSpec(key=idx, title=f"Column {idx + 1}")
    display = col.get("display_name")
    return ColumnSpec(key=idx, title=str(display or name))


def _row(idx: int, row: Any) -> RowRecord:
    record: RowRecord = {"key": str(idx)}
    if not _is_sequence(row):
        logger.warning("Invalid row at index %s: %r", idx, row)
        return record
    for cell_idx, cell in enumerate(row):
        record[cell_idx] = cell
    return record


def normalize(payload: Any) -> NormalizedGrid:
    """
    Turn a raw query reply into a render-ready grid.

    Rows and columns are read from ``payload["data"]["data"]``. Missing or
    non-list ``rows``/``cols`` give MALFORMED, an empty list gives EMPTY.
    Bad column entries get a synthesized "Column N" title and bad rows are
    replaced by a key-only stand-in, so this never raises.
    """
    dataset = _dataset(payload)
    if dataset is None or "rows" not in dataset or "cols" not in dataset:
        logger.warning("Invalid data structure: missing rows or cols")
        return NormalizedGrid(GridStatus.MALFORMED, reason="missing rows or cols")

    rows, cols = dataset["rows"], dataset["cols"]
    if not _is_sequence(rows) or not _is_sequence(cols):
        logger.warning("Rows or cols is not a list: rows=%s cols=%s", type(rows).__name__, type(cols).__name__)
        return NormalizedGrid(GridStatus.MALFORMED, reason="rows or cols is not a list")

    if not rows or not cols:
        logger.info("Empty result: rows=%s cols=%s", len(rows), len(cols))
        return NormalizedGrid(GridStatus.EMPTY, reason="no rows or no columns")

    grid = Grid(
        columns=tuple(_column(i, c) for i, c in enumerate(cols)),
        rows=tuple(_row(i, r) for i, r in enumerate(rows)),
    )
    return NormalizedGrid(GridStatus.OK, grid=grid)

