"""In-memory grid store.

Behaves like a spreadsheet range: writes past the current edge grow the grid,
reads return a rectangular copy padded with empty cells. Every write is also
recorded in `write_log` so callers can assert on exactly what was touched.
"""
from __future__ import annotations
import copy
from typing import List, Optional, Sequence, Tuple, Any

from .base_store import EMPTY, Row, Scalar, check_position, normalize_cell

class InMemoryGridStore:
    def __init__(self, rows: Optional[Sequence[Sequence[Scalar]]] = None):
        self._rows: List[Row] = [list(r) for r in rows or []]
        self.write_log: List[Tuple[str, Any]] = []

    @property
    def width(self) -> int:
        return max((len(r) for r in self._rows), default=0)

    def read_all(self) -> List[Row]:
        width = self.width
        return [list(r) + [EMPTY] * (width - len(r)) for r in copy.deepcopy(self._rows)]

    def write_range(self, row_index: int, col_start: int, rows: Sequence[Sequence[Scalar]]) -> None:
        check_position(row_index, col_start)
        for offset, values in enumerate(rows):
            for col_offset, value in enumerate(values):
                self._set(row_index + offset, col_start + col_offset, value)
        self.write_log.append(("write_range", (row_index, col_start, [list(r) for r in rows])))

    def write_cell(self, row_index: int, col_index: int, value: Scalar) -> None:
        check_position(row_index, col_index)
        self._set(row_index, col_index, value)
        self.write_log.append(("write_cell", (row_index, col_index, value)))

    def cell(self, row_index: int, col_index: int) -> Scalar:
        """Value at a 1-based position; EMPTY outside the used range."""
        check_position(row_index, col_index)
        if row_index > len(self._rows):
            return EMPTY
        row = self._rows[row_index - 1]
        return row[col_index - 1] if col_index <= len(row) else EMPTY

    def _set(self, row_index: int, col_index: int, value: Scalar) -> None:
        while len(self._rows) < row_index:
            self._rows.append([])
        row = self._rows[row_index - 1]
        if len(row) < col_index:
            row.extend([EMPTY] * (col_index - len(row)))
        row[col_index - 1] = normalize_cell(value)

    def __repr__(self):
        return f"InMemoryGridStore(rows={len(self._rows)}, width={self.width})"
