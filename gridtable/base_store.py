"""Grid store abstraction.

The table only ever talks to its backing grid through this interface, so any
row/column source (SQLite file, in-memory fake, spreadsheet API client) can be
plugged in.

Indices are 1-based: row 1 holds the headers, row 2 the first record.
"""
from __future__ import annotations
from typing import Protocol, Sequence, List, Union

Scalar = Union[str, int, float, bool, None]
Row = List[Scalar]

EMPTY: Scalar = ""
HEADER_ROW = 1

class GridStore(Protocol):
    def read_all(self) -> List[Row]:
        """Return every row of the used range, header row first."""
        ...

    def write_range(self, row_index: int, col_start: int, rows: Sequence[Sequence[Scalar]]) -> None:
        """Overwrite a contiguous block of cells starting at (row_index, col_start)."""
        ...

    def write_cell(self, row_index: int, col_index: int, value: Scalar) -> None:
        ...


def normalize_cell(value: Scalar) -> Scalar:
    """Holes (None) are stored as empty cells."""
    return EMPTY if value is None else value


def check_position(row_index: int, col_index: int) -> None:
    if row_index < 1 or col_index < 1:
        raise ValueError(f"Grid positions are 1-based, got row={row_index} col={col_index}")
