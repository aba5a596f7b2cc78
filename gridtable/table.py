"""Header-indexed table over a grid store.

Row 1 of the grid names the columns; every following row becomes a record
(a dict keyed by column name). Lookups run against the in-memory records and
every mutation writes the matching cells back through the store.

Write semantics:
  - add_item / update_item follow the table's MappingPolicy. The default is
    strict: a record carrying any field outside the column set is rejected as
    a whole, with no store write and no in-memory change. Lenient mode accepts
    the record when at least one field maps.
  - Memory is only mutated after the store write returned, so a failed write
    (GridStoreError) leaves the table as it was and the call returns False.
  - The grid is read once, at construction. The table assumes it is the only
    writer of that range afterwards.
"""
from __future__ import annotations
import math
from typing import Any, Dict, Iterator, List, Mapping, Optional, Sequence, Tuple

from .base_store import EMPTY, HEADER_ROW, GridStore, Scalar
from .errors import EmptySourceError, GridStoreError
from .logging_util import bind, warn
from .policy import MappingPolicy

Record = Dict[str, Scalar]


def resolve_key_field(columns: Sequence[str], key_field: Optional[str], default: Optional[str] = None) -> str:
    """Return key_field when it names a column, else the fallback key.

    The fallback is `default` when given, otherwise the first column. An
    unknown or empty key never raises; callers relying on a specific column
    should check membership themselves.
    """
    fallback = default if default is not None else columns[0]
    if not key_field:
        return fallback
    if key_field not in columns:
        warn("key_field_fallback", requested=key_field, using=fallback)
        return fallback
    return key_field


def scalars_equal(a: Any, b: Any) -> bool:
    """Equality that never crosses value kinds ("1" != 1, True != 1)."""
    if isinstance(a, bool) or isinstance(b, bool):
        return type(a) is type(b) and a == b
    if isinstance(a, (int, float)) and isinstance(b, (int, float)):
        if isinstance(a, float) and math.isnan(a):
            return False
        return a == b
    return type(a) is type(b) and a == b


def _trim_header(row: Sequence[Scalar]) -> List[Scalar]:
    """Header cells up to the last non-empty one.

    Stores return rectangular ranges, so a data row wider than the header
    shows up as trailing empty header cells; those are not columns.
    """
    end = len(row)
    while end and row[end - 1] == EMPTY:
        end -= 1
    return list(row[:end])


class IndexedTable:
    """Keyed records mirrored from a grid store."""

    def __init__(self, store: GridStore, key_field: Optional[str] = None,
                 policy: Optional[MappingPolicy] = None):
        self.store = store
        self.policy = policy or MappingPolicy.from_env()
        self._log = bind(component="table")
        rows = store.read_all()
        header = _trim_header(rows[0]) if rows else []
        if not header:
            raise EmptySourceError("Grid has no header row")
        self._columns: Tuple[str, ...] = tuple(header)
        self._column_index: Dict[str, int] = {}
        for pos, name in enumerate(self._columns):
            if name in self._column_index:
                self._log.warn("duplicate_header", column=name, first=self._column_index[name] + 1, ignored=pos + 1)
                continue
            self._column_index[name] = pos
        self._key_field = resolve_key_field(self._columns, key_field)
        self._items: List[Record] = [self._record_from_row(row) for row in rows[1:]]
        self._log.info("table_loaded", columns=len(self._columns), records=len(self._items),
             key_field=self._key_field, policy=self.policy.mode)

    # --- Properties -----------------------------------------------------------------
    @property
    def columns(self) -> Tuple[str, ...]:
        return self._columns

    @property
    def key_field(self) -> str:
        return self._key_field

    @property
    def items(self) -> List[Record]:
        """The live record list, in grid row order."""
        return self._items

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[Record]:
        return iter(self._items)

    def __repr__(self):
        return f"IndexedTable(columns={list(self._columns)!r}, key_field={self._key_field!r}, records={len(self._items)})"

    # --- Lookup ---------------------------------------------------------------------
    def get_item(self, value: Scalar, key_field: Optional[str] = None) -> Optional[Record]:
        for item in self._iter_matches(value, key_field):
            return item
        return None

    def get_items(self, value: Scalar, key_field: Optional[str] = None) -> List[Record]:
        return list(self._iter_matches(value, key_field))

    # --- Mutation -------------------------------------------------------------------
    def add_item(self, record: Mapping[str, Scalar]) -> bool:
        """Append record as a new grid row after the last record."""
        mapping = self.policy.map_record(record, self._column_index, len(self._columns))
        if not self.policy.accepts(mapping):
            self._log.debug("item_rejected", op="add_item", unmapped=mapping.unmapped, policy=self.policy.mode)
            return False
        row_index = self._row_for(len(self._items))
        if not self._write(self.store.write_range, row_index, 1, [mapping.row]):
            return False
        self._items.append(dict(record))
        self._log.debug("item_added", row=row_index, fields=mapping.mapped)
        return True

    def update_item_value(self, key_field: str, key_value: Scalar, field: str, value: Scalar) -> bool:
        """Set one field of the first record whose key_field equals key_value."""
        if field not in self._column_index or key_field not in self._column_index:
            return False
        pos = self._find(key_field, key_value)
        if pos is None:
            return False
        row_index = self._row_for(pos)
        col_index = self._column_index[field] + 1
        if not self._write(self.store.write_cell, row_index, col_index, value):
            return False
        self._items[pos][field] = value
        self._log.debug("item_value_updated", row=row_index, col=col_index, field=field)
        return True

    def update_item(self, record: Mapping[str, Scalar], key_field: Optional[str] = None) -> bool:
        """Replace the record matching record[key_field] and rewrite its row."""
        key_field = key_field or self._key_field
        if key_field not in self._column_index:
            return False
        mapping = self.policy.map_record(record, self._column_index, len(self._columns))
        if not self.policy.accepts(mapping):
            self._log.debug("item_rejected", op="update_item", unmapped=mapping.unmapped, policy=self.policy.mode)
            return False
        if key_field not in record:
            return False
        # locate against stored values before anything is replaced
        pos = self._find(key_field, record[key_field])
        if pos is None:
            return False
        row_index = self._row_for(pos)
        if not self._write(self.store.write_range, row_index, 1, [mapping.row]):
            return False
        self._items[pos] = dict(record)
        self._log.debug("item_updated", row=row_index, key_field=key_field)
        return True

    # --- Internal -------------------------------------------------------------------
    def _record_from_row(self, row: Sequence[Scalar]) -> Record:
        width = len(row)
        return {
            name: (row[pos] if pos < width else EMPTY)
            for name, pos in self._column_index.items()
        }

    def _iter_matches(self, value: Scalar, key_field: Optional[str]) -> Iterator[Record]:
        key_field = resolve_key_field(self._columns, key_field, self._key_field)
        for item in self._items:
            if key_field in item and scalars_equal(item[key_field], value):
                yield item

    def _find(self, key_field: str, key_value: Scalar) -> Optional[int]:
        for pos, item in enumerate(self._items):
            if key_field in item and scalars_equal(item[key_field], key_value):
                return pos
        return None

    @staticmethod
    def _row_for(position: int) -> int:
        return HEADER_ROW + position + 1

    def _write(self, fn, *args) -> bool:
        try:
            fn(*args)
        except GridStoreError as e:
            self._log.error("grid_write_failed", op=fn.__name__, args=args[:2], error=str(e))
            return False
        return True
