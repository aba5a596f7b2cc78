"""Field mapping policy for whole-record writes.

A record handed to add_item/update_item may carry fields that are not in the
column set. Two rules exist:
  - strict  : every field must map to a column (and there must be at least one
              field), otherwise the write is rejected as a whole. Default.
  - lenient : at least one field must map; unknown fields are left out of the
              written row.
The same policy instance governs both operations of a table.
"""
from __future__ import annotations
import os
from dataclasses import dataclass, field
from typing import Dict, Mapping, Set

from .base_store import EMPTY, Row, Scalar
from .logging_util import warn

STRICT = "strict"
LENIENT = "lenient"
MODES = (STRICT, LENIENT)

@dataclass
class RowMapping:
    row: Row
    mapped: Set[str] = field(default_factory=set)
    unmapped: Set[str] = field(default_factory=set)

class MappingPolicy:
    def __init__(self, mode: str = STRICT):
        if mode not in MODES:
            raise ValueError(f"Unknown mapping policy {mode!r}, expected one of {MODES}")
        self.mode = mode

    @classmethod
    def from_env(cls) -> "MappingPolicy":
        raw = os.environ.get("GRIDTABLE_MAPPING_POLICY", STRICT).strip().lower()
        if raw not in MODES:
            warn("invalid_mapping_policy", value=raw, default=STRICT)
            raw = STRICT
        return cls(raw)

    @property
    def strict(self) -> bool:
        return self.mode == STRICT

    def map_record(self, record: Mapping[str, Scalar], column_index: Dict[str, int], width: int) -> RowMapping:
        """Build a full-width row from the record's known fields."""
        result = RowMapping(row=[EMPTY] * width)
        for name, value in record.items():
            pos = column_index.get(name)
            if pos is None:
                result.unmapped.add(name)
                continue
            result.row[pos] = EMPTY if value is None else value
            result.mapped.add(name)
        return result

    def accepts(self, mapping: RowMapping) -> bool:
        if not mapping.mapped:
            return False
        if self.strict:
            return not mapping.unmapped
        return True

    def __repr__(self):
        return f"MappingPolicy({self.mode!r})"
