"""SQLite-backed grid store.

Cells live in one table keyed by (sheet, row_idx, col_idx); values are stored
JSON-encoded so str/int/float/bool survive a round trip unchanged. Several
sheets can share a database file.

Behaviour:
    - Read-only (immutable=1 + query_only) connections when writes are disabled
    - Writes gated by GRID_ALLOW_WRITES unless allow_writes is passed explicitly
    - Environment driven tuning with clamping + sanity logging
    - Health check helper + optional integrity_check (GRID_VERIFY_ON_CONNECT=1)
"""
from __future__ import annotations
import sqlite3, os, json
from contextlib import closing
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence

from . import STORE_SCHEMA_VERSION
from .base_store import EMPTY, Row, Scalar, check_position, normalize_cell
from .errors import GridStoreError, ReadOnlyStoreError
from .logging_util import warn, debug

MAX_CACHE_KIB = 512 * 1024        # 512 MiB upper clamp
MIN_CACHE_KIB = 16
DEFAULT_CACHE_KIB = 8 * 1024      # 8 MiB
MAX_BUSY_TIMEOUT_MS = 600_000
DEFAULT_BUSY_TIMEOUT_MS = 30_000
DEFAULT_SHEET = "Sheet1"

SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS grid_cells (
    sheet   TEXT    NOT NULL,
    row_idx INTEGER NOT NULL CHECK (row_idx >= 1),
    col_idx INTEGER NOT NULL CHECK (col_idx >= 1),
    value   TEXT    NOT NULL,
    PRIMARY KEY (sheet, row_idx, col_idx)
) WITHOUT ROWID;
CREATE TABLE IF NOT EXISTS settings (
    key   TEXT PRIMARY KEY,
    value TEXT NOT NULL
);
"""


def env_int(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError:
        warn("invalid_env_int", key=name, value=raw, default=default)
        return default


@dataclass
class StoreConfig:
    cache_kib: int = DEFAULT_CACHE_KIB
    busy_timeout_ms: int = DEFAULT_BUSY_TIMEOUT_MS
    verify_on_connect: bool = False

    @classmethod
    def from_env(cls) -> "StoreConfig":
        cache_kib = env_int("GRID_CACHE_SIZE_KIB", DEFAULT_CACHE_KIB)
        busy = env_int("GRID_BUSY_TIMEOUT_MS", DEFAULT_BUSY_TIMEOUT_MS)
        verify = os.environ.get("GRID_VERIFY_ON_CONNECT", "0") == "1"
        adjusted = {}
        if cache_kib < MIN_CACHE_KIB or cache_kib > MAX_CACHE_KIB:
            adjusted["cache_kib"] = cache_kib
            cache_kib = min(MAX_CACHE_KIB, max(MIN_CACHE_KIB, cache_kib))
        if busy < 0 or busy > MAX_BUSY_TIMEOUT_MS:
            adjusted["busy_timeout_ms"] = busy
            busy = min(MAX_BUSY_TIMEOUT_MS, max(0, busy))
        if adjusted:
            warn("store_config_clamped", original=adjusted,
                 clamped={"cache_kib": cache_kib, "busy_timeout_ms": busy})
        return cls(cache_kib=cache_kib, busy_timeout_ms=busy, verify_on_connect=verify)


def encode_value(value: Scalar) -> str:
    return json.dumps(normalize_cell(value))


def decode_value(raw: str) -> Scalar:
    return json.loads(raw)


class SQLiteGridStore:
    """Grid store persisted in a SQLite file.

    Connections are opened per operation and closed afterwards; the grid is
    small and the table reads it once, so there is nothing to pool.
    """
    def __init__(self, path: str, sheet: str = DEFAULT_SHEET,
                 config: Optional[StoreConfig] = None, allow_writes: Optional[bool] = None):
        if os.path.isdir(path):
            raise ValueError(f"Path points to a directory, expected file: {path}")
        self.path = path
        self.sheet = sheet
        self.config = config or StoreConfig.from_env()
        self._allow_writes = allow_writes
        self._schema_ready = False
        self._closed = False

    @property
    def allow_writes(self) -> bool:
        if self._allow_writes is not None:
            return self._allow_writes
        # Re-read so operators can flip writes off without rebuilding the store
        return os.environ.get("GRID_ALLOW_WRITES", "1") == "1"

    # --- GridStore API --------------------------------------------------------------
    def read_all(self) -> List[Row]:
        self._check_open()
        try:
            with closing(self.connect(write=self.allow_writes)) as conn:
                cells = conn.execute(
                    "SELECT row_idx, col_idx, value FROM grid_cells WHERE sheet=?", (self.sheet,)
                ).fetchall()
        except sqlite3.Error as e:
            raise GridStoreError(f"read failed for {self.path} [{self.sheet}]: {e}") from e
        if not cells:
            return []
        height = max(c[0] for c in cells)
        width = max(c[1] for c in cells)
        grid: List[Row] = [[EMPTY] * width for _ in range(height)]
        for row_idx, col_idx, raw in cells:
            grid[row_idx - 1][col_idx - 1] = decode_value(raw)
        return grid

    def write_range(self, row_index: int, col_start: int, rows: Sequence[Sequence[Scalar]]) -> None:
        check_position(row_index, col_start)
        params = [
            (self.sheet, row_index + r, col_start + c, encode_value(v))
            for r, values in enumerate(rows)
            for c, v in enumerate(values)
        ]
        self._upsert(params)

    def write_cell(self, row_index: int, col_index: int, value: Scalar) -> None:
        check_position(row_index, col_index)
        self._upsert([(self.sheet, row_index, col_index, encode_value(value))])

    # --- Public helpers -------------------------------------------------------------
    def connect(self, write: bool) -> sqlite3.Connection:
        """Return a configured sqlite3.Connection.

        write=False opens the file immutable read-only (mode=ro&immutable=1) and
        raises GridStoreError if it does not exist yet.
        """
        self._check_open()
        if not write and not os.path.exists(self.path):
            raise GridStoreError(f"Grid database not found and read-only access requested: {self.path}")
        if write:
            conn = sqlite3.connect(self.path)
        else:
            conn = sqlite3.connect(f"file:{self.path}?mode=ro&immutable=1", uri=True)
        self._apply_pragmas(conn, write)
        if write and not self._schema_ready:
            self._init_schema(conn)
        if self.config.verify_on_connect and write:
            try:
                res = conn.execute("PRAGMA integrity_check").fetchone()[0]
                if res != "ok":
                    warn("integrity_check_failed", path=self.path, result=res)
            except sqlite3.Error as e:  # pragma: no cover - unexpected
                warn("integrity_check_error", error=str(e))
        return conn

    def init_schema(self) -> None:
        """Create the cell table (idempotent). Requires writes to be enabled."""
        self._ensure_writable()
        with closing(self.connect(write=True)):
            pass

    def health_check(self) -> Dict[str, Any]:
        """Return pragma values, schema version and used-range size."""
        try:
            conn = self.connect(write=False)
        except (GridStoreError, sqlite3.Error) as e:
            return {"ok": False, "error": str(e)}
        with closing(conn):
            try:
                version = conn.execute("SELECT value FROM settings WHERE key='schema_version'").fetchone()
                used = conn.execute(
                    "SELECT COUNT(*), COALESCE(MAX(row_idx),0), COALESCE(MAX(col_idx),0) FROM grid_cells WHERE sheet=?",
                    (self.sheet,),
                ).fetchone()
                return {
                    "ok": True,
                    "path": self.path,
                    "sheet": self.sheet,
                    "schema_version": version[0] if version else None,
                    "journal_mode": conn.execute("PRAGMA journal_mode").fetchone()[0],
                    "cache_size": conn.execute("PRAGMA cache_size").fetchone()[0],
                    "busy_timeout": conn.execute("PRAGMA busy_timeout").fetchone()[0],
                    "cells": used[0],
                    "rows": used[1],
                    "cols": used[2],
                    "allow_writes": self.allow_writes,
                }
            except sqlite3.Error as e:
                return {"ok": False, "path": self.path, "error": str(e)}

    def close(self) -> None:
        """Mark the store closed; later reads, writes and connects raise GridStoreError."""
        self._closed = True

    @property
    def closed(self) -> bool:
        return self._closed

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()

    # --- Internal -------------------------------------------------------------------
    def _check_open(self) -> None:
        if self._closed:
            raise GridStoreError(f"Grid store is closed: {self.path} [{self.sheet}]")

    def _ensure_writable(self) -> None:
        if not self.allow_writes:
            raise ReadOnlyStoreError(f"Writes disabled for {self.path} (set GRID_ALLOW_WRITES=1 to enable)")

    def _upsert(self, params: List[tuple]) -> None:
        self._check_open()
        self._ensure_writable()
        if not params:
            return
        try:
            with closing(self.connect(write=True)) as conn:
                with conn:
                    conn.executemany(
                        "INSERT OR REPLACE INTO grid_cells(sheet, row_idx, col_idx, value) VALUES (?,?,?,?)",
                        params,
                    )
        except sqlite3.Error as e:
            raise GridStoreError(f"write failed for {self.path} [{self.sheet}]: {e}") from e
        debug("cells_written", sheet=self.sheet, count=len(params), first_row=params[0][1])

    def _init_schema(self, conn: sqlite3.Connection) -> None:
        with conn:
            conn.executescript(SCHEMA_SQL)
            conn.execute("INSERT OR IGNORE INTO settings(key, value) VALUES ('schema_version', ?)",
                         (STORE_SCHEMA_VERSION,))
        self._schema_ready = True

    def _apply_pragmas(self, conn: sqlite3.Connection, write: bool) -> None:
        mode = "write" if write else "immutable_ro"
        pragmas = [
            (f"busy_timeout={self.config.busy_timeout_ms}", "busy_timeout"),
            (f"cache_size=-{self.config.cache_kib}", "cache_size"),  # negative => KiB
        ]
        if write:
            pragmas += [("journal_mode=WAL", "journal_mode"), ("synchronous=NORMAL", "synchronous"),
                        ("trusted_schema=OFF", "trusted_schema")]
        else:
            pragmas.append(("query_only=ON", "query_only"))
        for p, tag in pragmas:
            try:
                conn.execute(f"PRAGMA {p}")
            except sqlite3.Error as e:
                warn("pragma_failed", pragma=p, tag=tag, mode=mode, path=self.path, error=str(e))


def cli_dump_config(argv: Optional[List[str]] = None):  # pragma: no cover - thin CLI wrapper
    """CLI helper: print resolved StoreConfig + health_check JSON."""
    import argparse
    ap = argparse.ArgumentParser(description='Dump grid store config and health info')
    ap.add_argument('db', help='Path to SQLite grid database')
    ap.add_argument('--sheet', default=DEFAULT_SHEET, help='Sheet name inside the database')
    args = ap.parse_args(argv)
    store = SQLiteGridStore(args.db, sheet=args.sheet)
    out = {'config': store.config.__dict__.copy(), 'health_check': store.health_check()}
    print(json.dumps(out, indent=2))

if __name__ == '__main__':  # pragma: no cover
    cli_dump_config()
