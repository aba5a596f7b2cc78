#!/usr/bin/env python3
"""Smoke test for a deployed grid.

Checks:
  * Grid database exists and health_check is ok
  * Schema version matches expected
  * Table loads (header row present) and key field resolves to a real column
  * (Optional) SMOKE_KEY_FIELD: the requested key field is honoured
  * (Optional) SMOKE_TOGGLE_WRITES=1: a read-only store refuses writes and the
    table reports False without touching memory
"""
import os, sys, json
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT))

from gridtable import STORE_SCHEMA_VERSION as EXPECTED_VERSION  # noqa: E402
from gridtable.errors import GridTableError  # noqa: E402
from gridtable.sqlite_store import SQLiteGridStore, DEFAULT_SHEET  # noqa: E402
from gridtable.table import IndexedTable  # noqa: E402

DB_PATH = os.environ.get('GRID_DB', str(ROOT / 'data' / 'grid.db'))
SHEET = os.environ.get('GRID_SHEET', DEFAULT_SHEET)

failures = []

def check(cond, msg):
    if not cond:
        failures.append(msg)

if not Path(DB_PATH).exists():
    print(json.dumps({'success': False, 'error': f'DB missing: {DB_PATH}'}))
    sys.exit(1)

store = SQLiteGridStore(DB_PATH, sheet=SHEET)
hc = store.health_check()
check(hc.get('ok') is True, f"health_check not ok: {hc.get('error')}")
check(hc.get('schema_version') == EXPECTED_VERSION, f"schema_version mismatch: got {hc.get('schema_version')}")

table = None
try:
    table = IndexedTable(store, key_field=os.environ.get('SMOKE_KEY_FIELD'))
except GridTableError as e:
    check(False, f'table load failed: {e}')

if table is not None:
    check(table.key_field in table.columns, f'key field {table.key_field!r} not in columns')
    wanted = os.environ.get('SMOKE_KEY_FIELD')
    if wanted:
        check(table.key_field == wanted, f'key field fell back to {table.key_field!r} (asked for {wanted!r})')

    if os.environ.get('SMOKE_TOGGLE_WRITES', '0') == '1':
        ro_store = SQLiteGridStore(DB_PATH, sheet=SHEET, allow_writes=False)
        ro_table = IndexedTable(ro_store, key_field=table.key_field)
        before = len(ro_table)
        ok = ro_table.add_item({table.key_field: '__smoke__'})
        check(not ok, 'add_item unexpectedly succeeded on read-only store')
        check(len(ro_table) == before, 'read-only add_item changed the in-memory table')
        check(len(IndexedTable(ro_store)) == before, 'read-only add_item reached the database')

if failures:
    print(json.dumps({'success': False, 'failures': failures}))
    sys.exit(2)
print(json.dumps({'success': True, 'records': len(table), 'key_field': table.key_field}))
