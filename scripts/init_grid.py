#!/usr/bin/env python3
"""Idempotent grid initializer.

Creates the SQLite grid database and writes the header row to the chosen sheet.
Optionally seeds data rows from a CSV file (its first line is skipped when it
repeats the header). An existing header is left untouched, so the script is
safe to run multiple times.

Usage:
  python scripts/init_grid.py /path/to/grid.db id name email
  python scripts/init_grid.py /path/to/grid.db --csv people.csv --sheet People
"""
from __future__ import annotations
import argparse, csv, pathlib, sys

ROOT = pathlib.Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT))

from gridtable.sqlite_store import SQLiteGridStore, DEFAULT_SHEET  # noqa: E402

def parse_args(argv):
    ap = argparse.ArgumentParser(description='Create a SQLite grid with a header row')
    ap.add_argument('db', help='Path to SQLite grid database')
    ap.add_argument('header', nargs='*', help='Column names (taken from the CSV when omitted)')
    ap.add_argument('--sheet', default=DEFAULT_SHEET)
    ap.add_argument('--csv', type=pathlib.Path, help='Seed rows from this CSV file')
    return ap.parse_args(argv)

def main(argv=None):
    args = parse_args(argv if argv is not None else sys.argv[1:])
    db_path = pathlib.Path(args.db)
    db_path.parent.mkdir(parents=True, exist_ok=True)
    seed = []
    if args.csv:
        with args.csv.open(newline='', encoding='utf-8') as fh:
            seed = [row for row in csv.reader(fh)]
    header = list(args.header) or (seed[0] if seed else [])
    if not header:
        print('init_grid: no header given (pass column names or --csv)', file=sys.stderr)
        return 2
    if seed and seed[0] == header:
        seed = seed[1:]
    store = SQLiteGridStore(str(db_path), sheet=args.sheet, allow_writes=True)
    existing = store.read_all()
    if existing:
        if existing[0][:len(header)] != header:
            print(f"init_grid: sheet {args.sheet!r} already has header {existing[0]}", file=sys.stderr)
            return 1
        print(f"already initialized: {db_path} [{args.sheet}]")
        return 0
    store.write_range(1, 1, [header] + seed)
    print(f"initialized: {db_path} [{args.sheet}] columns={len(header)} rows={len(seed)}")
    return 0

if __name__ == '__main__':
    raise SystemExit(main())
