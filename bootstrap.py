#!/usr/bin/env python3
"""Cross-platform project bootstrap utility.

Features:
  - Creates (or reuses) a `.venv` virtual environment
  - Installs the package in editable mode (`pip install -e .`)
  - Optional dev/test dependencies (`--dev`)
  - Optional grid initialization (`--init-db COL [COL ...]`) to `./data/grid.db`
  - Optional test run (`--run-tests`) if pytest is installed/available

Usage examples:
  python bootstrap.py --init-db id name email
  python bootstrap.py --dev --run-tests

Idempotent: safe to re-run; will skip work already done.
"""
from __future__ import annotations
import argparse, sys, subprocess, textwrap, platform
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parent
VENV_DIR = PROJECT_ROOT / ".venv"
DEFAULT_DB = PROJECT_ROOT / "data" / "grid.db"


def run(cmd: list[str], **kw):
    """Run a command, raising on non-zero exit."""
    print("[bootstrap] $", " ".join(cmd))
    subprocess.check_call(cmd, **kw)


def ensure_venv(python: str) -> Path:
    if not VENV_DIR.exists():
        print("[bootstrap] Creating virtual environment .venv")
        run([python, "-m", "venv", str(VENV_DIR)])
    if platform.system().lower().startswith("win"):
        return VENV_DIR / "Scripts" / "python.exe"
    return VENV_DIR / "bin" / "python"


def pip_install(venv_py: Path, dev: bool):
    run([str(venv_py), "-m", "pip", "install", "-q", "--upgrade", "pip", "setuptools", "wheel"])
    run([str(venv_py), "-m", "pip", "install", "-e", ".[dev]" if dev else "."], cwd=PROJECT_ROOT)


def init_db(venv_py: Path, db_path: Path, header: list[str]):
    print(f"[bootstrap] Initializing grid: {db_path}")
    run([str(venv_py), "scripts/init_grid.py", str(db_path), *header], cwd=PROJECT_ROOT)


def run_tests(venv_py: Path):
    try:
        run([str(venv_py), "-m", "pytest", "-q"], cwd=PROJECT_ROOT)
    except subprocess.CalledProcessError as e:
        print(f"[bootstrap] Test run failed (exit {e.returncode}).")
        raise


def activation_hint(db_path: Path):
    return textwrap.dedent(f"""
        Next steps:
          PowerShell: .venv\\Scripts\\Activate.ps1
          bash/zsh : source .venv/bin/activate

        Inspect the grid store:
          gridtable-config {db_path}

        Point the smoke test at it:
          export GRID_DB={db_path}
          python scripts/smoke_test.py
    """)


def parse_args(argv: list[str]):
    ap = argparse.ArgumentParser(description="Cross-platform bootstrap")
    ap.add_argument("--dev", action="store_true", help="Install dev/test dependencies")
    ap.add_argument("--init-db", nargs="+", metavar="COLUMN", help="Create the grid with these header columns")
    ap.add_argument("--db-path", type=Path, default=DEFAULT_DB, help="Custom grid path (with --init-db)")
    ap.add_argument("--run-tests", action="store_true", help="Run pytest after install (requires --dev or existing pytest)")
    return ap.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv if argv is not None else sys.argv[1:])
    venv_py = ensure_venv(sys.executable)
    pip_install(venv_py, args.dev)
    if args.init_db:
        init_db(venv_py, args.db_path, args.init_db)
    if args.run_tests:
        run_tests(venv_py)
    print(activation_hint(args.db_path))
    print("[bootstrap] Done.")
    return 0


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
