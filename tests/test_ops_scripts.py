import os, sys, json, pathlib, subprocess
import pytest

from gridtable.sqlite_store import SQLiteGridStore

PROJECT_ROOT = pathlib.Path(__file__).resolve().parents[1]


def run(cmd, expect=0, env=None, **kw):
    full_env = dict(os.environ, **(env or {}))
    proc = subprocess.run(cmd, capture_output=True, text=True, env=full_env, **kw)
    assert proc.returncode == expect, f"Command failed: {cmd}\n{proc.stdout}\n{proc.stderr}"
    return proc


def test_init_grid_idempotent(tmp_path):
    db = tmp_path / 'deploy.db'
    script = PROJECT_ROOT / 'scripts' / 'init_grid.py'
    run([sys.executable, str(script), str(db), 'id', 'name'], cwd=PROJECT_ROOT)
    proc = run([sys.executable, str(script), str(db), 'id', 'name'], cwd=PROJECT_ROOT)
    assert 'already initialized' in proc.stdout
    assert SQLiteGridStore(str(db)).read_all() == [['id', 'name']]


def test_init_grid_conflicting_header(tmp_path):
    db = tmp_path / 'conflict.db'
    script = PROJECT_ROOT / 'scripts' / 'init_grid.py'
    run([sys.executable, str(script), str(db), 'id'], cwd=PROJECT_ROOT)
    run([sys.executable, str(script), str(db), 'sku'], expect=1, cwd=PROJECT_ROOT)


def test_init_grid_from_csv(tmp_path):
    db = tmp_path / 'seeded.db'
    csv_path = tmp_path / 'people.csv'
    csv_path.write_text('id,name\n1,Alice\n2,Bob\n', encoding='utf-8')
    script = PROJECT_ROOT / 'scripts' / 'init_grid.py'
    run([sys.executable, str(script), str(db), '--csv', str(csv_path), '--sheet', 'People'], cwd=PROJECT_ROOT)
    rows = SQLiteGridStore(str(db), sheet='People').read_all()
    assert rows == [['id', 'name'], ['1', 'Alice'], ['2', 'Bob']]


def test_smoke_script_toggle(sqlite_db):
    env = {'GRID_DB': sqlite_db, 'SMOKE_TOGGLE_WRITES': '1', 'SMOKE_KEY_FIELD': 'name'}
    proc = run([sys.executable, 'scripts/smoke_test.py'], env=env, cwd=PROJECT_ROOT, timeout=30)
    data = json.loads(proc.stdout.strip().splitlines()[-1])
    assert data == {'success': True, 'records': 3, 'key_field': 'name'}
    assert len(SQLiteGridStore(sqlite_db).read_all()) == 4


def test_smoke_script_missing_db(tmp_path):
    env = {'GRID_DB': str(tmp_path / 'nope.db')}
    proc = run([sys.executable, 'scripts/smoke_test.py'], expect=1, env=env, cwd=PROJECT_ROOT, timeout=30)
    assert json.loads(proc.stdout)['success'] is False


def test_config_dump(sqlite_db):
    proc = run([sys.executable, '-m', 'gridtable.sqlite_store', sqlite_db], cwd=PROJECT_ROOT)
    data = json.loads(proc.stdout)
    assert 'config' in data and 'health_check' in data
    assert data['health_check'].get('ok') is True


def test_secret_scan_no_obvious_tokens():
    suspicious = []
    sources = [*PROJECT_ROOT.glob('*.py'), *(PROJECT_ROOT / 'gridtable').rglob('*.py'),
               *(PROJECT_ROOT / 'scripts').rglob('*.py')]
    assert sources
    for path in sources:
        if 'test_' in path.name:
            continue
        text = path.read_text(encoding='utf-8', errors='ignore')
        if 'API_KEY=' in text or 'Bearer ' in text:
            suspicious.append(str(path))
    assert not suspicious, f"Potential secrets detected: {suspicious}"
