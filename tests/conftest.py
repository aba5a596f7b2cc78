import pytest
from gridtable.memory_store import InMemoryGridStore
from gridtable.policy import MappingPolicy
from gridtable.sqlite_store import SQLiteGridStore
from gridtable.table import IndexedTable

PEOPLE = [
    ["id", "name", "team"],
    ["1", "Alice", "red"],
    ["2", "Bob", "blue"],
    ["3", "Cleo", "red"],
]

@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    for key in ('GRIDTABLE_MAPPING_POLICY', 'GRID_ALLOW_WRITES', 'GRIDTABLE_LOG_LEVEL', 'GRIDTABLE_LOG_FORMAT',
                'GRID_CACHE_SIZE_KIB', 'GRID_BUSY_TIMEOUT_MS', 'GRID_VERIFY_ON_CONNECT',
                'GRID_RETRY_ATTEMPTS', 'GRID_RETRY_BASE_DELAY_MS', 'GRID_RETRY_MAX_DELAY_MS'):
        monkeypatch.delenv(key, raising=False)

@pytest.fixture()
def grid_rows():
    return [list(r) for r in PEOPLE]

@pytest.fixture()
def store(grid_rows):
    return InMemoryGridStore(grid_rows)

@pytest.fixture()
def table(store):
    return IndexedTable(store, policy=MappingPolicy('strict'))

@pytest.fixture()
def sqlite_db(tmp_path, grid_rows):
    db_path = tmp_path / 'grid.db'
    SQLiteGridStore(str(db_path), allow_writes=True).write_range(1, 1, grid_rows)
    return str(db_path)
