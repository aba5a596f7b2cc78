import pytest

from gridtable.base_store import EMPTY
from gridtable.policy import MappingPolicy, LENIENT, STRICT

COLUMNS = {"id": 0, "name": 1, "team": 2}


def test_map_record_builds_full_width_row():
    m = MappingPolicy().map_record({"team": "red", "id": "7", "x": 1}, COLUMNS, 3)
    assert m.row == ["7", EMPTY, "red"]
    assert m.mapped == {"id", "team"}
    assert m.unmapped == {"x"}


def test_none_values_become_empty_cells():
    m = MappingPolicy().map_record({"id": None, "name": "n"}, COLUMNS, 3)
    assert m.row == [EMPTY, "n", EMPTY]


@pytest.mark.parametrize("record, strict, lenient", [
    ({"id": "1", "name": "a"}, True, True),
    ({"id": "1", "extra": "a"}, False, True),
    ({"extra": "a"}, False, False),
    ({}, False, False),
])
def test_accepts(record, strict, lenient):
    assert MappingPolicy(STRICT).accepts(MappingPolicy(STRICT).map_record(record, COLUMNS, 3)) is strict
    assert MappingPolicy(LENIENT).accepts(MappingPolicy(LENIENT).map_record(record, COLUMNS, 3)) is lenient


def test_unknown_mode_rejected():
    with pytest.raises(ValueError):
        MappingPolicy("loose")


def test_from_env_defaults_to_strict():
    assert MappingPolicy.from_env().strict


def test_from_env_invalid_value_warns(monkeypatch, capsys):
    monkeypatch.setenv('GRIDTABLE_MAPPING_POLICY', 'sometimes')
    policy = MappingPolicy.from_env()
    assert policy.mode == STRICT
    err = capsys.readouterr().err
    assert 'invalid_mapping_policy' in err and 'sometimes' in err


def test_from_env_is_case_insensitive(monkeypatch):
    monkeypatch.setenv('GRIDTABLE_MAPPING_POLICY', ' Lenient ')
    assert MappingPolicy.from_env().mode == LENIENT
