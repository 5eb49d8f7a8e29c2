from datetime import UTC, datetime

import pytest

from wt_log.models import EPOCH, QSO, Log, iso_timestamp, parse_timestamp


def test_parse_timestamp():
    """Test ISO parsing with Z, offsets, naive values and garbage."""
    assert parse_timestamp("2025-06-28T14:03:00.000Z") == datetime(2025, 6, 28, 14, 3, tzinfo=UTC)
    assert parse_timestamp("2025-06-28T11:03:00-03:00") == datetime(2025, 6, 28, 14, 3, tzinfo=UTC)
    assert parse_timestamp("2025-06-28T14:03:00") == datetime(2025, 6, 28, 14, 3, tzinfo=UTC)
    assert parse_timestamp("") == EPOCH
    assert parse_timestamp(None) == EPOCH
    assert parse_timestamp("last tuesday") == EPOCH


def test_iso_timestamp_matches_javascript_format():
    """Test the toISOString-style output used for createdAt."""
    dt = datetime(2025, 6, 28, 14, 3, 5, 123000, tzinfo=UTC)
    assert iso_timestamp(dt) == "2025-06-28T14:03:05.123Z"


def test_qso_aliases_and_defaults():
    """Test camelCase input, snake_case attributes and empty-string defaults."""
    q = QSO.model_validate({"callSign": "K1ABC", "rstReceived": "57", "notes": None})
    assert q.call_sign == "K1ABC"
    assert q.rst_received == "57"
    assert q.notes == ""
    assert q.band == ""
    assert q.id is None
    assert q.model_dump(by_alias=True)["callSign"] == "K1ABC"


def test_add_qso_assigns_unique_ids(sample_qso):
    """Test that QSOs added in the same millisecond still get distinct ids."""
    log = Log(name="Test")
    first = log.add_qso(sample_qso)
    second = log.add_qso(sample_qso)
    third = log.add_qso({"callSign": "W1AW", "id": "custom"})

    assert isinstance(first.id, int)
    assert first.id != second.id
    assert third.id == "custom"
    assert [q.call_sign for q in log.qsos] == ["K1ABC", "K1ABC", "W1AW"]
    assert sample_qso.id is None


def test_update_qso_merges_fields(sample_qso):
    """Test that an update keeps the id, position and untouched fields."""
    log = Log(name="Test")
    log.add_qso({"callSign": "W1AW"})
    added = log.add_qso(sample_qso)

    updated = log.update_qso(str(added.id), {"rstReceived": "55", "notes": "QSB"})
    assert updated.id == added.id
    assert updated.rst_received == "55"
    assert updated.notes == "QSB"
    assert updated.call_sign == "K1ABC"
    assert log.qsos[1] == updated
    assert log.find_qso(added.id) == updated

    with pytest.raises(KeyError):
        log.update_qso(12345, {"notes": "missing"})


def test_remove_qso(sample_qso):
    """Test removal by id."""
    log = Log(name="Test")
    added = log.add_qso(sample_qso)
    assert log.remove_qso(added.id) is True
    assert log.remove_qso(added.id) is False
    assert log.qsos == []


def test_to_payload_includes_runtime_fields(tmp_path):
    """Test that fileName/filePath appear in payloads but never in stored JSON."""
    log = Log(name="Test", created_at="2025-01-01T00:00:00.000Z")
    log.file_name = "Test.json"
    log.file_path = tmp_path / "Test.json"

    payload = log.to_payload()
    assert payload["fileName"] == "Test.json"
    assert payload["filePath"] == str(tmp_path / "Test.json")
    assert payload["createdAt"] == "2025-01-01T00:00:00.000Z"
    assert "fileName" not in log.to_json()
