import json

import pytest

from wt_log.exceptions import SettingsError
from wt_log.models import StationSettings, default_settings
from wt_log.settings import SettingsStore


def test_load_settings_first_run(settings_store):
    """Test that a missing settings file yields the defaults without raising."""
    settings = settings_store.load_settings()
    assert settings == default_settings()
    assert settings.callsign == ""
    assert settings.country == "Argentina"
    assert settings.itu_zone == "14"
    assert settings.cq_zone == "13"
    assert settings.theme == "light"
    assert not settings_store.settings_path.exists()


def test_save_then_load_roundtrip(settings_store, sample_settings):
    """Test that saved settings load back equal."""
    settings_store.save_settings(sample_settings)
    assert settings_store.load_settings() == sample_settings


def test_save_overwrites_wholesale(settings_store, sample_settings):
    """Test that a save replaces the file instead of merging."""
    settings_store.save_settings(sample_settings)
    settings_store.save_settings({"callsign": "EA1XYZ"})

    loaded = settings_store.load_settings()
    assert loaded.callsign == "EA1XYZ"
    assert loaded.operator_name == ""
    assert loaded.country == ""


def test_save_creates_parent_and_writes_camel_case(tmp_path, sample_settings):
    """Test the on-disk format of the settings file."""
    store = SettingsStore(tmp_path / "config" / "settings.json")
    store.save_settings(sample_settings)

    text = store.settings_path.read_text(encoding="utf-8")
    data = json.loads(text)
    assert text.startswith("{\n  ")
    assert data["operatorName"] == "Ana"
    assert data["gridSquare"] == "FF78"
    assert data["cqZone"] == "13"
    assert data["theme"] == "dark"
    assert [p.name for p in store.settings_path.parent.iterdir()] == ["settings.json"]


def test_load_tolerates_loose_payloads(settings_store):
    """Test missing, null, numeric and unknown values in a hand-edited file."""
    settings_store.settings_path.write_text(
        json.dumps(
            {
                "callsign": "LU1ABC",
                "operatorName": None,
                "locator": "FF78",
                "cqZone": 13,
                "theme": "solarized",
                "radio": "FT-991A",
            }
        ),
        encoding="utf-8",
    )
    settings = settings_store.load_settings()
    assert settings.callsign == "LU1ABC"
    assert settings.operator_name == ""
    assert settings.grid_square == "FF78"
    assert settings.cq_zone == "13"
    assert settings.itu_zone == ""
    assert settings.theme == "light"
    assert settings.model_dump(by_alias=True)["radio"] == "FT-991A"


def test_unknown_keys_survive_resave(settings_store):
    """Test that keys written by other versions are kept on save."""
    loaded = StationSettings.model_validate({"callsign": "LU1ABC", "language": "es"})
    settings_store.save_settings(loaded)
    data = json.loads(settings_store.settings_path.read_text(encoding="utf-8"))
    assert data["language"] == "es"


def test_load_corrupt_settings_raises(settings_store, caplog):
    """Test that a corrupt file is an error, not a silent reset to defaults."""
    settings_store.settings_path.write_text("{oops", encoding="utf-8")
    with pytest.raises(SettingsError):
        settings_store.load_settings()
    assert any("Error loading settings" in r.getMessage() for r in caplog.records)


def test_save_invalid_payload_raises(settings_store):
    """Test that values of the wrong shape are rejected."""
    with pytest.raises(SettingsError):
        settings_store.save_settings({"callsign": ["not", "a", "string"]})
    assert not settings_store.settings_path.exists()


def test_save_into_unwritable_location_raises(tmp_path, sample_settings):
    """Test that write failures propagate as SettingsError."""
    blocker = tmp_path / "blocker"
    blocker.write_text("a file, not a directory", encoding="utf-8")
    store = SettingsStore(blocker / "settings.json")
    with pytest.raises(SettingsError):
        store.save_settings(sample_settings)
