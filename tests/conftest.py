import pytest


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch):
    """Keep the user's real WT-Log locations out of every test."""
    for var in ("WTLOG_DATA_DIR", "WTLOG_SETTINGS_PATH", "WTLOG_LOGS_DIR"):
        monkeypatch.delenv(var, raising=False)


@pytest.fixture
def sample_settings():
    """Create sample station settings for testing."""
    from wt_log.models import StationSettings

    return StationSettings(
        callsign="LU1ABC",
        operator_name="Ana",
        name="Club Station",
        city="Cordoba",
        country="Argentina",
        grid_square="FF78",
        cq_zone="13",
        itu_zone="14",
        theme="dark",
    )


@pytest.fixture
def sample_qso():
    """Create a sample QSO for testing."""
    from wt_log.models import QSO

    return QSO(
        date="2024-07-04",
        time="12:00",
        call_sign="K1ABC",
        name="Test",
        rst_sent="59",
        rst_received="57",
        band="20m",
        mode="SSB",
        frequency="14.250",
        qth="Test City",
        grid_square="FN42",
        country="United States",
        notes="Test QSO",
    )


@pytest.fixture
def log_store(tmp_path):
    """A LogStore rooted in a fresh temporary directory."""
    from wt_log.storage import LogStore

    return LogStore(tmp_path / "logs")


@pytest.fixture
def settings_store(tmp_path):
    """A SettingsStore whose file does not exist yet."""
    from wt_log.settings import SettingsStore

    return SettingsStore(tmp_path / "settings.json")


@pytest.fixture
def handler(log_store, settings_store):
    from wt_log.handlers import RequestHandler

    return RequestHandler(log_store, settings_store)
