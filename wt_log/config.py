"""Default locations for the settings file and the logs directory.

Everything lives under the user's data directory (resolved with platformdirs)
unless overridden through environment variables:

- WTLOG_DATA_DIR: base directory for both settings and logs.
- WTLOG_SETTINGS_PATH: explicit settings file.
- WTLOG_LOGS_DIR: explicit logs directory.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Optional

from platformdirs import user_data_dir

APP_NAME = "WT-Log"
DATA_DIR_ENV_VAR = "WTLOG_DATA_DIR"
SETTINGS_ENV_VAR = "WTLOG_SETTINGS_PATH"
LOGS_DIR_ENV_VAR = "WTLOG_LOGS_DIR"

SETTINGS_FILE_NAME = "settings.json"
LOGS_DIR_NAME = "logs"


def get_data_dir() -> Path:
    """Resolve the application data directory, honoring WTLOG_DATA_DIR if set.

    On Windows this resolves under %LOCALAPPDATA% using platformdirs.
    """
    env = os.getenv(DATA_DIR_ENV_VAR)
    if env:
        return Path(env).expanduser()
    return Path(user_data_dir(appname=APP_NAME, appauthor=False))


def get_settings_path(data_dir: Optional[Path] = None) -> Path:
    """Return the settings file path; WTLOG_SETTINGS_PATH wins over data_dir."""
    env = os.getenv(SETTINGS_ENV_VAR)
    if env:
        return Path(env).expanduser()
    return (data_dir or get_data_dir()) / SETTINGS_FILE_NAME


def get_logs_dir(data_dir: Optional[Path] = None) -> Path:
    """Return the logs directory; WTLOG_LOGS_DIR wins over data_dir."""
    env = os.getenv(LOGS_DIR_ENV_VAR)
    if env:
        return Path(env).expanduser()
    return (data_dir or get_data_dir()) / LOGS_DIR_NAME
