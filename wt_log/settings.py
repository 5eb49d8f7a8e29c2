"""Settings persistence: a single JSON file holding the station configuration."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Mapping, Union

from pydantic import ValidationError

from .exceptions import SettingsError
from .fileio import atomic_write_text
from .models import StationSettings, default_settings

logger = logging.getLogger(__name__)


class SettingsStore:
    """Loads and saves the settings file at settings_path."""

    def __init__(self, settings_path: Union[str, Path]) -> None:
        self.settings_path = Path(settings_path)

    def load_settings(self) -> StationSettings:
        """Return the saved settings, or the defaults when nothing was saved yet.

        Raises SettingsError if the file exists but cannot be read or parsed.
        """
        try:
            text = self.settings_path.read_text(encoding="utf-8")
        except FileNotFoundError:
            logger.debug("No settings at %s; using defaults", self.settings_path)
            return default_settings()
        except OSError as e:
            logger.error("Error loading settings: %s", e)
            raise SettingsError(f"Failed to load settings: {e}") from e
        try:
            return StationSettings.model_validate_json(text)
        except ValueError as e:
            logger.error("Error loading settings: %s", e)
            raise SettingsError(f"Failed to load settings: {e}") from e

    def save_settings(
        self, settings: Union[StationSettings, Mapping[str, Any]]
    ) -> StationSettings:
        """Overwrite the settings file with settings and return what was written."""
        try:
            record = (
                settings
                if isinstance(settings, StationSettings)
                else StationSettings.model_validate(settings)
            )
        except ValidationError as e:
            logger.error("Error saving settings: %s", e)
            raise SettingsError(f"Failed to save settings: {e}") from e
        try:
            self.settings_path.parent.mkdir(parents=True, exist_ok=True)
            atomic_write_text(self.settings_path, record.to_json())
        except OSError as e:
            logger.error("Error saving settings: %s", e)
            raise SettingsError(f"Failed to save settings: {e}") from e
        return record
