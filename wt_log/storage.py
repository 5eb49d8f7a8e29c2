"""Persistence layer for logs: one pretty-printed JSON file per log.

The store owns a single directory. File names are derived from the log's
display name and must be unique ignoring case; creation uses an exclusive
atomic write so two callers can never both create the same file.
"""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Any, List, Mapping, Optional, Union

from .exceptions import (
    DuplicateLogNameError,
    EmptyLogNameError,
    LogCreateError,
    LogDeleteError,
    LogLoadError,
    LogNameTooLongError,
    LogNotFoundError,
    LogSaveError,
)
from .fileio import atomic_write_text, exclusive_write_text, remove_stale_temp_files
from .models import Log, StationSettings, epoch_ms, iso_timestamp, now_utc

logger = logging.getLogger(__name__)

LOG_SUFFIX = ".json"
MAX_LOG_NAME_LENGTH = 25

_UNSAFE_CHARS = re.compile(r"[^\w\s]", re.ASCII)
_WHITESPACE = re.compile(r"\s+")


def sanitize_log_name(name: str) -> str:
    """Keep only ASCII word characters and whitespace, collapse runs of spaces, trim."""
    cleaned = _UNSAFE_CHARS.sub("", name)
    return _WHITESPACE.sub(" ", cleaned).strip()


def log_file_name(name: str) -> str:
    """Return the on-disk file name for a log name (with or without .json)."""
    stem = name.strip()
    if stem.lower().endswith(LOG_SUFFIX):
        stem = stem[: -len(LOG_SUFFIX)]
    return f"{sanitize_log_name(stem)}{LOG_SUFFIX}"


def _read_log(path: Path) -> Log:
    log = Log.model_validate_json(path.read_text(encoding="utf-8"))
    log.file_name = path.name
    log.file_path = path.resolve()
    return log


class LogStore:
    """Creates, lists, loads, saves and deletes log files in logs_dir."""

    def __init__(self, logs_dir: Union[str, Path]) -> None:
        self.logs_dir = Path(logs_dir)

    def ensure_dir(self) -> Path:
        self.logs_dir.mkdir(parents=True, exist_ok=True)
        return self.logs_dir

    def _log_paths(self) -> List[Path]:
        return sorted(p for p in self.ensure_dir().glob(f"*{LOG_SUFFIX}") if p.is_file())

    def _find_path(self, file_name: str) -> Optional[Path]:
        target = file_name.casefold()
        return next((p for p in self._log_paths() if p.name.casefold() == target), None)

    def list_logs(self) -> List[Log]:
        """Return every readable log, newest first.

        Files that cannot be read or are not valid log JSON are skipped with
        a warning. The directory is created when missing; errors reading the
        directory itself propagate. Temp files abandoned by interrupted
        writes are swept along the way.
        """
        paths = self._log_paths()
        remove_stale_temp_files(self.logs_dir)
        logs: List[Log] = []
        for path in paths:
            try:
                logs.append(_read_log(path))
            except (OSError, ValueError) as e:
                logger.warning("Skipping unreadable log file %s: %s", path.name, e)
        # sort is stable, so ties keep file name order
        logs.sort(key=lambda log: log.created, reverse=True)
        return logs

    def log_exists(self, name: str) -> bool:
        """Check whether a log with the same file name exists, ignoring case."""
        return self._find_path(log_file_name(name)) is not None

    def find_log_path(self, name: str) -> Optional[Path]:
        """Return the path of the log whose file name matches name, ignoring case."""
        return self._find_path(log_file_name(name))

    def create_log(
        self,
        name: str,
        settings: Optional[Union[StationSettings, Mapping[str, Any]]] = None,
    ) -> Log:
        """Create an empty log with a snapshot of the station settings.

        Raises EmptyLogNameError, LogNameTooLongError or DuplicateLogNameError
        before anything is written, and LogCreateError if the write fails.
        """
        display_name = (name or "").strip()
        safe_name = sanitize_log_name(display_name)
        if not safe_name:
            raise EmptyLogNameError("Log name is required")
        if len(display_name) > MAX_LOG_NAME_LENGTH:
            raise LogNameTooLongError(
                f"Log name must be at most {MAX_LOG_NAME_LENGTH} characters"
            )
        file_name = f"{safe_name}{LOG_SUFFIX}"

        try:
            existing = self._find_path(file_name)
        except OSError as e:
            logger.error("Error reading logs directory %s: %s", self.logs_dir, e)
            raise LogCreateError(f"Failed to create log {display_name!r}: {e}") from e
        if existing is not None:
            raise DuplicateLogNameError(f"A log named {existing.stem!r} already exists")

        if settings is None:
            snapshot = StationSettings()
        elif isinstance(settings, StationSettings):
            snapshot = settings.model_copy(deep=True)
        else:
            snapshot = StationSettings.model_validate(settings)

        created = now_utc()
        log = Log(
            id=str(epoch_ms(created)),
            name=display_name,
            created_at=iso_timestamp(created),
            settings=snapshot,
            qsos=[],
        )
        path = self.logs_dir / file_name
        try:
            exclusive_write_text(path, log.to_json())
        except FileExistsError as e:
            raise DuplicateLogNameError(f"A log named {safe_name!r} already exists") from e
        except OSError as e:
            logger.error("Error creating log %s: %s", path, e)
            raise LogCreateError(f"Failed to create log {display_name!r}: {e}") from e

        log.file_name = file_name
        log.file_path = path.resolve()
        logger.info("Created log %s", path)
        return log

    def load_log(self, file_path: Union[str, Path]) -> Log:
        """Read one log file. Any failure, including a missing file, raises LogLoadError."""
        path = Path(file_path)
        try:
            return _read_log(path)
        except (OSError, ValueError) as e:
            logger.error("Error loading log %s: %s", path, e)
            raise LogLoadError("Could not load the log file") from e

    def save_log(self, log: Log) -> Log:
        """Rewrite an existing log file with the log's current content.

        Only logs that already exist on disk can be saved; last writer wins.
        """
        if log.file_path is None:
            raise LogNotFoundError(f"Log {log.name!r} has no file; create it first")
        path = Path(log.file_path)
        if not path.is_file():
            raise LogNotFoundError(f"Log file does not exist: {path.name}")
        try:
            atomic_write_text(path, log.to_json())
        except OSError as e:
            logger.error("Error saving log %s: %s", path, e)
            raise LogSaveError(f"Failed to save log {path.name}: {e}") from e
        log.file_name = path.name
        logger.debug("Saved log %s (%d QSOs)", path, len(log.qsos))
        return log

    def delete_log(self, file_path: Union[str, Path]) -> bool:
        """Remove a log file, returning True once it is gone.

        Raises LogNotFoundError if there is no such file and LogDeleteError
        for any other failure.
        """
        path = Path(file_path)
        if not path.exists():
            raise LogNotFoundError(f"Log file does not exist: {path.name}")
        try:
            path.unlink()
        except FileNotFoundError as e:
            raise LogNotFoundError(f"Log file does not exist: {path.name}") from e
        except OSError as e:
            logger.error("Error deleting log %s: %s", path, e)
            raise LogDeleteError(f"Failed to delete log {path.name}: {e}") from e
        logger.info("Deleted log %s", path)
        return True
