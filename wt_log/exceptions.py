"""Exception types raised by the WT-Log stores."""

from __future__ import annotations


class WTLogError(RuntimeError):
    """Base class for all WT-Log storage errors."""


class InvalidLogNameError(WTLogError, ValueError):
    """Raised when a log name cannot be turned into a log file."""


class EmptyLogNameError(InvalidLogNameError):
    """Raised when a log name is empty once trimmed and sanitized."""


class LogNameTooLongError(InvalidLogNameError):
    """Raised when a log name exceeds the maximum display length."""


class DuplicateLogNameError(WTLogError):
    """Raised when another log already uses the same file name (ignoring case)."""


class LogNotFoundError(WTLogError, FileNotFoundError):
    """Raised when a log file that should exist is missing."""


class LogLoadError(WTLogError):
    """Raised when a log file cannot be read or parsed."""


class LogCreateError(WTLogError):
    """Raised when writing a new log file fails."""


class LogDeleteError(WTLogError):
    """Raised when removing a log file fails."""


class LogSaveError(WTLogError):
    """Raised when rewriting an existing log file fails."""


class SettingsError(WTLogError):
    """Raised when the settings file cannot be read or written."""


class HandlerError(Exception):
    """Failure reported across the request boundary.

    code is a stable identifier (e.g. "duplicate-name"); message is meant for
    the user and never contains file system paths.
    """

    def __init__(self, code: str, message: str) -> None:
        super().__init__(message)
        self.code = code
        self.message = message

    def to_dict(self) -> dict:
        return {"code": self.code, "message": self.message}
