"""Crash-safe file writes used by the stores.

Content is always written to a temporary file in the target's directory
first, so a reader sees either the previous file or the complete new one.
"""

from __future__ import annotations

import errno
import logging
import os
import tempfile
import time
from pathlib import Path

logger = logging.getLogger(__name__)

TEMP_PREFIX = "."
TEMP_SUFFIX = ".tmp"
# Seconds before an abandoned temp file may be swept
STALE_TEMP_AGE = 3600.0

_LINK_UNSUPPORTED = frozenset({errno.EPERM, errno.ENOTSUP, errno.EOPNOTSUPP, errno.ENOSYS})


def _write_temp(directory: Path, text: str) -> Path:
    """Write text to a new hidden temp file inside directory and fsync it."""
    fd, tmp_name = tempfile.mkstemp(dir=directory, prefix=TEMP_PREFIX, suffix=TEMP_SUFFIX)
    tmp_path = Path(tmp_name)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as fh:
            fh.write(text)
            fh.flush()
            os.fsync(fh.fileno())
    except BaseException:
        tmp_path.unlink(missing_ok=True)
        raise
    return tmp_path


def atomic_write_text(path: Path, text: str) -> Path:
    """Replace path with text in one rename; the old content survives a crash."""
    tmp_path = _write_temp(path.parent, text)
    try:
        os.replace(tmp_path, path)
    except BaseException:
        tmp_path.unlink(missing_ok=True)
        raise
    return path


def _create_text(path: Path, text: str) -> None:
    """Write text to a file that must not exist yet, removing it if the write fails."""
    fh = open(path, "x", encoding="utf-8")
    try:
        with fh:
            fh.write(text)
            fh.flush()
            os.fsync(fh.fileno())
    except BaseException:
        path.unlink(missing_ok=True)
        raise


def exclusive_write_text(path: Path, text: str) -> Path:
    """Create path with text, failing with FileExistsError if it already exists.

    The complete file is hard-linked into place, so the existence check and
    the write happen in a single file system call. File systems without hard
    links (FAT, exFAT, some network shares) fall back to an exclusive open.
    """
    tmp_path = _write_temp(path.parent, text)
    try:
        os.link(tmp_path, path)
    except OSError as e:
        if e.errno not in _LINK_UNSUPPORTED:
            raise
        logger.debug("Hard links unsupported in %s, creating %s directly", path.parent, path.name)
        _create_text(path, text)
    finally:
        tmp_path.unlink(missing_ok=True)
    return path


def remove_stale_temp_files(directory: Path, max_age: float = STALE_TEMP_AGE) -> int:
    """Delete temp files older than max_age seconds left behind by interrupted writes.

    Younger files may belong to a write in progress and are left alone.
    Returns how many files were removed.
    """
    cutoff = time.time() - max_age
    removed = 0
    for tmp_path in directory.glob(f"{TEMP_PREFIX}*{TEMP_SUFFIX}"):
        try:
            if not tmp_path.is_file() or tmp_path.stat().st_mtime > cutoff:
                continue
            tmp_path.unlink()
        except FileNotFoundError:
            continue
        except OSError as e:
            logger.warning("Could not remove stale temp file %s: %s", tmp_path.name, e)
            continue
        removed += 1
        logger.info("Removed stale temp file %s", tmp_path.name)
    return removed
