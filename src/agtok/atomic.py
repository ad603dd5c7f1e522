"""Crash-safe file replacement and pre-write backups.

Every file agtok touches is rewritten as a whole: the new content goes to a
hidden temporary file next to the target, is flushed to disk and then
renamed over the target.  Readers therefore see either the old or the new
content, never a mixture.
"""

from __future__ import annotations

import logging
import os
from datetime import datetime
from pathlib import Path

from .errors import WriteFailureError

logger = logging.getLogger("agtok.atomic")

BACKUP_STAMP_FORMAT = "%Y%m%d-%H%M%S"
DIR_MODE = 0o700
FILE_MODE = 0o600


def _write_fd(path: Path, data: bytes, mode: int) -> None:
    fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, mode)
    with os.fdopen(fd, "wb") as fh:
        fh.write(data)
        fh.flush()
        os.fsync(fh.fileno())


def atomic_write(path: Path, data: bytes | str, mode: int = FILE_MODE) -> None:
    """Replace *path* with *data* atomically.

    Raises
    ------
    WriteFailureError
        If the parent directory cannot be created or the temporary file
        cannot be written or renamed.  *path* is untouched in that case.
    """
    path = Path(path)
    if isinstance(data, str):
        data = data.encode("utf-8")
    tmp = path.parent / f".{path.name}.tmp"
    try:
        path.parent.mkdir(parents=True, exist_ok=True, mode=DIR_MODE)
        _write_fd(tmp, data, mode)
        os.replace(tmp, path)
    except OSError as exc:
        try:
            tmp.unlink()
        except FileNotFoundError:
            pass
        except OSError as cleanup_exc:  # pragma: no cover - best effort
            logger.warning("could not remove %s: %s", tmp, cleanup_exc)
        raise WriteFailureError(f"failed to write {path}: {exc}") from exc
    logger.debug("wrote %s (%d bytes)", path, len(data))


def backup_path(path: Path, now: datetime | None = None) -> Path:
    """Return a free ``<name>.<stamp>.bak`` sibling of *path*."""
    path = Path(path)
    stamp = (now or datetime.now()).strftime(BACKUP_STAMP_FORMAT)
    candidate = path.with_name(f"{path.name}.{stamp}.bak")
    n = 1
    while candidate.exists():
        candidate = path.with_name(f"{path.name}.{stamp}-{n}.bak")
        n += 1
    return candidate


def backup_file(
    path: Path, now: datetime | None = None, data: bytes | None = None
) -> Path | None:
    """Copy *path* to a timestamped ``.bak`` sibling.

    Returns the backup location, or ``None`` when *path* does not exist
    (there is nothing to protect).  When the caller already holds the
    current content it passes it as *data* and the file is not read
    again.  Any failure to take the backup raises
    :class:`WriteFailureError` so the caller aborts its write.
    """
    path = Path(path)
    if data is None:
        try:
            data = path.read_bytes()
        except FileNotFoundError:
            return None
        except OSError as exc:
            raise WriteFailureError(f"failed to read {path} for backup: {exc}") from exc
    bak = backup_path(path, now)
    try:
        _write_fd(bak, data, FILE_MODE)
    except OSError as exc:
        raise WriteFailureError(f"failed to back up {path}: {exc}") from exc
    logger.debug("backed up %s to %s", path, bak.name)
    return bak


__all__ = ["atomic_write", "backup_file", "backup_path"]
