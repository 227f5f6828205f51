"""Atomic replacement of state files.

The state file is rewritten on every editor change, so a crash or a second
promptfence process must never leave it half written or silently clobbered.
"""

import os
import stat
import tempfile
from pathlib import Path
from typing import Optional

import structlog

from promptfence.services.exceptions import FileModifiedError
from promptfence.services.file_monitor import FileMonitor

logger = structlog.get_logger()


def _ensure_unchanged(path: Path, file_monitor: Optional[FileMonitor], stage: str) -> None:
    if file_monitor is not None and file_monitor.is_modified(path):
        logger.warning("atomic_write_conflict", path=str(path), stage=stage)
        raise FileModifiedError(str(path), f"File was modified {stage} write")


def _copy_mode(source: Path, target: Path) -> None:
    """Give the replacement the permissions of the file it replaces."""
    try:
        mode = stat.S_IMODE(source.stat().st_mode)
    except FileNotFoundError:
        return
    os.chmod(target, mode)


def atomic_write(
    path: Path,
    content: str,
    file_monitor: Optional[FileMonitor] = None
) -> None:
    """
    Replace path with content in a single rename.

    The content goes to a hidden temporary file in the same directory and is
    fsynced before being renamed over the target. When a FileMonitor is given,
    the target is checked for outside changes both before writing and just
    before the rename, and the monitor is refreshed afterwards.

    Args:
        path: Target file path (parent directories are created)
        content: Text to write (UTF-8)
        file_monitor: Tracks the stamp recorded when the file was last loaded

    Raises:
        FileModifiedError: If the file changed on disk since it was recorded
        OSError: On file I/O errors
    """
    path = Path(path)
    _ensure_unchanged(path, file_monitor, "before")

    path.parent.mkdir(parents=True, exist_ok=True)
    handle = tempfile.NamedTemporaryFile(
        "w",
        encoding="utf-8",
        dir=path.parent,
        prefix=f".{path.name}.tmp.",
        delete=False,
    )
    temp_path = Path(handle.name)

    try:
        with handle:
            handle.write(content)
            handle.flush()
            os.fsync(handle.fileno())

        _copy_mode(path, temp_path)
        _ensure_unchanged(path, file_monitor, "during")
        temp_path.replace(path)
    except BaseException as e:
        temp_path.unlink(missing_ok=True)
        if not isinstance(e, FileModifiedError):
            logger.error("atomic_write_failed", path=str(path), error=str(e))
        raise

    if file_monitor is not None:
        file_monitor.refresh(path)
    logger.debug("atomic_write_success", path=str(path), size=len(content))
