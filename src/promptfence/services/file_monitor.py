"""Modification tracking for state files shared with other writers."""

from pathlib import Path
from typing import Dict, Tuple


class FileMonitor:
    """
    Remember what a file looked like when it was last read or written.

    An editing session records the state file on load; autosaves then refuse
    to overwrite the file if another process has replaced it in between.

    Example:
        >>> monitor = FileMonitor()
        >>> monitor.record(Path("prompt.json"))
        >>> # Later, before writing:
        >>> monitor.is_modified(Path("prompt.json"))
        False
    """

    def __init__(self) -> None:
        self._stamps: Dict[Path, Tuple[int, int]] = {}

    @staticmethod
    def _stamp(path: Path) -> Tuple[int, int]:
        stat = path.stat()
        return stat.st_mtime_ns, stat.st_size

    def record(self, path: Path) -> None:
        """
        Record the current modification stamp of a file.

        Raises:
            FileNotFoundError: If file doesn't exist
        """
        self._stamps[path] = self._stamp(path)

    def is_modified(self, path: Path) -> bool:
        """
        Check whether a file changed since it was recorded.

        Returns:
            True if the file changed, appeared without being recorded, or
            disappeared after being recorded
        """
        if not path.exists():
            return path in self._stamps
        if path not in self._stamps:
            return True
        return self._stamp(path) != self._stamps[path]

    def refresh(self, path: Path) -> None:
        """Re-record a file after writing it ourselves."""
        self.record(path)

    def forget(self, path: Path) -> None:
        self._stamps.pop(path, None)
