"""JSON state file holding one editor's persisted shape."""

import json
from pathlib import Path
from typing import Any, Dict, Optional

import structlog

from promptfence.services.exceptions import StateFileError
from promptfence.services.file_monitor import FileMonitor
from promptfence.services.file_operations import atomic_write

logger = structlog.get_logger()


class StateFile:
    """
    Load and save ``{text, fragments, hiddenElements}`` as JSON.

    Saves are atomic and refuse to overwrite the file if it changed on disk
    since this instance last loaded or saved it.

    Example:
        >>> state_file = StateFile(Path("prompt.json"))
        >>> editor.set_full_value(state_file.load())
        >>> state_file.save(editor.get_full_value())
    """

    def __init__(self, path: Path, file_monitor: Optional[FileMonitor] = None):
        self.path = Path(path).expanduser()
        self.file_monitor = file_monitor or FileMonitor()

    def exists(self) -> bool:
        return self.path.exists()

    def load(self) -> Optional[Dict[str, Any]]:
        """
        Read the state file.

        Returns:
            Parsed JSON, or None if the file does not exist

        Raises:
            StateFileError: If the file cannot be read or is not valid JSON
        """
        if not self.path.exists():
            logger.info("state_file_missing", path=str(self.path))
            return None

        try:
            raw = self.path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise StateFileError(str(self.path), str(e)) from e

        try:
            data = json.loads(raw)
        except json.JSONDecodeError as e:
            logger.error("state_file_invalid_json", path=str(self.path), error=str(e))
            raise StateFileError(str(self.path), f"invalid JSON ({e})") from e

        self.file_monitor.record(self.path)
        logger.info("state_file_loaded", path=str(self.path), size=len(raw))
        return data

    def save(self, data: Dict[str, Any]) -> None:
        """
        Write the state file atomically.

        Raises:
            FileModifiedError: If another process changed the file meanwhile
            OSError: On file I/O errors
        """
        content = json.dumps(data, ensure_ascii=False, indent=2) + "\n"
        atomic_write(self.path, content, file_monitor=self.file_monitor)
        logger.info("state_file_saved", path=str(self.path), size=len(content))
