"""Preset library: reusable prompt snippets stored as .md/.txt files."""

from datetime import datetime
from pathlib import Path
from typing import List

import structlog

from promptfence.models.preset import PresetInfo
from promptfence.services.exceptions import PresetNotFoundError, PresetReadError

logger = structlog.get_logger()

PRESET_EXTENSIONS = (".md", ".txt")


def list_presets(directory: Path) -> List[PresetInfo]:
    """
    List preset files in a directory, newest first.

    The directory is created when it doesn't exist yet.

    Args:
        directory: Preset directory

    Returns:
        PresetInfo for every .md/.txt file, most recently modified first

    Raises:
        NotADirectoryError: If the path exists but is not a directory
    """
    directory = Path(directory).expanduser()

    if not directory.exists():
        directory.mkdir(parents=True, exist_ok=True)
        logger.info("preset_directory_created", path=str(directory))
        return []

    if not directory.is_dir():
        raise NotADirectoryError(f"Preset path is not a directory: {directory}")

    presets = []
    for entry in directory.iterdir():
        extension = entry.suffix.lower()
        if extension not in PRESET_EXTENSIONS or not entry.is_file():
            continue
        stat = entry.stat()
        presets.append(PresetInfo(
            name=entry.stem,
            path=entry.resolve(),
            extension=extension,
            size=stat.st_size,
            modified=datetime.fromtimestamp(stat.st_mtime),
        ))

    presets.sort(key=lambda preset: preset.modified, reverse=True)
    logger.debug("presets_listed", path=str(directory), count=len(presets))
    return presets


def find_preset(directory: Path, name: str) -> PresetInfo:
    """
    Find a preset by name (with or without extension).

    Raises:
        PresetNotFoundError: If no preset matches
    """
    for preset in list_presets(directory):
        if name in (preset.name, preset.path.name):
            return preset
    raise PresetNotFoundError(name)


def load_preset_content(path: Path) -> str:
    """
    Read a preset file's raw text.

    Raises:
        PresetNotFoundError: If the file doesn't exist
        PresetReadError: If the file cannot be read or is not UTF-8
    """
    path = Path(path).expanduser()
    if not path.is_file():
        raise PresetNotFoundError(str(path))

    try:
        content = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        logger.error("preset_read_failed", path=str(path), error=str(e))
        raise PresetReadError(str(path), str(e)) from e

    logger.info("preset_loaded", path=str(path), size=len(content))
    return content
