"""Configuration loading with YAML and environment variable support.

Reads ~/.config/promptfence/config.yaml when present; every value has a
default, so a missing file is not an error. Environment variables with the
PROMPTFENCE_ prefix override the file:

- PROMPTFENCE_CONTEXT_WINDOW: Override editor.context_window
- PROMPTFENCE_PRESETS_DIR: Override presets.directory
- PROMPTFENCE_STATE_FILE: Override state_file
"""

import os
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from promptfence.models.config import Config
from promptfence.utils.logging import get_logger


logger = get_logger(__name__)

DEFAULT_CONFIG_PATH = Path.home() / ".config" / "promptfence" / "config.yaml"


def load_config(config_path: Optional[Path] = None) -> Config:
    """Load configuration from YAML file with environment variable overrides.

    Args:
        config_path: Path to config file. If None, uses ~/.config/promptfence/config.yaml

    Returns:
        Validated Config object

    Raises:
        FileNotFoundError: If an explicit config_path doesn't exist
        ValueError: If the config file is invalid
    """
    explicit = config_path is not None
    if config_path is None:
        config_path = DEFAULT_CONFIG_PATH

    if config_path.exists():
        with config_path.open() as f:
            try:
                data = yaml.safe_load(f) or {}
            except yaml.YAMLError as e:
                logger.error("config_yaml_invalid", path=str(config_path), error=str(e))
                raise ValueError(f"Invalid YAML in {config_path}: {e}") from e
    elif explicit:
        raise FileNotFoundError(f"Configuration file not found at {config_path}")
    else:
        data = {}

    if not isinstance(data, dict):
        raise ValueError(f"Configuration in {config_path} must be a mapping")

    data = _apply_env_overrides(data)

    try:
        config = Config(**data)
    except Exception as e:
        logger.error("config_validation_error", path=str(config_path), error=str(e))
        raise ValueError(f"Configuration validation failed: {e}") from e

    logger.info("config_loaded", path=str(config_path), from_file=config_path.exists())
    return config


def _apply_env_overrides(data: Dict[str, Any]) -> Dict[str, Any]:
    """Apply PROMPTFENCE_* environment overrides to configuration data.

    Args:
        data: Base configuration dictionary from YAML

    Returns:
        Configuration dictionary with environment overrides applied
    """
    for section in ("editor", "presets"):
        if data.get(section) is None:
            data[section] = {}

    if env_window := os.getenv("PROMPTFENCE_CONTEXT_WINDOW"):
        try:
            data["editor"]["context_window"] = int(env_window)
        except ValueError:
            logger.warning("config_env_ignored", variable="PROMPTFENCE_CONTEXT_WINDOW", value=env_window)

    if env_presets := os.getenv("PROMPTFENCE_PRESETS_DIR"):
        data["presets"]["directory"] = env_presets

    if env_state := os.getenv("PROMPTFENCE_STATE_FILE"):
        data["state_file"] = env_state

    return data
