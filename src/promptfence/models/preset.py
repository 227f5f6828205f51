"""PresetInfo model for prompt preset files."""

from datetime import datetime
from pathlib import Path

from pydantic import BaseModel, Field


class PresetInfo(BaseModel):
    """Descriptor of a preset snippet file (``.md`` or ``.txt``)."""

    name: str = Field(..., description="File name without extension")

    path: Path = Field(..., description="Absolute path to the preset file")

    extension: str = Field(..., description="Lower-cased extension including the dot")

    size: int = Field(..., ge=0, description="File size in bytes")

    modified: datetime = Field(..., description="Last modification time")

    model_config = {"frozen": True}
