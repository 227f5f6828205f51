"""Configuration models for promptfence."""

from pathlib import Path

from pydantic import BaseModel, Field

from promptfence.models.hidden_element import (
    DEFAULT_BUBBLE_COLOR,
    DEFAULT_DISPLAY_NAME,
    DEFAULT_TEXT_COLOR,
    HEX_COLOR_PATTERN,
)


class EditorConfig(BaseModel):
    """Settings for the prompt editor core."""

    context_window: int = Field(
        default=10,
        ge=0,
        le=200,
        description="Characters of context recorded on each side of a disabled span"
    )

    default_display_name: str = Field(
        default=DEFAULT_DISPLAY_NAME,
        min_length=1,
        description="Label given to newly hidden snippets"
    )

    default_bubble_color: str = Field(default=DEFAULT_BUBBLE_COLOR, pattern=HEX_COLOR_PATTERN)

    default_text_color: str = Field(default=DEFAULT_TEXT_COLOR, pattern=HEX_COLOR_PATTERN)

    model_config = {"frozen": True}


class PresetsConfig(BaseModel):
    """Location of preset prompt files."""

    directory: str = Field(
        default="~/.local/share/promptfence/presets",
        description="Directory scanned for .md and .txt presets"
    )

    @property
    def path(self) -> Path:
        return Path(self.directory).expanduser()

    model_config = {"frozen": True}


class Config(BaseModel):
    """Root configuration for promptfence."""

    editor: EditorConfig = Field(default_factory=EditorConfig, description="Editor settings")
    presets: PresetsConfig = Field(default_factory=PresetsConfig, description="Preset settings")

    state_file: str = Field(
        default="~/.local/share/promptfence/prompt.json",
        description="State file used when the CLI is given none"
    )

    @property
    def state_path(self) -> Path:
        return Path(self.state_file).expanduser()

    model_config = {"frozen": True}
