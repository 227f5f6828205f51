"""HiddenElement model: a named snippet excised from the document."""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


DEFAULT_DISPLAY_NAME = "Hidden content"
DEFAULT_BUBBLE_COLOR = "#3B82F6"
DEFAULT_TEXT_COLOR = "#FFFFFF"
HEX_COLOR_PATTERN = r"^#[0-9A-Fa-f]{6}$"


class HiddenElement(BaseModel):
    """Snippet stored out-of-band; its content is never in the document.

    Re-inserting a hidden element copies its content back into the document
    and leaves the element itself untouched.
    """

    id: int = Field(..., ge=1, description="Identifier, unique among hidden elements")

    content: str = Field(..., min_length=1, description="Snippet text")

    display_name: str = Field(
        default=DEFAULT_DISPLAY_NAME,
        min_length=1,
        description="Label shown in the hidden elements bar"
    )

    type: Literal["hidden"] = Field(default="hidden")

    bubble_color: str = Field(
        default=DEFAULT_BUBBLE_COLOR,
        pattern=HEX_COLOR_PATTERN,
        description="Background color of the snippet bubble (#RRGGBB)"
    )

    text_color: str = Field(
        default=DEFAULT_TEXT_COLOR,
        pattern=HEX_COLOR_PATTERN,
        description="Label color of the snippet bubble (#RRGGBB)"
    )

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=False,  # Renamed and recolored in place
    )
