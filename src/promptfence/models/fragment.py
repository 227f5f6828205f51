"""Fragment model: a disabled, edit-protected span of the prompt document."""

from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class Fragment(BaseModel):
    """Disabled span kept inline but excluded from the prompt value.

    Offsets index into the editor's document. ``content`` is the exact text
    that must occupy ``[start_offset, end_offset)`` whenever the document is
    consistent; the context strings only disambiguate repeated content.
    """

    id: int = Field(
        ...,
        ge=1,
        description="Identifier, unique among the editor's fragments"
    )

    content: str = Field(
        ...,
        min_length=1,
        description="Exact disabled text"
    )

    type: Literal["disabled"] = Field(
        default="disabled",
        description="Record discriminator kept for the persisted shape"
    )

    start_offset: int = Field(
        default=0,
        ge=0,
        description="Start of the span in the document (inclusive)"
    )

    end_offset: int = Field(
        default=0,
        ge=0,
        description="End of the span in the document (exclusive)"
    )

    original_start_offset: Optional[int] = Field(
        default=None,
        description="Last known-good start, used as tie-break anchor"
    )

    context_before: str = Field(
        default="",
        description="Characters immediately preceding the span when last resolved"
    )

    context_after: str = Field(
        default="",
        description="Characters immediately following the span when last resolved"
    )

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=False,  # Offsets are updated in place on every resolution
    )

    @property
    def is_orphaned(self) -> bool:
        """True when the content could not be found and the span collapsed."""
        return self.start_offset == self.end_offset

    @property
    def length(self) -> int:
        return len(self.content)

    def overlaps(self, start: int, end: int) -> bool:
        """Half-open interval overlap test against ``[start, end)``.

        A collapsed range (caret) overlaps only when it sits strictly inside
        the span, so typing right before or after a fragment is allowed.
        Orphaned fragments never overlap anything.
        """
        if self.is_orphaned:
            return False
        if start == end:
            return self.start_offset < start < self.end_offset
        return self.start_offset < end and self.end_offset > start
