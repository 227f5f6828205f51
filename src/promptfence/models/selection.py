"""Caret/selection model for the prompt editor."""

from dataclasses import dataclass


@dataclass(frozen=True)
class Selection:
    """Ordered pair of character offsets into the document.

    ``start == end`` describes a caret. Offsets given in either order are
    normalised so that ``start <= end``.

    Attributes:
        start: First selected offset (inclusive)
        end: Offset after the last selected character (exclusive)
    """

    start: int
    end: int

    def __post_init__(self) -> None:
        if self.start > self.end:
            start, end = self.end, self.start
            object.__setattr__(self, "start", start)
            object.__setattr__(self, "end", end)

    @classmethod
    def caret(cls, offset: int) -> "Selection":
        return cls(offset, offset)

    @property
    def is_caret(self) -> bool:
        return self.start == self.end

    @property
    def length(self) -> int:
        return self.end - self.start

    def clamp(self, length: int) -> "Selection":
        """Return this selection clamped into ``[0, length]``."""
        return Selection(
            max(0, min(self.start, length)),
            max(0, min(self.end, length)),
        )
