"""Span store: the editor's disabled fragments and hidden elements."""

import re
from typing import Iterable, List, Optional

import structlog

from promptfence.models.fragment import Fragment
from promptfence.models.hidden_element import (
    DEFAULT_BUBBLE_COLOR,
    DEFAULT_DISPLAY_NAME,
    DEFAULT_TEXT_COLOR,
    HEX_COLOR_PATTERN,
    HiddenElement,
)

logger = structlog.get_logger()


def is_hex_color(value: object) -> bool:
    return isinstance(value, str) and re.match(HEX_COLOR_PATTERN, value) is not None


class SpanStore:
    """Holds both span collections and hands out their ids.

    Ids are per-collection integers starting at 1 and never reused within a
    session; after ``replace()`` the counters continue after the highest
    loaded id.
    """

    def __init__(self):
        self.fragments: List[Fragment] = []
        self.hidden_elements: List[HiddenElement] = []
        self._next_fragment_id = 1
        self._next_hidden_id = 1

    # Disabled fragments

    def add_disabled(self, content: str, start_offset: int) -> Fragment:
        """Record a new disabled fragment starting at start_offset."""
        fragment = Fragment(
            id=self._next_fragment_id,
            content=content,
            start_offset=start_offset,
            end_offset=start_offset + len(content),
            original_start_offset=start_offset,
        )
        self._next_fragment_id += 1
        self.fragments.append(fragment)
        logger.debug("fragment_added", fragment_id=fragment.id, start=start_offset)
        return fragment

    def remove_disabled(self, fragment_id: int) -> Optional[Fragment]:
        fragment = self.get_fragment(fragment_id)
        if fragment is None:
            return None
        self.fragments.remove(fragment)
        logger.debug("fragment_removed", fragment_id=fragment_id)
        return fragment

    def edit_disabled_content(self, fragment_id: int, new_content: str) -> Optional[Fragment]:
        """Replace a fragment's content, keeping its start offset."""
        fragment = self.get_fragment(fragment_id)
        if fragment is None or not new_content:
            return None
        fragment.content = new_content
        fragment.end_offset = fragment.start_offset + len(new_content)
        return fragment

    def get_fragment(self, fragment_id: int) -> Optional[Fragment]:
        for fragment in self.fragments:
            if fragment.id == fragment_id:
                return fragment
        return None

    def sorted_fragments(self, include_orphans: bool = False) -> List[Fragment]:
        """Fragments by ascending start offset."""
        fragments = [f for f in self.fragments if include_orphans or not f.is_orphaned]
        return sorted(fragments, key=lambda f: (f.start_offset, f.id))

    def fragment_at(self, offset: int) -> Optional[Fragment]:
        """Fragment whose span contains offset, either boundary included."""
        for fragment in self.sorted_fragments():
            if fragment.start_offset <= offset <= fragment.end_offset:
                return fragment
        return None

    # Hidden elements

    def add_hidden(
        self,
        content: str,
        display_name: Optional[str] = None,
        bubble_color: str = DEFAULT_BUBBLE_COLOR,
        text_color: str = DEFAULT_TEXT_COLOR,
    ) -> HiddenElement:
        element = HiddenElement(
            id=self._next_hidden_id,
            content=content,
            display_name=display_name or DEFAULT_DISPLAY_NAME,
            bubble_color=bubble_color,
            text_color=text_color,
        )
        self._next_hidden_id += 1
        self.hidden_elements.append(element)
        logger.debug("hidden_element_added", hidden_id=element.id, content_length=len(content))
        return element

    def remove_hidden(self, hidden_id: int) -> Optional[HiddenElement]:
        element = self.get_hidden(hidden_id)
        if element is None:
            return None
        self.hidden_elements.remove(element)
        logger.debug("hidden_element_removed", hidden_id=hidden_id)
        return element

    def rename_hidden(self, hidden_id: int, new_name: str) -> bool:
        element = self.get_hidden(hidden_id)
        if element is None or not new_name:
            return False
        element.display_name = new_name
        return True

    def recolor(self, hidden_id: int, bubble_color: str, text_color: str) -> bool:
        """Set both colors of a hidden element; invalid colors are refused."""
        element = self.get_hidden(hidden_id)
        if element is None:
            return False
        if not is_hex_color(bubble_color) or not is_hex_color(text_color):
            logger.info(
                "hidden_recolor_rejected",
                hidden_id=hidden_id,
                bubble_color=bubble_color,
                text_color=text_color,
            )
            return False
        element.bubble_color = bubble_color
        element.text_color = text_color
        return True

    def get_hidden(self, hidden_id: int) -> Optional[HiddenElement]:
        for element in self.hidden_elements:
            if element.id == hidden_id:
                return element
        return None

    # Whole-store operations

    def replace(
        self,
        fragments: Iterable[Fragment],
        hidden_elements: Iterable[HiddenElement],
    ) -> None:
        """Swap in restored collections and move the id counters past them."""
        self.fragments = list(fragments)
        self.hidden_elements = list(hidden_elements)
        self._next_fragment_id = max((f.id for f in self.fragments), default=0) + 1
        self._next_hidden_id = max((h.id for h in self.hidden_elements), default=0) + 1

    def clear(self) -> None:
        self.replace([], [])
