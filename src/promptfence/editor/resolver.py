"""Offset resolution for disabled fragments.

A fragment only remembers its content, the text around it and where it last
was. When the document changes elsewhere the fragment's recorded offsets may
point at the wrong text; the resolver finds the content again:

1. Enumerate every occurrence of the content (left to right).
2. None: the fragment is orphaned, its span collapses to (0, 0).
3. One: that occurrence.
4. Several: the first occurrence whose surroundings match the recorded
   context strings.
5. Otherwise the occurrence closest to the last known-good start.
6. Without a known-good start, the first occurrence away from the edges of
   the document (10%-90%), falling back to the first occurrence.
"""

from typing import Iterable, List, Optional, Sequence, Tuple

import structlog

from promptfence.models.fragment import Fragment

logger = structlog.get_logger()

DEFAULT_CONTEXT_WINDOW = 10

# Relative positions outside (EDGE_BAND, 1 - EDGE_BAND) count as boilerplate
EDGE_BAND = 0.1

Span = Tuple[int, int]


def find_occurrences(text: str, content: str) -> List[int]:
    """Return the start of every occurrence of content, overlapping ones included."""
    if not content:
        return []

    matches = []
    index = text.find(content)
    while index != -1:
        matches.append(index)
        index = text.find(content, index + 1)
    return matches


def capture_context(text: str, start: int, end: int, window: int) -> Tuple[str, str]:
    """Return the up-to-``window`` characters before ``start`` and after ``end``."""
    before = text[max(0, start - window):start]
    after = text[end:end + window]
    return before, after


def _overlaps_any(start: int, end: int, spans: Iterable[Span]) -> bool:
    return any(span_start < end and span_end > start for span_start, span_end in spans)


class OffsetResolver:
    """Recomputes fragment offsets from content and context."""

    def __init__(self, context_window: int = DEFAULT_CONTEXT_WINDOW):
        self.context_window = context_window

    def locate(
        self,
        fragment: Fragment,
        text: str,
        claimed: Sequence[Span] = (),
        min_start: int = 0,
    ) -> Optional[int]:
        """Pick the start offset of fragment's content in text.

        Does not modify the fragment.

        Args:
            fragment: Fragment to place
            text: Current document text
            claimed: Spans already owned by other fragments; occurrences
                overlapping them are ignored
            min_start: Occurrences starting before this offset are ignored

        Returns:
            Start offset, or None when the content cannot be placed
        """
        length = len(fragment.content)
        occurrences = [
            index
            for index in find_occurrences(text, fragment.content)
            if index >= min_start and not _overlaps_any(index, index + length, claimed)
        ]

        if not occurrences:
            return None

        if len(occurrences) == 1:
            return occurrences[0]

        if fragment.context_before or fragment.context_after:
            for index in occurrences:
                if self.context_matches(fragment, text, index):
                    return index

        return self._nearest_to_anchor(fragment, text, occurrences)

    def context_matches(self, fragment: Fragment, text: str, index: int) -> bool:
        """Check the recorded context strings against the text around index.

        An empty context string always matches.
        """
        end = index + len(fragment.content)
        if fragment.context_before and not text.endswith(fragment.context_before, 0, index):
            return False
        if fragment.context_after and not text.startswith(fragment.context_after, end):
            return False
        return True

    def _nearest_to_anchor(self, fragment: Fragment, text: str, occurrences: List[int]) -> int:
        anchor = fragment.original_start_offset
        if anchor is not None and anchor >= 0:
            # min() keeps the leftmost occurrence on ties
            return min(occurrences, key=lambda index: abs(index - anchor))

        length = len(text)
        for index in occurrences:
            if EDGE_BAND < index / length < 1 - EDGE_BAND:
                return index
        return occurrences[0]

    def anchor(self, fragment: Fragment, text: str, start: int) -> None:
        """Pin fragment at start and refresh its context bookkeeping."""
        end = start + len(fragment.content)
        fragment.start_offset = start
        fragment.end_offset = end
        fragment.context_before, fragment.context_after = capture_context(
            text, start, end, self.context_window
        )
        fragment.original_start_offset = start

    def resolve(
        self,
        fragment: Fragment,
        text: str,
        claimed: Sequence[Span] = (),
        min_start: int = 0,
    ) -> bool:
        """Relocate fragment in text, orphaning it when the content is gone.

        Returns:
            True if the fragment was placed, False if it is now orphaned
        """
        start = self.locate(fragment, text, claimed=claimed, min_start=min_start)

        if start is None:
            if not fragment.is_orphaned:
                logger.warning(
                    "fragment_orphaned",
                    fragment_id=fragment.id,
                    content_length=len(fragment.content),
                    last_start=fragment.original_start_offset,
                )
            # Contexts and the last known-good start survive for a later match
            fragment.start_offset = 0
            fragment.end_offset = 0
            return False

        if start != fragment.start_offset:
            logger.debug(
                "fragment_relocated",
                fragment_id=fragment.id,
                old_start=fragment.start_offset,
                new_start=start,
            )
        self.anchor(fragment, text, start)
        return True

    def is_anchored(self, fragment: Fragment, text: str) -> bool:
        """True when the fragment's content sits at its recorded offsets."""
        if fragment.is_orphaned:
            return False
        return text[fragment.start_offset:fragment.end_offset] == fragment.content

    def needs_context_refresh(self, fragment: Fragment) -> bool:
        """Refresh when either context is missing or the fragment has moved."""
        return (
            not fragment.context_before
            or not fragment.context_after
            or fragment.original_start_offset != fragment.start_offset
        )

    def refresh_context(self, fragment: Fragment, text: str) -> bool:
        """Recompute the context strings of an anchored fragment if needed.

        Returns:
            True if the bookkeeping was refreshed
        """
        if not self.is_anchored(fragment, text) or not self.needs_context_refresh(fragment):
            return False
        self.anchor(fragment, text, fragment.start_offset)
        return True

    def recalculate(self, fragments: Sequence[Fragment], text: str) -> List[int]:
        """Resolve every fragment against text.

        Fragments are processed by ascending start, orphans last, and each
        placed fragment claims its span so no two fragments end up
        overlapping. A fragment whose content and context still match at its
        recorded offsets keeps them.

        Returns:
            Ids of fragments left orphaned
        """
        claimed: List[Span] = []
        orphaned = []

        ordered = sorted(fragments, key=lambda f: (f.is_orphaned, f.start_offset, f.id))
        for fragment in ordered:
            stays = (
                self.is_anchored(fragment, text)
                and self.context_matches(fragment, text, fragment.start_offset)
                and not _overlaps_any(fragment.start_offset, fragment.end_offset, claimed)
            )
            if stays:
                self.anchor(fragment, text, fragment.start_offset)
            elif not self.resolve(fragment, text, claimed=claimed):
                orphaned.append(fragment.id)
                continue
            claimed.append((fragment.start_offset, fragment.end_offset))

        return orphaned
