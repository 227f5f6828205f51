"""Unit tests for the offset resolver."""

import pytest

from promptfence.editor.resolver import OffsetResolver, capture_context, find_occurrences
from promptfence.models.fragment import Fragment


def make_fragment(content, start=0, original=None, before="", after="", fragment_id=1):
    return Fragment(
        id=fragment_id,
        content=content,
        start_offset=start,
        end_offset=start + len(content),
        original_start_offset=original,
        context_before=before,
        context_after=after,
    )


@pytest.fixture
def resolver():
    return OffsetResolver()


class TestFindOccurrences:
    """Test occurrence enumeration."""

    def test_all_occurrences_left_to_right(self):
        assert find_occurrences("aXbXcX", "X") == [1, 3, 5]

    def test_overlapping_occurrences_included(self):
        assert find_occurrences("aaaa", "aa") == [0, 1, 2]

    def test_no_occurrence(self):
        assert find_occurrences("hello", "z") == []

    def test_empty_content_never_matches(self):
        assert find_occurrences("hello", "") == []


class TestCaptureContext:
    """Test context capture."""

    def test_window_limits_context(self):
        text = "0123456789ABCDEFGHIJ-world-abcdefghijklmno"
        before, after = capture_context(text, 21, 26, 10)

        assert before == "BCDEFGHIJ-"
        assert after == "-abcdefghi"

    def test_context_clipped_at_document_edges(self):
        before, after = capture_context("world", 0, 5, 10)

        assert before == ""
        assert after == ""


class TestResolve:
    """Test single-fragment resolution."""

    def test_single_occurrence(self, resolver):
        """Test that a unique occurrence wins regardless of recorded offsets."""
        fragment = make_fragment("world", start=0, original=0)

        assert resolver.resolve(fragment, "Hello world") is True
        assert (fragment.start_offset, fragment.end_offset) == (6, 11)
        assert fragment.original_start_offset == 6
        assert fragment.context_before == "Hello "

    def test_missing_content_orphans_fragment(self, resolver):
        """Test that vanished content collapses the span but keeps bookkeeping."""
        fragment = make_fragment("world", start=6, original=6, before="Hello ")

        assert resolver.resolve(fragment, "Hello there") is False
        assert fragment.is_orphaned
        assert (fragment.start_offset, fragment.end_offset) == (0, 0)
        assert fragment.original_start_offset == 6
        assert fragment.context_before == "Hello "

    def test_context_disambiguation(self, resolver):
        """Test that recorded context picks the first matching occurrence."""
        fragment = make_fragment("X", start=7, original=7, before="abc", after="def")

        assert resolver.resolve(fragment, "abcXdefXghi") is True
        assert fragment.start_offset == 3

    def test_context_survives_unrelated_shift(self, resolver):
        """Test disambiguation after text was added in front."""
        fragment = make_fragment("X", start=3, original=3, before="abc", after="def")

        resolver.resolve(fragment, "XX abcXdefXghi")

        assert fragment.start_offset == 6

    def test_closest_to_original_when_context_does_not_decide(self, resolver):
        """Test the distance tie-break."""
        fragment = make_fragment("X", start=0, original=6)

        resolver.resolve(fragment, "aXbbbXbbbX")

        assert fragment.start_offset == 5

    def test_context_mismatch_falls_back_to_distance(self, resolver):
        """Test that failing contexts defer to the original start."""
        fragment = make_fragment("X", start=0, original=8, before="zzz", after="yyy")

        resolver.resolve(fragment, "aXbbbXbbbX")

        assert fragment.start_offset == 9

    def test_distance_tie_prefers_leftmost(self, resolver):
        fragment = make_fragment("X", start=0, original=3)

        resolver.resolve(fragment, "aXbbbXb")

        assert fragment.start_offset == 1

    def test_without_original_prefers_middle_of_document(self, resolver):
        """Test the 10%-90% heuristic."""
        fragment = make_fragment("X", start=0, original=None)

        resolver.resolve(fragment, "XaaaaXaaaa")

        assert fragment.start_offset == 5

    def test_without_original_falls_back_to_first(self, resolver):
        """Test fallback when every occurrence sits at an edge."""
        fragment = make_fragment("X", start=0, original=-1)

        resolver.resolve(fragment, "XaaaaaaaaX")

        assert fragment.start_offset == 0

    def test_locate_does_not_modify(self, resolver):
        fragment = make_fragment("world", start=0, original=0)

        assert resolver.locate(fragment, "Hello world") == 6
        assert fragment.start_offset == 0

    def test_locate_honours_claimed_and_min_start(self, resolver):
        fragment = make_fragment("ab", start=0, original=0)

        assert resolver.locate(fragment, "ab ab ab", claimed=[(0, 2)]) == 3
        assert resolver.locate(fragment, "ab ab ab", min_start=4) == 6


class TestContextRefresh:
    """Test the context refresh rule."""

    def test_missing_context_needs_refresh(self, resolver):
        fragment = make_fragment("world", start=6, original=6, before="Hello ", after="")

        assert resolver.needs_context_refresh(fragment)

    def test_moved_fragment_needs_refresh(self, resolver):
        fragment = make_fragment("world", start=6, original=2, before="Hello ", after=" !")

        assert resolver.needs_context_refresh(fragment)

    def test_settled_fragment_needs_no_refresh(self, resolver):
        fragment = make_fragment("world", start=6, original=6, before="Hello ", after=" !")

        assert not resolver.needs_context_refresh(fragment)

    def test_refresh_context_fills_contexts(self, resolver):
        fragment = make_fragment("world", start=6, original=None)

        assert resolver.refresh_context(fragment, "Hello world, keep this safe.") is True
        assert fragment.context_before == "Hello "
        assert fragment.context_after == ", keep thi"
        assert fragment.original_start_offset == 6


class TestRecalculate:
    """Test full recalculation passes."""

    def test_anchored_fragments_stay(self, resolver):
        text = "ab ab"
        first = make_fragment("ab", start=0, fragment_id=1)
        second = make_fragment("ab", start=3, fragment_id=2)
        resolver.anchor(first, text, 0)
        resolver.anchor(second, text, 3)

        assert resolver.recalculate([first, second], text) == []
        assert (first.start_offset, second.start_offset) == (0, 3)

    def test_pass_never_produces_overlaps(self, resolver):
        """Test that claimed spans are excluded for later fragments."""
        first = make_fragment("ab", start=0, original=0, fragment_id=1)
        second = make_fragment("ab", start=0, original=0, fragment_id=2)

        resolver.recalculate([first, second], "ab ab")

        assert first.start_offset == 0
        assert second.start_offset == 3

    def test_returns_orphaned_ids(self, resolver):
        kept = make_fragment("keep", start=0, fragment_id=1)
        lost = make_fragment("lost", start=5, fragment_id=2)

        orphaned = resolver.recalculate([kept, lost], "keep this")

        assert orphaned == [2]
        assert lost.is_orphaned
        assert kept.start_offset == 0

    def test_orphan_reattaches_when_content_returns(self, resolver):
        fragment = make_fragment("lost", start=0, original=0)
        resolver.recalculate([fragment], "nothing here")
        assert fragment.is_orphaned

        resolver.recalculate([fragment], "the lost text")

        assert not fragment.is_orphaned
        assert fragment.start_offset == 4
