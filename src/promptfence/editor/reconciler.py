"""Self-heal reconciliation.

Text can reach the editor without passing through the protection policy
(undo in a host widget, an external buffer swap, a paste the host failed to
intercept). The reconciler repairs the document afterwards in two phases:

Guard: diff the last consistent text (baseline) against the live text and
revert every changed region that touches a fragment. Pure insertions and
deletions inside repeated text are first slid to an equivalent position that
leaves the fragments alone, so that deleting one of two identical words does
not get attributed to the protected copy.

Rebuild: walk the fragments in document order, re-emitting each fragment's
content verbatim at its recorded position, relocating fragments whose
content moved and re-inserting fragments whose content vanished.
"""

import difflib
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple

import structlog

from promptfence.editor.resolver import OffsetResolver
from promptfence.models.fragment import Fragment

logger = structlog.get_logger()

# (start, end, replacement) in baseline coordinates
Change = Tuple[int, int, str]


@dataclass
class ReconcileResult:
    """Outcome of a reconciliation run.

    Attributes:
        text: Repaired document text
        changed: True if text differs from the live text that was passed in
        relocated_ids: Fragments found at a different position
        restored_ids: Fragments whose content had to be put back
    """

    text: str
    changed: bool = False
    relocated_ids: List[int] = field(default_factory=list)
    restored_ids: List[int] = field(default_factory=list)


def _touches(start: int, end: int, fragments: Sequence[Fragment]) -> bool:
    return any(fragment.overlaps(start, end) for fragment in fragments)


def _slide(
    change: Change,
    baseline: str,
    lower: int,
    upper: int,
    fragments: Sequence[Fragment],
) -> Optional[Change]:
    """Find an equivalent position for a pure insertion or deletion.

    The change may move within ``[lower, upper]`` (the neighbouring changes'
    bounds). Returns the first equivalent change that touches no fragment,
    trying leftwards then rightwards, or None.
    """
    start, end, replacement = change

    if start == end:
        size = len(replacement)
        for step in range(1, start - lower + 1):
            moved = baseline[start - step:start]
            combined = moved + replacement
            if combined[size:] != moved:
                break
            if not _touches(start - step, start - step, fragments):
                return start - step, start - step, combined[:size]
        for step in range(1, upper - start + 1):
            moved = baseline[start:start + step]
            combined = replacement + moved
            if combined[:step] != moved:
                break
            if not _touches(start + step, start + step, fragments):
                return start + step, start + step, combined[step:]
        return None

    if not replacement:
        for step in range(1, start - lower + 1):
            if baseline[start - step] != baseline[end - step]:
                break
            if not _touches(start - step, end - step, fragments):
                return start - step, end - step, ""
        for step in range(1, upper - end + 1):
            if baseline[start + step - 1] != baseline[end + step - 1]:
                break
            if not _touches(start + step, end + step, fragments):
                return start + step, end + step, ""

    return None


class SelfHealReconciler:
    """Restores disabled content after edits that bypassed the policy."""

    def __init__(self, resolver: OffsetResolver):
        self.resolver = resolver

    def reconcile(
        self,
        live_text: str,
        fragments: Sequence[Fragment],
        baseline: Optional[str] = None,
    ) -> ReconcileResult:
        """Repair live_text so that every fragment's content is intact.

        Fragment offsets are updated in place. Running it again on the
        returned text changes nothing.

        Args:
            live_text: Text currently in the editing surface
            fragments: The editor's fragments (offsets valid for baseline, or
                for live_text when no baseline is given)
            baseline: Last consistent text, if known

        Returns:
            ReconcileResult with the repaired text
        """
        text = live_text
        restored: List[int] = []

        if baseline is not None and baseline != live_text:
            text, restored = self.guard(baseline, live_text, fragments)

        text, relocated, reinserted = self.rebuild(text, fragments)
        for fragment_id in reinserted:
            if fragment_id not in restored:
                restored.append(fragment_id)

        self._refresh_bookkeeping(text, fragments)

        changed = text != live_text
        if changed:
            logger.warning(
                "reconcile_restored_text",
                restored_ids=restored,
                relocated_ids=relocated,
                live_length=len(live_text),
                repaired_length=len(text),
            )

        return ReconcileResult(
            text=text,
            changed=changed,
            relocated_ids=relocated,
            restored_ids=restored,
        )

    def guard(
        self, baseline: str, live_text: str, fragments: Sequence[Fragment]
    ) -> Tuple[str, List[int]]:
        """Keep changes that avoid fragments, revert the rest.

        Fragment offsets must be valid for baseline; they are shifted to the
        returned text.

        Returns:
            Tuple of (guarded text, ids of fragments whose text was reverted)
        """
        active = [f for f in fragments if not f.is_orphaned]

        matcher = difflib.SequenceMatcher(None, baseline, live_text, autojunk=False)
        changes: List[Change] = [
            (i1, i2, live_text[j1:j2])
            for tag, i1, i2, j1, j2 in matcher.get_opcodes()
            if tag != "equal"
        ]

        kept: List[Change] = []
        reverted: List[int] = []
        for index, change in enumerate(changes):
            start, end, _ = change
            if not _touches(start, end, active):
                kept.append(change)
                continue

            lower = kept[-1][1] if kept else 0
            upper = changes[index + 1][0] if index + 1 < len(changes) else len(baseline)
            moved = _slide(change, baseline, lower, upper, active)
            if moved is not None:
                kept.append(moved)
                continue

            for fragment in active:
                if fragment.overlaps(start, end) and fragment.id not in reverted:
                    reverted.append(fragment.id)

        pieces = []
        cursor = 0
        for start, end, replacement in kept:
            pieces.append(baseline[cursor:start])
            pieces.append(replacement)
            cursor = end
        pieces.append(baseline[cursor:])

        for fragment in active:
            delta = sum(
                len(replacement) - (end - start)
                for start, end, replacement in kept
                if end <= fragment.start_offset
            )
            fragment.start_offset += delta
            fragment.end_offset += delta

        if reverted:
            logger.info("edit_reverted", fragment_ids=reverted)

        return "".join(pieces), reverted

    def rebuild(
        self, text: str, fragments: Sequence[Fragment]
    ) -> Tuple[str, List[int], List[int]]:
        """Rebuild the text that the fragment list says should exist.

        Returns:
            Tuple of (expected text, relocated ids, re-inserted ids)
        """
        active = sorted(
            (f for f in fragments if not f.is_orphaned),
            key=lambda f: (f.start_offset, f.id),
        )
        anchored = [
            (f.start_offset, f.end_offset)
            for f in active
            if self.resolver.is_anchored(f, text)
        ]

        pieces: List[str] = []
        emitted = 0
        cursor = 0
        relocated: List[int] = []
        reinserted: List[int] = []

        for fragment in active:
            start = fragment.start_offset
            others = [span for span in anchored if span != (start, fragment.end_offset)]
            if start >= cursor and self.resolver.is_anchored(fragment, text):
                found: Optional[int] = start
            else:
                found = self.resolver.locate(fragment, text, claimed=others, min_start=cursor)
                if found is not None:
                    relocated.append(fragment.id)

            if found is None and self.resolver.locate(fragment, text, claimed=others) is not None:
                # Its only copy lies behind the walk; resolved against the result below
                logger.debug("fragment_deferred", fragment_id=fragment.id)
                fragment.start_offset = 0
                fragment.end_offset = 0
                continue

            if found is None:
                # Content vanished: put it back where it was
                found = min(max(start, cursor), len(text))
                reinserted.append(fragment.id)
                resume = found
            else:
                resume = found + len(fragment.content)

            gap = text[cursor:found]
            pieces.append(gap)
            pieces.append(fragment.content)
            emitted += len(gap)
            fragment.start_offset = emitted
            fragment.end_offset = emitted + len(fragment.content)
            emitted += len(fragment.content)
            cursor = resume

        pieces.append(text[cursor:])
        expected = "".join(pieces)

        claimed = [(f.start_offset, f.end_offset) for f in active if not f.is_orphaned]
        for fragment in fragments:
            if fragment.is_orphaned and self.resolver.resolve(fragment, expected, claimed=claimed):
                logger.info("fragment_reattached", fragment_id=fragment.id)
                claimed.append((fragment.start_offset, fragment.end_offset))
                relocated.append(fragment.id)

        return expected, relocated, reinserted

    def _refresh_bookkeeping(self, text: str, fragments: Sequence[Fragment]) -> None:
        for fragment in fragments:
            if self.resolver.is_anchored(fragment, text):
                self.resolver.anchor(fragment, text, fragment.start_offset)
