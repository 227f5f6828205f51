"""Edit-protection policy.

Every edit intent is described by an ``EditRequest`` before it reaches the
document. The policy rejects any request whose affected range intersects a
disabled fragment; navigation and control/meta shortcuts never mutate the
text and are never rejected.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Optional, Tuple

import structlog

from promptfence.models.fragment import Fragment
from promptfence.models.selection import Selection

logger = structlog.get_logger()


NAVIGATION_KEYS = frozenset({
    "left", "right", "up", "down",
    "home", "end", "pageup", "pagedown",
})

# Key names whose press inserts a fixed string
INSERT_KEYS = {
    "enter": "\n",
    "tab": "\t",
    "space": " ",
}


class EditKind(str, Enum):
    """What the user (or the host) is trying to do to the text."""

    INSERT = "insert"
    PASTE = "paste"
    PROGRAMMATIC_INSERT = "programmatic_insert"
    DELETE_BACKWARD = "delete_backward"
    DELETE_FORWARD = "delete_forward"
    DELETE_RANGE = "delete_range"


@dataclass(frozen=True)
class EditRequest:
    """A single proposed edit.

    Attributes:
        kind: Edit kind
        selection: Selection (or caret) the edit applies to
        text: Text inserted by insert-like kinds
    """

    kind: EditKind
    selection: Selection
    text: str = ""

    @property
    def inserts(self) -> bool:
        return self.kind in (EditKind.INSERT, EditKind.PASTE, EditKind.PROGRAMMATIC_INSERT)

    def affected_range(self) -> Tuple[int, int]:
        """Half-open range of existing text the edit would touch.

        Backspace at a caret touches the character before it, forward delete
        the character after it; everything else touches the selection.
        """
        start, end = self.selection.start, self.selection.end
        if self.selection.is_caret:
            if self.kind is EditKind.DELETE_BACKWARD:
                return max(0, start - 1), start
            if self.kind is EditKind.DELETE_FORWARD:
                return start, start + 1
        return start, end

    def splice_for(self, length: int) -> Tuple[int, int, str]:
        """Splice that performs the edit on a document of the given length.

        Returns:
            Tuple of (start, end, replacement), clamped to the document
        """
        start, end = self.affected_range()
        replacement = self.text if self.inserts else ""
        return min(start, length), min(end, length), replacement


def _split_key(key: str) -> Tuple[str, set]:
    parts = key.lower().split("+")
    return parts[-1], set(parts[:-1])


def is_navigation_key(key: str) -> bool:
    """True for caret movement keys, with or without modifiers."""
    base, _ = _split_key(key)
    return base in NAVIGATION_KEYS


def request_for_key(
    key: str,
    selection: Selection,
    character: Optional[str] = None,
    ctrl: bool = False,
    meta: bool = False,
    alt: bool = False,
) -> Optional[EditRequest]:
    """Translate a key press into an edit request.

    Args:
        key: Key name, e.g. ``"a"``, ``"backspace"``, ``"ctrl+v"``
        selection: Current selection
        character: Printable character produced by the key, if any
        ctrl, meta, alt: Modifier flags (also read from the key name)

    Returns:
        EditRequest, or None for keys that do not edit the text
        (navigation, control/meta shortcuts, unprintable keys)
    """
    base, modifiers = _split_key(key)
    ctrl = ctrl or "ctrl" in modifiers
    meta = meta or "meta" in modifiers or "super" in modifiers

    if base in NAVIGATION_KEYS or ctrl or meta:
        return None

    if base == "backspace":
        kind = EditKind.DELETE_BACKWARD if selection.is_caret else EditKind.DELETE_RANGE
        return EditRequest(kind, selection)

    if base == "delete":
        kind = EditKind.DELETE_FORWARD if selection.is_caret else EditKind.DELETE_RANGE
        return EditRequest(kind, selection)

    if character is not None and len(character) == 1 and character.isprintable():
        return EditRequest(EditKind.INSERT, selection, character)

    if base in INSERT_KEYS:
        return EditRequest(EditKind.INSERT, selection, INSERT_KEYS[base])

    if len(key) == 1 and key.isprintable() and not alt:
        return EditRequest(EditKind.INSERT, selection, key)

    return None


class EditProtectionPolicy:
    """Vetoes edits that would touch a disabled fragment."""

    def blocking_fragment(
        self, request: EditRequest, fragments: Iterable[Fragment]
    ) -> Optional[Fragment]:
        start, end = request.affected_range()
        for fragment in fragments:
            if fragment.overlaps(start, end):
                return fragment
        return None

    def permits(self, request: EditRequest, fragments: Iterable[Fragment]) -> bool:
        """Return True if the edit may proceed."""
        fragment = self.blocking_fragment(request, fragments)
        if fragment is None:
            return True

        start, end = request.affected_range()
        logger.debug(
            "edit_rejected",
            kind=request.kind.value,
            affected_start=start,
            affected_end=end,
            fragment_id=fragment.id,
        )
        return False
