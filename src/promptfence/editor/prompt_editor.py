"""PromptEditor: the document, its spans and every public editing operation.

The editor owns one text string, the span store and the caret/selection.
Edits either go through ``apply_edit`` (checked by the protection policy,
applied exactly) or arrive as whole new text through ``sync_text`` (checked
afterwards by the self-heal reconciler). Any state change is followed by the
``on_change`` callback.
"""

from typing import Any, Callable, Dict, List, Optional, Tuple, Union

import structlog
from rich.markup import escape as markup_escape

from promptfence.editor.persistence import PersistenceAdapter
from promptfence.editor.projector import Run, extract_value, project, render_display
from promptfence.editor.protection import (
    EditKind,
    EditProtectionPolicy,
    EditRequest,
    is_navigation_key,
    request_for_key,
)
from promptfence.editor.reconciler import ReconcileResult, SelfHealReconciler
from promptfence.editor.resolver import OffsetResolver
from promptfence.editor.span_store import SpanStore
from promptfence.models.config import EditorConfig
from promptfence.models.fragment import Fragment
from promptfence.models.hidden_element import HiddenElement
from promptfence.models.selection import Selection

logger = structlog.get_logger()

SelectionLike = Union[Selection, Tuple[int, int]]


def _no_change_listener() -> None:
    pass


class PromptEditor:
    """Plain-text prompt editor with disabled and hidden spans.

    Args:
        text: Initial document text
        on_change: Called with no arguments after every state change
        confirm: Asked ``confirm(message)`` before a hidden element is
            deleted; when absent, deletions are declined
        escape: Escapes plain text for ``render_display``
        config: Editor settings
    """

    def __init__(
        self,
        text: str = "",
        on_change: Optional[Callable[[], None]] = None,
        confirm: Optional[Callable[[str], bool]] = None,
        escape: Optional[Callable[[str], str]] = None,
        config: Optional[EditorConfig] = None,
    ):
        self.config = config or EditorConfig()
        self.store = SpanStore()
        self.resolver = OffsetResolver(self.config.context_window)
        self.policy = EditProtectionPolicy()
        self.reconciler = SelfHealReconciler(self.resolver)
        self.persistence = PersistenceAdapter(self.config)

        self.on_change = on_change or _no_change_listener
        self.confirm = confirm
        self.escape = escape or markup_escape

        self._text = text
        self.selection: Optional[Selection] = None

    @property
    def text(self) -> str:
        return self._text

    @property
    def fragments(self) -> List[Fragment]:
        return self.store.sorted_fragments(include_orphans=True)

    @property
    def hidden_elements(self) -> List[HiddenElement]:
        return list(self.store.hidden_elements)

    # Selection and caret

    def select(self, start: int, end: Optional[int] = None) -> Selection:
        """Set the selection; a single offset places the caret."""
        if end is None:
            end = start
        self.selection = Selection(start, end).clamp(len(self._text))
        return self.selection

    def caret_selection(self) -> Selection:
        """Current selection, or a caret at the end of the document."""
        if self.selection is None:
            return Selection.caret(len(self._text))
        return self.selection.clamp(len(self._text))

    def fragment_at(self, offset: int) -> Optional[Fragment]:
        return self.store.fragment_at(offset)

    # Disabled fragments

    def disable(self, selection: SelectionLike) -> Optional[Fragment]:
        """Turn the trimmed selection into a disabled fragment.

        Returns:
            The new fragment, or None for a blank selection or one that
            overlaps an existing fragment
        """
        selection = self._as_selection(selection)
        raw = self._text[selection.start:selection.end]
        content = raw.strip()
        if not content:
            return None

        start = selection.start + len(raw) - len(raw.lstrip())
        end = start + len(content)
        if any(fragment.overlaps(start, end) for fragment in self.store.fragments):
            logger.info("disable_rejected_overlap", start=start, end=end)
            return None

        fragment = self.store.add_disabled(content, start)
        self.resolver.anchor(fragment, self._text, start)
        self.recalculate_offsets()
        self.selection = None

        logger.info("fragment_disabled", fragment_id=fragment.id, start=start, length=len(content))
        self.on_change()
        return fragment

    def enable(self, fragment_id: int) -> bool:
        """Drop a fragment; its text stays in the document as plain text."""
        if self.store.remove_disabled(fragment_id) is None:
            return False

        self.recalculate_offsets()
        logger.info("fragment_enabled", fragment_id=fragment_id)
        self.on_change()
        return True

    def edit_disabled_content(self, fragment_id: int, new_content: str) -> bool:
        """Replace a fragment's content in place.

        Rejects (returns False) empty or unchanged trimmed content, unknown
        ids and orphaned fragments.
        """
        fragment = self.store.get_fragment(fragment_id)
        if fragment is None:
            return False

        content = new_content.strip() if isinstance(new_content, str) else ""
        if not content or content == fragment.content:
            logger.info(
                "disabled_edit_rejected",
                fragment_id=fragment_id,
                reason="empty" if not content else "unchanged",
            )
            return False

        if not self._ensure_anchored(fragment):
            logger.info("disabled_edit_rejected", fragment_id=fragment_id, reason="orphaned")
            return False

        start, end = fragment.start_offset, fragment.end_offset
        self.store.edit_disabled_content(fragment_id, content)
        self._splice(start, end, content, skip=fragment)
        self.recalculate_offsets()

        logger.info("disabled_content_edited", fragment_id=fragment_id, length=len(content))
        self.on_change()
        return True

    # Hidden elements

    def hide(self, selection: SelectionLike) -> Optional[HiddenElement]:
        """Excise the selection into a new hidden element.

        The whole selection is removed from the document; the element stores
        its trimmed text. Selections touching a disabled fragment are refused.
        """
        selection = self._as_selection(selection)
        content = self._text[selection.start:selection.end].strip()
        if not content:
            return None

        if any(f.overlaps(selection.start, selection.end) for f in self.store.fragments):
            logger.info("hide_rejected_protected", start=selection.start, end=selection.end)
            return None

        element = self._new_hidden(content)
        self._splice(selection.start, selection.end, "")
        self.selection = Selection.caret(selection.start)

        logger.info("text_hidden", hidden_id=element.id, length=len(content))
        self.on_change()
        return element

    def hide_disabled(self, fragment_id: int) -> Optional[HiddenElement]:
        """Convert a disabled fragment into a hidden element.

        The fragment's text is removed from the document when it can be
        found; an orphaned fragment is simply converted.
        """
        fragment = self.store.get_fragment(fragment_id)
        if fragment is None:
            return None

        anchored = self._ensure_anchored(fragment)
        start, end = fragment.start_offset, fragment.end_offset
        self.store.remove_disabled(fragment_id)
        element = self._new_hidden(fragment.content)

        if anchored:
            self._splice(start, end, "")
        self.recalculate_offsets()

        logger.info("fragment_hidden", fragment_id=fragment_id, hidden_id=element.id)
        self.on_change()
        return element

    def rename_hidden(self, hidden_id: int, new_name: str) -> bool:
        name = new_name.strip() if isinstance(new_name, str) else ""
        if not self.store.rename_hidden(hidden_id, name):
            return False
        self.on_change()
        return True

    def recolor_hidden(self, hidden_id: int, bubble_color: str, text_color: str) -> bool:
        if not self.store.recolor(hidden_id, bubble_color, text_color):
            return False
        self.on_change()
        return True

    def update_hidden(
        self,
        hidden_id: int,
        display_name: str,
        content: str,
        bubble_color: Optional[str] = None,
        text_color: Optional[str] = None,
    ) -> bool:
        """Edit every field of a hidden element at once.

        Name and content must both be non-blank; colors default to the
        element's current ones. Nothing changes unless all values are valid.
        """
        element = self.store.get_hidden(hidden_id)
        if element is None:
            return False

        name = display_name.strip() if isinstance(display_name, str) else ""
        text = content.strip() if isinstance(content, str) else ""
        if not name or not text:
            logger.info("hidden_update_rejected", hidden_id=hidden_id, reason="blank")
            return False

        bubble = bubble_color or element.bubble_color
        label = text_color or element.text_color
        if not self.store.recolor(hidden_id, bubble, label):
            return False

        element.display_name = name
        element.content = text
        logger.info("hidden_element_updated", hidden_id=hidden_id)
        self.on_change()
        return True

    def delete_hidden(
        self, hidden_id: int, confirm: Optional[Callable[[str], bool]] = None
    ) -> bool:
        """Delete a hidden element after confirmation.

        Args:
            hidden_id: Element to delete
            confirm: Overrides the editor's confirmation callback for this call

        Returns:
            True if the element was deleted
        """
        element = self.store.get_hidden(hidden_id)
        if element is None:
            return False

        ask = confirm or self.confirm
        if ask is None:
            logger.info("hidden_delete_declined", hidden_id=hidden_id, reason="no confirmation")
            return False
        if not ask(f"Delete hidden element '{element.display_name}'?"):
            logger.info("hidden_delete_declined", hidden_id=hidden_id, reason="declined")
            return False

        self.store.remove_hidden(hidden_id)
        logger.info("hidden_element_deleted", hidden_id=hidden_id)
        self.on_change()
        return True

    def insert_hidden_content(self, hidden_id: int) -> bool:
        """Insert a copy of a hidden element's content at the caret."""
        element = self.store.get_hidden(hidden_id)
        if element is None:
            return False
        return self.insert_at_cursor(element.content)

    # Text edits

    def insert_at_cursor(self, text: str) -> bool:
        """Replace the selection with text, or append when there is none."""
        if not text:
            return False
        request = EditRequest(EditKind.PROGRAMMATIC_INSERT, self.caret_selection(), text)
        return self.apply_edit(request)

    def type_text(self, text: str) -> bool:
        return self.apply_edit(EditRequest(EditKind.INSERT, self.caret_selection(), text))

    def paste(self, text: str) -> bool:
        return self.apply_edit(EditRequest(EditKind.PASTE, self.caret_selection(), text))

    def handle_key(
        self,
        key: str,
        character: Optional[str] = None,
        ctrl: bool = False,
        meta: bool = False,
        alt: bool = False,
    ) -> bool:
        """Process a key press.

        Returns:
            False only when the protection policy vetoed the key
        """
        if is_navigation_key(key):
            self._navigate(key)
            return True

        request = request_for_key(
            key, self.caret_selection(), character=character, ctrl=ctrl, meta=meta, alt=alt
        )
        if request is None:
            return True
        return self.apply_edit(request)

    def apply_edit(self, request: EditRequest) -> bool:
        """Apply an edit request unless the protection policy vetoes it.

        Returns:
            False if vetoed, True otherwise (also for edits with no effect)
        """
        if not self.policy.permits(request, self.store.fragments):
            return False

        start, end, replacement = request.splice_for(len(self._text))
        if start == end and not replacement:
            return True

        self._splice(start, end, replacement)
        self.selection = Selection.caret(start + len(replacement))
        self.on_change()
        return True

    def sync_text(self, text: str) -> ReconcileResult:
        """Accept text edited outside the policy and heal it.

        Changes touching disabled fragments are reverted; everything else is
        kept. The returned result's text is the new document; hosts should
        reload it when it differs from what they sent.
        """
        if text == self._text:
            return ReconcileResult(text=text)

        result = self.reconciler.reconcile(text, self.store.fragments, baseline=self._text)
        self._text = result.text
        if self.selection is not None:
            self.selection = self.selection.clamp(len(self._text))
        self.on_change()
        return result

    def reconcile(self) -> ReconcileResult:
        """Check the document against the fragment list and repair it."""
        result = self.reconciler.reconcile(self._text, self.store.fragments)
        if result.changed:
            self._text = result.text
            self.on_change()
        return result

    def recalculate_offsets(self) -> List[int]:
        """Resolve every fragment against the document.

        Returns:
            Ids of orphaned fragments
        """
        return self.resolver.recalculate(self.store.fragments, self._text)

    # Projection

    def runs(self) -> List[Run]:
        return project(self._text, self.store.fragments)

    def render_display(self) -> str:
        return render_display(self.runs(), escape=self.escape)

    def get_value(self) -> str:
        """The prompt value: document text without disabled spans, trimmed."""
        return extract_value(self.runs())

    # Persistence

    def get_full_value(self) -> Dict[str, Any]:
        return self.persistence.dump(self._text, self.fragments, self.store.hidden_elements)

    def set_full_value(self, data: Any) -> None:
        """Restore state from its persisted shape, repairing what it can."""
        state = self.persistence.restore(data)
        self.store.replace(state.fragments, state.hidden_elements)
        self._text = state.text
        self.selection = None

        for fragment in self.store.fragments:
            self.resolver.refresh_context(fragment, self._text)
        orphaned = self.recalculate_offsets()

        logger.info(
            "state_restored",
            text_length=len(self._text),
            fragments=len(self.store.fragments),
            hidden_elements=len(self.store.hidden_elements),
            orphaned=len(orphaned),
        )
        self.on_change()

    def set_value(self, text: str) -> None:
        """Reset to plain text with no fragments or hidden elements."""
        self._text = text if isinstance(text, str) else ""
        self.store.clear()
        self.selection = None
        self.on_change()

    # Internals

    def _as_selection(self, selection: SelectionLike) -> Selection:
        if not isinstance(selection, Selection):
            selection = Selection(*selection)
        return selection.clamp(len(self._text))

    def _new_hidden(self, content: str) -> HiddenElement:
        return self.store.add_hidden(
            content,
            display_name=self.config.default_display_name,
            bubble_color=self.config.default_bubble_color,
            text_color=self.config.default_text_color,
        )

    def _ensure_anchored(self, fragment: Fragment) -> bool:
        if self.resolver.is_anchored(fragment, self._text):
            return True
        others = [
            (f.start_offset, f.end_offset)
            for f in self.store.fragments
            if f is not fragment and not f.is_orphaned
        ]
        return self.resolver.resolve(fragment, self._text, claimed=others)

    def _splice(
        self, start: int, end: int, replacement: str, skip: Optional[Fragment] = None
    ) -> None:
        """Replace ``[start, end)`` and shift the fragments behind it.

        The range must not overlap any fragment other than ``skip``.
        """
        delta = len(replacement) - (end - start)
        for fragment in self.store.fragments:
            if fragment is skip or fragment.is_orphaned:
                continue
            if fragment.start_offset >= end:
                fragment.start_offset += delta
                fragment.end_offset += delta

        self._text = self._text[:start] + replacement + self._text[end:]
        result = self.reconciler.reconcile(self._text, self.store.fragments)
        self._text = result.text

    def _navigate(self, key: str) -> None:
        base = key.lower().split("+")[-1]
        position = self.caret_selection().end
        length = len(self._text)

        if base == "left":
            position = max(0, position - 1)
        elif base == "right":
            position = min(length, position + 1)
        elif base in ("home", "pageup"):
            position = self._text.rfind("\n", 0, position) + 1 if base == "home" else 0
        elif base in ("end", "pagedown"):
            if base == "end":
                newline = self._text.find("\n", position)
                position = length if newline == -1 else newline
            else:
                position = length
        elif base in ("up", "down"):
            position = self._vertical_move(position, -1 if base == "up" else 1)

        self.selection = Selection.caret(position)

    def _vertical_move(self, position: int, direction: int) -> int:
        line_start = self._text.rfind("\n", 0, position) + 1
        column = position - line_start

        if direction < 0:
            if line_start == 0:
                return 0
            target_start = self._text.rfind("\n", 0, line_start - 1) + 1
            target_end = line_start - 1
        else:
            newline = self._text.find("\n", position)
            if newline == -1:
                return len(self._text)
            target_start = newline + 1
            following = self._text.find("\n", target_start)
            target_end = len(self._text) if following == -1 else following

        return min(target_start + column, target_end)
