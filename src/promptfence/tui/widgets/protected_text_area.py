"""TextArea whose keyboard edits are vetted by a PromptEditor."""

from typing import Optional, Tuple

import structlog
from textual.widgets import TextArea

from promptfence.editor.prompt_editor import PromptEditor
from promptfence.editor.protection import EditKind, EditRequest
from promptfence.models.selection import Selection

logger = structlog.get_logger()

Location = Tuple[int, int]


class ProtectedTextArea(TextArea):
    """Multi-line editor for the prompt document.

    Typing, deleting and pasting are turned into edit requests and applied to
    the PromptEditor first; the widget only applies an edit the editor
    accepted. Anything else that changes the text (undo, redo) is healed by
    the screen through ``PromptEditor.sync_text``.
    """

    def __init__(self, prompt_editor: PromptEditor, *args, **kwargs):
        super().__init__(prompt_editor.text, *args, id="prompt-text", **kwargs)
        self.prompt_editor = prompt_editor
        self.show_line_numbers = False

    def offset_of(self, location: Location) -> int:
        """Convert a (row, column) location into a document offset."""
        row, column = location
        lines = self.document.lines
        newline = len(self.document.newline)
        row = min(row, len(lines) - 1)
        return sum(len(line) + newline for line in lines[:row]) + column

    def location_of(self, offset: int) -> Location:
        """Convert a document offset into a (row, column) location."""
        lines = self.document.lines
        newline = len(self.document.newline)
        remaining = offset
        for row, line in enumerate(lines):
            if remaining <= len(line) or row == len(lines) - 1:
                return row, min(remaining, len(line))
            remaining -= len(line) + newline
        return 0, 0

    def offset_selection(self) -> Selection:
        start, end = self.selection
        return Selection(self.offset_of(start), self.offset_of(end))

    def cursor_offset(self) -> int:
        return self.offset_of(self.cursor_location)

    def _vet(self, request: EditRequest) -> bool:
        if self.prompt_editor.apply_edit(request):
            return True
        logger.debug("keyboard_edit_blocked", kind=request.kind.value)
        self.app.bell()
        return False

    def _replace_via_keyboard(self, insert: str, start: Location, end: Location) -> Optional[object]:
        if self.read_only:
            return None
        selection = Selection(self.offset_of(start), self.offset_of(end))
        if not self._vet(EditRequest(EditKind.INSERT, selection, insert)):
            return None
        return super()._replace_via_keyboard(insert, start, end)

    def _delete_via_keyboard(self, start: Location, end: Location) -> Optional[object]:
        if self.read_only:
            return None
        selection = Selection(self.offset_of(start), self.offset_of(end))
        if not self._vet(EditRequest(EditKind.DELETE_RANGE, selection)):
            return None
        return super()._delete_via_keyboard(start, end)

    def reload(self) -> None:
        """Show the editor's text and caret after a change made outside the widget."""
        if self.text != self.prompt_editor.text:
            self.load_text(self.prompt_editor.text)
        if self.prompt_editor.selection is not None:
            self.move_cursor(self.location_of(self.prompt_editor.selection.end))
