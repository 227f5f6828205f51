"""Editor screen: the prompt document, its preview and the hidden elements bar.

Disabled spans are managed from the keyboard:

- F2 disables the selection, F3 re-enables the span under the cursor
- F4 hides the selection, F5 turns the span under the cursor into a hidden element
- F6 edits the span under the cursor
- F7/F8 edit or delete the highlighted hidden element; Enter on it inserts it
- F9 inserts a preset at the cursor
"""

from pathlib import Path
from typing import Optional

import structlog
from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal, Vertical
from textual.screen import Screen
from textual.widgets import Footer, Header, Label, ListView, TextArea

from promptfence.editor.prompt_editor import PromptEditor
from promptfence.services.exceptions import PromptFenceError
from promptfence.services.presets import list_presets, load_preset_content
from promptfence.tui.screens.dialogs import (
    ConfirmScreen,
    DisabledContentScreen,
    HiddenElementScreen,
    PresetScreen,
)
from promptfence.tui.widgets.fence_preview import FencePreview
from promptfence.tui.widgets.hidden_element_list import HiddenElementItem, HiddenElementList
from promptfence.tui.widgets.protected_text_area import ProtectedTextArea

logger = structlog.get_logger()


class EditorScreen(Screen):
    """Edits one prompt document."""

    DEFAULT_CSS = """
    #editor-panels {
        height: 1fr;
    }

    #prompt-text {
        width: 2fr;
    }

    #side-panel {
        width: 1fr;
        padding: 0 1;
    }

    .panel-title {
        text-style: bold;
        margin-top: 1;
    }

    #preview {
        height: 1fr;
        overflow-y: auto;
    }

    #hidden-list {
        height: auto;
        max-height: 12;
    }
    """

    BINDINGS = [
        Binding("f2", "disable", "Disable"),
        Binding("f3", "enable", "Enable"),
        Binding("f4", "hide", "Hide"),
        Binding("f5", "hide_disabled", "Disabled to hidden"),
        Binding("f6", "edit_disabled", "Edit disabled"),
        Binding("f7", "edit_hidden", "Edit hidden"),
        Binding("f8", "delete_hidden", "Delete hidden"),
        Binding("f9", "insert_preset", "Preset"),
    ]

    def __init__(self, prompt_editor: PromptEditor, presets_dir: Optional[Path] = None, **kwargs):
        super().__init__(**kwargs)
        self.prompt_editor = prompt_editor
        self.presets_dir = presets_dir

    def compose(self) -> ComposeResult:
        yield Header()
        with Horizontal(id="editor-panels"):
            yield ProtectedTextArea(self.prompt_editor)
            with Vertical(id="side-panel"):
                yield Label("Preview", classes="panel-title")
                yield FencePreview(id="preview")
                yield Label("Hidden elements", classes="panel-title")
                yield HiddenElementList(id="hidden-list")
        yield Footer()

    def on_mount(self) -> None:
        self.text_area.focus()
        self.refresh_views()

    @property
    def text_area(self) -> ProtectedTextArea:
        return self.query_one(ProtectedTextArea)

    def refresh_views(self) -> None:
        self.query_one(FencePreview).show_runs(self.prompt_editor.runs())
        self.query_one(HiddenElementList).show_elements(self.prompt_editor.hidden_elements)

    def _reload(self) -> None:
        self.text_area.reload()
        self.refresh_views()

    # Text area events

    def on_text_area_changed(self, event: TextArea.Changed) -> None:
        if not isinstance(event.text_area, ProtectedTextArea):
            return

        area = event.text_area
        if area.text != self.prompt_editor.text:
            result = self.prompt_editor.sync_text(area.text)
            if result.text != area.text:
                location = area.cursor_location
                area.load_text(result.text)
                area.move_cursor(location)
                self.notify("Disabled text was restored", severity="warning")
        self.refresh_views()

    def on_text_area_selection_changed(self, event: TextArea.SelectionChanged) -> None:
        if not isinstance(event.text_area, ProtectedTextArea):
            return
        selection = event.text_area.offset_selection()
        self.prompt_editor.select(selection.start, selection.end)

    def on_list_view_selected(self, event: ListView.Selected) -> None:
        if not isinstance(event.item, HiddenElementItem):
            return
        if not self.prompt_editor.insert_hidden_content(event.item.hidden_id):
            self.notify("Cannot insert inside disabled text", severity="warning")
            return
        self._reload()
        self.text_area.focus()

    # Disabled spans

    def action_disable(self) -> None:
        fragment = self.prompt_editor.disable(self.text_area.offset_selection())
        if fragment is None:
            self.notify("Select text outside disabled spans first", severity="warning")
            return
        self.refresh_views()

    def action_enable(self) -> None:
        fragment = self.prompt_editor.fragment_at(self.text_area.cursor_offset())
        if fragment is None:
            self.notify("The cursor is not on disabled text", severity="warning")
            return
        self.prompt_editor.enable(fragment.id)
        self.refresh_views()

    def action_edit_disabled(self) -> None:
        fragment = self.prompt_editor.fragment_at(self.text_area.cursor_offset())
        if fragment is None:
            self.notify("The cursor is not on disabled text", severity="warning")
            return

        fragment_id = fragment.id

        def submit(text: str) -> bool:
            return self.prompt_editor.edit_disabled_content(fragment_id, text)

        def done(saved: Optional[bool]) -> None:
            if saved:
                self._reload()

        self.app.push_screen(DisabledContentScreen(fragment.content, submit), done)

    # Hidden elements

    def action_hide(self) -> None:
        element = self.prompt_editor.hide(self.text_area.offset_selection())
        if element is None:
            self.notify("Select text outside disabled spans first", severity="warning")
            return
        self._reload()

    def action_hide_disabled(self) -> None:
        fragment = self.prompt_editor.fragment_at(self.text_area.cursor_offset())
        if fragment is None:
            self.notify("The cursor is not on disabled text", severity="warning")
            return
        self.prompt_editor.hide_disabled(fragment.id)
        self._reload()

    def _highlighted_element(self):
        hidden_id = self.query_one(HiddenElementList).highlighted_id
        if hidden_id is None:
            self.notify("Highlight a hidden element first", severity="warning")
            return None
        return self.prompt_editor.store.get_hidden(hidden_id)

    def action_edit_hidden(self) -> None:
        element = self._highlighted_element()
        if element is None:
            return

        def submit(name: str, content: str, bubble_color: str, text_color: str) -> bool:
            return self.prompt_editor.update_hidden(
                element.id, name, content, bubble_color, text_color
            )

        def done(saved: Optional[bool]) -> None:
            if saved:
                self.refresh_views()

        self.app.push_screen(HiddenElementScreen(element, submit), done)

    def action_delete_hidden(self) -> None:
        element = self._highlighted_element()
        if element is None:
            return

        def done(confirmed: Optional[bool]) -> None:
            if self.prompt_editor.delete_hidden(element.id, confirm=lambda _message: bool(confirmed)):
                self.refresh_views()

        self.app.push_screen(
            ConfirmScreen(f"Delete hidden element '{element.display_name}'?"), done
        )

    # Presets

    def action_insert_preset(self) -> None:
        if self.presets_dir is None:
            self.notify("No preset directory configured", severity="warning")
            return
        try:
            presets = list_presets(self.presets_dir)
        except OSError as e:
            self.notify(f"Cannot read presets: {e}", severity="error")
            return

        def done(path: Optional[Path]) -> None:
            if path is None:
                return
            try:
                content = load_preset_content(path)
            except PromptFenceError as e:
                self.notify(str(e), severity="error")
                return
            if not self.prompt_editor.insert_at_cursor(content):
                self.notify("Cannot insert inside disabled text", severity="warning")
                return
            self._reload()

        self.app.push_screen(PresetScreen(presets), done)
