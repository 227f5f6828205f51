"""Main promptfence TUI application.

Hosts a single EditorScreen over a PromptEditor and autosaves the editor's
state to its state file after every change.
"""

from pathlib import Path
from typing import Optional

import structlog
from textual.app import App
from textual.binding import Binding

from promptfence.editor.prompt_editor import PromptEditor
from promptfence.services.exceptions import FileModifiedError
from promptfence.services.state_file import StateFile
from promptfence.tui.screens import EditorScreen

logger = structlog.get_logger()


class PromptFenceApp(App):
    """Prompt editor with disabled and hidden spans."""

    CSS = """
    Screen {
        background: $surface;
    }
    """

    BINDINGS = [
        Binding("ctrl+q", "quit", "Quit", show=True, priority=True),
    ]

    def __init__(
        self,
        prompt_editor: PromptEditor,
        state_file: Optional[StateFile] = None,
        presets_dir: Optional[Path] = None,
    ):
        """Initialize the app.

        Args:
            prompt_editor: Editor holding the document
            state_file: Where to autosave; None disables saving
            presets_dir: Directory offered by the preset picker
        """
        super().__init__()
        self.prompt_editor = prompt_editor
        self.state_file = state_file
        self.presets_dir = presets_dir
        self._autosave_failed = False

        previous = prompt_editor.on_change

        def on_change() -> None:
            previous()
            self.autosave()

        prompt_editor.on_change = on_change

        if state_file is not None:
            self.title = f"promptfence - {state_file.path.name}"

        logger.info(
            "app_initialized",
            text_length=len(prompt_editor.text),
            fragments=len(prompt_editor.fragments),
            hidden_elements=len(prompt_editor.hidden_elements),
        )

    def on_mount(self) -> None:
        self.push_screen(EditorScreen(self.prompt_editor, presets_dir=self.presets_dir))

    def autosave(self) -> None:
        """Write the editor state; failures are reported once, not raised."""
        if self.state_file is None:
            return
        try:
            self.state_file.save(self.prompt_editor.get_full_value())
        except (FileModifiedError, OSError) as e:
            logger.error("autosave_failed", path=str(self.state_file.path), error=str(e))
            if not self._autosave_failed:
                self._autosave_failed = True
                self.notify(f"Autosave failed: {e}", severity="error", timeout=10)
            return

        if self._autosave_failed:
            self._autosave_failed = False
            self.notify("Autosave working again")
