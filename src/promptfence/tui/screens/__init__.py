"""Textual screens for the prompt editor."""

from promptfence.tui.screens.editor_screen import EditorScreen
from promptfence.tui.screens.dialogs import (
    ConfirmScreen,
    DisabledContentScreen,
    HiddenElementScreen,
    PresetScreen,
)

__all__ = [
    "EditorScreen",
    "ConfirmScreen",
    "DisabledContentScreen",
    "HiddenElementScreen",
    "PresetScreen",
]
