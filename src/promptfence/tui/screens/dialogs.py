"""Modal dialogs used by the editor screen."""

from pathlib import Path
from typing import Callable, List, Optional

from rich.text import Text
from textual.app import ComposeResult
from textual.containers import Horizontal, Vertical
from textual.screen import ModalScreen
from textual.widgets import Button, Input, Label, OptionList, TextArea

from promptfence.models.hidden_element import HiddenElement
from promptfence.models.preset import PresetInfo


DIALOG_CSS = """
.dialog {
    width: 70;
    height: auto;
    max-height: 90%;
    padding: 1 2;
    border: thick $primary;
    background: $surface;
}

.dialog-buttons {
    height: auto;
    align-horizontal: right;
    margin-top: 1;
}

.dialog-error {
    color: $error;
    height: auto;
}

.dialog TextArea {
    height: 8;
}

.color-inputs {
    height: auto;
}

.color-inputs Input {
    width: 1fr;
}
"""


class ConfirmScreen(ModalScreen[bool]):
    """Yes/no question. Dismisses with True when confirmed."""

    DEFAULT_CSS = DIALOG_CSS + """
    ConfirmScreen {
        align: center middle;
    }
    """

    BINDINGS = [
        ("y", "confirm", "Yes"),
        ("n", "cancel", "No"),
        ("escape", "cancel", "Cancel"),
    ]

    def __init__(self, message: str):
        super().__init__()
        self.message = message

    def compose(self) -> ComposeResult:
        with Vertical(classes="dialog"):
            yield Label(self.message, id="confirm-message")
            with Horizontal(classes="dialog-buttons"):
                yield Button("Delete", variant="error", id="confirm-yes")
                yield Button("Cancel", id="confirm-no")

    def on_button_pressed(self, event: Button.Pressed) -> None:
        self.dismiss(event.button.id == "confirm-yes")

    def action_confirm(self) -> None:
        self.dismiss(True)

    def action_cancel(self) -> None:
        self.dismiss(False)


class DisabledContentScreen(ModalScreen[bool]):
    """Edit the text of a disabled fragment.

    ``submit`` applies the new text and returns False to reject it, in which
    case the dialog stays open.
    """

    DEFAULT_CSS = DIALOG_CSS + """
    DisabledContentScreen {
        align: center middle;
    }
    """

    BINDINGS = [
        ("ctrl+s", "save", "Save"),
        ("escape", "cancel", "Cancel"),
    ]

    def __init__(self, content: str, submit: Callable[[str], bool]):
        super().__init__()
        self.content = content
        self.submit = submit

    def compose(self) -> ComposeResult:
        with Vertical(classes="dialog"):
            yield Label("Edit disabled text")
            yield TextArea(self.content, id="disabled-content")
            yield Label("", id="disabled-error", classes="dialog-error")
            with Horizontal(classes="dialog-buttons"):
                yield Button("Save", variant="primary", id="disabled-save")
                yield Button("Cancel", id="disabled-cancel")

    def on_mount(self) -> None:
        self.query_one("#disabled-content", TextArea).focus()

    def on_button_pressed(self, event: Button.Pressed) -> None:
        if event.button.id == "disabled-save":
            self.action_save()
        else:
            self.action_cancel()

    def action_save(self) -> None:
        text = self.query_one("#disabled-content", TextArea).text
        if self.submit(text):
            self.dismiss(True)
            return
        self.query_one("#disabled-error", Label).update(
            "Text must not be empty and must differ from the current text"
        )

    def action_cancel(self) -> None:
        self.dismiss(False)


class HiddenElementScreen(ModalScreen[bool]):
    """Edit name, content and colors of a hidden element.

    ``submit(name, content, bubble_color, text_color)`` returns False to
    reject the values; the dialog then stays open.
    """

    DEFAULT_CSS = DIALOG_CSS + """
    HiddenElementScreen {
        align: center middle;
    }
    """

    BINDINGS = [
        ("ctrl+s", "save", "Save"),
        ("escape", "cancel", "Cancel"),
    ]

    def __init__(
        self,
        element: HiddenElement,
        submit: Callable[[str, str, str, str], bool],
    ):
        super().__init__()
        self.element = element
        self.submit = submit

    def compose(self) -> ComposeResult:
        with Vertical(classes="dialog"):
            yield Label("Name")
            yield Input(value=self.element.display_name, id="hidden-name")
            yield Label("Content")
            yield TextArea(self.element.content, id="hidden-content")
            yield Label("Bubble color / text color (#RRGGBB)")
            with Horizontal(classes="color-inputs"):
                yield Input(value=self.element.bubble_color, id="hidden-bubble")
                yield Input(value=self.element.text_color, id="hidden-text-color")
            yield Label("", id="hidden-error", classes="dialog-error")
            with Horizontal(classes="dialog-buttons"):
                yield Button("Save", variant="primary", id="hidden-save")
                yield Button("Cancel", id="hidden-cancel")

    def on_button_pressed(self, event: Button.Pressed) -> None:
        if event.button.id == "hidden-save":
            self.action_save()
        else:
            self.action_cancel()

    def action_save(self) -> None:
        accepted = self.submit(
            self.query_one("#hidden-name", Input).value,
            self.query_one("#hidden-content", TextArea).text,
            self.query_one("#hidden-bubble", Input).value,
            self.query_one("#hidden-text-color", Input).value,
        )
        if accepted:
            self.dismiss(True)
            return
        self.query_one("#hidden-error", Label).update(
            "Name and content are required; colors must look like #3B82F6"
        )

    def action_cancel(self) -> None:
        self.dismiss(False)


class PresetScreen(ModalScreen[Optional[Path]]):
    """Pick a preset file. Dismisses with its path, or None."""

    DEFAULT_CSS = DIALOG_CSS + """
    PresetScreen {
        align: center middle;
    }
    """

    BINDINGS = [("escape", "cancel", "Cancel")]

    def __init__(self, presets: List[PresetInfo]):
        super().__init__()
        self.presets = presets

    def compose(self) -> ComposeResult:
        with Vertical(classes="dialog"):
            yield Label("Insert preset")
            if self.presets:
                yield OptionList(
                    *(Text(f"{p.name}{p.extension}  ({p.size} bytes)") for p in self.presets),
                    id="preset-options",
                )
            else:
                yield Label("No presets found", id="preset-empty")

    def on_option_list_option_selected(self, event: OptionList.OptionSelected) -> None:
        self.dismiss(self.presets[event.option_index].path)

    def action_cancel(self) -> None:
        self.dismiss(None)
