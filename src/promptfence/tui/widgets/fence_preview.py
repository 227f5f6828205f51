"""Live preview of the document with disabled spans struck through."""

from typing import List

from textual.widgets import Static

from promptfence.editor.projector import Run, to_rich_text


class FencePreview(Static):
    """Read-only rendering of the projector's runs."""

    def __init__(self, *args, **kwargs):
        super().__init__("", *args, **kwargs)

    def show_runs(self, runs: List[Run]) -> None:
        self.update(to_rich_text(runs))
