"""Textual widget components."""

from promptfence.tui.widgets.protected_text_area import ProtectedTextArea
from promptfence.tui.widgets.fence_preview import FencePreview
from promptfence.tui.widgets.hidden_element_list import HiddenElementItem, HiddenElementList

__all__ = [
    "ProtectedTextArea",
    "FencePreview",
    "HiddenElementItem",
    "HiddenElementList",
]
