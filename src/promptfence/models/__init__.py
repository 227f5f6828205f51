"""Pydantic data models for promptfence."""

from promptfence.models.fragment import Fragment
from promptfence.models.hidden_element import HiddenElement
from promptfence.models.editor_state import EditorState
from promptfence.models.selection import Selection

__all__ = [
    "Fragment",
    "HiddenElement",
    "EditorState",
    "Selection",
]
