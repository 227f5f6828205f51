"""Shared test fixtures for all test modules."""

import pytest

from promptfence.editor.prompt_editor import PromptEditor


SAFE_TEXT = "Hello world, keep this safe."


@pytest.fixture
def changes():
    """List that records every on_change notification."""
    return []


@pytest.fixture
def make_editor(changes):
    """
    Factory for editors with disabled spans already in place.

    Example:
        editor = make_editor("Hello world", disabled=[(6, 11)])
    """
    def factory(text, disabled=(), **kwargs):
        editor = PromptEditor(text, **kwargs)
        for start, end in disabled:
            assert editor.disable((start, end)) is not None
        editor.on_change = lambda: changes.append(editor.text)
        return editor

    return factory


@pytest.fixture
def safe_editor(make_editor):
    """'Hello world, keep this safe.' with 'world' disabled."""
    return make_editor(SAFE_TEXT, disabled=[(6, 11)])
