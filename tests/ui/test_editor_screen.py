"""UI tests for the editor screen.

Keyboard edits go through the PromptEditor's protection policy; these tests
drive the real TextArea with a Pilot and check both the widget and the core.
"""

import json

import pytest
from textual.widgets import TextArea
from textual.widgets.text_area import Selection as AreaSelection

from promptfence.editor.prompt_editor import PromptEditor
from promptfence.services.state_file import StateFile
from promptfence.tui.app import PromptFenceApp
from promptfence.tui.screens.dialogs import ConfirmScreen, DisabledContentScreen
from promptfence.tui.widgets.hidden_element_list import HiddenElementList
from promptfence.tui.widgets.protected_text_area import ProtectedTextArea


SAFE_TEXT = "Hello world, keep this safe."


@pytest.fixture
def safe_editor():
    editor = PromptEditor(SAFE_TEXT)
    editor.disable((6, 11))
    return editor


@pytest.mark.asyncio
async def test_typing_outside_disabled_text(safe_editor):
    app = PromptFenceApp(safe_editor)

    async with app.run_test() as pilot:
        await pilot.pause()
        area = app.screen.query_one(ProtectedTextArea)
        area.move_cursor((0, 0))

        await pilot.press("z")
        await pilot.pause()

        assert area.text == "z" + SAFE_TEXT
        assert safe_editor.text == "z" + SAFE_TEXT
        assert safe_editor.store.get_fragment(1).start_offset == 7


@pytest.mark.asyncio
async def test_typing_inside_disabled_text_is_blocked(safe_editor):
    app = PromptFenceApp(safe_editor)

    async with app.run_test() as pilot:
        await pilot.pause()
        area = app.screen.query_one(ProtectedTextArea)
        area.move_cursor((0, 8))

        await pilot.press("z")
        await pilot.pause()

        assert area.text == SAFE_TEXT
        assert safe_editor.text == SAFE_TEXT


@pytest.mark.asyncio
async def test_backspace_at_end_of_disabled_text_is_blocked(safe_editor):
    app = PromptFenceApp(safe_editor)

    async with app.run_test() as pilot:
        await pilot.pause()
        area = app.screen.query_one(ProtectedTextArea)
        area.move_cursor((0, 11))

        await pilot.press("backspace")
        await pilot.pause()

        assert area.text == SAFE_TEXT
        assert safe_editor.get_value() == "Hello , keep this safe."


@pytest.mark.asyncio
async def test_backspace_before_disabled_text_is_allowed(safe_editor):
    app = PromptFenceApp(safe_editor)

    async with app.run_test() as pilot:
        await pilot.pause()
        area = app.screen.query_one(ProtectedTextArea)
        area.move_cursor((0, 6))

        await pilot.press("backspace")
        await pilot.pause()

        assert area.text == "Helloworld, keep this safe."
        assert safe_editor.store.get_fragment(1).start_offset == 5


@pytest.mark.asyncio
async def test_f2_disables_selection():
    editor = PromptEditor("one two three")
    app = PromptFenceApp(editor)

    async with app.run_test() as pilot:
        await pilot.pause()
        area = app.screen.query_one(ProtectedTextArea)
        area.selection = AreaSelection((0, 4), (0, 7))

        await pilot.press("f2")
        await pilot.pause()

        assert [f.content for f in editor.fragments] == ["two"]
        assert editor.get_value() == "one  three"


@pytest.mark.asyncio
async def test_f3_enables_fragment_under_cursor(safe_editor):
    app = PromptFenceApp(safe_editor)

    async with app.run_test() as pilot:
        await pilot.pause()
        area = app.screen.query_one(ProtectedTextArea)
        area.move_cursor((0, 8))

        await pilot.press("f3")
        await pilot.pause()

        assert safe_editor.fragments == []
        assert area.text == SAFE_TEXT


@pytest.mark.asyncio
async def test_f4_hides_selection():
    editor = PromptEditor("keep secret safe")
    app = PromptFenceApp(editor)

    async with app.run_test() as pilot:
        await pilot.pause()
        area = app.screen.query_one(ProtectedTextArea)
        area.selection = AreaSelection((0, 5), (0, 11))

        await pilot.press("f4")
        await pilot.pause()

        assert area.text == "keep  safe"
        assert [e.content for e in editor.hidden_elements] == ["secret"]
        assert len(app.screen.query_one(HiddenElementList).children) == 1


@pytest.mark.asyncio
async def test_f8_deletes_highlighted_hidden_element_after_confirmation():
    editor = PromptEditor("keep secret safe")
    editor.hide((5, 11))
    app = PromptFenceApp(editor)

    async with app.run_test() as pilot:
        await pilot.pause()
        hidden_list = app.screen.query_one(HiddenElementList)
        hidden_list.index = 0
        await pilot.pause()

        await pilot.press("f8")
        await pilot.pause()
        assert isinstance(app.screen, ConfirmScreen)

        await pilot.press("y")
        await pilot.pause()

        assert editor.hidden_elements == []
        assert editor.text == "keep  safe"


@pytest.mark.asyncio
async def test_undo_cannot_remove_disabled_text():
    editor = PromptEditor("Hello")
    app = PromptFenceApp(editor)

    async with app.run_test() as pilot:
        await pilot.pause()
        area = app.screen.query_one(ProtectedTextArea)
        area.move_cursor((0, 5))
        await pilot.press("space", "w", "o", "r", "l", "d")
        await pilot.pause()
        assert editor.disable((6, 11)) is not None

        await pilot.press("ctrl+z")
        await pilot.pause()

        assert "world" in editor.text
        assert area.text == editor.text
        assert editor.store.get_fragment(1).content == "world"


@pytest.mark.asyncio
async def test_changes_are_autosaved(tmp_path, safe_editor):
    state_file = StateFile(tmp_path / "prompt.json")
    app = PromptFenceApp(safe_editor, state_file=state_file)

    async with app.run_test() as pilot:
        await pilot.pause()
        area = app.screen.query_one(ProtectedTextArea)
        area.move_cursor((0, len(SAFE_TEXT)))

        await pilot.press("z")
        await pilot.pause()

    data = json.loads((tmp_path / "prompt.json").read_text())
    assert data["text"] == SAFE_TEXT + "z"
    assert data["fragments"][0]["content"] == "world"


@pytest.mark.asyncio
async def test_f6_edits_disabled_text(safe_editor):
    app = PromptFenceApp(safe_editor)

    async with app.run_test() as pilot:
        await pilot.pause()
        area = app.screen.query_one(ProtectedTextArea)
        area.move_cursor((0, 8))

        await pilot.press("f6")
        await pilot.pause()
        assert isinstance(app.screen, DisabledContentScreen)

        app.screen.query_one("#disabled-content", TextArea).load_text("earth")
        await pilot.press("ctrl+s")
        await pilot.pause()

        assert safe_editor.text == "Hello earth, keep this safe."
        assert area.text == safe_editor.text
        assert safe_editor.store.get_fragment(1).content == "earth"
