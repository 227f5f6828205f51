"""End-to-end editing sessions checking the editor's guarantees."""

import pytest

from promptfence.editor.prompt_editor import PromptEditor


SAFE_TEXT = "Hello world, keep this safe."


def assert_contained(editor):
    """Every resolved fragment's content sits at its offsets, with no overlaps."""
    spans = []
    for fragment in editor.fragments:
        if fragment.is_orphaned:
            continue
        assert editor.text[fragment.start_offset:fragment.end_offset] == fragment.content
        spans.append((fragment.start_offset, fragment.end_offset))

    spans.sort()
    for (_, end), (start, _) in zip(spans, spans[1:]):
        assert end <= start


@pytest.fixture
def session():
    """Editor with two disabled fragments, recording every autosave."""
    saves = []
    editor = PromptEditor(
        "System: be brief. User: summarize this. Note: internal only.",
        on_change=lambda: saves.append(editor.get_full_value()),
    )
    editor.disable((40, 60))
    editor.disable((0, 17))
    saves.clear()
    return editor, saves


def test_exclusion():
    editor = PromptEditor(SAFE_TEXT)
    editor.disable((6, 11))

    assert editor.get_value() == "Hello , keep this safe."


def test_containment_through_mixed_edits(session):
    editor, saves = session

    editor.select(18)
    editor.type_text("Please ")
    assert_contained(editor)

    editor.select(17)
    editor.handle_key("delete")
    assert_contained(editor)

    editor.select(17, 25)
    editor.paste(" Ask:")
    assert_contained(editor)

    editor.sync_text(editor.text.replace("brief", "long"))
    assert_contained(editor)
    assert "be brief." in editor.text

    assert len(saves) == 4


@pytest.mark.parametrize("key, caret", [
    ("backspace", 17),
    ("delete", 40),
    ("backspace", 45),
    ("x", 5),
])
def test_protection(session, key, caret):
    editor, saves = session
    before = editor.text

    editor.select(caret)
    assert not editor.handle_key(key)

    assert editor.text == before
    assert saves == []


def test_round_trip_preserves_value(session):
    editor, _ = session
    editor.hide((24, 38))
    value = editor.get_value()

    editor.set_full_value(editor.get_full_value())

    assert editor.get_value() == value
    assert_contained(editor)


def test_round_trip_keeps_orphans_behind_live_fragments():
    editor = PromptEditor("")
    editor.set_full_value({
        "text": "xz",
        "fragments": [
            {"id": 1, "content": "y", "startOffset": 0, "endOffset": 0},
            {"id": 2, "content": "xz", "startOffset": 0},
        ],
    })
    assert editor.edit_disabled_content(2, "xyz")
    value = editor.get_value()

    for _ in range(2):
        editor.set_full_value(editor.get_full_value())
        assert editor.get_value() == value

    assert editor.store.get_fragment(1).is_orphaned
    assert editor.store.get_fragment(2).content == "xyz"
    assert_contained(editor)


def test_reconciliation_idempotent(session):
    editor, saves = session
    editor.sync_text("System: be brief. User: summarize this. Note: intern")
    text = editor.text
    state = editor.get_full_value()
    saves.clear()

    first = editor.reconcile()
    second = editor.reconcile()

    assert not first.changed
    assert not second.changed
    assert editor.text == text
    assert editor.get_full_value() == state
    assert saves == []


def test_context_disambiguation():
    editor = PromptEditor()
    editor.set_full_value({
        "text": "abcXdefXghi",
        "fragments": [{
            "id": 1,
            "content": "X",
            "startOffset": 7,
            "contextBefore": "abc",
            "contextAfter": "def",
        }],
    })

    fragment = editor.store.get_fragment(1)
    assert fragment.start_offset == 3

    editor.select(11)
    editor.type_text("jkl")
    editor.select(0)
    editor.type_text("__")

    assert fragment.start_offset == 5
    assert editor.get_value() == "__abcdefXghijkl"


def test_hidden_excision_and_deletion():
    editor = PromptEditor("keep secret safe", confirm=lambda message: True)

    element = editor.hide((5, 11))

    assert editor.text == "keep  safe"
    assert element.content == "secret"

    assert editor.delete_hidden(element.id)
    assert editor.text == "keep  safe"


def test_non_consuming_reuse():
    editor = PromptEditor("keep secret safe")
    element = editor.hide((5, 11))
    snapshot = element.model_dump()
    editor.selection = None

    editor.insert_hidden_content(element.id)
    editor.insert_hidden_content(element.id)

    assert editor.text == "keep  safesecretsecret"
    assert editor.store.get_hidden(element.id).model_dump() == snapshot


def test_undo_like_buffer_swap_is_healed(session):
    """A host that restores an old buffer cannot drop disabled text."""
    editor, _ = session
    original = editor.text

    result = editor.sync_text("User: summarize this.")

    assert result.changed
    assert "System: be brief." in editor.text
    assert "internal only." in editor.text
    assert_contained(editor)
    assert editor.text == original
    assert sorted(result.restored_ids) == [1, 2]
