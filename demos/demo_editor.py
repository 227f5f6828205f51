"""Demo for the promptfence editor.

Opens a sample prompt with one disabled span and one hidden snippet, without
a state file (nothing is saved).

Run: python demos/demo_editor.py
"""

from promptfence.editor.prompt_editor import PromptEditor
from promptfence.tui.app import PromptFenceApp


SAMPLE_PROMPT = """You are a release-notes assistant.
Summarize the changes below for end users.
Do not mention internal ticket numbers.

Changes:
- Faster startup
- New export dialog
"""


def create_sample_editor() -> PromptEditor:
    """Create an editor with a disabled instruction and a hidden snippet."""
    editor = PromptEditor(SAMPLE_PROMPT)

    start = SAMPLE_PROMPT.index("Do not mention")
    end = SAMPLE_PROMPT.index("\n", start)
    editor.disable((start, end))

    start = SAMPLE_PROMPT.index("You are")
    end = SAMPLE_PROMPT.index("\n")
    element = editor.hide((start, end))
    editor.rename_hidden(element.id, "Persona")

    return editor


def main():
    """Run the demo."""
    app = PromptFenceApp(create_sample_editor())

    print("=" * 60)
    print("promptfence demo")
    print("=" * 60)
    print()
    print("  F2 disable selection     F3 enable span at cursor")
    print("  F4 hide selection        F5 hide span at cursor")
    print("  F6 edit disabled text    F7/F8 edit/delete highlighted snippet")
    print("  Enter on a snippet inserts it at the cursor")
    print("  Quit: Ctrl+Q")
    print("=" * 60)

    app.run()

    print()
    print("Prompt value:")
    print(app.prompt_editor.get_value())


if __name__ == "__main__":
    main()
