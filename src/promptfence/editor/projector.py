"""Projection of the document into plain and protected runs."""

from dataclasses import dataclass
from typing import Callable, Iterable, List, Optional

from rich.markup import escape as markup_escape
from rich.text import Text

from promptfence.models.fragment import Fragment


PROTECTED_STYLE = "strike dim"


@dataclass(frozen=True)
class Run:
    """Contiguous slice of the document.

    Attributes:
        text: Slice text
        protected: True when the slice is a disabled fragment
        fragment_id: Id of that fragment, None for plain runs
    """

    text: str
    protected: bool = False
    fragment_id: Optional[int] = None


def project(text: str, fragments: Iterable[Fragment]) -> List[Run]:
    """Split text into runs along the fragment spans.

    Orphaned and empty spans are skipped, spans are clamped to the text and a
    span starting inside an already emitted one is dropped.
    """
    runs: List[Run] = []
    length = len(text)
    cursor = 0

    for fragment in sorted(fragments, key=lambda f: (f.start_offset, f.id)):
        if fragment.is_orphaned:
            continue
        start = min(fragment.start_offset, length)
        end = min(fragment.end_offset, length)
        if start >= end or start < cursor:
            continue

        if start > cursor:
            runs.append(Run(text[cursor:start]))
        runs.append(Run(text[start:end], protected=True, fragment_id=fragment.id))
        cursor = end

    if cursor < length:
        runs.append(Run(text[cursor:]))

    return runs


def extract_value(runs: Iterable[Run]) -> str:
    """The prompt value: plain runs only, outer whitespace trimmed."""
    return "".join(run.text for run in runs if not run.protected).strip()


def render_display(
    runs: Iterable[Run],
    escape: Callable[[str], str] = markup_escape,
    protected_style: str = PROTECTED_STYLE,
) -> str:
    """Render runs as Rich console markup with protected runs styled."""
    parts = []
    for run in runs:
        escaped = escape(run.text)
        if run.protected:
            parts.append(f"[{protected_style}]{escaped}[/]")
        else:
            parts.append(escaped)
    return "".join(parts)


def to_rich_text(runs: Iterable[Run], protected_style: str = PROTECTED_STYLE) -> Text:
    """Build a Rich Text for widgets that take renderables."""
    text = Text()
    for run in runs:
        text.append(run.text, style=protected_style if run.protected else None)
    return text
