"""Persistence adapter: editor state to and from its JSON shape.

Dumping produces ``{text, fragments, hiddenElements}`` with camelCase keys.
Restoring is lenient: records are repaired where possible (default colors,
names and anchors filled in, ids reassigned) and dropped with a warning
otherwise. Restoring never raises.
"""

from typing import Any, Dict, Iterable, List, Optional

import structlog
from pydantic import ValidationError

from promptfence.editor.span_store import is_hex_color
from promptfence.models.config import EditorConfig
from promptfence.models.editor_state import EditorState
from promptfence.models.fragment import Fragment
from promptfence.models.hidden_element import HiddenElement

logger = structlog.get_logger()


def _pick(record: Dict[str, Any], *keys: str) -> Any:
    """First present key; accepts both camelCase and snake_case spellings."""
    for key in keys:
        if key in record:
            return record[key]
    return None


def _as_offset(value: Any) -> Optional[int]:
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        return None
    return value


def _as_id(value: Any, used: set) -> Optional[int]:
    if isinstance(value, bool) or not isinstance(value, int) or value < 1 or value in used:
        return None
    return value


def _assign_ids(records: List[Dict[str, Any]], ids: List[Optional[int]]) -> None:
    next_id = max((i for i in ids if i is not None), default=0) + 1
    for record, record_id in zip(records, ids):
        if record_id is None:
            record_id = next_id
            next_id += 1
        record["id"] = record_id


class PersistenceAdapter:
    """Converts between editor state and its persisted dict."""

    def __init__(self, config: Optional[EditorConfig] = None):
        self.config = config or EditorConfig()

    def dump(
        self,
        text: str,
        fragments: Iterable[Fragment],
        hidden_elements: Iterable[HiddenElement],
    ) -> Dict[str, Any]:
        state = EditorState(
            text=text,
            fragments=list(fragments),
            hidden_elements=list(hidden_elements),
        )
        return state.model_dump(mode="json", by_alias=True)

    def restore(self, data: Any) -> EditorState:
        """Build an EditorState from untrusted data.

        Offsets are clamped to the text but not resolved; the caller runs the
        offset resolver over the result.
        """
        if not isinstance(data, dict):
            if data is not None:
                logger.warning("state_not_a_mapping", received=type(data).__name__)
            return EditorState()

        text = data.get("text")
        if not isinstance(text, str):
            if text is not None:
                logger.warning("state_text_invalid", received=type(text).__name__)
            text = ""

        fragments = self._restore_fragments(_pick(data, "fragments"), text)
        hidden = self._restore_hidden(_pick(data, "hiddenElements", "hidden_elements"))

        return EditorState(text=text, fragments=fragments, hidden_elements=hidden)

    def _records(self, raw: Any, kind: str) -> List[Dict[str, Any]]:
        if raw is None:
            return []
        if not isinstance(raw, list):
            logger.warning("state_records_invalid", kind=kind, received=type(raw).__name__)
            return []

        records = []
        for index, item in enumerate(raw):
            content = item.get("content") if isinstance(item, dict) else None
            if not isinstance(content, str) or not content:
                logger.warning("state_record_dropped", kind=kind, index=index, reason="no content")
                continue
            records.append(item)
        return records

    def _restore_fragments(self, raw: Any, text: str) -> List[Fragment]:
        records = self._records(raw, "fragment")

        used: set = set()
        ids = []
        cleaned = []
        for item in records:
            record_id = _as_id(item.get("id"), used)
            if record_id is not None:
                used.add(record_id)
            ids.append(record_id)

            content = item["content"]
            stored_start = _as_offset(_pick(item, "startOffset", "start_offset"))
            stored_end = _as_offset(_pick(item, "endOffset", "end_offset"))
            # A collapsed span was saved as an orphan and stays one
            orphaned = stored_end is not None and stored_end == stored_start
            start = min(stored_start or 0, len(text))
            original = _pick(item, "originalStartOffset", "original_start_offset")
            if isinstance(original, bool) or not isinstance(original, int):
                original = start

            before = _pick(item, "contextBefore", "context_before")
            after = _pick(item, "contextAfter", "context_after")

            cleaned.append({
                "content": content,
                "start_offset": start,
                "end_offset": start if orphaned else start + len(content),
                "original_start_offset": original,
                "context_before": before if isinstance(before, str) else "",
                "context_after": after if isinstance(after, str) else "",
            })

        _assign_ids(cleaned, ids)
        return self._validate(Fragment, cleaned, "fragment")

    def _restore_hidden(self, raw: Any) -> List[HiddenElement]:
        records = self._records(raw, "hidden_element")

        used: set = set()
        ids = []
        cleaned = []
        for item in records:
            record_id = _as_id(item.get("id"), used)
            if record_id is not None:
                used.add(record_id)
            ids.append(record_id)

            name = _pick(item, "displayName", "display_name")
            if not isinstance(name, str) or not name.strip():
                name = self.config.default_display_name

            bubble = _pick(item, "bubbleColor", "bubble_color")
            text_color = _pick(item, "textColor", "text_color")

            cleaned.append({
                "content": item["content"],
                "display_name": name,
                "bubble_color": bubble if is_hex_color(bubble) else self.config.default_bubble_color,
                "text_color": text_color if is_hex_color(text_color) else self.config.default_text_color,
            })

        _assign_ids(cleaned, ids)
        return self._validate(HiddenElement, cleaned, "hidden_element")

    def _validate(self, model, records: List[Dict[str, Any]], kind: str) -> list:
        restored = []
        for record in records:
            try:
                restored.append(model.model_validate(record))
            except ValidationError as e:
                logger.warning(
                    "state_record_dropped",
                    kind=kind,
                    record_id=record.get("id"),
                    reason=str(e),
                )
        return restored
