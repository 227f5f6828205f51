"""Editing core: span store, offset resolver, protection, self-heal, projection."""

from promptfence.editor.prompt_editor import PromptEditor
from promptfence.editor.protection import EditKind, EditProtectionPolicy, EditRequest
from promptfence.editor.reconciler import ReconcileResult, SelfHealReconciler
from promptfence.editor.resolver import OffsetResolver
from promptfence.editor.span_store import SpanStore

__all__ = [
    "PromptEditor",
    "EditKind",
    "EditProtectionPolicy",
    "EditRequest",
    "ReconcileResult",
    "SelfHealReconciler",
    "OffsetResolver",
    "SpanStore",
]
