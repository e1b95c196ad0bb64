"""Gateway output -> conversation entries.

Every completed pipeline ends in exactly one call into this module, which
appends exactly one MODEL turn:

- `apply_synthesis`: replaces the current look, then acknowledges the edit.
- `apply_consultation`: appends the answer with filtered citations.
- `apply_failure`: appends a generic error turn; the look is left alone.
- `apply_missing_photo`: appends an error turn asking for a photo.

Citations are filtered to entries with both a non-empty title and URI, kept in
backend order, and capped at `MAX_CITATIONS`.
"""

from typing import Any, Iterable

from visionary.core.gateway import ConsultResult
from visionary.memory.conversation_manager import ConversationStateManager
from visionary.memory.session_models import Citation, ImageRef, Role, Turn
from visionary.prompting.prompt_builder import (
    CONSULT_FALLBACK_REPLY,
    EDIT_REPLY,
    GENERIC_ERROR_REPLY,
    MISSING_PHOTO_REPLY,
    REFERENCE_EDIT_REPLY,
)


MAX_CITATIONS = 5


def _field(entry: Any, name: str) -> str:
    if isinstance(entry, dict):
        value = entry.get(name)
    else:
        value = getattr(entry, name, None)
    if not isinstance(value, str):
        return ""
    return value.strip()


def normalize_citations(raw: Iterable[Any] | None, limit: int = MAX_CITATIONS) -> tuple[Citation, ...]:
    """Keep complete citations in their original order, at most `limit`."""
    citations: list[Citation] = []
    for entry in raw or ():
        title = _field(entry, "title")
        uri = _field(entry, "uri")
        if not title or not uri:
            continue
        citations.append(Citation(title=title, uri=uri))
        if len(citations) >= limit:
            break
    return tuple(citations)


def apply_synthesis(
    state: ConversationStateManager,
    image: ImageRef,
    uses_reference: bool,
) -> Turn:
    state.update_look(image, consume_reference=uses_reference)
    reply = REFERENCE_EDIT_REPLY if uses_reference else EDIT_REPLY
    return state.add_message(Role.MODEL, reply)


def apply_consultation(state: ConversationStateManager, result: ConsultResult) -> Turn:
    text = (result.text or "").strip() or CONSULT_FALLBACK_REPLY
    return state.add_message(Role.MODEL, text, citations=normalize_citations(result.citations))


def apply_failure(state: ConversationStateManager) -> Turn:
    return state.add_message(Role.MODEL, GENERIC_ERROR_REPLY, is_error=True)


def apply_missing_photo(state: ConversationStateManager) -> Turn:
    return state.add_message(Role.MODEL, MISSING_PHOTO_REPLY, is_error=True)
