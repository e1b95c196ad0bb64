"""Routing and request data contracts for `visionary.core.engine`.

Architectural role:
    Defines the route enum returned by the intent classifier and the
    provider-agnostic request shape produced by the request composer and
    consumed by gateway implementations.

Determinism:
    Both types are plain immutable values with no behavior of their own.
"""

from dataclasses import dataclass
from enum import Enum

from visionary.memory.session_models import ImageRef, Turn


class Route(str, Enum):
    """Per-turn pipeline branch. Never persisted."""

    EDIT_IMAGE = "EDIT_IMAGE"
    CONSULT = "CONSULT"


@dataclass(frozen=True)
class GatewayRequest:
    """Provider-agnostic multimodal request.

    Attributes:
        route: Branch the request was composed for.
        images: Image parts in order. For edits the first image is the base and
            the optional second image is the style reference.
        text: Synthesized instruction (edit) or raw user text (consult).
        caption: Context caption sent right after the image (consult only).
        history: Prior transcript turns used as grounding context (consult only).
        system_instruction: Backend persona/system prompt, if any.
        enable_search: Whether web-search grounding must be enabled.
        uses_reference: Whether a reference image is attached.
    """

    route: Route
    images: tuple[ImageRef, ...]
    text: str
    caption: str | None = None
    history: tuple[Turn, ...] = ()
    system_instruction: str | None = None
    enable_search: bool = False
    uses_reference: bool = False
