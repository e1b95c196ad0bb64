"""Route-specific request composition.

Role in pipeline:
    intent router -> `compose(route, text, look, history)` -> gateway.

Image selection:
    Both routes use the present look (`current_image` when a synthesis has
    succeeded, else `base_image`). Edits therefore build on the previous edit,
    and consultations describe what the user sees on screen.

Ordering guarantees:
    - Edit requests: present look first, reference image second (only in the
      turn that uploaded it).
    - Consult requests: present look, caption, then user text; prior non-error
      turns travel separately as `history`.

Side effects:
    None. The look state is read, never written.
"""

from visionary.core.errors import MissingBaseImageError
from visionary.core.routing_types import GatewayRequest, Route
from visionary.llm.provider_config import STYLIST_SYSTEM_INSTRUCTION
from visionary.memory.session_models import LookState, Turn
from visionary.prompting.prompt_builder import (
    CONSULT_IMAGE_CAPTION,
    build_edit_instruction,
    build_reference_edit_instruction,
)


def recognized_history(history) -> tuple[Turn, ...]:
    """Drop error turns; they are transcript noise, not conversation."""
    return tuple(turn for turn in history if not turn.is_error and turn.text.strip())


def compose(
    route: Route,
    text: str,
    look: LookState,
    history: tuple[Turn, ...] = (),
    attach_reference: bool = False,
) -> GatewayRequest:
    """Build the gateway request for one routed turn.

    Args:
        route: Output of the intent router.
        text: Raw user text for this turn.
        look: Session look state (read-only).
        history: Transcript preceding this turn.
        attach_reference: The reference image was uploaded with this turn.
            A reference stored by an earlier turn is never attached.

    Raises:
        MissingBaseImageError: The session has no base photo yet.
    """
    if look.base_image is None:
        raise MissingBaseImageError()

    present = look.present_image

    if route == Route.EDIT_IMAGE:
        reference = look.reference_image if attach_reference else None
        if reference is not None:
            return GatewayRequest(
                route=route,
                images=(present, reference),
                text=build_reference_edit_instruction(text),
                uses_reference=True,
            )
        return GatewayRequest(
            route=route,
            images=(present,),
            text=build_edit_instruction(text),
        )

    return GatewayRequest(
        route=Route.CONSULT,
        images=(present,),
        text=text,
        caption=CONSULT_IMAGE_CAPTION,
        history=recognized_history(history),
        system_instruction=STYLIST_SYSTEM_INSTRUCTION,
        enable_search=True,
    )
