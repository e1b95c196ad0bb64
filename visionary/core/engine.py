"""Per-turn consultation pipeline.

Architectural role:
    Provides the `ConsultationOrchestrator`, which API/CLI adapters use to turn
    one user input into exactly one model reply while tracking the session's
    evolving look.

Control-flow model (one turn):
    1. Reject the turn if another one is in flight (`PipelineBusyError`).
    2. Append the USER turn.
    3. Classify the text (a reference uploaded with the turn forces `EDIT_IMAGE`).
    4. Compose the gateway request from the look state and prior history.
    5. Call the gateway in a worker thread (the only suspension point).
    6. Normalize the result into one MODEL turn and, on edit success, update
       the look.
    7. Release the busy flag, whatever happened.

Error handling strategy:
    - `MissingBaseImageError` from composition becomes an error turn asking
      for a photo; no gateway call is made.
    - Any exception raised by the gateway is logged and becomes a generic error
      turn. The look state is only mutated after a successful call.
    - No retries. The user resubmits manually.

Reference images:
    A reference is used only by the turn that uploads it: that turn is forced
    to `EDIT_IMAGE` and its request carries the reference. Later turns never
    attach it. A successful try-on consumes it; after a failed one it stays
    stored but unused until the user replaces or clears it.
"""

import asyncio
import logging

from visionary.core.errors import MissingBaseImageError, UnknownStyleError
from visionary.core.gateway import GenerativeGateway
from visionary.core.response_normalizer import (
    apply_consultation,
    apply_failure,
    apply_missing_photo,
    apply_synthesis,
)
from visionary.core.routing_types import Route
from visionary.memory.conversation_manager import ConversationStateManager
from visionary.memory.session_models import GenerationStatus, ImageRef, LookState, Role, Turn
from visionary.nlp.intent_router import classify
from visionary.prompting.prompt_builder import (
    PHOTO_RECEIVED_TEXT,
    PROGRESS_CONSULTING,
    PROGRESS_EDITING,
    PROGRESS_THINKING,
    REFERENCE_UPLOAD_TEXT,
    SHOP_LOOK_TEXT,
    build_style_request,
    get_style,
)
from visionary.prompting.request_composer import compose


logger = logging.getLogger(__name__)


class ConsultationOrchestrator:
    """Entry point for one session's inbound commands."""

    def __init__(
        self,
        gateway: GenerativeGateway,
        state: ConversationStateManager | None = None,
    ):
        self.gateway = gateway
        self.state = state or ConversationStateManager()

    # -----------------------------------------------------
    # Outbound views
    # -----------------------------------------------------

    @property
    def session_id(self) -> str:
        return self.state.session_id

    @property
    def status(self) -> GenerationStatus:
        return self.state.status

    @property
    def look(self) -> LookState:
        return self.state.look

    def get_history(self) -> tuple[Turn, ...]:
        return self.state.get_history()

    def get_look_pair(self) -> tuple[ImageRef | None, ImageRef | None]:
        """`(base_image, current_image)` for side-by-side comparison."""
        look = self.state.look
        return look.base_image, look.current_image

    # -----------------------------------------------------
    # Photo management
    # -----------------------------------------------------

    def submit_user_photo(self, image: ImageRef) -> Turn:
        """Start the look from the user's photo and greet them."""
        self.state.ensure_idle()
        self.state.set_base_image(image)
        logger.info(
            "Base photo set: session=%s mime=%s bytes=%d",
            self.session_id,
            image.mime_type,
            len(image.data),
        )
        return self.state.add_message(Role.MODEL, PHOTO_RECEIVED_TEXT)

    def remove_user_photo(self) -> None:
        self.state.ensure_idle()
        self.state.reset_look()

    def clear_reference_image(self) -> None:
        self.state.ensure_idle()
        self.state.clear_reference_image()

    # -----------------------------------------------------
    # Turns
    # -----------------------------------------------------

    async def submit_reference_image(self, image: ImageRef) -> list[Turn]:
        """Store a style reference and immediately try it on."""
        self.state.ensure_idle()
        if self.state.look.base_image is not None:
            self.state.set_reference_image(image)
        return await self._run_turn(REFERENCE_UPLOAD_TEXT, explicit_reference=True)

    async def submit_message(self, text: str) -> list[Turn]:
        return await self._run_turn(text)

    async def select_style(self, style_id: str) -> list[Turn]:
        style = get_style(style_id)
        if style is None:
            raise UnknownStyleError(f"Unknown style: {style_id}")
        return await self._run_turn(build_style_request(style))

    async def shop_current_look(self) -> list[Turn]:
        return await self._run_turn(SHOP_LOOK_TEXT)

    async def _run_turn(self, text: str, explicit_reference: bool = False) -> list[Turn]:
        """Run one pipeline and return the turns it appended.

        Edge cases:
            - Blank text without a reference image is ignored (returns `[]`).
            - A busy session raises `PipelineBusyError` before anything is
              appended.
        """
        text = (text or "").strip()
        if not text and not explicit_reference:
            return []

        self.state.begin_turn(PROGRESS_THINKING)
        try:
            history = self.state.get_history()
            user_turn = self.state.add_message(Role.USER, text)

            look = self.state.look
            route = classify(text, explicit_reference)

            logger.info(
                "Turn routed: session=%s route=%s explicit_reference=%s stored_reference=%s",
                self.session_id,
                route.value,
                explicit_reference,
                look.reference_image is not None,
            )

            try:
                request = compose(
                    route, text, look, history, attach_reference=explicit_reference
                )
            except MissingBaseImageError:
                logger.info("Turn rejected without base photo: session=%s", self.session_id)
                return [user_turn, apply_missing_photo(self.state)]

            if route == Route.EDIT_IMAGE:
                self.state.set_progress(PROGRESS_EDITING)
                call = self.gateway.synthesize_image
            else:
                self.state.set_progress(PROGRESS_CONSULTING)
                call = self.gateway.consult

            try:
                result = await asyncio.to_thread(call, request)
            except Exception:
                logger.exception(
                    "Gateway call failed: session=%s route=%s", self.session_id, route.value
                )
                return [user_turn, apply_failure(self.state)]

            if route == Route.EDIT_IMAGE:
                reply = apply_synthesis(self.state, result, request.uses_reference)
            else:
                reply = apply_consultation(self.state, result)

            return [user_turn, reply]
        finally:
            self.state.end_turn()
