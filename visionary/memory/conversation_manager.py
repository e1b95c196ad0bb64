"""Per-session conversation state with single-writer turn processing.

Purpose of this abstraction:
    Own the authoritative in-memory record of one consultation session: the
    ordered transcript, the evolving `LookState`, and the generating/idle
    status. Each session is an explicit `Session` object held by one
    `ConversationStateManager`; nothing is stored at module level, so any number
    of sessions can coexist without sharing state.

Transcript rules:
    - Turns are append-only. Nothing in this module edits or removes a turn.
    - `get_history` returns a tuple snapshot so callers cannot mutate it.

Look rules:
    - `base_image` is set once; a second photo requires `reset_look` first.
    - `current_image` is replaced only through `update_look`, which the engine
      calls after a successful synthesis.
    - `reference_image` holds the last uploaded reference. Only the turn that
      uploaded it sends it to the backend; a successful try-on consumes it.

Concurrency:
    `begin_turn` flips the busy flag under a lock and raises
    `PipelineBusyError` if a pipeline is already running. `end_turn` releases it.
    The engine calls `end_turn` in `finally` so every outcome frees the session.
"""

import logging
import threading
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone

from visionary.core.errors import BaseImageAlreadySetError, PipelineBusyError
from visionary.memory.session_models import (
    Citation,
    GenerationStatus,
    ImageRef,
    LookState,
    Role,
    Turn,
)


logger = logging.getLogger(__name__)


@dataclass
class Session:
    """Mutable state of one user's consultation."""

    session_id: str = field(default_factory=lambda: uuid.uuid4().hex)
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    look: LookState = field(default_factory=LookState)
    turns: list[Turn] = field(default_factory=list)
    status: GenerationStatus = field(default_factory=GenerationStatus)


class ConversationStateManager:
    """Single writer for a `Session`."""

    def __init__(self, session: Session | None = None):
        self.session = session or Session()
        self._lock = threading.Lock()

    @property
    def session_id(self) -> str:
        return self.session.session_id

    @property
    def look(self) -> LookState:
        return self.session.look

    @property
    def status(self) -> GenerationStatus:
        with self._lock:
            return self.session.status

    @property
    def is_generating(self) -> bool:
        return self.status.is_generating

    # -----------------------------------------------------
    # Transcript
    # -----------------------------------------------------

    def append_turn(self, turn: Turn) -> Turn:
        with self._lock:
            self.session.turns.append(turn)
        return turn

    def add_message(
        self,
        role: Role,
        text: str,
        is_error: bool = False,
        citations: tuple[Citation, ...] = (),
    ) -> Turn:
        """Build a `Turn` and append it to the transcript."""
        return self.append_turn(
            Turn(role=role, text=text, is_error=is_error, citations=tuple(citations))
        )

    def get_history(self) -> tuple[Turn, ...]:
        with self._lock:
            return tuple(self.session.turns)

    # -----------------------------------------------------
    # Look
    # -----------------------------------------------------

    def set_base_image(self, image: ImageRef) -> None:
        with self._lock:
            if self.session.look.base_image is not None:
                raise BaseImageAlreadySetError()
            self.session.look = LookState(base_image=image)

    def set_reference_image(self, image: ImageRef | None) -> None:
        with self._lock:
            self.session.look.reference_image = image

    def clear_reference_image(self) -> None:
        self.set_reference_image(None)

    def update_look(self, current_image: ImageRef, consume_reference: bool = False) -> None:
        """Record a successful synthesis.

        Args:
            current_image: The synthesized image that becomes the present look.
            consume_reference: Drop the pending reference image that produced it.
        """
        with self._lock:
            self.session.look.current_image = current_image
            if consume_reference:
                self.session.look.reference_image = None

    def reset_look(self) -> None:
        """Discard base, current, and reference images."""
        with self._lock:
            self.session.look = LookState()
        logger.info("Look state reset for session %s", self.session.session_id)

    # -----------------------------------------------------
    # Pipeline status
    # -----------------------------------------------------

    def begin_turn(self, progress: str) -> None:
        with self._lock:
            if self.session.status.is_generating:
                raise PipelineBusyError()
            self.session.status = GenerationStatus(is_generating=True, progress=progress)

    def set_progress(self, progress: str) -> None:
        with self._lock:
            if self.session.status.is_generating:
                self.session.status = GenerationStatus(is_generating=True, progress=progress)

    def end_turn(self) -> None:
        with self._lock:
            self.session.status = GenerationStatus()

    def ensure_idle(self) -> None:
        """Raise `PipelineBusyError` while a turn is in flight."""
        if self.is_generating:
            raise PipelineBusyError()
