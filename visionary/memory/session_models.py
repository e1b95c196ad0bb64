"""Conversation and look-state data contracts.

Architectural role:
    Defines the immutable records exchanged between the request composer, the
    response normalizer, and the conversation state manager.

Ownership:
    - `ImageRef` values are produced by the input adapters and owned by a
      session's `LookState`; pixel content is never modified.
    - `Turn` values are frozen once appended to a session transcript.
"""

import base64
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum


class Role(str, Enum):
    """Author of a transcript turn."""

    USER = "user"
    MODEL = "model"


@dataclass(frozen=True)
class ImageRef:
    """Opaque normalized image payload with its declared mime type."""

    data: bytes
    mime_type: str = "image/jpeg"

    def to_base64(self) -> str:
        return base64.b64encode(self.data).decode("ascii")

    def to_data_url(self) -> str:
        return f"data:{self.mime_type};base64,{self.to_base64()}"


@dataclass(frozen=True)
class Citation:
    """Grounding source (product page, article) attached to a model turn."""

    title: str
    uri: str


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class Turn:
    """One transcript entry.

    Attributes:
        role: `Role.USER` or `Role.MODEL`.
        text: Visible message text.
        timestamp: UTC creation time.
        is_error: Marks normalized failure turns.
        citations: Grounding sources in backend order.
    """

    role: Role
    text: str
    timestamp: datetime = field(default_factory=_utcnow)
    is_error: bool = False
    citations: tuple[Citation, ...] = ()


@dataclass
class LookState:
    """Visual state of the session.

    `base_image` is the user's original photo and is never overwritten while the
    session holds it. `current_image` tracks the latest successful synthesis.
    `reference_image` is the style reference uploaded most recently; only the
    turn that uploaded it sends it to the backend.
    """

    base_image: ImageRef | None = None
    current_image: ImageRef | None = None
    reference_image: ImageRef | None = None

    @property
    def present_image(self) -> ImageRef | None:
        """Image representing what the user currently looks like."""
        return self.current_image or self.base_image

    def snapshot(self) -> tuple[ImageRef | None, ImageRef | None, ImageRef | None]:
        return (self.base_image, self.current_image, self.reference_image)


@dataclass(frozen=True)
class GenerationStatus:
    """Generating/idle signal with a human-readable progress label."""

    is_generating: bool = False
    progress: str = ""
