"""Generative backend contract.

The orchestrator depends only on this protocol. Implementations are blocking
(the engine runs them in a worker thread) and single-attempt: they never retry.

`synthesize_image` returns the edited image or raises `SynthesisError`.
`consult` returns text plus raw citations or raises `ConsultationError`. An
empty `text` is a valid result; the response normalizer substitutes a fallback.
"""

from dataclasses import dataclass
from typing import Any, Protocol

from visionary.core.routing_types import GatewayRequest
from visionary.memory.session_models import ImageRef


@dataclass(frozen=True)
class ConsultResult:
    """Grounded chat output as returned by the backend.

    `citations` holds raw `{"title": ..., "uri": ...}` mappings in backend order.
    Entries may be incomplete; filtering happens in the response normalizer.
    """

    text: str
    citations: tuple[dict[str, Any], ...] = ()


class GenerativeGateway(Protocol):
    """Minimal interface required by `ConsultationOrchestrator`."""

    def synthesize_image(self, request: GatewayRequest) -> ImageRef:
        """Run an image-edit request and return the synthesized image."""
        ...

    def consult(self, request: GatewayRequest) -> ConsultResult:
        """Run a grounded chat request and return text plus citations."""
        ...
