"""Grounded consultation operation and the Gemini gateway facade.

Architectural role:
    Maps a composed `CONSULT` request into a Gemini chat payload with Google
    Search grounding, and bundles it with the image-edit operation behind the
    `GenerativeGateway` protocol used by the orchestrator.

Model call flow:
    request -> `build_consult_payload` -> `client.send_request(...)` ->
    `extract_consult_result`.

Determinism:
    Payload construction is deterministic for fixed inputs and configuration.
    Generated text and grounding sources are not.

Failure scenarios:
    Missing key, transport failure, or a non-JSON body raise
    `ConsultationError`. A response without text is returned with `text=""`.
"""

import logging

import requests

from visionary.core.errors import ConsultationError
from visionary.core.gateway import ConsultResult
from visionary.core.routing_types import GatewayRequest
from visionary.image.service import synthesize_image
from visionary.llm.client import (
    MissingApiKeyError,
    build_sanitized_http_error,
    candidate_parts,
    first_candidate,
    image_part,
    send_request,
    text_part,
)
from visionary.llm.provider_config import CONSULT_MODEL, IMAGE_MODEL
from visionary.memory.session_models import ImageRef, Role


logger = logging.getLogger(__name__)


def build_consult_payload(request: GatewayRequest) -> dict:
    """Assemble the Gemini chat payload.

    Content order:
        1. Prior recognized turns mapped to `user` / `model` roles.
        2. One user content with the image(s), caption, and the user text.
    """
    contents = []

    for turn in request.history:
        contents.append({
            "role": "model" if turn.role == Role.MODEL else "user",
            "parts": [text_part(turn.text)],
        })

    parts = [image_part(image) for image in request.images]
    if request.caption:
        parts.append(text_part(request.caption))
    parts.append(text_part(request.text))
    contents.append({"role": "user", "parts": parts})

    payload = {"contents": contents}

    if request.system_instruction:
        payload["systemInstruction"] = {"parts": [text_part(request.system_instruction)]}

    if request.enable_search:
        payload["tools"] = [{"google_search": {}}]

    return payload


def extract_consult_result(data: dict) -> ConsultResult:
    """Collect answer text and raw web grounding chunks from a response."""
    candidate = first_candidate(data)

    text = "".join(
        str(part.get("text") or "")
        for part in candidate_parts(candidate)
        if not part.get("thought")
    ).strip()

    metadata = candidate.get("groundingMetadata") or {}
    chunks = metadata.get("groundingChunks") if isinstance(metadata, dict) else None

    citations = []
    for chunk in chunks or []:
        web = chunk.get("web") if isinstance(chunk, dict) else None
        if isinstance(web, dict):
            citations.append({"title": web.get("title"), "uri": web.get("uri")})

    return ConsultResult(text=text, citations=tuple(citations))


def consult(
    request: GatewayRequest,
    api_key: str | None = None,
    model: str = CONSULT_MODEL,
) -> ConsultResult:
    """Run a grounded chat request.

    Args:
        request: Composed `CONSULT` request.
        api_key: Optional explicit key.
        model: Chat model name.
    """
    payload = build_consult_payload(request)

    try:
        data = send_request(model, payload, api_key=api_key)
    except MissingApiKeyError as err:
        raise ConsultationError(str(err)) from err
    except requests.exceptions.JSONDecodeError as err:
        raise ConsultationError("Model returned a malformed response.") from err
    except requests.exceptions.RequestException as err:
        raise ConsultationError(build_sanitized_http_error(err)) from err

    result = extract_consult_result(data)
    logger.info(
        "Consultation answered: model=%s chars=%d citations=%d",
        model,
        len(result.text),
        len(result.citations),
    )
    return result


class GeminiGateway:
    """`GenerativeGateway` backed by the Gemini REST API."""

    def __init__(
        self,
        api_key: str | None = None,
        image_model: str = IMAGE_MODEL,
        consult_model: str = CONSULT_MODEL,
    ):
        self.api_key = api_key
        self.image_model = image_model
        self.consult_model = consult_model

    def synthesize_image(self, request: GatewayRequest) -> ImageRef:
        return synthesize_image(request, api_key=self.api_key, model=self.image_model)

    def consult(self, request: GatewayRequest) -> ConsultResult:
        return consult(request, api_key=self.api_key, model=self.consult_model)
