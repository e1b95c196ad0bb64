"""Image-edit (virtual try-on) gateway operation.

Role in pipeline:
    - Receives an `EDIT_IMAGE` request from the orchestrator.
    - Maps image parts and the instruction into a Gemini image-model payload.
    - Returns the first inline image of the first candidate as an `ImageRef`.

Base64 handling:
    - Outbound images are base64-encoded by `client.image_part`.
    - The inline result is decoded here; undecodable data is a synthesis error.

Error handling strategy:
    Every failure (missing key, HTTP error, malformed or empty response) is
    raised as `SynthesisError` with a sanitized message. No retries.
"""

import base64
import binascii
import logging

import requests

from visionary.core.errors import SynthesisError
from visionary.core.routing_types import GatewayRequest
from visionary.llm.client import (
    MissingApiKeyError,
    build_sanitized_http_error,
    candidate_parts,
    first_candidate,
    image_part,
    send_request,
    text_part,
)
from visionary.llm.provider_config import IMAGE_MODEL
from visionary.memory.session_models import ImageRef


logger = logging.getLogger(__name__)

DEFAULT_RESULT_MIME = "image/png"


def build_edit_payload(request: GatewayRequest) -> dict:
    parts = [image_part(image) for image in request.images]
    parts.append(text_part(request.text))
    return {
        "contents": [{"role": "user", "parts": parts}],
        "generationConfig": {"responseModalities": ["IMAGE"]},
    }


def extract_image(data: dict) -> ImageRef:
    """Pull the synthesized image out of a `generateContent` response.

    Raises:
        SynthesisError: No part carries inline image data, or it is not base64.
    """
    for part in candidate_parts(first_candidate(data)):
        inline = part.get("inlineData") or part.get("inline_data")
        if not isinstance(inline, dict) or not inline.get("data"):
            continue
        try:
            payload = base64.b64decode(inline["data"], validate=True)
        except (binascii.Error, ValueError) as err:
            raise SynthesisError("Model returned undecodable image data.") from err
        mime_type = inline.get("mimeType") or inline.get("mime_type") or DEFAULT_RESULT_MIME
        return ImageRef(data=payload, mime_type=mime_type)

    raise SynthesisError("No image generated from the model.")


def synthesize_image(
    request: GatewayRequest,
    api_key: str | None = None,
    model: str = IMAGE_MODEL,
) -> ImageRef:
    """Run an image-edit request and return the synthesized image.

    Args:
        request: Composed `EDIT_IMAGE` request.
        api_key: Optional explicit key (defaults to configured key resolution).
        model: Image model name.
    """
    payload = build_edit_payload(request)

    try:
        data = send_request(model, payload, api_key=api_key)
    except MissingApiKeyError as err:
        raise SynthesisError(str(err)) from err
    except requests.exceptions.JSONDecodeError as err:
        raise SynthesisError("Model returned a malformed response.") from err
    except requests.exceptions.RequestException as err:
        raise SynthesisError(build_sanitized_http_error(err)) from err

    image = extract_image(data)
    logger.info(
        "Image synthesized: model=%s mime=%s bytes=%d reference=%s",
        model,
        image.mime_type,
        len(image.data),
        request.uses_reference,
    )
    return image
