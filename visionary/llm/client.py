"""Gemini REST transport for the generative gateway.

Architectural role:
    Executes one `generateContent` call against the configured model and
    returns the decoded JSON body. Payload construction and response
    interpretation belong to `visionary.llm.service` and
    `visionary.image.service`.

Model invocation flow:
    service -> `send_request(model, payload)` -> HTTP POST -> parsed JSON.

Retry behavior:
    No retry loop is implemented. Each HTTP call is attempted once with the
    configured timeout (`REQUEST_TIMEOUT`, default 120s).

Failure handling model:
    Transport errors propagate as `requests` exceptions; callers convert them
    to gateway errors using `build_sanitized_http_error`, which never exposes
    response bodies or credentials.
"""

import logging

import requests

from visionary.llm.provider_config import (
    GEMINI_KEY_FILE,
    GEMINI_URL_TEMPLATE,
    REQUEST_TIMEOUT,
    load_key,
)
from visionary.memory.session_models import ImageRef


logger = logging.getLogger(__name__)

PROVIDER_LABEL = "gemini"


class MissingApiKeyError(RuntimeError):
    """No Gemini API key in the environment or key file."""


def build_sanitized_http_error(err: requests.exceptions.RequestException) -> str:
    """Build provider-labeled HTTP error text without exposing raw internals.

    Args:
        err: Request exception instance.

    Returns:
        Sanitized error string with optional status code.
    """
    status_code = None
    if getattr(err, "response", None) is not None:
        status_code = getattr(err.response, "status_code", None)

    label = PROVIDER_LABEL.upper()
    if status_code:
        return f"{label} HTTP ERROR ({status_code})"
    return f"{label} HTTP ERROR"


def image_part(image: ImageRef) -> dict:
    """Inline image part in Gemini `contents` format."""
    return {
        "inlineData": {
            "mimeType": image.mime_type,
            "data": image.to_base64(),
        }
    }


def text_part(text: str) -> dict:
    return {"text": text}


def first_candidate(data: dict) -> dict:
    """Return the first candidate or an empty mapping when absent/malformed."""
    candidates = data.get("candidates") if isinstance(data, dict) else None
    if not candidates or not isinstance(candidates[0], dict):
        return {}
    return candidates[0]


def candidate_parts(candidate: dict) -> list[dict]:
    content = candidate.get("content") or {}
    parts = content.get("parts") if isinstance(content, dict) else None
    if not isinstance(parts, list):
        return []
    return [part for part in parts if isinstance(part, dict)]


def send_request(model: str, payload: dict, api_key: str | None = None) -> dict:
    """Send one `generateContent` request and return the JSON body.

    Args:
        model: Model name substituted into `GEMINI_URL_TEMPLATE`.
        payload: Gemini request body.
        api_key: Explicit key; resolved through `load_key` when omitted.

    Returns:
        Decoded JSON response.

    Error handling:
        - Missing key -> `MissingApiKeyError`
        - Non-2xx status / network failure -> other `RequestException` subclasses
        - Non-JSON body -> `requests.exceptions.JSONDecodeError`
    """
    key = api_key or load_key(GEMINI_KEY_FILE)
    if not key:
        raise MissingApiKeyError(f"{PROVIDER_LABEL.upper()} KEY FILE NOT FOUND")

    url = GEMINI_URL_TEMPLATE.format(model=model)
    headers = {
        "x-goog-api-key": key,
        "Content-Type": "application/json",
    }

    logger.debug("Sending generateContent request: model=%s", model)

    response = requests.post(
        url,
        headers=headers,
        json=payload,
        timeout=REQUEST_TIMEOUT,
    )
    response.raise_for_status()
    return response.json()
