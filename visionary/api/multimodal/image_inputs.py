"""
Image input decoding for API and CLI adapters.

Processing flow:
1. Accept an already-normalized image as a data URL, raw base64 plus mime type,
   or a local file path.
2. Pre-validate the base64 payload size before decoding.
3. Check the declared mime type against `ALLOWED_IMAGE_TYPES`.
4. Return an `ImageRef` for the orchestrator.

Scope:
- No resizing or re-encoding; the upload client normalizes resolution and
  encoding before sending.
- No temporary files are created.

Error handling strategy:
- Every rejection raises `InvalidImageError` with a user-presentable message.
"""

import base64
import binascii
import mimetypes
import os

from visionary.core.errors import InvalidImageError
from visionary.llm.provider_config import ALLOWED_IMAGE_TYPES, MAX_IMAGE_BYTES, MAX_IMAGE_MB
from visionary.memory.session_models import ImageRef


# ============================================================
# VALIDATION
# ============================================================

def _approx_decoded_size(encoded: str) -> int:
    padding = 0
    if encoded.endswith("=="):
        padding = 2
    elif encoded.endswith("="):
        padding = 1
    return (len(encoded) * 3) // 4 - padding


def _check_mime_type(mime_type: str) -> str:
    mime_type = (mime_type or "").strip().lower()
    if mime_type == "image/jpg":
        mime_type = "image/jpeg"
    if mime_type not in ALLOWED_IMAGE_TYPES:
        raise InvalidImageError(f"Unsupported image type: {mime_type or 'unknown'}")
    return mime_type


def _check_size(size: int) -> None:
    if size <= 0:
        raise InvalidImageError("Image payload is empty")
    if size > MAX_IMAGE_BYTES:
        raise InvalidImageError(f"Image exceeds max size limit ({MAX_IMAGE_MB} MB)")


# ============================================================
# PUBLIC ENTRYPOINTS
# ============================================================

def decode_base64_image(encoded: str, mime_type: str) -> ImageRef:
    """Decode raw base64 image data with a declared mime type."""
    mime_type = _check_mime_type(mime_type)
    encoded = (encoded or "").strip()
    _check_size(_approx_decoded_size(encoded))

    try:
        data = base64.b64decode(encoded, validate=True)
    except (binascii.Error, ValueError) as err:
        raise InvalidImageError("Image payload is not valid base64") from err

    _check_size(len(data))
    return ImageRef(data=data, mime_type=mime_type)


def decode_data_url(data_url: str) -> ImageRef:
    """
    Decode a `data:<mime>;base64,<payload>` URL.

    Input validation behavior:
    - Missing `data:` prefix, separator, or `;base64` marker -> `InvalidImageError`.
    - Size and mime checks as in `decode_base64_image`.
    """
    if not data_url or not data_url.startswith("data:") or "," not in data_url:
        raise InvalidImageError("Expected a base64 data URL")

    header, encoded = data_url.split(",", 1)
    meta = header[len("data:"):].split(";")
    if "base64" not in meta[1:]:
        raise InvalidImageError("Expected a base64 data URL")

    return decode_base64_image(encoded, meta[0])


def load_image_file(path: str) -> ImageRef:
    """Read an image file from disk; the mime type is guessed from its name."""
    path = os.path.expanduser(path)
    if not os.path.isfile(path):
        raise InvalidImageError(f"File not found: {path}")

    mime_type = _check_mime_type(mimetypes.guess_type(path)[0] or "")
    _check_size(os.path.getsize(path))

    with open(path, "rb") as f:
        data = f.read()

    return ImageRef(data=data, mime_type=mime_type)
