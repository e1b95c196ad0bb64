"""Provider/runtime configuration for the generative backend.

Architectural role:
    Centralizes model selection, endpoint templates, timeouts, and credential
    lookup for `visionary.llm.client` and the input adapters.

Determinism:
    Deterministic for a fixed process environment and key files. Values are
    resolved at import time (plus runtime key-file reads in `load_key`).

Failure behavior:
    Missing key material is represented as `None`; the client turns it into the
    matching gateway error at call time.
"""

import os
from dotenv import load_dotenv

load_dotenv()

# Gemini REST endpoint; `{model}` is filled per request.
GEMINI_URL_TEMPLATE = os.getenv(
    "GEMINI_URL_TEMPLATE",
    "https://generativelanguage.googleapis.com/v1beta/models/{model}:generateContent",
)
GEMINI_KEY_FILE = "config/gemini.key"

# Image editing (virtual try-on) and grounded consultation models.
IMAGE_MODEL = os.getenv("IMAGE_MODEL", "gemini-2.5-flash-image")
CONSULT_MODEL = os.getenv("CONSULT_MODEL", "gemini-3-pro-preview")

# Single-attempt transport timeout in seconds.
REQUEST_TIMEOUT = int(os.getenv("REQUEST_TIMEOUT", "120"))

# Upper bound for decoded image uploads accepted by the adapters.
MAX_IMAGE_MB = int(os.getenv("MAX_IMAGE_MB", "10"))
MAX_IMAGE_BYTES = MAX_IMAGE_MB * 1024 * 1024
ALLOWED_IMAGE_TYPES = ("image/jpeg", "image/png", "image/webp")

# Persona for consultation requests.
STYLIST_SYSTEM_INSTRUCTION = (
    "You are an expert optical stylist and optometrist assistant. "
    "You help users find the perfect glasses. "
    "When asked to find similar products or shop, analyze the visual details of the "
    "eyewear in the image provided (frame shape, rim thickness, color, material) and "
    "use Google Search to find real, purchasable products that are very similar. "
    "Provide direct shopping links. Be concise, helpful, and fashion-forward."
)


def load_key(path):
    """Load API key from environment override or key file.

    Resolution order:
        1. Environment variable inferred from file stem (for example
           `config/gemini.key` -> `GEMINI_API_KEY`).
        2. Raw file contents at `path`.

    Args:
        path: Configured key file path or `None`.

    Returns:
        Key string or `None` when not available.

    Edge cases:
        - `None` path returns `None`.
        - Missing file returns `None`.
    """
    if not path:
        return None
    key_name = os.path.splitext(os.path.basename(path))[0].upper() + "_API_KEY"
    env_value = os.getenv(key_name)
    if env_value:
        return env_value
    if not os.path.exists(path):
        return None
    with open(path, "r") as f:
        return f.read().strip() or None
