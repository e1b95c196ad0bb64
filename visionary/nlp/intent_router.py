"""Intent router producing a `Route` for core orchestration.

Intent classification logic:
- An explicit reference image forces `EDIT_IMAGE` before any text analysis.
- Commerce markers are checked next and route to `CONSULT`, so a message that
  mixes shopping and visual wording ("find similar gold frames") is a
  consultation.
- Visual markers route to `EDIT_IMAGE`.
- Anything else falls back to `CONSULT`.

Matching:
- Case-insensitive substring containment against the marker lists below.

Determinism:
- Pure function of its arguments; no I/O, no model calls.
"""

from visionary.core.routing_types import Route


# =========================================================
# MARKERS
# =========================================================

COMMERCE_MARKERS = (
    "buy",
    "link",
    "where",
    "cost",
    "price",
    "brand",
    "shop",
    "find",
    "similar",
)

VISUAL_MARKERS = (
    "change",
    "make",
    "add",
    "remove",
    "wear",
    "try",
    "color",
    "style",
    "shape",
    "rim",
    "lens",
    "thinner",
    "thicker",
    "bigger",
    "smaller",
    "metal",
    "plastic",
    "gold",
    "silver",
    "black",
    "blue",
    "red",
    "green",
    "tortoise",
    "transparent",
    "generate",
    "create",
    "visualize",
)


def _contains_any(text: str, markers: tuple[str, ...]) -> bool:
    return any(marker in text for marker in markers)


def classify(text: str, has_explicit_reference_image: bool = False) -> Route:
    """
    Classify one user turn into a pipeline route.

    Parsing rules:
    1. A reference image supplied for this turn always means try-on.
    2. Commerce markers win over visual markers.
    3. Visual markers mean an image edit.
    4. Default is a consultation.

    Edge cases:
    - Empty or `None` text with a reference image -> `EDIT_IMAGE`.
    - Empty or `None` text without one -> `CONSULT`.
    """

    if has_explicit_reference_image:
        return Route.EDIT_IMAGE

    lowered = (text or "").lower()

    if _contains_any(lowered, COMMERCE_MARKERS):
        return Route.CONSULT

    if _contains_any(lowered, VISUAL_MARKERS):
        return Route.EDIT_IMAGE

    return Route.CONSULT
