"""Instruction templates and canned transcript text.

This module only builds strings from already routed inputs. Route selection,
image attachment, and model invocation happen elsewhere.

Design constraints:
    - Deterministic construction for identical inputs.
    - The image backend is prompt-sensitive: both edit templates name the
      fidelity qualifiers (natural fit, perspective, lighting, shadows,
      photorealism) explicitly.
"""

from dataclasses import dataclass


# =========================================================
# EDIT INSTRUCTIONS
# =========================================================
# Reference variant: image order is part of the instruction. The composer
# attaches the present look first and the reference second.

def build_reference_edit_instruction(request: str) -> str:
    """Instruction for a try-on driven by an uploaded reference image."""
    return (
        "Using the first image as the base and the second image as a reference "
        f"for the eyewear style, {request.strip()}. "
        "Ensure the glasses fit the face naturally with correct perspective, "
        "lighting, and shadows. High quality, photorealistic."
    )


def build_edit_instruction(request: str) -> str:
    """Instruction for a text-only edit of the present look."""
    return (
        f"Edit the image to: {request.strip()}. "
        "Ensure photorealistic results, correct lighting, and natural fit on the face. "
        "High resolution."
    )


# =========================================================
# CONSULT CONTEXT
# =========================================================

CONSULT_IMAGE_CAPTION = (
    "This is the current image of the user wearing glasses. "
    "Focus on the glasses style, shape, color, and material."
)


# =========================================================
# TRANSCRIPT TEXT
# =========================================================

PHOTO_RECEIVED_TEXT = (
    "Great! I've got your photo. Choose a style below, upload a reference image "
    "of glasses you like, or just tell me what to try on!"
)
REFERENCE_UPLOAD_TEXT = "I've uploaded a picture of some glasses. Can I try them on?"
SHOP_LOOK_TEXT = (
    "Find online shopping links for glasses that look exactly like the ones in this photo."
)

REFERENCE_EDIT_REPLY = (
    "I've placed the glasses from your reference image onto your face. How do they fit?"
)
EDIT_REPLY = "Here is the updated look based on your request. Use the slider to compare!"
CONSULT_FALLBACK_REPLY = "I couldn't generate a text response."
GENERIC_ERROR_REPLY = "Sorry, something went wrong. Please try again."
MISSING_PHOTO_REPLY = "Please upload a photo of yourself first!"

PROGRESS_THINKING = "Thinking..."
PROGRESS_EDITING = "Generating your new look..."
PROGRESS_CONSULTING = "Consulting the optical expert..."


# =========================================================
# PRESET STYLES
# =========================================================

@dataclass(frozen=True)
class StylistOption:
    """Quick try-on preset."""

    id: str
    label: str
    prompt: str
    icon: str


PRESET_STYLES: tuple[StylistOption, ...] = (
    StylistOption("aviator", "Aviator", "wear classic gold rimmed aviator sunglasses", "🕶️"),
    StylistOption("wayfarer", "Classic Wayfarer", "wear black wayfarer style sunglasses", "🎸"),
    StylistOption("cat-eye", "Cat Eye", "wear vintage red cat-eye glasses", "😺"),
    StylistOption("round", "Intellectual", "wear thin round wire-rimmed glasses", "🤓"),
    StylistOption("rimless", "Minimalist", "wear modern rimless rectangular glasses", "👓"),
)


def get_style(style_id: str) -> StylistOption | None:
    for style in PRESET_STYLES:
        if style.id == style_id:
            return style
    return None


def build_style_request(style: StylistOption) -> str:
    """User-visible message sent when a preset is chosen."""
    return f"Can I try on {style.label} glasses?"
