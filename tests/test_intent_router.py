import pytest

from visionary.core.routing_types import Route
from visionary.nlp.intent_router import COMMERCE_MARKERS, VISUAL_MARKERS, classify


@pytest.mark.parametrize("commerce", COMMERCE_MARKERS)
def test_commerce_wins_over_visual_wording(commerce):
    assert classify(f"{commerce} gold metal frames, make them thinner") == Route.CONSULT


def test_mixed_shopping_and_color_request_is_consult():
    assert classify("find similar gold frames") == Route.CONSULT


@pytest.mark.parametrize("text", ["", "where can I buy these", "hello", "make the frames red"])
def test_explicit_reference_always_edits(text):
    assert classify(text, has_explicit_reference_image=True) == Route.EDIT_IMAGE


def test_none_text_with_reference_edits():
    assert classify(None, True) == Route.EDIT_IMAGE


@pytest.mark.parametrize("visual", ["make the frames red", "Try ROUND glasses", "add a tortoise rim"])
def test_visual_requests_edit(visual):
    assert classify(visual) == Route.EDIT_IMAGE


@pytest.mark.parametrize("text", ["", "hello there", "do these suit an oval face?"])
def test_default_is_consult(text):
    assert classify(text) == Route.CONSULT


def test_marker_sets_are_disjoint():
    assert not set(COMMERCE_MARKERS) & set(VISUAL_MARKERS)
