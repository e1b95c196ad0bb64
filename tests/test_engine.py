import asyncio

import pytest

from visionary.core.errors import (
    BaseImageAlreadySetError,
    PipelineBusyError,
    UnknownStyleError,
)
from visionary.core.gateway import ConsultResult
from visionary.core.routing_types import Route
from visionary.memory.session_models import Citation, ImageRef, Role
from visionary.prompting.prompt_builder import (
    EDIT_REPLY,
    GENERIC_ERROR_REPLY,
    MISSING_PHOTO_REPLY,
    PHOTO_RECEIVED_TEXT,
    PROGRESS_EDITING,
    REFERENCE_EDIT_REPLY,
    REFERENCE_UPLOAD_TEXT,
    SHOP_LOOK_TEXT,
)


def test_photo_submission_greets_user(orchestrator, photo):
    turn = orchestrator.submit_user_photo(photo)

    assert turn.role == Role.MODEL
    assert turn.text == PHOTO_RECEIVED_TEXT
    assert orchestrator.get_look_pair() == (photo, None)


def test_second_photo_requires_removal(orchestrator, photo):
    orchestrator.submit_user_photo(photo)
    with pytest.raises(BaseImageAlreadySetError):
        orchestrator.submit_user_photo(ImageRef(data=b"another"))

    orchestrator.remove_user_photo()
    orchestrator.submit_user_photo(ImageRef(data=b"another"))
    assert orchestrator.look.base_image.data == b"another"


@pytest.mark.asyncio
async def test_text_edit_scenario(orchestrator, gateway, photo):
    orchestrator.submit_user_photo(photo)
    before = len(orchestrator.get_history())

    turns = await orchestrator.submit_message("make the frames red")

    request = gateway.requests[-1]
    assert request.route == Route.EDIT_IMAGE
    assert request.images == (photo,)
    assert request.text.startswith("Edit the image to:")
    assert request.uses_reference is False

    assert [turn.role for turn in turns] == [Role.USER, Role.MODEL]
    assert turns[1].text == EDIT_REPLY
    assert len(orchestrator.get_history()) == before + 2
    assert orchestrator.look.current_image == gateway.image_result
    assert orchestrator.look.base_image == photo
    assert orchestrator.status.is_generating is False


@pytest.mark.asyncio
async def test_reference_upload_scenario(orchestrator, gateway, photo, reference):
    orchestrator.submit_user_photo(photo)

    turns = await orchestrator.submit_reference_image(reference)

    request = gateway.requests[-1]
    assert request.route == Route.EDIT_IMAGE
    assert request.images == (photo, reference)
    assert "second image as a reference" in request.text
    assert turns[0].text == REFERENCE_UPLOAD_TEXT
    assert turns[1].text == REFERENCE_EDIT_REPLY
    assert orchestrator.look.reference_image is None


@pytest.mark.asyncio
async def test_reference_is_not_reused_after_successful_edit(orchestrator, gateway, photo, reference):
    orchestrator.submit_user_photo(photo)
    await orchestrator.submit_reference_image(reference)

    await orchestrator.submit_message("make them thinner")

    request = gateway.requests[-1]
    assert request.images == (gateway.image_result,)
    assert request.uses_reference is False


@pytest.mark.asyncio
async def test_failed_reference_is_not_carried_into_later_turns(
    orchestrator, gateway, photo, reference, synthesis_failure
):
    orchestrator.submit_user_photo(photo)
    gateway.image_error = synthesis_failure

    turns = await orchestrator.submit_reference_image(reference)

    assert turns[-1].is_error is True
    assert orchestrator.look.current_image is None

    gateway.image_error = None
    await orchestrator.submit_message("do these suit an oval face?")
    assert gateway.requests[-1].images == (photo,)

    turns = await orchestrator.submit_message("make the frames red")

    request = gateway.requests[-1]
    assert request.images == (photo,)
    assert request.uses_reference is False
    assert turns[1].text == EDIT_REPLY


@pytest.mark.asyncio
async def test_reuploading_reference_retries_try_on(
    orchestrator, gateway, photo, reference, synthesis_failure
):
    orchestrator.submit_user_photo(photo)
    gateway.image_error = synthesis_failure
    await orchestrator.submit_reference_image(reference)

    gateway.image_error = None
    turns = await orchestrator.submit_reference_image(reference)

    assert gateway.requests[-1].images == (photo, reference)
    assert turns[1].text == REFERENCE_EDIT_REPLY
    assert orchestrator.look.reference_image is None


@pytest.mark.asyncio
async def test_shopping_scenario_uses_current_image(orchestrator, gateway, photo):
    orchestrator.submit_user_photo(photo)
    await orchestrator.submit_message("make the frames red")
    gateway.consult_result = ConsultResult(
        text="Try these.",
        citations=(
            {"title": "Red frames", "uri": "https://example.com/red"},
            {"title": None, "uri": "https://example.com/broken"},
        ),
    )

    turns = await orchestrator.submit_message("where can I buy these")

    request = gateway.requests[-1]
    assert request.route == Route.CONSULT
    assert request.images == (gateway.image_result,)
    assert request.enable_search is True
    assert turns[1].citations == (Citation("Red frames", "https://example.com/red"),)


@pytest.mark.asyncio
async def test_consult_history_excludes_current_turn(orchestrator, gateway, photo):
    orchestrator.submit_user_photo(photo)

    await orchestrator.submit_message("do these suit me?")

    request = gateway.requests[-1]
    assert [turn.text for turn in request.history] == [PHOTO_RECEIVED_TEXT]


@pytest.mark.asyncio
async def test_consultation_error_leaves_look_untouched(
    orchestrator, gateway, photo, reference, consultation_failure
):
    orchestrator.submit_user_photo(photo)
    await orchestrator.submit_message("make the frames red")
    orchestrator.look.reference_image = reference
    before = orchestrator.look.snapshot()
    history_before = len(orchestrator.get_history())
    gateway.consult_error = consultation_failure

    turns = await orchestrator.submit_message("what brand is this?")

    assert orchestrator.look.snapshot() == before
    history = orchestrator.get_history()
    assert len(history) == history_before + 2
    assert [turn.is_error for turn in history].count(True) == 1
    assert turns[1].text == GENERIC_ERROR_REPLY
    assert "503" not in turns[1].text
    assert orchestrator.status.is_generating is False


@pytest.mark.asyncio
async def test_unexpected_gateway_exception_is_normalized(orchestrator, gateway, photo):
    orchestrator.submit_user_photo(photo)
    gateway.image_error = RuntimeError("socket closed")

    turns = await orchestrator.submit_message("make them bigger")

    assert turns[1].is_error is True
    assert orchestrator.look.current_image is None
    assert orchestrator.status.is_generating is False


@pytest.mark.asyncio
async def test_missing_photo_turn_without_gateway_call(orchestrator, gateway):
    turns = await orchestrator.submit_message("make the frames red")

    assert gateway.requests == []
    assert turns[0].role == Role.USER
    assert turns[1].text == MISSING_PHOTO_REPLY
    assert turns[1].is_error is True
    assert orchestrator.status.is_generating is False


@pytest.mark.asyncio
async def test_reference_without_photo_is_not_stored(orchestrator, gateway, reference):
    turns = await orchestrator.submit_reference_image(reference)

    assert turns[1].text == MISSING_PHOTO_REPLY
    assert orchestrator.look.reference_image is None
    assert gateway.requests == []


@pytest.mark.asyncio
async def test_blank_message_is_ignored(orchestrator, gateway, photo):
    orchestrator.submit_user_photo(photo)
    history = orchestrator.get_history()

    assert await orchestrator.submit_message("   ") == []
    assert orchestrator.get_history() == history


@pytest.mark.asyncio
async def test_second_turn_rejected_while_first_in_flight(orchestrator, gateway, photo, gate):
    orchestrator.submit_user_photo(photo)
    gateway.gate = gate

    first = asyncio.create_task(orchestrator.submit_message("make the frames red"))
    while not gateway.requests:
        await asyncio.sleep(0.01)

    assert orchestrator.status.is_generating is True
    assert orchestrator.status.progress == PROGRESS_EDITING
    history_during = orchestrator.get_history()

    with pytest.raises(PipelineBusyError):
        await orchestrator.submit_message("where can I buy these")
    with pytest.raises(PipelineBusyError):
        orchestrator.remove_user_photo()

    assert orchestrator.get_history() == history_during

    gate.set()
    turns = await first

    assert turns[1].text == EDIT_REPLY
    assert orchestrator.status.is_generating is False
    assert len(gateway.requests) == 1


@pytest.mark.asyncio
async def test_preset_style_and_shop_commands(orchestrator, gateway, photo):
    orchestrator.submit_user_photo(photo)

    turns = await orchestrator.select_style("aviator")
    assert turns[0].text == "Can I try on Aviator glasses?"
    assert gateway.requests[-1].route == Route.EDIT_IMAGE

    turns = await orchestrator.shop_current_look()
    assert turns[0].text == SHOP_LOOK_TEXT
    assert gateway.requests[-1].route == Route.CONSULT


@pytest.mark.asyncio
async def test_unknown_style_rejected(orchestrator, photo):
    orchestrator.submit_user_photo(photo)
    with pytest.raises(UnknownStyleError):
        await orchestrator.select_style("monocle")


@pytest.mark.asyncio
async def test_remove_photo_keeps_transcript(orchestrator, gateway, photo):
    orchestrator.submit_user_photo(photo)
    await orchestrator.submit_message("make the frames red")
    history = orchestrator.get_history()

    orchestrator.remove_user_photo()

    assert orchestrator.look.snapshot() == (None, None, None)
    assert orchestrator.get_history() == history
