"""
HTTP API adapter for the VisionaryAI consultation engine.

Architectural role:
- Expose session-scoped endpoints for the front-end collaborator.
- Decode uploaded images (data URLs) and validate request bodies.
- Delegate every command to a per-session `ConsultationOrchestrator`.
- Shape transcript, look pair, and generating status into JSON.

Endpoint responsibilities:
- `POST /v1/sessions`: create an isolated session.
- `GET /v1/sessions/{id}`: transcript, `{base_image, current_image}`, status.
- `DELETE /v1/sessions/{id}`: drop a session.
- `POST|DELETE /v1/sessions/{id}/photo`: submit or remove the base photo.
- `POST|DELETE /v1/sessions/{id}/reference`: try on or clear a reference image.
- `POST /v1/sessions/{id}/messages`: submit a text turn.
- `POST /v1/sessions/{id}/styles/{style_id}`: preset style try-on.
- `POST /v1/sessions/{id}/shop`: search products matching the current look.
- `GET /v1/styles`: list preset styles.

Error handling strategy:
- Unknown session or style -> HTTP 404.
- Turn submitted while another is in flight -> HTTP 409.
- Undecodable/unsupported image or photo already set -> HTTP 400.
- Backend failures never surface here; they arrive as error turns.

Side effects:
- Sessions live in process memory and are lost on restart.
- Sessions are only released by `DELETE /v1/sessions/{id}`. There is no idle
  expiry, so an abandoned session keeps its image bytes in memory for the life
  of the process; clients must delete sessions they no longer use.
- Loads environment variables at import time via `load_dotenv()`.
- Emits debug logs only when `DEBUG == "true"`.
"""

from dotenv import load_dotenv

load_dotenv()

import logging
import os
import threading

from fastapi import FastAPI
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from visionary.api.multimodal.image_inputs import decode_data_url
from visionary.core.engine import ConsultationOrchestrator
from visionary.core.errors import (
    BaseImageAlreadySetError,
    InvalidImageError,
    PipelineBusyError,
    UnknownStyleError,
)
from visionary.core.gateway import GenerativeGateway
from visionary.llm.service import GeminiGateway
from visionary.memory.session_models import ImageRef, Turn
from visionary.prompting.prompt_builder import PRESET_STYLES


logger = logging.getLogger(__name__)

app = FastAPI(title="VisionaryAI")
# Sensitive request/response debug logging is opt-in.
DEBUG = os.getenv("DEBUG") == "true"


# ============================================================
# Gateway & Session Registry
# ============================================================

_GATEWAY: GenerativeGateway | None = None


def set_gateway(gateway: GenerativeGateway | None) -> None:
    """Override or clear the gateway used for sessions created afterwards."""
    global _GATEWAY
    _GATEWAY = gateway


def get_gateway() -> GenerativeGateway:
    """Return the configured gateway, creating the Gemini one lazily."""
    global _GATEWAY
    if _GATEWAY is None:
        _GATEWAY = GeminiGateway()
    return _GATEWAY


class SessionStore:
    """Process-local registry of isolated orchestrators."""

    def __init__(self):
        self._sessions: dict[str, ConsultationOrchestrator] = {}
        self._lock = threading.Lock()

    def create(self, gateway: GenerativeGateway) -> ConsultationOrchestrator:
        orchestrator = ConsultationOrchestrator(gateway)
        with self._lock:
            self._sessions[orchestrator.session_id] = orchestrator
        return orchestrator

    def get(self, session_id: str) -> ConsultationOrchestrator | None:
        with self._lock:
            return self._sessions.get(session_id)

    def remove(self, session_id: str) -> bool:
        with self._lock:
            return self._sessions.pop(session_id, None) is not None

    def clear(self) -> None:
        with self._lock:
            self._sessions.clear()


sessions = SessionStore()


# ============================================================
# Request Schemas
# ============================================================

class ImageUpload(BaseModel):
    """Normalized image as a `data:<mime>;base64,...` URL."""
    image: str


class MessageRequest(BaseModel):
    text: str


# ============================================================
# Response Formatting
# ============================================================

def _image_url(image: ImageRef | None) -> str | None:
    return image.to_data_url() if image is not None else None


def serialize_turn(turn: Turn) -> dict:
    return {
        "role": turn.role.value,
        "text": turn.text,
        "timestamp": turn.timestamp.isoformat(),
        "is_error": turn.is_error,
        "citations": [
            {"title": citation.title, "uri": citation.uri}
            for citation in turn.citations
        ],
    }


def serialize_session(orchestrator: ConsultationOrchestrator) -> dict:
    base_image, current_image = orchestrator.get_look_pair()
    status = orchestrator.status
    return {
        "session_id": orchestrator.session_id,
        "status": {
            "is_generating": status.is_generating,
            "progress": status.progress,
        },
        "look": {
            "base_image": _image_url(base_image),
            "current_image": _image_url(current_image),
            "has_reference": orchestrator.look.reference_image is not None,
        },
        "transcript": [serialize_turn(turn) for turn in orchestrator.get_history()],
    }


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


def _session_not_found() -> JSONResponse:
    return _error(404, "Unknown session")


def _turn_response(orchestrator: ConsultationOrchestrator, turns: list[Turn]) -> dict:
    payload = serialize_session(orchestrator)
    payload["turns"] = [serialize_turn(turn) for turn in turns]
    return payload


async def _run(orchestrator: ConsultationOrchestrator, operation, *args):
    """Await one orchestrator turn and map command errors to HTTP responses."""
    try:
        turns = await operation(*args)
    except PipelineBusyError as err:
        return _error(409, str(err))
    except UnknownStyleError as err:
        return _error(404, str(err))

    if DEBUG:
        logger.debug("Turn completed: session=%s turns=%d", orchestrator.session_id, len(turns))

    return _turn_response(orchestrator, turns)


# ============================================================
# Endpoints
# ============================================================

@app.get("/v1/styles")
def list_styles():
    return {
        "object": "list",
        "data": [
            {"id": style.id, "label": style.label, "icon": style.icon}
            for style in PRESET_STYLES
        ],
    }


@app.post("/v1/sessions", status_code=201)
def create_session():
    orchestrator = sessions.create(get_gateway())
    logger.info("Session created: %s", orchestrator.session_id)
    return serialize_session(orchestrator)


@app.get("/v1/sessions/{session_id}")
def get_session(session_id: str):
    orchestrator = sessions.get(session_id)
    if orchestrator is None:
        return _session_not_found()
    return serialize_session(orchestrator)


@app.delete("/v1/sessions/{session_id}")
def delete_session(session_id: str):
    if not sessions.remove(session_id):
        return _session_not_found()
    return {"deleted": session_id}


@app.post("/v1/sessions/{session_id}/photo")
def submit_photo(session_id: str, body: ImageUpload):
    orchestrator = sessions.get(session_id)
    if orchestrator is None:
        return _session_not_found()

    try:
        image = decode_data_url(body.image)
        turn = orchestrator.submit_user_photo(image)
    except (InvalidImageError, BaseImageAlreadySetError) as err:
        return _error(400, str(err))
    except PipelineBusyError as err:
        return _error(409, str(err))

    return _turn_response(orchestrator, [turn])


@app.delete("/v1/sessions/{session_id}/photo")
def remove_photo(session_id: str):
    orchestrator = sessions.get(session_id)
    if orchestrator is None:
        return _session_not_found()

    try:
        orchestrator.remove_user_photo()
    except PipelineBusyError as err:
        return _error(409, str(err))

    return serialize_session(orchestrator)


@app.post("/v1/sessions/{session_id}/reference")
async def submit_reference(session_id: str, body: ImageUpload):
    orchestrator = sessions.get(session_id)
    if orchestrator is None:
        return _session_not_found()

    try:
        image = decode_data_url(body.image)
    except InvalidImageError as err:
        return _error(400, str(err))

    return await _run(orchestrator, orchestrator.submit_reference_image, image)


@app.delete("/v1/sessions/{session_id}/reference")
def clear_reference(session_id: str):
    orchestrator = sessions.get(session_id)
    if orchestrator is None:
        return _session_not_found()

    try:
        orchestrator.clear_reference_image()
    except PipelineBusyError as err:
        return _error(409, str(err))

    return serialize_session(orchestrator)


@app.post("/v1/sessions/{session_id}/messages")
async def submit_message(session_id: str, body: MessageRequest):
    orchestrator = sessions.get(session_id)
    if orchestrator is None:
        return _session_not_found()
    return await _run(orchestrator, orchestrator.submit_message, body.text)


@app.post("/v1/sessions/{session_id}/styles/{style_id}")
async def select_style(session_id: str, style_id: str):
    orchestrator = sessions.get(session_id)
    if orchestrator is None:
        return _session_not_found()
    return await _run(orchestrator, orchestrator.select_style, style_id)


@app.post("/v1/sessions/{session_id}/shop")
async def shop_look(session_id: str):
    orchestrator = sessions.get(session_id)
    if orchestrator is None:
        return _session_not_found()
    return await _run(orchestrator, orchestrator.shop_current_look)
