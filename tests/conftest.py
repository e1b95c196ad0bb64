"""
Shared fixtures for VisionaryAI tests.

No test touches the network: the orchestrator runs against `FakeGateway`,
and transport tests patch `requests.post`.
"""

import threading

import pytest

from visionary.core.errors import ConsultationError, SynthesisError
from visionary.core.engine import ConsultationOrchestrator
from visionary.core.gateway import ConsultResult
from visionary.memory.session_models import ImageRef


# 1x1 red pixel PNG
RED_PIXEL_PNG = (
    b'\x89PNG\r\n\x1a\n\x00\x00\x00\rIHDR\x00\x00\x00\x01\x00\x00\x00\x01\x08\x02\x00\x00\x00'
    b'\x90wS\xde\x00\x00\x00\x0cIDATx\x9cc\xf8\xcf\xc0\x00\x00\x00\x00\xff\xffB\x80\x05\x1d'
    b'\x02\t~\xe7\x00\x00\x00\x00IEND\xaeB`\x82'
)


class FakeGateway:
    """Records requests and replays configured results or errors."""

    def __init__(self):
        self.requests = []
        self.image_result = ImageRef(data=b"synthesized-look", mime_type="image/png")
        self.consult_result = ConsultResult(text="Those are classic wayfarers.")
        self.image_error = None
        self.consult_error = None
        self.gate = None

    def _wait(self):
        if self.gate is not None:
            self.gate.wait(timeout=5)

    def synthesize_image(self, request):
        self.requests.append(request)
        self._wait()
        if self.image_error is not None:
            raise self.image_error
        return self.image_result

    def consult(self, request):
        self.requests.append(request)
        self._wait()
        if self.consult_error is not None:
            raise self.consult_error
        return self.consult_result


@pytest.fixture
def gateway():
    return FakeGateway()


@pytest.fixture
def orchestrator(gateway):
    return ConsultationOrchestrator(gateway)


@pytest.fixture
def photo():
    return ImageRef(data=b"user-photo-bytes", mime_type="image/jpeg")


@pytest.fixture
def reference():
    return ImageRef(data=b"reference-glasses", mime_type="image/jpeg")


@pytest.fixture
def png_bytes():
    return RED_PIXEL_PNG


@pytest.fixture
def gate():
    return threading.Event()


@pytest.fixture
def synthesis_failure():
    return SynthesisError("No image generated from the model.")


@pytest.fixture
def consultation_failure():
    return ConsultationError("GEMINI HTTP ERROR (503)")
