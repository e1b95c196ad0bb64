"""Exception taxonomy for the consultation pipeline.

Propagation model:
    - `MissingBaseImageError` is a precondition failure raised by the request
      composer; the engine turns it into an error turn asking for a photo.
    - `GatewayError` subclasses are raised by backend adapters; the engine
      catches them at the pipeline boundary and appends one generic error turn.
    - `PipelineBusyError` and `BaseImageAlreadySetError` are raised to the
      caller (UI/API adapter) and never reach the transcript.
    - `InvalidImageError` is raised by input decoding before the core is called.
"""


class VisionaryError(Exception):
    """Base class for all application errors."""


class MissingBaseImageError(VisionaryError):
    """A request was composed before the user supplied a photo."""

    def __init__(self, message: str = "No base image has been supplied for this session."):
        super().__init__(message)


class GatewayError(VisionaryError):
    """The generative backend did not produce a usable result."""


class SynthesisError(GatewayError):
    """Image editing failed or returned no image payload."""


class ConsultationError(GatewayError):
    """The grounded chat request failed."""


class PipelineBusyError(VisionaryError):
    """A turn was submitted while another turn is still in flight."""

    def __init__(self, message: str = "A turn is already being processed for this session."):
        super().__init__(message)


class BaseImageAlreadySetError(VisionaryError):
    """A photo was submitted while the session already has a base image."""

    def __init__(self, message: str = "Remove the current photo before uploading a new one."):
        super().__init__(message)


class InvalidImageError(VisionaryError, ValueError):
    """An image payload could not be decoded or is not an accepted type."""


class UnknownStyleError(VisionaryError, LookupError):
    """A preset style id does not exist."""
