from __future__ import annotations
from typing import Any, Optional


class HttpStreamError(Exception):
    """Base class for errors surfaced to callers."""


class TransportError(HttpStreamError):
    """The request could not be sent or the response could not be received."""


class StreamReadError(TransportError):
    """Reading a streamed response body failed before a clean end of stream."""


class StatusError(HttpStreamError):
    """The server answered a stream request with a status code >= 400."""

    def __init__(self, message: str, status_code: int, status_line: str, body: Optional[Any] = None) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.status_line = status_line
        self.body = body


class DecodeError(HttpStreamError):
    """The response body is not valid JSON for the requested shape."""


class EncodeError(HttpStreamError):
    """A request body could not be JSON encoded."""


class CallbackError(HttpStreamError):
    """Raised by a stream callback to stop the stream; propagates to the caller unchanged."""
