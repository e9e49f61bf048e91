from __future__ import annotations
import logging
from typing import Any, Callable, Mapping, Optional

import httpx

from .config import DEFAULT_SETTINGS, Settings
from .errors import CallbackError, HttpStreamError, StatusError, StreamReadError
from .http_client import Deadline, iter_within
from .models import ProxyConfig, StreamOutcome, StreamStatus
from .segments import SegmentSplitter, iter_chunks
from .transport import build_client
from .util import convert_body, pretty_json, status_line, try_parse_object

logger = logging.getLogger(__name__)

SegmentCallback = Callable[[str], Any]


class EventSource:
    """Consumes a newline-delimited text stream and hands each line to a callback.

    Errors a caller can act on are raised (TransportError, StatusError,
    StreamReadError, and a CallbackError raised by the callback itself). Any
    other failure while streaming is logged and reported as an aborted
    StreamOutcome instead of escaping into a long-lived caller.
    """

    def __init__(
        self,
        method: str,
        uri: str,
        headers: Optional[Mapping[str, str]] = None,
        body: Any = None,
        proxy: Optional[ProxyConfig] = None,
        settings: Optional[Settings] = None,
    ) -> None:
        self.method = method
        self.uri = uri
        self.headers = headers
        self.body = body
        self.proxy = proxy
        self.settings = settings or DEFAULT_SETTINGS

    def run(self, callback: SegmentCallback) -> StreamOutcome:
        """Stream the response into callback and report how it ended.

        The callback stops the stream by raising CallbackError or by returning
        an exception instance; a returned CallbackError propagates as is and any
        other returned exception is wrapped in one.
        """
        delivered = 0

        def deliver(segment: str) -> None:
            nonlocal delivered
            delivered += 1
            result = callback(segment)
            if isinstance(result, CallbackError):
                raise result
            if isinstance(result, BaseException):
                raise CallbackError(str(result)) from result

        try:
            self._consume(deliver)
        except HttpStreamError:
            raise
        except Exception as e:
            logger.warning(
                f"event source panic: {e} (uri: {self.uri}, method: {self.method})",
                exc_info=True,
            )
            return StreamOutcome(status=StreamStatus.ABORTED, segments=delivered, error=e)
        return StreamOutcome(status=StreamStatus.COMPLETED, segments=delivered)

    def _consume(self, deliver: Callable[[str], None]) -> None:
        deadline = Deadline(self.settings.timeout_s)
        content = None
        if self.body is not None:
            content = convert_body(self.body, strict=self.settings.strict_encoding)

        result = build_client(self.proxy, self.settings)
        with result.client as http:
            with http.stream(
                self.method, self.uri, headers=self.headers, content=content, deadline=deadline
            ) as resp:
                if resp.status_code >= 400:
                    raise self._status_error(resp, deadline)
                self._pump(resp, deliver, deadline)

    def _pump(self, resp: httpx.Response, deliver: Callable[[str], None], deadline: Deadline) -> None:
        splitter = SegmentSplitter(
            reassemble=self.settings.reassemble_lines,
            max_carry=self.settings.chunk_size,
        )
        chunks = iter_chunks(resp, self.settings.chunk_size, deadline)
        while True:
            try:
                chunk = next(chunks)
            except StopIteration:
                break
            except httpx.HTTPError as e:
                raise StreamReadError(f"reading {self.method} {self.uri} failed: {e}") from e
            for segment in splitter.feed(chunk):
                deliver(segment)

        for segment in splitter.flush():
            deliver(segment)

    def _status_error(self, resp: httpx.Response, deadline: Deadline) -> StatusError:
        line = status_line(resp)
        try:
            form = try_parse_object(b"".join(iter_within(resp.iter_bytes(), deadline)))
        except httpx.HTTPError:
            form = None
        if form is not None:
            message = f"request failed with status: {line}\n```json\n{pretty_json(form, 2)}\n```"
        else:
            message = f"request failed with status: {line}"
        return StatusError(message, status_code=resp.status_code, status_line=line, body=form)


def event_source(
    method: str,
    uri: str,
    callback: SegmentCallback,
    headers: Optional[Mapping[str, str]] = None,
    body: Any = None,
    proxy: Optional[ProxyConfig] = None,
    settings: Optional[Settings] = None,
) -> StreamOutcome:
    """Stream uri and call callback once per trimmed, non-empty line."""
    source = EventSource(method, uri, headers=headers, body=body, proxy=proxy, settings=settings)
    return source.run(callback)
