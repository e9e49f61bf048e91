from __future__ import annotations
import time
from contextlib import contextmanager
from typing import Iterator, Mapping, Optional

import httpx

from .config import Settings
from .errors import TransportError


class Deadline:
    """Upper bound on a whole exchange: connect, send and every body read."""

    def __init__(self, seconds: float) -> None:
        self.seconds = seconds
        self._expires_at = time.monotonic() + seconds

    def remaining(self) -> float:
        return max(0.0, self._expires_at - time.monotonic())

    @property
    def expired(self) -> bool:
        return self.remaining() <= 0.0

    def check(self) -> None:
        if self.expired:
            raise httpx.ReadTimeout(f"exceeded the {self.seconds}s request deadline")


class HttpClient:
    """Synchronous HTTP client bound to one transport configuration.

    Certificate verification is always off and environment proxy variables are
    ignored; the proxy wiring chosen at construction never changes. Every
    request runs under a Deadline of settings.timeout_s covering the body too.
    """

    def __init__(
        self,
        settings: Settings,
        proxy: Optional[httpx.Proxy] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self._settings = settings
        self._client = httpx.Client(
            timeout=settings.timeout_s,
            follow_redirects=True,
            headers=settings.default_headers(),
            verify=False,
            trust_env=False,
            proxy=proxy,
            transport=transport,
        )

    @property
    def client(self) -> httpx.Client:
        return self._client

    def deadline(self) -> Deadline:
        return Deadline(self._settings.timeout_s)

    def _build(
        self,
        method: str,
        url: str,
        headers: Optional[Mapping[str, str]],
        content: Optional[bytes],
        deadline: Deadline,
    ) -> httpx.Request:
        try:
            # each phase may wait at most what is left of the whole exchange
            request = self._client.build_request(method, url, content=content, timeout=deadline.remaining())
        except httpx.InvalidURL as e:
            raise TransportError(f"invalid url {url!r}: {e}") from e
        # set, not append: a per-call header replaces any default of the same name
        for key, value in (headers or {}).items():
            request.headers[key] = value
        return request

    def request(
        self,
        method: str,
        url: str,
        headers: Optional[Mapping[str, str]] = None,
        content: Optional[bytes] = None,
        deadline: Optional[Deadline] = None,
    ) -> httpx.Response:
        """Send a request and read the whole body; the connection is released on return."""
        deadline = deadline or self.deadline()
        with self.stream(method, url, headers, content, deadline) as response:
            try:
                body = b"".join(iter_within(response.iter_bytes(), deadline))
                # the body is already decoded, so its transfer headers no longer apply
                decoded_headers = response.headers.copy()
                decoded_headers.pop("Content-Encoding", None)
                decoded_headers.pop("Content-Length", None)
                return httpx.Response(
                    response.status_code,
                    headers=decoded_headers,
                    content=body,
                    request=response.request,
                    extensions=response.extensions,
                )
            except httpx.HTTPError as e:
                raise TransportError(f"reading {method} {url} failed: {e}") from e

    @contextmanager
    def stream(
        self,
        method: str,
        url: str,
        headers: Optional[Mapping[str, str]] = None,
        content: Optional[bytes] = None,
        deadline: Optional[Deadline] = None,
    ) -> Iterator[httpx.Response]:
        """Send a request and yield the response with its body still unread.

        Reading the body is the caller's job; pass the same deadline to
        iter_within to keep those reads under the ceiling.
        """
        deadline = deadline or self.deadline()
        request = self._build(method, url, headers, content, deadline)
        try:
            deadline.check()
            response = self._client.send(request, stream=True)
        except httpx.HTTPError as e:
            raise TransportError(f"{method} {url} failed: {e}") from e
        try:
            yield response
        finally:
            response.close()

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> "HttpClient":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()


def iter_within(chunks: Iterator[bytes], deadline: Optional[Deadline]) -> Iterator[bytes]:
    """Pass chunks through, raising httpx.ReadTimeout once the deadline has passed."""
    for chunk in chunks:
        if deadline is not None:
            deadline.check()
        yield chunk
