"""
Shared fixtures.
"""
import socket
import threading
import time
from typing import Callable

import httpx
import pytest
import uvicorn

from httpstream import executor, stream_consumer
from httpstream.config import DEFAULT_SETTINGS
from httpstream.dummy.__main__ import app
from httpstream.http_client import HttpClient
from httpstream.models import ClientResult

Handler = Callable[[httpx.Request], httpx.Response]


@pytest.fixture
def mock_transport(monkeypatch):
    """Route every client the factory builds through an httpx.MockTransport.

    Unlike respx, the handler's response stream is handed over untouched, so a
    response built from an iterator of byte strings arrives as exactly those reads.
    """
    def install(handler: Handler) -> list:
        requests: list = []

        def recording(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            return handler(request)

        def fake_build_client(proxy=None, settings=None):
            client = HttpClient(settings or DEFAULT_SETTINGS, transport=httpx.MockTransport(recording))
            return ClientResult(client=client, proxy=proxy)

        monkeypatch.setattr(stream_consumer, "build_client", fake_build_client)
        monkeypatch.setattr(executor, "build_client", fake_build_client)
        return requests

    return install


@pytest.fixture
def chunked():
    """Build a handler answering 200 with the given body reads."""
    def make(*chunks: bytes, status: int = 200) -> Handler:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(status, content=iter(chunks))
        return handler

    return make


@pytest.fixture
def free_port() -> int:
    """A local TCP port nothing is listening on."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        sock.bind(("127.0.0.1", 0))
        return sock.getsockname()[1]


@pytest.fixture
def dummy_server(free_port):
    """Run the dummy FastAPI app under uvicorn on a background thread; yields its base URL."""
    config = uvicorn.Config(app, host="127.0.0.1", port=free_port, log_level="warning")
    server = uvicorn.Server(config)
    thread = threading.Thread(target=server.run, daemon=True)
    thread.start()
    give_up = time.monotonic() + 10
    while not server.started:
        if time.monotonic() > give_up or not thread.is_alive():
            pytest.fail("dummy server did not start")
        time.sleep(0.05)
    yield f"http://127.0.0.1:{free_port}"
    server.should_exit = True
    thread.join(timeout=10)


def _recv_exact(conn: socket.socket, size: int) -> bytes:
    data = b""
    while len(data) < size:
        part = conn.recv(size - len(data))
        if not part:
            raise ConnectionError("peer closed during handshake")
        data += part
    return data


def _pipe(src: socket.socket, dst: socket.socket) -> None:
    try:
        while True:
            data = src.recv(65536)
            if not data:
                break
            dst.sendall(data)
    except OSError:
        pass
    try:
        dst.shutdown(socket.SHUT_WR)
    except OSError:
        pass


class Socks5Relay:
    """No-auth SOCKS5 server that pipes each CONNECT to its target and records it."""

    def __init__(self) -> None:
        self._listener = socket.create_server(("127.0.0.1", 0))
        self._listener.settimeout(0.2)
        self.port = self._listener.getsockname()[1]
        self.targets: list = []
        self._closed = False
        self._thread = threading.Thread(target=self._accept_loop, daemon=True)
        self._thread.start()

    @property
    def address(self) -> str:
        return f"127.0.0.1:{self.port}"

    def _accept_loop(self) -> None:
        while not self._closed:
            try:
                conn, _ = self._listener.accept()
            except socket.timeout:
                continue
            except OSError:
                return
            threading.Thread(target=self._handle, args=(conn,), daemon=True).start()

    def _handle(self, conn: socket.socket) -> None:
        with conn:
            try:
                _, methods = _recv_exact(conn, 2)
                _recv_exact(conn, methods)
                conn.sendall(b"\x05\x00")
                _, _, _, atyp = _recv_exact(conn, 4)
                if atyp == 1:
                    host = socket.inet_ntoa(_recv_exact(conn, 4))
                elif atyp == 3:
                    host = _recv_exact(conn, _recv_exact(conn, 1)[0]).decode("ascii")
                else:
                    host = socket.inet_ntop(socket.AF_INET6, _recv_exact(conn, 16))
                port = int.from_bytes(_recv_exact(conn, 2), "big")
                upstream = socket.create_connection((host, port), timeout=5)
            except OSError:
                return
            self.targets.append((host, port))
            with upstream:
                upstream.settimeout(None)
                conn.sendall(b"\x05\x00\x00\x01" + bytes(6))
                back = threading.Thread(target=_pipe, args=(upstream, conn), daemon=True)
                back.start()
                _pipe(conn, upstream)
                back.join(timeout=5)

    def close(self) -> None:
        self._closed = True
        self._thread.join(timeout=5)
        self._listener.close()


@pytest.fixture
def socks5_relay():
    relay = Socks5Relay()
    yield relay
    relay.close()
