"""
Tests for the single-shot request helpers.
"""
import json
import time
from typing import Dict, List

import httpx
import pytest
import respx
from pydantic import BaseModel

from httpstream import (
    DecodeError,
    EncodeError,
    ProxyConfig,
    ProxyType,
    Settings,
    TransportError,
    get,
    get_raw,
    http,
    http_raw,
    post,
    post_raw,
)

BASE = "https://api.example.com"


class Item(BaseModel):
    id: int
    name: str


class TestDecoded:

    def test_get_json(self):
        with respx.mock(base_url=BASE) as mock:
            mock.get("/items").respond(200, json={"items": [1, 2]})
            assert get(f"{BASE}/items") == {"items": [1, 2]}

    def test_target_shape(self):
        """Should validate the body into the requested type."""
        with respx.mock(base_url=BASE) as mock:
            mock.get("/item").respond(200, json={"id": 3, "name": "lamp"})
            item = http(f"{BASE}/item", "GET", Item)
        assert item == Item(id=3, name="lamp")

    def test_target_shape_mismatch(self):
        with respx.mock(base_url=BASE) as mock:
            mock.get("/item").respond(200, json={"id": "x"})
            with pytest.raises(DecodeError):
                http(f"{BASE}/item", "GET", Item)

    def test_invalid_json(self):
        with respx.mock(base_url=BASE) as mock:
            mock.get("/items").respond(200, text="<html>oops</html>")
            with pytest.raises(DecodeError):
                get(f"{BASE}/items")

    def test_status_not_inspected(self):
        """Should decode an error document like any other."""
        with respx.mock(base_url=BASE) as mock:
            mock.get("/missing").respond(404, json={"error": "not found"})
            assert get(f"{BASE}/missing") == {"error": "not found"}

    def test_headers_set(self):
        with respx.mock(base_url=BASE) as mock:
            route = mock.get("/items").respond(200, json=[])
            get(f"{BASE}/items", {"X-Token": "abc"}, settings=Settings(extra_headers={"X-Token": "default"}))
        assert route.calls.last.request.headers["X-Token"] == "abc"

    def test_typed_list(self):
        with respx.mock(base_url=BASE) as mock:
            mock.get("/scores").respond(200, json={"a": [1, 2]})
            assert http(f"{BASE}/scores", "GET", Dict[str, List[int]]) == {"a": [1, 2]}


class TestRaw:

    def test_http_raw_bytes(self):
        with respx.mock(base_url=BASE) as mock:
            mock.put("/blob").respond(200, content=b"\x00\x01")
            assert http_raw(f"{BASE}/blob", "PUT", body=b"data") == b"\x00\x01"

    def test_get_raw_text(self):
        with respx.mock(base_url=BASE) as mock:
            mock.get("/page").respond(200, text="héllo")
            assert get_raw(f"{BASE}/page") == "héllo"

    def test_transport_error(self):
        with respx.mock(base_url=BASE) as mock:
            mock.get("/down").mock(side_effect=httpx.ConnectTimeout("timed out"))
            with pytest.raises(TransportError):
                get_raw(f"{BASE}/down")

    def test_invalid_url(self):
        with pytest.raises(TransportError):
            get_raw("ftp://files.example.com/x")


class TestPost:

    def test_body_encoded(self):
        """Should send the JSON encoding of the body value."""
        payload = {"name": "lamp", "tags": ["a", "b"], "price": 9.5, "ok": True, "none": None}
        with respx.mock(base_url=BASE) as mock:
            route = mock.post("/items").respond(201, json={"id": 1})
            assert post(f"{BASE}/items", body=payload) == {"id": 1}
        assert json.loads(route.calls.last.request.content) == payload

    def test_pydantic_body(self):
        with respx.mock(base_url=BASE) as mock:
            route = mock.post("/items").respond(200, text="ok")
            assert post_raw(f"{BASE}/items", body=Item(id=1, name="x")) == "ok"
        assert route.calls.last.request.content == b'{"id":1,"name":"x"}'

    def test_unencodable_body_sends_empty(self):
        with respx.mock(base_url=BASE) as mock:
            route = mock.post("/items").respond(200, text="ok")
            assert post_raw(f"{BASE}/items", body={"when": object()}) == "ok"
        assert route.calls.last.request.content == b""

    def test_unencodable_body_strict(self):
        with respx.mock(base_url=BASE, assert_all_called=False) as mock:
            route = mock.post("/items").respond(200, text="ok")
            with pytest.raises(EncodeError):
                post_raw(f"{BASE}/items", body={"when": object()}, settings=Settings(strict_encoding=True))
        assert not route.called

    @pytest.mark.parametrize("number", [float("nan"), float("inf"), float("-inf")])
    def test_non_finite_number_sends_empty(self, number):
        """Should refuse NaN and infinities instead of sending invalid JSON."""
        with respx.mock(base_url=BASE) as mock:
            route = mock.post("/items").respond(200, text="ok")
            assert post_raw(f"{BASE}/items", body={"price": number}) == "ok"
        assert route.calls.last.request.content == b""

    @pytest.mark.parametrize("number", [float("nan"), float("inf"), float("-inf")])
    def test_non_finite_number_strict(self, number):
        with respx.mock(base_url=BASE, assert_all_called=False) as mock:
            route = mock.post("/items").respond(200, text="ok")
            with pytest.raises(EncodeError):
                post_raw(f"{BASE}/items", body=[number], settings=Settings(strict_encoding=True))
        assert not route.called


class TestDeadline:

    def test_slow_body_is_transport_error(self, mock_transport):
        """Should stop reading a whole-body response once the total timeout has passed."""
        def body():
            for _ in range(10):
                yield b"{}"
                time.sleep(0.2)

        mock_transport(lambda request: httpx.Response(200, content=body()))
        with pytest.raises(TransportError) as exc_info:
            http_raw(f"{BASE}/slow", "GET", settings=Settings(timeout_s=0.5))
        assert isinstance(exc_info.value.__cause__, httpx.ReadTimeout)

    def test_fast_body_within_deadline(self, mock_transport, chunked):
        mock_transport(chunked(b'{"a":', b"1}"))
        assert http(f"{BASE}/fast", "GET", settings=Settings(timeout_s=5.0)) == {"a": 1}


class TestProxyPaths:

    def test_get_through_socks5(self, dummy_server, socks5_relay):
        proxy = ProxyConfig(kind=ProxyType.SOCKS5, address=socks5_relay.address)
        assert get(f"{dummy_server}/json", proxy=proxy)["name"] == "dummy"
        assert len(socks5_relay.targets) == 1

    @pytest.mark.parametrize("address", ["http://127.0.0.1:{port}", "127.0.0.1:{port}"])
    def test_dead_proxy_is_transport_error(self, free_port, address):
        kind = ProxyType.HTTP if address.startswith("http") else ProxyType.SOCKS5
        proxy = ProxyConfig(kind=kind, address=address.format(port=free_port))
        with pytest.raises(TransportError):
            get_raw("http://api.example.com/x", proxy=proxy)
