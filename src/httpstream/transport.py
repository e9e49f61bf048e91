from __future__ import annotations
import logging
import socket
import typing
from typing import Optional

import httpcore
import httpx
from httpcore._backends.sync import SyncStream
from python_socks import ProxyConnectionError, ProxyError, ProxyTimeoutError
from python_socks.sync import Proxy as SocksProxy

from .config import DEFAULT_SETTINGS, Settings
from .http_client import HttpClient
from .models import ClientResult, ProxyConfig, ProxyType
from .util import ensure_scheme

logger = logging.getLogger(__name__)


class Socks5Backend(httpcore.NetworkBackend):
    """Network backend that dials every TCP connection through a SOCKS5 proxy."""

    def __init__(self, dialer: SocksProxy) -> None:
        self._dialer = dialer

    def connect_tcp(
        self,
        host: str,
        port: int,
        timeout: Optional[float] = None,
        local_address: Optional[str] = None,
        socket_options: Optional[typing.Iterable[typing.Any]] = None,
    ) -> httpcore.NetworkStream:
        try:
            sock = self._dialer.connect(dest_host=host, dest_port=port, timeout=timeout)
        except ProxyTimeoutError as e:
            raise httpcore.ConnectTimeout(str(e)) from e
        except (ProxyConnectionError, ProxyError, OSError) as e:
            raise httpcore.ConnectError(str(e)) from e
        for option in socket_options or []:
            sock.setsockopt(*option)
        sock.setsockopt(socket.IPPROTO_TCP, socket.TCP_NODELAY, 1)
        return SyncStream(sock)


class Socks5Transport(httpx.HTTPTransport):
    """HTTP transport whose connection pool dials through a SOCKS5 proxy, TLS unverified."""

    def __init__(self, dialer: SocksProxy) -> None:
        super().__init__(verify=False, trust_env=False)
        self._pool = httpcore.ConnectionPool(
            ssl_context=httpx.create_ssl_context(verify=False),
            network_backend=Socks5Backend(dialer),
        )


def parse_http_proxy(address: str) -> httpx.Proxy:
    proxy = httpx.Proxy(url=address)
    if proxy.url.scheme not in ("http", "https") or not proxy.url.host:
        raise ValueError(f"not an http(s) proxy url: {address!r}")
    return proxy


def socks5_dialer(address: str) -> SocksProxy:
    """Build an unauthenticated SOCKS5 dialer for 'host:port' (or 'socks5://host:port')."""
    url = ensure_scheme(address.strip(), "socks5")
    if not url.startswith("socks5://"):
        raise ValueError(f"not a socks5 address: {address!r}")
    return SocksProxy.from_url(url)


def _degrade(proxy: ProxyConfig, settings: Settings, reason: str) -> ClientResult:
    logger.warning(reason)
    return ClientResult(client=HttpClient(settings), proxy=proxy, degraded_reason=reason)


def build_client(proxy: Optional[ProxyConfig] = None, settings: Optional[Settings] = None) -> ClientResult:
    """Build a client routed per proxy.

    Misconfiguration never raises: the result falls back to a direct client and
    records why in ``degraded_reason``.
    """
    settings = settings or DEFAULT_SETTINGS
    if proxy is None or proxy.kind == ProxyType.NONE:
        return ClientResult(client=HttpClient(settings), proxy=proxy)

    if proxy.kind in (ProxyType.HTTP, ProxyType.HTTPS):
        try:
            proxy_url = parse_http_proxy(proxy.address)
        except (httpx.InvalidURL, ValueError) as e:
            return _degrade(proxy, settings, f"failed to parse proxy url: {e}")
        client = HttpClient(settings, proxy=proxy_url)
    elif proxy.kind == ProxyType.SOCKS5:
        try:
            dialer = socks5_dialer(proxy.address)
        except ValueError as e:
            return _degrade(proxy, settings, f"failed to create socks5 proxy: {e}")
        client = HttpClient(settings, transport=Socks5Transport(dialer))
    else:
        return _degrade(proxy, settings, f"unsupported proxy type: {proxy.kind!r}")

    logger.debug(f"[proxy] configured proxy: {proxy.address}")
    return ClientResult(client=client, proxy=proxy)
