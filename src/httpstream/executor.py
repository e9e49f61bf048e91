from __future__ import annotations
import logging
from typing import Any, Mapping, Optional

from .config import DEFAULT_SETTINGS, Settings
from .models import ProxyConfig
from .transport import build_client
from .util import convert_body, decode_json

logger = logging.getLogger(__name__)

Headers = Optional[Mapping[str, str]]


def http_raw(
    uri: str,
    method: str,
    headers: Headers = None,
    body: Optional[bytes] = None,
    proxy: Optional[ProxyConfig] = None,
    settings: Optional[Settings] = None,
) -> bytes:
    """Send one request through a freshly built client and return the body unparsed."""
    result = build_client(proxy, settings)
    with result.client as client:
        resp = client.request(method, uri, headers=headers, content=body)
        logger.debug(f"{method} {uri} -> {resp.status_code}")
        return resp.content


def http(
    uri: str,
    method: str,
    target: Any = Any,
    headers: Headers = None,
    body: Optional[bytes] = None,
    proxy: Optional[ProxyConfig] = None,
    settings: Optional[Settings] = None,
) -> Any:
    """Like http_raw, but decode the body as JSON validated into target.

    The status code is not inspected; an error page that is not JSON surfaces
    as DecodeError.
    """
    return decode_json(http_raw(uri, method, headers, body, proxy, settings), target)


def get(uri: str, headers: Headers = None, proxy: Optional[ProxyConfig] = None, settings: Optional[Settings] = None) -> Any:
    return http(uri, "GET", headers=headers, proxy=proxy, settings=settings)


def get_raw(uri: str, headers: Headers = None, proxy: Optional[ProxyConfig] = None, settings: Optional[Settings] = None) -> str:
    return http_raw(uri, "GET", headers=headers, proxy=proxy, settings=settings).decode("utf-8", errors="replace")


def post(
    uri: str,
    headers: Headers = None,
    body: Any = None,
    proxy: Optional[ProxyConfig] = None,
    settings: Optional[Settings] = None,
) -> Any:
    settings = settings or DEFAULT_SETTINGS
    content = convert_body(body, strict=settings.strict_encoding)
    return http(uri, "POST", headers=headers, body=content, proxy=proxy, settings=settings)


def post_raw(
    uri: str,
    headers: Headers = None,
    body: Any = None,
    proxy: Optional[ProxyConfig] = None,
    settings: Optional[Settings] = None,
) -> str:
    settings = settings or DEFAULT_SETTINGS
    content = convert_body(body, strict=settings.strict_encoding)
    raw = http_raw(uri, "POST", headers=headers, body=content, proxy=proxy, settings=settings)
    return raw.decode("utf-8", errors="replace")
