"""Proxy-aware HTTP helpers and a resilient newline-delimited stream consumer."""
from .config import Settings
from .errors import (
    CallbackError,
    DecodeError,
    EncodeError,
    HttpStreamError,
    StatusError,
    StreamReadError,
    TransportError,
)
from .stream_consumer import EventSource, event_source
from .executor import get, get_raw, http, http_raw, post, post_raw
from .http_client import HttpClient
from .models import ClientResult, ProxyConfig, ProxyType, StreamOutcome, StreamStatus
from .transport import build_client

__all__ = [
    "Settings",
    "HttpStreamError",
    "TransportError",
    "StreamReadError",
    "StatusError",
    "DecodeError",
    "EncodeError",
    "CallbackError",
    "EventSource",
    "event_source",
    "http",
    "http_raw",
    "get",
    "get_raw",
    "post",
    "post_raw",
    "HttpClient",
    "build_client",
    "ClientResult",
    "ProxyConfig",
    "ProxyType",
    "StreamOutcome",
    "StreamStatus",
]
