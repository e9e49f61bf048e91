from __future__ import annotations
import json
import logging
from typing import Any, Dict, Optional

import httpx
from pydantic import BaseModel, TypeAdapter, ValidationError

from .errors import DecodeError, EncodeError

logger = logging.getLogger(__name__)


def ensure_scheme(u: str, scheme: str = "http") -> str:
    """Ensure an explicit scheme is present."""
    return u if "://" in u else f"{scheme}://{u}"


def status_line(resp: httpx.Response) -> str:
    """Return the status line as '<code> <reason>', e.g. '404 Not Found'."""
    reason = resp.reason_phrase
    return f"{resp.status_code} {reason}" if reason else str(resp.status_code)


def parse_header(raw: str) -> tuple[str, str]:
    """Parse a 'Key: Value' header option."""
    key, sep, value = raw.partition(":")
    if not sep or not key.strip():
        raise ValueError(f"Invalid header {raw!r}, expected 'Key: Value'")
    return key.strip(), value.strip()


def encode_json(value: Any) -> bytes:
    if isinstance(value, BaseModel):
        value = value.model_dump(mode="json")
    return json.dumps(value, separators=(",", ":"), ensure_ascii=False, allow_nan=False).encode("utf-8")


def convert_body(body: Any, strict: bool = False) -> Optional[bytes]:
    """JSON-encode a request body.

    An unencodable body yields None (an empty request body) unless strict is set,
    in which case EncodeError is raised.
    """
    try:
        return encode_json(body)
    except (TypeError, ValueError) as e:
        if strict:
            raise EncodeError(f"request body is not JSON encodable: {e}") from e
        logger.debug(f"dropping request body, not JSON encodable: {e}")
        return None


def decode_json(content: bytes, target: Any = Any) -> Any:
    """Decode a JSON document and validate it into target."""
    try:
        data = json.loads(content)
    except ValueError as e:
        raise DecodeError(f"response is not JSON: {e}") from e
    if target is Any:
        return data
    try:
        return TypeAdapter(target).validate_python(data)
    except ValidationError as ve:
        raise DecodeError(f"response does not match {target!r}: {ve}") from ve


def try_parse_object(content: bytes) -> Optional[Dict[str, Any]]:
    """Return the body as a JSON object, or None if it is not one."""
    try:
        data = json.loads(content)
    except ValueError:
        return None
    return data if isinstance(data, dict) else None


def pretty_json(value: Any, indent: int = 2) -> str:
    return json.dumps(value, indent=indent, ensure_ascii=False)
