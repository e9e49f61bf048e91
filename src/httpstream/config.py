from __future__ import annotations
from dataclasses import dataclass
from typing import Optional, Mapping

MAX_TIMEOUT_S = 30 * 60.0
CHUNK_SIZE = 20480


@dataclass(frozen=True)
class Settings:
    """Immutable configuration for clients, requests and streams."""

    timeout_s: float = MAX_TIMEOUT_S
    chunk_size: int = CHUNK_SIZE
    reassemble_lines: bool = False
    strict_encoding: bool = False
    auth_bearer: Optional[str] = None
    extra_headers: Optional[Mapping[str, str]] = None

    def default_headers(self) -> dict[str, str]:
        headers: dict[str, str] = {}
        if self.auth_bearer:
            headers["Authorization"] = f"Bearer {self.auth_bearer}"
        if self.extra_headers:
            headers.update(dict(self.extra_headers))
        return headers


DEFAULT_SETTINGS = Settings()
