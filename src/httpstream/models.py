from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict


class ProxyType(str, Enum):
    NONE = "none"
    HTTP = "http"
    HTTPS = "https"
    SOCKS5 = "socks5"


class ProxyConfig(BaseModel):
    """Routing instruction for a single request: no proxy, HTTP(S) forward proxy or SOCKS5."""

    model_config = ConfigDict(frozen=True)

    kind: ProxyType = ProxyType.NONE
    address: str = ""


@dataclass(frozen=True)
class ClientResult:
    """Factory result: the client plus the reason it fell back to a direct connection, if it did."""
    client: Any  # HttpClient
    proxy: Optional[ProxyConfig] = None
    degraded_reason: Optional[str] = None

    @property
    def degraded(self) -> bool:
        return self.degraded_reason is not None

    @property
    def configured(self) -> bool:
        return not self.degraded


class StreamStatus(str, Enum):
    COMPLETED = "completed"
    ABORTED = "aborted"


@dataclass
class StreamOutcome:
    """How a stream ended when it did not raise."""
    status: StreamStatus
    segments: int = 0
    error: Optional[BaseException] = None

    @property
    def completed(self) -> bool:
        return self.status == StreamStatus.COMPLETED

    @property
    def aborted(self) -> bool:
        return self.status == StreamStatus.ABORTED
