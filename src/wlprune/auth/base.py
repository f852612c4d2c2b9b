from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Protocol


class AuthHealthStatus(str, Enum):
    OK = "ok"
    AUTH_INVALID = "auth_invalid"
    FAILED = "failed"


@dataclass(frozen=True)
class AuthHealthResult:
    provider: str
    status: AuthHealthStatus
    message: str


class AuthProvider(Protocol):
    """
    Provider interface. Keep it minimal.

    - ensure_ready() validates that credentials are present
    - request_headers() returns the auth headers for one request
    """

    name: str

    def ensure_ready(self) -> None: ...

    def request_headers(self, origin: str) -> Dict[str, str]: ...
