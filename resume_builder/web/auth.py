"""Principal resolution and per-principal rate limiting."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections import defaultdict, deque
from dataclasses import dataclass
from hmac import compare_digest
from time import monotonic
from typing import Dict

from .errors import UnauthenticatedError


@dataclass(frozen=True)
class Principal:
    """The authenticated identity making a request."""

    id: str


class PrincipalResolver(ABC):
    """Turns a request credential into a :class:`Principal`."""

    @abstractmethod
    def authenticate(self, credential: str) -> Principal:
        """Return the principal for *credential* or raise UnauthenticatedError."""


class StaticTokenPrincipalResolver(PrincipalResolver):
    """Bearer tokens mapped to user ids from configuration."""

    def __init__(self, tokens: Dict[str, str]) -> None:
        self._tokens = {token: user_id for token, user_id in tokens.items() if token and user_id}

    def authenticate(self, credential: str) -> Principal:
        auth_header = (credential or "").strip()
        if not auth_header.startswith("Bearer "):
            raise UnauthenticatedError("Missing bearer token")
        token = auth_header[len("Bearer ") :].strip()
        for known, user_id in self._tokens.items():
            if compare_digest(token, known):
                return Principal(id=user_id)
        raise UnauthenticatedError("Invalid bearer token")


class HeaderPrincipalResolver(PrincipalResolver):
    """Development resolver: trusts the ``X-User-ID`` header value."""

    def authenticate(self, credential: str) -> Principal:
        user_id = (credential or "").strip()
        if not user_id:
            raise UnauthenticatedError("Missing X-User-ID header")
        return Principal(id=user_id)


def parse_token_map(value: str) -> Dict[str, str]:
    """Parse ``token:user_id,token2:user_id2`` into a dict."""
    tokens: Dict[str, str] = {}
    for item in (value or "").split(","):
        raw = item.strip()
        if ":" not in raw:
            continue
        token, user_id = raw.split(":", 1)
        token = token.strip()
        user_id = user_id.strip()
        if token and user_id:
            tokens[token] = user_id
    return tokens


class InMemoryRateLimiter:
    """Simple fixed-window limiter keyed by principal id."""

    def __init__(self, max_requests_per_minute: int) -> None:
        self._max_requests = max_requests_per_minute
        self._events: dict[str, deque[float]] = defaultdict(deque)

    @property
    def limit(self) -> int:
        return self._max_requests

    def allow(self, principal_id: str) -> bool:
        now = monotonic()
        window_start = now - 60
        queue = self._events[principal_id]
        while queue and queue[0] < window_start:
            queue.popleft()
        if len(queue) >= self._max_requests:
            return False
        queue.append(now)
        return True
