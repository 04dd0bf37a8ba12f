"""API key authentication for the ``/v1/*`` endpoints."""

from __future__ import annotations

import hmac
import logging
import re
from dataclasses import dataclass
from typing import Iterable

from ..core.exceptions import AuthenticationError

logger = logging.getLogger("edgeone-adapter")

_BEARER_PATTERN = re.compile(r"^Bearer\s+", re.IGNORECASE)

MISSING_HEADER_MESSAGE = (
    "Missing Authorization header. Please provide an API key in the format: "
    "Authorization: Bearer YOUR_API_KEY"
)
INVALID_FORMAT_MESSAGE = (
    "Invalid Authorization header format. Expected: Authorization: Bearer YOUR_API_KEY"
)
INVALID_KEY_MESSAGE = "Invalid API key. Please check your API key and try again."


@dataclass(frozen=True)
class ApiKeyValidator:
    """Checks bearer tokens against the configured key set.

    With no keys configured every request passes.
    """

    keys: tuple[str, ...] = ()

    @classmethod
    def from_keys(cls, keys: Iterable[str]) -> "ApiKeyValidator":
        return cls(tuple(key for key in keys if key))

    @property
    def enabled(self) -> bool:
        return bool(self.keys)

    def validate(self, authorization: str | None) -> None:
        """Validate an ``Authorization`` header value.

        Raises:
            AuthenticationError: Header missing, malformed, or key unknown.
        """
        if not self.enabled:
            return

        if not authorization:
            logger.warning("Request rejected: missing Authorization header")
            raise AuthenticationError(MISSING_HEADER_MESSAGE)

        match = _BEARER_PATTERN.match(authorization)
        token = authorization[match.end():].strip() if match else ""
        if not token:
            logger.warning("Request rejected: malformed Authorization header")
            raise AuthenticationError(INVALID_FORMAT_MESSAGE)

        if not self._find_key(token):
            logger.warning("Request rejected: invalid API key %s****", token[:3])
            raise AuthenticationError(INVALID_KEY_MESSAGE)

    def _find_key(self, provided: str) -> bool:
        """Constant-time comparison against every configured key."""
        found = False
        provided_bytes = provided.encode("utf-8")
        for key in self.keys:
            if hmac.compare_digest(provided_bytes, key.encode("utf-8")):
                found = True
        return found
