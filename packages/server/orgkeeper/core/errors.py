"""
Domain errors raised by the authorization engine, the cipher and the
persistence services.

Every ``ForbiddenError`` carries the same opaque message, and the HTTP layer
renders ``NotFoundError`` exactly like ``ForbiddenError``: callers can never
tell a missing organization from one they are not allowed to see.
"""

from __future__ import annotations

FORBIDDEN_MESSAGE = "Not permitted"


class OrgKeeperError(Exception):
    """Base class for orgkeeper domain errors."""

    code = "ERROR"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message()
        super().__init__(self.message)

    def default_message(self) -> str:
        return "Unexpected error"


class ForbiddenError(OrgKeeperError):
    """The caller may not perform this operation."""

    code = "FORBIDDEN"

    def __init__(self, reason: str | None = None):
        # ``reason`` is for logs only; the public message never varies.
        self.reason = reason
        super().__init__(FORBIDDEN_MESSAGE)

    def default_message(self) -> str:
        return FORBIDDEN_MESSAGE


class NotFoundError(OrgKeeperError):
    """A target organization, membership or user does not exist."""

    code = "NOT_FOUND"

    def default_message(self) -> str:
        return "Not found"


class DecryptionError(OrgKeeperError):
    """Ciphertext is malformed or was sealed with a different secret."""

    code = "DECRYPTION_FAILED"

    def default_message(self) -> str:
        return "Stored secret failed integrity check"
