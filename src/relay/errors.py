"""Relay error taxonomy.

Every error carries the HTTP status and the message shown to the caller.
Upstream detail never goes into ``message``; it is logged instead.
"""

from fastapi import status


class RelayError(Exception):
    """Base class for errors the relay reports as ``{error}`` responses."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class InvalidChatRequestError(RelayError):
    """Request body is not valid JSON or has no usable turns."""

    status_code = status.HTTP_400_BAD_REQUEST


class CreditsExhaustedError(RelayError):
    """Upstream reports the account has run out of credits."""

    status_code = status.HTTP_402_PAYMENT_REQUIRED


class RateLimitedError(RelayError):
    """Upstream is rate limiting; the caller may retry shortly."""

    status_code = status.HTTP_429_TOO_MANY_REQUESTS


class UpstreamError(RelayError):
    """Upstream failed in a way the caller cannot act on."""


class MissingCredentialError(RelayError):
    """No upstream API key is configured."""
