"""Errors raised by review backend clients."""

from __future__ import annotations


class BackendError(Exception):
    """The submissions API rejected a request or could not be reached.

    Attributes:
        status_code: HTTP status, or None when no response was received.
        message: Message from the API's error body, or a generic description.
    """

    def __init__(self, status_code: int | None, message: str) -> None:
        self.status_code = status_code
        self.message = message
        super().__init__(message)

    @property
    def is_auth_error(self) -> bool:
        """True for 401/403 responses (token missing, expired, or not allowed)."""
        return self.status_code in (401, 403)
