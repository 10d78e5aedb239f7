"""
Errors raised by the API clients.
"""
from typing import Any, Optional


class ApiError(Exception):
    """Base class for every failed API call."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        body: Any = None,
        request: Any = None,
    ):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.body = body
        self.request = request

    def __repr__(self):
        return f"{type(self).__name__}({self.message!r}, status_code={self.status_code})"


class TransportError(ApiError):
    """No response was received (connection, DNS or timeout failure)."""


class AuthorizationError(ApiError):
    """The backend answered 401 and the call is not going to be refreshed."""


class ApplicationError(ApiError):
    """Any other non-2xx answer."""


class RefreshExhaustedError(ApiError):
    """The session could not be restored; credentials have been cleared."""


def error_for_status(status_code: int, message: str, body: Any = None, request: Any = None) -> ApiError:
    """Map an HTTP status to the matching error type."""
    if status_code == 401:
        return AuthorizationError(message, status_code, body, request)
    return ApplicationError(message, status_code, body, request)
