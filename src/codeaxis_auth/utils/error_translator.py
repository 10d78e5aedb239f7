"""
Error translation utilities for user-friendly error messages.
"""
from typing import Any, Optional

from ..api.errors import (
    ApiError,
    ApplicationError,
    AuthorizationError,
    RefreshExhaustedError,
    TransportError,
)


class ErrorTranslator:
    """
    Translates API and system errors into user-friendly messages.
    """

    ERROR_MESSAGES = {
        # Authentication errors
        "session_expired": "Your session has expired. Please log in again",
        "unauthorized": "You are not authorized to perform this action",
        "permission_denied": "You don't have permission to access this resource",
        "account_locked": "Your account is locked. Please contact an administrator",

        # Network errors
        "connection_error": "Unable to connect to server. Please check your internet connection",

        # API errors
        "server_error": "Server error occurred. Please try again later",
        "bad_request": "Invalid request. Please check your input",
        "not_found": "Resource not found",
        "rate_limit_exceeded": "Too many requests. Please wait a moment and try again",
    }

    STATUS_CODES = {
        400: "bad_request",
        401: "unauthorized",
        403: "permission_denied",
        404: "not_found",
        423: "account_locked",
        429: "rate_limit_exceeded",
    }

    @classmethod
    def translate(cls, error: Any, default_message: str = "An error occurred") -> str:
        """
        Translate an error to a user-friendly message.

        Args:
            error: API error body or exception
            default_message: Default message if translation not found

        Returns:
            User-friendly error message
        """
        if isinstance(error, dict):
            message = error.get('message') or error.get('detail')
            return message or default_message

        if isinstance(error, RefreshExhaustedError):
            return cls.ERROR_MESSAGES["session_expired"]

        if isinstance(error, TransportError):
            return error.message or cls.ERROR_MESSAGES["connection_error"]

        if isinstance(error, (AuthorizationError, ApplicationError)):
            # Backend messages are already meant for users
            if isinstance(error.body, dict) and error.body.get('message'):
                return error.body['message']
            return cls._for_status(error.status_code, default_message)

        if isinstance(error, ApiError):
            return error.message or default_message

        if isinstance(error, Exception):
            return str(error) or default_message

        return default_message

    @classmethod
    def _for_status(cls, status_code: Optional[int], default_message: str) -> str:
        if status_code is None:
            return default_message
        if status_code >= 500:
            return cls.ERROR_MESSAGES["server_error"]
        code = cls.STATUS_CODES.get(status_code)
        return cls.ERROR_MESSAGES[code] if code else default_message


# Global instance
error_translator = ErrorTranslator()
