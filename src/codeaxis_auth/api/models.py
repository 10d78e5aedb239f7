"""
Request and response containers shared by the API clients.
"""
from typing import Optional, Dict, Any
from dataclasses import dataclass, field


@dataclass
class ApiRequest:
    """
    A call waiting to be sent (or re-sent) through the dispatcher.

    ``retry_attempted`` flips to True the first time the call is handed to
    the refresh coordinator and never flips back. ``skip_auth_refresh``
    marks calls whose 401 must reach the caller untouched.
    """
    method: str
    path: str
    body: Any = None
    headers: Dict[str, Optional[str]] = field(default_factory=dict)
    params: Optional[Dict[str, Any]] = None
    files: Optional[Dict[str, Any]] = None
    retry_attempted: bool = False
    skip_auth_refresh: bool = False
    # Access token attached on the last dispatch
    sent_access_token: Optional[str] = field(default=None, repr=False)
    # Token to send instead of the stored one, set for the post-refresh retry
    access_token: Optional[str] = field(default=None, repr=False)


@dataclass
class ApiResponse:
    """Standardized API response container."""
    success: bool
    data: Optional[Any] = None
    error: Optional[str] = None
    status_code: Optional[int] = None

    def __bool__(self):
        return self.success
