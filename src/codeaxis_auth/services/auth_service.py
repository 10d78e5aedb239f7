"""
Auth service: session lifecycle on top of AuthClient.

Restores a stored session at start-up, logs in and out, and keeps the cached
user and first-login state current. Outcomes are published on the context's
event bus for the UI shell.
"""
from typing import Optional, Dict, Any

from ..api.auth_client import AuthClient
from ..api.errors import ApiError
from ..core.context import ClientContext
from ..core.event_bus import EventTypes
from ..utils.error_translator import error_translator
from ..utils.logger import logger
from ..utils.security import ACCESS_TOKEN_KEY


class AuthService:
    """Session facade used by the application shell."""

    def __init__(self, context: Optional[ClientContext] = None, client: Optional[AuthClient] = None):
        self.context = context or (client.context if client else ClientContext.from_settings())
        self.client = client or AuthClient(self.context)
        self._first_login = False

    @property
    def is_first_login(self) -> bool:
        return self._first_login

    def is_authenticated(self) -> bool:
        return self.context.store.get(ACCESS_TOKEN_KEY) is not None

    def current_user(self) -> Optional[Dict[str, Any]]:
        return self.client.get_current_user()

    def check_auth_status(self) -> bool:
        """
        Restore the stored session, if it is still valid.

        Returns:
            True when a user is logged in afterwards
        """
        if not self.is_authenticated():
            return False

        try:
            data = self.client.get_profile()
        except ApiError as e:
            logger.error(f"Auth check failed: {e}")
            self.context.teardown()
            return False

        if not (isinstance(data, dict) and data.get("success")):
            logger.warning("Stored session rejected by backend, clearing it")
            self.context.teardown()
            return False

        user = data.get("user") or {}
        self.client.cache_user(user)
        self._set_first_login(user)
        return True

    def login(self, email: str, password: str) -> Dict[str, Any]:
        """
        Log in and publish the outcome.

        Returns:
            ``{"success": bool, "message": str, "user": dict|None}``
        """
        logger.info(f"AuthService.login: {email}")
        try:
            data = self.client.login(email, password)
        except ApiError as e:
            message = error_translator.translate(e, "Login failed. Please try again.")
            self.context.events.publish(EventTypes.LOGIN_FAILED, {"message": message})
            return {"success": False, "message": message, "user": None}

        if not (isinstance(data, dict) and data.get("success") and data.get("accessToken")):
            message = error_translator.translate(data or {}, "Login failed. Please try again.")
            self.context.events.publish(EventTypes.LOGIN_FAILED, {"message": message})
            return {"success": False, "message": message, "user": None}

        user = data.get("user") or {}
        self.context.refresh_state.reset()
        self.context.events.publish(EventTypes.LOGIN_SUCCESS, user)
        self._set_first_login(user)

        if self._first_login:
            message = "Welcome! Please complete your profile setup."
        else:
            message = f"Welcome back, {user.get('firstName') or 'there'}!"
        return {"success": True, "message": message, "user": user}

    def logout(self):
        """Log out locally and on the backend."""
        logger.info("AuthService.logout")
        self.client.logout()
        self.context.teardown()
        self._first_login = False
        self.context.events.publish(EventTypes.LOGOUT)

    def update_profile(self, profile_data: Dict[str, Any]) -> Dict[str, Any]:
        """
        Update the profile and the cached user.

        Returns:
            ``{"success": bool, "message": str}``
        """
        try:
            data = self.client.update_profile(profile_data)
        except ApiError as e:
            return {"success": False, "message": error_translator.translate(e, "Profile update failed.")}

        if not (isinstance(data, dict) and data.get("success")):
            return {"success": False, "message": error_translator.translate(data or {}, "Profile update failed.")}

        user = data.get("user") or {}
        self.client.cache_user(user)
        self.context.events.publish(EventTypes.PROFILE_UPDATED, user)
        self._first_login = False
        return {"success": True, "message": "Profile updated successfully!"}

    def _set_first_login(self, user: Dict[str, Any]):
        self._first_login = bool(user.get("isFirstLogin"))
        if self._first_login:
            self.context.events.publish(EventTypes.FIRST_LOGIN_REQUIRED, user)
