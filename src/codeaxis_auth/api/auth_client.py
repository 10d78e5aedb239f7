"""
Authentication API Client for the CodeAxis portal.

Handles login, logout, profile, password recovery and token operations.
"""
import json
from pathlib import Path
from typing import Optional, Dict, Any, Union, BinaryIO, Tuple

from ..config.settings import settings
from ..utils.logger import logger
from ..utils.security import ACCESS_TOKEN_KEY, REFRESH_TOKEN_KEY, USER_KEY
from .base_client import BaseApiClient
from .errors import ApiError
from .models import ApiRequest, ApiResponse

ProfileImage = Union[str, Path, bytes, BinaryIO, Tuple[str, Any, str]]


class AuthClient(BaseApiClient):
    """
    Authentication API client.

    Each method maps its arguments onto one backend call and returns the
    decoded body. Login, logout and the password recovery flow also keep the
    credential store in step with the backend.
    """

    def _endpoint(self, name: str) -> str:
        return settings.get_api_endpoints()[name]

    # ------------------------------------------------------------------
    # Session
    # ------------------------------------------------------------------

    def login(self, email: str, password: str) -> Dict[str, Any]:
        """
        Authenticate user and store the issued tokens.

        Args:
            email: User's email
            password: User's password

        Returns:
            Session payload (accessToken, refreshToken, user)
        """
        logger.info(f"Attempting login for user: {email}")

        data = self.send(ApiRequest(
            method="POST",
            path=self._endpoint("login"),
            body={"email": email, "password": password},
            skip_auth_refresh=True,
        ))

        access_token = (data or {}).get("accessToken")
        refresh_token = (data or {}).get("refreshToken")
        if access_token and refresh_token:
            store = self.context.store
            store.set(ACCESS_TOKEN_KEY, access_token)
            store.set(REFRESH_TOKEN_KEY, refresh_token)
            store.set(USER_KEY, json.dumps(data.get("user") or {}))
            logger.info("Login successful")
        else:
            logger.warning("Login response did not include tokens")

        return data

    def logout(self) -> None:
        """
        Notify the backend and clear local credentials.

        The backend call is best effort; local credentials are always
        cleared and this method never raises for a failed backend call.
        """
        logger.info("Logging out")
        try:
            self.send(ApiRequest(method="POST", path=self._endpoint("logout")))
        except ApiError as e:
            logger.warning(f"Logout error: {e}")
        finally:
            self.context.store.clear_all()

    def refresh_token(self, refresh_token: str) -> Dict[str, Any]:
        """Exchange a refresh token for a new access token."""
        return self.send(ApiRequest(
            method="POST",
            path=self._endpoint("refresh"),
            body={"refreshToken": refresh_token},
            skip_auth_refresh=True,
        ))

    def validate_token(self) -> ApiResponse:
        """
        Check the current access token with the backend.

        Returns:
            ApiResponse; failures are reported, not raised
        """
        try:
            data = self.get(self._endpoint("validate"))
        except ApiError as e:
            logger.debug(f"Token validation failed: {e}")
            return ApiResponse(success=False, error=e.message, status_code=e.status_code, data=e.body)
        return ApiResponse(success=True, data=data, status_code=200)

    # ------------------------------------------------------------------
    # Profile
    # ------------------------------------------------------------------

    def get_profile(self) -> Dict[str, Any]:
        """Get current user profile."""
        return self.get(self._endpoint("profile"))

    def update_profile(self, profile_data: Dict[str, Any]) -> Dict[str, Any]:
        """Update profile fields."""
        return self.put(self._endpoint("profile"), profile_data)

    def change_password(self, current_password: str, new_password: str) -> Dict[str, Any]:
        """Change the password of the logged in user."""
        return self.put(self._endpoint("change_password"), {
            "currentPassword": current_password,
            "newPassword": new_password,
        })

    def first_login_setup(self, password: str, profile_image: Optional[ProfileImage] = None) -> Dict[str, Any]:
        """
        Set the definitive password and upload a profile image.

        Args:
            password: New password
            profile_image: Path, raw bytes, open binary file, or a
                ``(filename, content, content_type)`` tuple

        Returns:
            Backend acknowledgement / updated profile
        """
        # Plain fields go in as (None, value) parts so the body is always multipart
        files: Dict[str, Any] = {"password": (None, password)}
        if profile_image is not None:
            files["profileImage"] = self._image_part(profile_image)

        return self.send(ApiRequest(
            method="POST",
            path=self._endpoint("first_login_setup"),
            files=files,
        ))

    @staticmethod
    def _image_part(profile_image: ProfileImage) -> Any:
        if isinstance(profile_image, (str, Path)):
            path = Path(profile_image)
            return (path.name, path.read_bytes())
        if isinstance(profile_image, bytes):
            return ("profile-image", profile_image)
        return profile_image

    # ------------------------------------------------------------------
    # Password recovery
    # ------------------------------------------------------------------

    def forgot_password(self, email: str, nic: str) -> Dict[str, Any]:
        """Step 1: ask for an OTP."""
        return self._public_post("forgot_password", {"email": email, "nic": nic})

    def verify_otp(self, email: str, nic: str, otp: str) -> Dict[str, Any]:
        """Step 2: verify the OTP."""
        return self._public_post("verify_otp", {"email": email, "nic": nic, "otp": otp})

    def reset_password(self, email: str, nic: str, otp: str, new_password: str) -> Dict[str, Any]:
        """Step 3: set a new password."""
        return self._public_post("reset_password", {
            "email": email,
            "nic": nic,
            "otp": otp,
            "newPassword": new_password,
        })

    def resend_otp(self, email: str, nic: str) -> Dict[str, Any]:
        """Send the OTP again."""
        return self._public_post("resend_otp", {"email": email, "nic": nic})

    def _public_post(self, endpoint: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        return self.send(ApiRequest(
            method="POST",
            path=self._endpoint(endpoint),
            body=payload,
            skip_auth_refresh=True,
        ))

    # ------------------------------------------------------------------
    # Cached identity
    # ------------------------------------------------------------------

    def get_current_user(self) -> Optional[Dict[str, Any]]:
        """Return the user cached at login, if any."""
        raw = self.context.store.get(USER_KEY)
        if not raw:
            return None
        try:
            return json.loads(raw)
        except ValueError:
            logger.warning("Cached user is not valid JSON, ignoring it")
            return None

    def cache_user(self, user: Dict[str, Any]):
        """Replace the cached user."""
        self.context.store.set(USER_KEY, json.dumps(user))
