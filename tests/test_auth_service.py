"""
Tests for the AuthService session lifecycle.
"""
import pytest
import requests

from codeaxis_auth.core.event_bus import EventTypes
from codeaxis_auth.services.auth_service import AuthService

from tests.conftest import EventRecorder


@pytest.fixture
def service(client):
    return AuthService(client=client)


def test_check_auth_status_without_token(service, transport):
    assert service.check_auth_status() is False
    assert transport.calls == []


def test_check_auth_status_restores_user(service, transport, logged_in, events):
    first_login = EventRecorder(events, EventTypes.FIRST_LOGIN_REQUIRED)
    transport.add("GET", "/auth/profile", json_body={
        "success": True,
        "user": {"id": 7, "firstName": "Ada", "isFirstLogin": True},
    })

    assert service.check_auth_status() is True
    assert service.current_user() == {"id": 7, "firstName": "Ada", "isFirstLogin": True}
    assert service.is_first_login is True
    assert len(first_login) == 1


def test_check_auth_status_rejected_profile_clears_session(service, transport, logged_in):
    transport.add("GET", "/auth/profile", json_body={"success": False})

    assert service.check_auth_status() is False
    assert logged_in.get("accessToken") is None
    assert logged_in.get("refreshToken") is None


def test_check_auth_status_server_error_clears_session(service, transport, logged_in):
    transport.add("GET", "/auth/profile", status=500)

    assert service.check_auth_status() is False
    assert service.is_authenticated() is False


def test_login_success(service, transport, store, events):
    logins = EventRecorder(events, EventTypes.LOGIN_SUCCESS)
    transport.add("POST", "/auth/login", json_body={
        "success": True,
        "accessToken": "a1",
        "refreshToken": "r1",
        "user": {"id": 7, "firstName": "Ada", "isFirstLogin": False},
    })

    result = service.login("ada@codeaxis.test", "pw")

    assert result["success"] is True
    assert result["message"] == "Welcome back, Ada!"
    assert service.is_authenticated() is True
    assert service.is_first_login is False
    assert logins.received == [{"id": 7, "firstName": "Ada", "isFirstLogin": False}]


def test_login_first_time(service, transport):
    transport.add("POST", "/auth/login", json_body={
        "success": True,
        "accessToken": "a1",
        "refreshToken": "r1",
        "user": {"id": 8, "isFirstLogin": True},
    })

    result = service.login("new@codeaxis.test", "temp")

    assert result["message"] == "Welcome! Please complete your profile setup."
    assert service.is_first_login is True


def test_login_invalid_credentials(service, transport, events):
    failures = EventRecorder(events, EventTypes.LOGIN_FAILED)
    transport.add("POST", "/auth/login", status=401, json_body={"success": False, "message": "Invalid credentials"})

    result = service.login("ada@codeaxis.test", "wrong")

    assert result == {"success": False, "message": "Invalid credentials", "user": None}
    assert len(failures) == 1
    assert service.is_authenticated() is False


def test_login_locked_account_without_message(service, transport):
    transport.add("POST", "/auth/login", status=423)

    result = service.login("ada@codeaxis.test", "pw")

    assert result["message"] == "Your account is locked. Please contact an administrator"


def test_login_unreachable_backend(service, transport):
    transport.add_error("POST", "/auth/login", requests.ConnectionError("refused"))

    result = service.login("ada@codeaxis.test", "pw")

    assert result["success"] is False
    assert "Unable to connect" in result["message"]


def test_logout_publishes_and_clears(service, transport, logged_in, events, context):
    logouts = EventRecorder(events, EventTypes.LOGOUT)
    context.refresh_state.generation = 3
    transport.add("POST", "/auth/logout", status=500)

    service.logout()

    assert logged_in.get("accessToken") is None
    assert context.refresh_state.generation == 0
    assert len(logouts) == 1


def test_update_profile_clears_first_login(service, transport, logged_in):
    transport.add("GET", "/auth/profile", json_body={"success": True, "user": {"id": 7, "isFirstLogin": True}})
    transport.add("PUT", "/auth/profile", json_body={"success": True, "user": {"id": 7, "firstName": "Ada"}})
    service.check_auth_status()

    result = service.update_profile({"firstName": "Ada"})

    assert result == {"success": True, "message": "Profile updated successfully!"}
    assert service.is_first_login is False
    assert service.current_user() == {"id": 7, "firstName": "Ada"}


def test_update_profile_failure(service, transport, logged_in):
    transport.add("PUT", "/auth/profile", status=400, json_body={"success": False, "message": "Update failed"})

    result = service.update_profile({"email": "bad"})

    assert result == {"success": False, "message": "Update failed"}
