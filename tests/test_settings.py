"""
Tests for configuration and the client context.
"""
from codeaxis_auth.config.settings import AppSettings, settings
from codeaxis_auth.core.context import ClientContext
from codeaxis_auth.utils.security import MemoryCredentialStore


def test_endpoints_cover_every_operation():
    endpoints = AppSettings.get_api_endpoints()

    assert endpoints["login"] == "/auth/login"
    assert endpoints["refresh"] == "/auth/refresh"
    assert endpoints["first_login_setup"] == "/auth/first-login-setup"
    assert len(endpoints) == 11


def test_context_defaults_come_from_settings():
    context = ClientContext(store=MemoryCredentialStore())

    assert context.base_url == settings.API_BASE_URL
    assert context.timeout == settings.API_TIMEOUT
    assert context.login_route == settings.LOGIN_ROUTE
    assert context.single_flight is settings.SINGLE_FLIGHT_REFRESH


def test_teardown_clears_session():
    store = MemoryCredentialStore({"accessToken": "a", "refreshToken": "r", "user": "{}"})
    context = ClientContext(store=store)
    context.refresh_state.generation = 2

    context.teardown()

    assert store.get("accessToken") is None
    assert context.refresh_state.generation == 0


def test_paths_live_under_codeaxis_home():
    assert AppSettings.STORE_FILE.parent == AppSettings.CONFIG_DIR
    assert AppSettings.LOG_DIR.parent == AppSettings.CONFIG_DIR
    assert not hasattr(AppSettings, "ensure_directories")
