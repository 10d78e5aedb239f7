"""
Configuration settings for the CodeAxis portal auth client.
"""
import os
import configparser
from typing import Dict
from pathlib import Path


def get_config_path() -> Path:
    """Get the path to config.ini file."""
    override = os.getenv("CODEAXIS_CONFIG")
    if override:
        return Path(override).expanduser()
    return Path.cwd() / 'config.ini'


def load_config() -> configparser.ConfigParser:
    """Load configuration from config.ini file."""
    config = configparser.ConfigParser()
    config_path = get_config_path()
    if config_path.exists():
        config.read(config_path)
    return config


def _as_bool(value: str) -> bool:
    return str(value).lower() in ("true", "1", "yes", "on")


_config = load_config()


class AppSettings:
    """Application configuration settings."""

    # API Configuration
    API_BASE_URL = _config.get('server', 'api_base_url',
                               fallback=os.getenv("API_BASE_URL", "http://localhost:5000/api"))
    API_TIMEOUT = int(_config.get('server', 'api_timeout',
                                  fallback=os.getenv("API_TIMEOUT", "30")))
    # Connect-level retries only; HTTP statuses are never retried by the adapter
    API_CONNECT_RETRIES = int(_config.get('server', 'api_connect_retries',
                                          fallback=os.getenv("API_CONNECT_RETRIES", "0")))

    # Authentication / session
    LOGIN_ROUTE = _config.get('auth', 'login_route',
                              fallback=os.getenv("LOGIN_ROUTE", "/login"))
    SINGLE_FLIGHT_REFRESH = _as_bool(_config.get('auth', 'single_flight_refresh',
                                                 fallback=os.getenv("SINGLE_FLIGHT_REFRESH", "true")))

    # Security
    CREDENTIAL_BACKEND = _config.get('auth', 'credential_backend',
                                     fallback=os.getenv("CREDENTIAL_BACKEND", "file"))
    CREDENTIAL_STORE_SERVICE = os.getenv("CREDENTIAL_STORE_SERVICE", "codeaxis_portal")

    # File paths
    CONFIG_DIR = Path(os.getenv("CODEAXIS_HOME", str(Path.home() / ".codeaxis"))).expanduser()
    STORE_FILE = CONFIG_DIR / "session.json"
    LOG_DIR = CONFIG_DIR / "logs"

    # Logging
    LOG_LEVEL = _config.get('logging', 'level', fallback=os.getenv("LOG_LEVEL", "INFO"))
    LOG_TO_FILE = _as_bool(_config.get('logging', 'to_file',
                                       fallback=os.getenv("LOG_TO_FILE", "true")))
    LOG_FILE = os.getenv("LOG_FILE", "codeaxis_auth.log")
    LOG_MAX_SIZE = int(os.getenv("LOG_MAX_SIZE", "10485760"))   # 10 MB
    LOG_BACKUP_COUNT = int(os.getenv("LOG_BACKUP_COUNT", "5"))

    @classmethod
    def get_api_endpoints(cls) -> Dict[str, str]:
        """Get all API endpoints, relative to API_BASE_URL."""
        return {
            # Session
            "login": "/auth/login",
            "logout": "/auth/logout",
            "refresh": "/auth/refresh",
            "validate": "/auth/validate",

            # Profile
            "profile": "/auth/profile",
            "change_password": "/auth/change-password",
            "first_login_setup": "/auth/first-login-setup",

            # Password recovery
            "forgot_password": "/auth/forgot-password",
            "verify_otp": "/auth/verify-otp",
            "reset_password": "/auth/reset-password",
            "resend_otp": "/auth/resend-otp",
        }


# Global settings instance
settings = AppSettings()
