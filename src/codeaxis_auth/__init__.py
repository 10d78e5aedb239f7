"""
CodeAxis portal auth client.

Bearer-token HTTP client with transparent access-token refresh.
"""
from .api.auth_client import AuthClient
from .api.base_client import BaseApiClient
from .api.errors import (
    ApiError,
    ApplicationError,
    AuthorizationError,
    RefreshExhaustedError,
    TransportError,
)
from .api.models import ApiRequest, ApiResponse
from .core.context import ClientContext
from .core.event_bus import EventBus, EventTypes
from .services.auth_service import AuthService
from .utils.security import (
    CredentialStore,
    EncryptedFileCredentialStore,
    KeyringCredentialStore,
    MemoryCredentialStore,
    create_credential_store,
)

__version__ = "1.0.0"
