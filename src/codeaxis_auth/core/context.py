"""
Client context shared by the request dispatcher and the refresh coordinator.
"""
import threading
from dataclasses import dataclass, field
from typing import Optional

from ..config.settings import settings
from ..utils.security import CredentialStore, create_credential_store
from .event_bus import EventBus


@dataclass
class RefreshState:
    """Single-flight marker for the refresh exchange."""
    lock: threading.Lock = field(default_factory=threading.Lock)
    in_progress: bool = False
    generation: int = 0

    def reset(self):
        self.in_progress = False
        self.generation = 0


@dataclass
class ClientContext:
    """
    Everything one application session shares.

    Created once per session and injected into every client; nothing in the
    request pipeline reads module-level state directly.
    """
    store: CredentialStore
    events: EventBus = field(default_factory=EventBus)
    base_url: str = field(default_factory=lambda: settings.API_BASE_URL)
    timeout: float = field(default_factory=lambda: settings.API_TIMEOUT)
    login_route: str = field(default_factory=lambda: settings.LOGIN_ROUTE)
    single_flight: bool = field(default_factory=lambda: settings.SINGLE_FLIGHT_REFRESH)
    refresh_state: RefreshState = field(default_factory=RefreshState)

    @classmethod
    def from_settings(
        cls,
        store: Optional[CredentialStore] = None,
        events: Optional[EventBus] = None,
    ) -> "ClientContext":
        """Build a context from the configured settings."""
        return cls(
            store=store or create_credential_store(),
            events=events or EventBus(),
        )

    def url_for(self, path: str) -> str:
        """Resolve an endpoint path against the base URL."""
        if path.startswith('http://') or path.startswith('https://'):
            return path
        return f"{self.base_url.rstrip('/')}/{path.lstrip('/')}"

    def teardown(self):
        """Drop the session: clear credentials and refresh bookkeeping."""
        self.store.clear_all()
        self.refresh_state.reset()
