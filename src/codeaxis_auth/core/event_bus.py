"""
Session event bus.

The client publishes session changes here (login, logout, refreshed token,
terminated session); the shell that embeds it subscribes and decides what to
show or where to navigate.
"""
from typing import Dict, List, Callable, Any
from threading import Lock

from ..utils.logger import logger


class EventBus:
    """
    Delivers session events to shell subscribers.

    Handlers run synchronously on the thread that published the event, after
    the client has released its own locks. A failing handler is logged and
    does not stop delivery to the others.
    """

    def __init__(self):
        self._subscribers: Dict[str, List[Callable]] = {}
        self._lock = Lock()

    def subscribe(self, event_type: str, callback: Callable) -> None:
        """
        Register ``callback`` for ``event_type``.

        Registering the same callback twice has no effect.
        """
        with self._lock:
            handlers = self._subscribers.setdefault(event_type, [])
            if callback not in handlers:
                handlers.append(callback)
                logger.debug(f"Handler registered for {event_type}")

    def unsubscribe(self, event_type: str, callback: Callable) -> None:
        with self._lock:
            handlers = self._subscribers.get(event_type)
            if handlers and callback in handlers:
                handlers.remove(callback)
                logger.debug(f"Handler removed for {event_type}")
                if not handlers:
                    del self._subscribers[event_type]

    def publish(self, event_type: str, data: Any = None) -> None:
        """
        Deliver ``data`` to every handler of ``event_type``.

        Args:
            event_type: One of :class:`EventTypes`
            data: Event payload, e.g. ``{"redirect_to": ..., "reason": ...}``
                for a terminated session
        """
        with self._lock:
            handlers = list(self._subscribers.get(event_type, []))

        logger.debug(f"Session event {event_type} -> {len(handlers)} handler(s)")

        for callback in handlers:
            try:
                callback(data)
            except Exception as e:
                logger.error(f"Session event handler for {event_type} failed: {e}")

    def clear_subscribers(self, event_type: str = None) -> None:
        """Drop the handlers of one event type, or of all of them."""
        with self._lock:
            if event_type:
                self._subscribers.pop(event_type, None)
            else:
                self._subscribers.clear()

    def get_subscriber_count(self, event_type: str) -> int:
        with self._lock:
            return len(self._subscribers.get(event_type, []))


class EventTypes:
    """Session event names published by the client and the auth service."""

    LOGIN_SUCCESS = "auth.login.success"
    LOGIN_FAILED = "auth.login.failed"
    FIRST_LOGIN_REQUIRED = "auth.first_login.required"
    LOGOUT = "auth.logout"
    # Payload: {"redirect_to": <login route>, "reason": <text>}
    SESSION_EXPIRED = "auth.session.expired"
    TOKEN_REFRESHED = "auth.token.refreshed"
    PROFILE_UPDATED = "auth.profile.updated"
