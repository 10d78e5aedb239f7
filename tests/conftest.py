"""
Shared fixtures: an in-memory session and a scripted HTTP transport.
"""
import json
import os
import tempfile
import threading
from http import HTTPStatus
from urllib.parse import urlsplit

# Keep test runs away from the user's home directory
os.environ.setdefault("LOG_TO_FILE", "false")
os.environ.setdefault("CODEAXIS_HOME", tempfile.mkdtemp(prefix="codeaxis-tests-"))

import pytest
import requests

from codeaxis_auth.api.auth_client import AuthClient
from codeaxis_auth.core.context import ClientContext
from codeaxis_auth.core.event_bus import EventBus, EventTypes
from codeaxis_auth.utils.security import MemoryCredentialStore

BASE_URL = "http://api.test/api"


def make_response(status=200, json_body=None, text=None, url=BASE_URL):
    """Build a requests.Response without touching the network."""
    response = requests.Response()
    response.status_code = status
    response.reason = HTTPStatus(status).phrase
    response.url = url
    if json_body is not None:
        response._content = json.dumps(json_body).encode("utf-8")
        response.headers["Content-Type"] = "application/json"
    elif text is not None:
        response._content = text.encode("utf-8")
        response.headers["Content-Type"] = "text/plain"
    else:
        response._content = b""
    return response


class RecordedCall:
    def __init__(self, method, path, kwargs):
        self.method = method
        self.path = path
        self.kwargs = kwargs

    @property
    def headers(self):
        return self.kwargs.get("headers") or {}

    @property
    def authorization(self):
        """Every Authorization header value, whatever its case."""
        return [v for k, v in self.headers.items() if k.lower() == "authorization" and v is not None]

    @property
    def json(self):
        return self.kwargs.get("json")


class FakeTransport:
    """
    Stand-in for ``requests.Session.request``.

    Routes are keyed by (method, path relative to the API base). Each route
    holds a queue of responses, exceptions or callables; callables receive
    the RecordedCall and return a response.
    """

    def __init__(self, base_path="/api"):
        self.base_path = base_path
        self.routes = {}
        self.calls = []
        self._lock = threading.Lock()

    def add(self, method, path, status=200, json_body=None, text=None):
        self.routes.setdefault((method, path), []).append(
            make_response(status, json_body=json_body, text=text, url=BASE_URL + path)
        )

    def add_error(self, method, path, exc):
        self.routes.setdefault((method, path), []).append(exc)

    def add_handler(self, method, path, handler, times=1):
        for _ in range(times):
            self.routes.setdefault((method, path), []).append(handler)

    def calls_to(self, method, path):
        return [c for c in self.calls if c.method == method and c.path == path]

    def __call__(self, method, url, **kwargs):
        path = urlsplit(url).path
        if path.startswith(self.base_path):
            path = path[len(self.base_path):]
        call = RecordedCall(method, path, kwargs)
        with self._lock:
            self.calls.append(call)
            queue = self.routes.get((method, path))
            if not queue:
                raise AssertionError(f"Unexpected request: {method} {path}")
            item = queue.pop(0)

        if isinstance(item, BaseException):
            raise item
        if callable(item):
            return item(call)
        return item


class EventRecorder:
    def __init__(self, bus, event_type):
        self.received = []
        bus.subscribe(event_type, self.received.append)

    def __len__(self):
        return len(self.received)


@pytest.fixture
def store():
    return MemoryCredentialStore()


@pytest.fixture
def events():
    return EventBus()


@pytest.fixture
def context(store, events):
    return ClientContext(
        store=store,
        events=events,
        base_url=BASE_URL,
        timeout=5,
        login_route="/login",
        single_flight=True,
    )


@pytest.fixture
def transport():
    return FakeTransport()


@pytest.fixture
def client(context, transport, monkeypatch):
    auth_client = AuthClient(context)
    monkeypatch.setattr(auth_client.session, "request", transport)
    yield auth_client
    auth_client.close()


@pytest.fixture
def expired(events):
    return EventRecorder(events, EventTypes.SESSION_EXPIRED)


@pytest.fixture
def refreshed(events):
    return EventRecorder(events, EventTypes.TOKEN_REFRESHED)


@pytest.fixture
def logged_in(store):
    """Store holding a full session."""
    store.set("accessToken", "old")
    store.set("refreshToken", "r1")
    store.set("user", json.dumps({"id": 7, "firstName": "Ada"}))
    return store
