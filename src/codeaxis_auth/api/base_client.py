"""
Base API Client with HTTP request handling and authentication.
"""
from typing import Optional, Dict, Any

import requests
from requests.adapters import HTTPAdapter
from requests.exceptions import RequestException, ConnectionError, Timeout
from requests.structures import CaseInsensitiveDict
from urllib3.util.retry import Retry

from ..config.settings import settings
from ..core.context import ClientContext
from ..utils.logger import logger
from ..utils.security import ACCESS_TOKEN_KEY
from .errors import AuthorizationError, TransportError, error_for_status
from .models import ApiRequest
from .refresh import RefreshCoordinator


class BaseApiClient:
    """
    Base HTTP API client with bearer authentication.

    Every call goes through ``send``: the current access token is attached,
    the call is performed, and a 401 on a call that has not been retried yet
    is handed to the refresh coordinator.
    """

    def __init__(self, context: ClientContext, session: Optional[requests.Session] = None):
        """
        Initialize base API client.

        Args:
            context: Shared client context (store, events, base URL)
            session: Optional pre-built requests session
        """
        self.context = context
        self._session = session or requests.Session()
        self._setup_session()
        self.coordinator = RefreshCoordinator(context, self)

    def _setup_session(self):
        """Configure HTTP session with connection pooling."""
        # Connection failures only; statuses are reported to the caller as-is
        retry_strategy = Retry(
            total=settings.API_CONNECT_RETRIES,
            connect=settings.API_CONNECT_RETRIES,
            read=0,
            status=0,
            redirect=False,
            raise_on_status=False,
        )

        adapter = HTTPAdapter(
            max_retries=retry_strategy,
            pool_connections=10,
            pool_maxsize=20
        )

        self._session.mount("http://", adapter)
        self._session.mount("https://", adapter)

        # Default headers
        self._session.headers.update({
            "Content-Type": "application/json",
            "Accept": "application/json",
        })

    @property
    def session(self) -> requests.Session:
        return self._session

    def close(self):
        """Release pooled connections."""
        self._session.close()

    def transport(self, request: ApiRequest, authenticated: bool = True) -> requests.Response:
        """
        Perform one HTTP exchange, without any 401 handling.

        Args:
            request: Call to perform
            authenticated: Attach the stored access token

        Returns:
            The raw response, whatever its status

        Raises:
            TransportError: No response was received
        """
        url = self.context.url_for(request.path)
        headers = CaseInsensitiveDict(request.headers)

        if authenticated:
            # Caller headers never carry the bearer; the store (or a refreshed retry) does
            headers.pop("Authorization", None)
            token = request.access_token or self.context.store.get(ACCESS_TOKEN_KEY)
            request.sent_access_token = token
            if token:
                headers["Authorization"] = f"Bearer {token}"

        kwargs: Dict[str, Any] = {"timeout": self.context.timeout}
        if request.params:
            kwargs["params"] = request.params
        if request.files is not None:
            # Let requests write the multipart boundary
            headers["Content-Type"] = None
            kwargs["files"] = request.files
            if request.body is not None:
                kwargs["data"] = request.body
        elif request.body is not None:
            kwargs["json"] = request.body
        kwargs["headers"] = dict(headers)

        try:
            logger.debug(f"{request.method} {request.path}")
            return self._session.request(request.method, url, **kwargs)

        except Timeout as e:
            logger.error(f"Timeout for {request.method} {request.path}: {e}")
            raise TransportError("Request timed out. Please try again.", request=request) from e

        except ConnectionError as e:
            logger.error(f"Connection error for {request.method} {request.path}: {e}")
            raise TransportError(
                "Unable to connect to server. Please check your internet connection.",
                request=request,
            ) from e

        except RequestException as e:
            logger.error(f"Request error for {request.method} {request.path}: {e}")
            raise TransportError(str(e), request=request) from e

    def unwrap(self, response: requests.Response, request: Optional[ApiRequest] = None) -> Any:
        """
        Decode a response body, raising for non-2xx statuses.

        Returns:
            Decoded JSON, ``{"message": text}`` for non-JSON bodies,
            or None for an empty body
        """
        data = self._decode(response)
        if 200 <= response.status_code < 300:
            return data

        message = self._error_message(response, data)
        logger.warning(f"HTTP {response.status_code} for {getattr(request, 'method', '')} "
                       f"{getattr(request, 'path', response.url)}: {message}")
        raise error_for_status(response.status_code, message, data, request)

    @staticmethod
    def _decode(response: requests.Response) -> Any:
        if not response.content:
            return None
        try:
            return response.json()
        except ValueError:
            return {"message": response.text}

    @staticmethod
    def _error_message(response: requests.Response, data: Any) -> str:
        if isinstance(data, dict):
            message = data.get('message') or data.get('detail') or data.get('error')
            if message:
                return str(message)
        return f"{response.status_code} {response.reason or 'Error'}".strip()

    def send(self, request: ApiRequest) -> Any:
        """
        Send a call with the current access token and return its body.

        Args:
            request: Call to send

        Returns:
            Decoded response body

        Raises:
            ApiError: The call failed and could not be recovered
        """
        response = self.transport(request, authenticated=True)
        try:
            return self.unwrap(response, request)
        except AuthorizationError as e:
            if request.retry_attempted or request.skip_auth_refresh:
                raise
            failure = e

        return self.coordinator.handle_unauthorized(request, failure)

    def request(self, method: str, path: str, body: Any = None, **options) -> Any:
        """Build an ApiRequest and send it."""
        return self.send(ApiRequest(method=method, path=path, body=body, **options))

    def get(self, path: str, **options) -> Any:
        """Make authenticated GET request."""
        return self.request("GET", path, **options)

    def post(self, path: str, body: Any = None, **options) -> Any:
        """Make authenticated POST request."""
        return self.request("POST", path, body, **options)

    def put(self, path: str, body: Any = None, **options) -> Any:
        """Make authenticated PUT request."""
        return self.request("PUT", path, body, **options)

    def patch(self, path: str, body: Any = None, **options) -> Any:
        """Make authenticated PATCH request."""
        return self.request("PATCH", path, body, **options)

    def delete(self, path: str, **options) -> Any:
        """Make authenticated DELETE request."""
        return self.request("DELETE", path, **options)


