"""
Refresh coordinator: turns a 401 into one token refresh and one retry.
"""
from dataclasses import dataclass
from typing import Any, Optional, TYPE_CHECKING

from ..config.settings import settings
from ..core.context import ClientContext
from ..core.event_bus import EventTypes
from ..utils.logger import logger
from ..utils.security import ACCESS_TOKEN_KEY, REFRESH_TOKEN_KEY, SESSION_KEYS, DataProtection
from .errors import ApiError, ApplicationError, RefreshExhaustedError
from .models import ApiRequest

if TYPE_CHECKING:
    from .base_client import BaseApiClient


@dataclass
class RefreshOutcome:
    """Result of one pass through the refresh exchange."""
    access_token: Optional[str] = None
    refreshed: bool = False
    generation: int = 0
    # Set when the session could not be restored
    reason: Optional[str] = None
    cause: Optional[ApiError] = None
    # False when there was no stored session left to terminate
    had_session: bool = False


class RefreshCoordinator:
    """
    Recovers calls that failed with 401.

    A call reaches ``handle_unauthorized`` at most once: its
    ``retry_attempted`` flag is set before anything else happens, so the
    retry is sent through the dispatcher like a normal call and a second 401
    propagates to the caller.

    Only the exchange and the store update run under the refresh lock.
    Events are published after it is released, so subscribers may make
    client calls of their own.
    """

    def __init__(self, context: ClientContext, dispatcher: "BaseApiClient"):
        self.context = context
        self.dispatcher = dispatcher

    def handle_unauthorized(self, call: ApiRequest, failure: ApiError) -> Any:
        """
        Refresh the access token and retry ``call`` once.

        Args:
            call: The call that failed with 401
            failure: The error produced by that failure

        Returns:
            Decoded body of the retried call

        Raises:
            RefreshExhaustedError: The session could not be restored
            ApiError: The retried call itself failed
        """
        call.retry_attempted = True
        logger.info(f"{call.method} {call.path} unauthorized, attempting token refresh")

        if self.context.single_flight:
            with self.context.refresh_state.lock:
                outcome = self._current_or_refreshed(call, failure)
        else:
            outcome = self._exchange(failure)

        if outcome.reason is not None:
            self._terminate(call, outcome)

        if outcome.refreshed:
            self.context.events.publish(EventTypes.TOKEN_REFRESHED, {"generation": outcome.generation})

        # The retry carries the token this exchange produced, whatever the store holds by now
        call.access_token = outcome.access_token
        logger.info(f"Retrying {call.method} {call.path} with refreshed token")
        return self.dispatcher.send(call)

    def _current_or_refreshed(self, call: ApiRequest, failure: ApiError) -> RefreshOutcome:
        """Reuse a token refreshed while this call waited, or refresh now."""
        current = self.context.store.get(ACCESS_TOKEN_KEY)

        if current and current != call.sent_access_token:
            logger.debug("Access token was refreshed by a concurrent call, reusing it")
            return RefreshOutcome(access_token=current)

        return self._exchange(failure)

    def _exchange(self, failure: ApiError) -> RefreshOutcome:
        """
        Exchange the refresh token for a new access token.

        Updates the store (new access token, or everything cleared) but
        publishes nothing.
        """
        store = self.context.store
        state = self.context.refresh_state

        refresh_token = store.get(REFRESH_TOKEN_KEY)
        if not refresh_token:
            return self._cleared("No refresh token available", failure)

        exchange = ApiRequest(
            method="POST",
            path=settings.get_api_endpoints()["refresh"],
            body={"refreshToken": refresh_token},
            skip_auth_refresh=True,
        )

        state.in_progress = True
        try:
            response = self.dispatcher.transport(exchange, authenticated=False)
            data = self.dispatcher.unwrap(response, exchange)
            access_token = data.get("accessToken") if isinstance(data, dict) else None
            if not access_token:
                raise ApplicationError(
                    "Invalid refresh response: missing access token",
                    response.status_code,
                    data,
                    exchange,
                )
        except ApiError as e:
            return self._cleared(f"Token refresh failed: {e.message}", e)
        finally:
            state.in_progress = False

        store.set(ACCESS_TOKEN_KEY, access_token)
        state.generation += 1
        logger.info(f"Token refresh successful ({DataProtection.mask_sensitive_data(access_token)})")
        return RefreshOutcome(access_token=access_token, refreshed=True, generation=state.generation)

    def _cleared(self, reason: str, cause: ApiError) -> RefreshOutcome:
        store = self.context.store
        had_session = any(store.get(key) is not None for key in SESSION_KEYS)
        store.clear_all()
        return RefreshOutcome(reason=reason, cause=cause, had_session=had_session)

    def _terminate(self, call: ApiRequest, outcome: RefreshOutcome):
        """Signal the shell (once per stored session) and raise."""
        logger.warning(f"Session terminated: {outcome.reason}")
        if outcome.had_session:
            self.context.events.publish(
                EventTypes.SESSION_EXPIRED,
                {"redirect_to": self.context.login_route, "reason": outcome.reason},
            )
        cause = outcome.cause
        raise RefreshExhaustedError(outcome.reason, cause.status_code, cause.body, call) from cause
