"""
Access token lifecycle for the MoMo Collection product.

Authentication
    POST /collection/token/   (Basic auth api_user:api_key + subscription key)
    Tokens are cached per manager instance and refreshed once they come
    within `safety_margin` seconds of expiry.

Concurrency
    A fresh cached token is read without taking the lock. When a refresh is
    needed, the first caller publishes a Future under the lock and performs
    the fetch; every other caller arriving before it completes waits on that
    same Future and receives the same token or the same error.
"""

import base64
import logging
import threading
import time
from concurrent.futures import Future
from typing import Callable, Optional

from marshmallow import ValidationError

from momopay.errors import TokenAcquisitionFailed, TransportError
from momopay.models import AccessToken, Credentials
from momopay.providers.transport import Transport
from momopay.schemas import AccessTokenSchema

logger = logging.getLogger(__name__)

DEFAULT_SAFETY_MARGIN = 60.0

_token_schema = AccessTokenSchema()


class TokenManager:
    """Owns one cached AccessToken for a set of Credentials."""

    _EP_TOKEN = "/collection/token/"

    def __init__(
            self,
            transport: Transport,
            credentials: Credentials,
            safety_margin: float = DEFAULT_SAFETY_MARGIN,
            clock: Callable[[], float] = time.monotonic
    ):
        if safety_margin < 0:
            raise ValueError("TokenManager: 'safety_margin' must not be negative")

        self._transport = transport
        self._credentials = credentials
        self._safety_margin = safety_margin
        self._clock = clock

        self._token: Optional[AccessToken] = None
        self._inflight: Optional[Future] = None
        self._lock = threading.Lock()

    @property
    def safety_margin(self) -> float:
        return self._safety_margin

    def get_token(self) -> AccessToken:
        """
        Return a token that is valid for at least the safety margin.

        Raises:
            TokenAcquisitionFailed: If the token endpoint could not be reached
                or rejected the credentials. Not retried here.
        """
        token = self._token
        if token is not None and token.is_fresh(self._clock(), self._safety_margin):
            return token

        with self._lock:
            token = self._token
            if token is not None and token.is_fresh(self._clock(), self._safety_margin):
                return token

            future = self._inflight
            leader = future is None
            if leader:
                future = Future()
                self._inflight = future

        if leader:
            self._refresh(future)

        return future.result()

    def invalidate(self) -> None:
        """Drop the cached token so the next get_token() fetches a new one."""
        with self._lock:
            self._token = None
        logger.debug("TokenManager: cached token invalidated")

    def _refresh(self, future: Future) -> None:
        try:
            token = self._fetch()
        except BaseException as exc:
            with self._lock:
                self._inflight = None
            if isinstance(exc, Exception):
                future.set_exception(exc)
                return
            # KeyboardInterrupt, SystemExit, worker timeouts: release waiters, then propagate
            future.set_exception(TokenAcquisitionFailed(
                f"TokenManager: token refresh interrupted – {type(exc).__name__}"
            ))
            raise

        with self._lock:
            self._token = token
            self._inflight = None
        future.set_result(token)

    def _fetch(self) -> AccessToken:
        credentials = self._credentials
        basic = base64.b64encode(
            f"{credentials.api_user}:{credentials.api_key}".encode("utf-8")
        ).decode("utf-8")
        headers = {
            "Authorization": f"Basic {basic}",
            "Ocp-Apim-Subscription-Key": credentials.subscription_key,
        }

        try:
            status_code, body = self._transport.request("POST", self._EP_TOKEN, headers=headers)
        except TransportError as exc:
            raise TokenAcquisitionFailed(f"TokenManager: token request failed – {exc}") from exc

        if status_code != 200:
            raise TokenAcquisitionFailed(
                f"TokenManager: token request rejected – HTTP {status_code}: {_error_message(body)}"
            )

        try:
            data = _token_schema.load(body if isinstance(body, dict) else {})
        except ValidationError as exc:
            raise TokenAcquisitionFailed(
                f"TokenManager: malformed token response – {exc.messages}"
            ) from exc

        if data["expires_in"] <= self._safety_margin:
            raise TokenAcquisitionFailed(
                f"TokenManager: token lifetime {data['expires_in']}s does not exceed "
                f"the {self._safety_margin:g}s safety margin"
            )

        # expires_in is relative; anchor it to the moment the response arrived
        token = AccessToken(
            value=data["access_token"],
            expires_at=self._clock() + data["expires_in"],
            token_type=data["token_type"],
        )
        logger.debug("TokenManager: access token refreshed (expires in %ds)", data["expires_in"])
        return token


def _error_message(body) -> str:
    if isinstance(body, dict):
        return str(body.get("message") or body.get("error_description") or body.get("error") or body)
    return str(body or "")[:300]
