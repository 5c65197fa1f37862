"""
MTN MoMo Collection client
Based on the MoMo Open API, Collection product (v1_0).

Supported calls
---------------
Request to pay
    POST /collection/v1_0/requesttopay                    (202 on acceptance)

Request to pay status
    GET  /collection/v1_0/requesttopay/{referenceId}

Account balance
    GET  /collection/v1_0/account/balance

Every call carries the Ocp-Apim-Subscription-Key and X-Target-Environment
headers plus a bearer token obtained from the TokenManager.

Submissions are never retried here: a request-to-pay moves money, so the
caller decides whether to resubmit. Status and balance reads are repeated
once after a 401 with a refreshed token.
"""

import logging
import uuid
from decimal import Decimal
from typing import Any, Dict, Iterable, Optional, Tuple, Union

from marshmallow import ValidationError

from momopay.errors import InvalidInput, RequestRejected, TokenAcquisitionFailed, TransientError
from momopay.models import (
    Balance,
    CollectionRequest,
    CollectionStatus,
    CollectionTransaction,
    Country,
    PhoneNumber,
)
from momopay.providers.token_manager import TokenManager
from momopay.providers.transport import Transport
from momopay.schemas import BalanceSchema, RequestToPayResultSchema, RequestToPaySchema
from momopay.utils.msisdn import normalize
from momopay.utils.validators import (
    validate_amount,
    validate_callback_url,
    validate_currency,
    validate_reference_id,
)

logger = logging.getLogger(__name__)

DEFAULT_CURRENCIES = ('GHS', 'NGN', 'EUR')

_request_schema = RequestToPaySchema()
_result_schema = RequestToPayResultSchema()
_balance_schema = BalanceSchema()


class CollectionClient:
    """Request-to-pay client for one MoMo Collection subscription."""

    # Collection endpoint paths
    _EP_REQUEST_TO_PAY = "/collection/v1_0/requesttopay"
    _EP_BALANCE        = "/collection/v1_0/account/balance"

    def __init__(
            self,
            transport: Transport,
            token_manager: TokenManager,
            subscription_key: str,
            target_environment: str = "sandbox",
            supported_currencies: Iterable[str] = DEFAULT_CURRENCIES,
            default_country: Union[Country, str] = Country.GH,
            callback_host: Optional[str] = None,
            callback_url: Optional[str] = None
    ):
        if not subscription_key:
            raise ValueError("CollectionClient: 'subscription_key' is required")
        if not target_environment:
            raise ValueError("CollectionClient: 'target_environment' is required")

        self._transport = transport
        self._token_manager = token_manager
        self.subscription_key = subscription_key
        self.target_environment = target_environment
        self.supported_currencies = tuple(supported_currencies)
        self.default_country = Country(default_country)
        self.callback_host = callback_host
        self.callback_url = callback_url

        if callback_url:
            ok, error = validate_callback_url(callback_url, callback_host)
            if not ok:
                raise ValueError(f"CollectionClient: default callback url is invalid – {error}")

    # Public API

    def request_to_pay(
            self,
            amount: Union[Decimal, int, float, str],
            currency: str,
            payer_raw: Union[str, PhoneNumber],
            country: Optional[Union[Country, str]] = None,
            external_id: Optional[str] = None,
            payer_message: Optional[str] = None,
            payee_note: Optional[str] = None,
            callback_url: Optional[str] = None
    ) -> str:
        """
        Ask a subscriber to approve a payment from their wallet.

        Args:
            amount: Positive amount with at most two decimal places
            currency: Currency code, one of supported_currencies
            payer_raw: Payer phone number in any accepted format, or an
                already normalized PhoneNumber (used as is)
            country: Payer country (defaults to default_country)
            external_id: Caller's own reference (defaults to the reference id)
            payer_message: Text shown to the payer
            payee_note: Note recorded for the payee
            callback_url: Per-request callback, must be on callback_host

        Returns:
            The reference id identifying this request in status queries

        Raises:
            InvalidInput: amount, currency or callback url failed validation
            InvalidNumber: payer_raw could not be normalized
            TokenAcquisitionFailed: no access token could be obtained
            RequestRejected: the operator refused the request
            TransientError: network failure or operator server error
        """
        ok, error = validate_amount(amount)
        if not ok:
            raise InvalidInput(error)
        ok, error = validate_currency(currency, self.supported_currencies)
        if not ok:
            raise InvalidInput(error)

        if isinstance(payer_raw, PhoneNumber):
            payer = payer_raw
        else:
            payer = normalize(payer_raw, country or self.default_country)

        reference_id = str(uuid.uuid4())
        request = CollectionRequest(
            amount=Decimal(str(amount)),
            currency=currency,
            payer=payer,
            reference_id=reference_id,
            external_id=external_id or reference_id,
            payer_message=payer_message or "",
            payee_note=payee_note or "",
        )

        headers = {
            "X-Reference-Id": reference_id,
            "Content-Type": "application/json",
        }
        resolved_callback = self._resolve_callback_url(callback_url)
        if resolved_callback:
            headers["X-Callback-Url"] = resolved_callback

        token = self._token_manager.get_token()

        logger.info(
            "MoMo request-to-pay ref=%s amount=%s %s payer=%s",
            reference_id, request.amount, currency, payer.masked
        )

        try:
            status_code, body = self._transport.request(
                "POST",
                self._EP_REQUEST_TO_PAY,
                headers=self._headers(token, headers),
                body=_request_schema.dump(request),
            )
        except TransientError as exc:
            logger.warning("MoMo request-to-pay ref=%s network error: %s", reference_id, exc)
            raise TransientError(
                f"CollectionClient [request_to_pay]: network error – {exc}",
                reference_id=reference_id,
            ) from exc

        if status_code == 202:
            return reference_id

        message = _error_message(body)
        logger.warning("MoMo request-to-pay ref=%s HTTP %s: %s", reference_id, status_code, message)

        if status_code == 401:
            self._token_manager.invalidate()
            raise TransientError(
                "CollectionClient [request_to_pay]: access token rejected (HTTP 401), resubmit to retry",
                reference_id=reference_id,
            )
        if 400 <= status_code < 500:
            raise RequestRejected(message, operator_status=status_code, reference_id=reference_id)

        raise TransientError(
            f"CollectionClient [request_to_pay] HTTP {status_code}: {message}",
            reference_id=reference_id,
        )

    def get_transaction(self, reference_id: str) -> CollectionTransaction:
        """
        Fetch the operator's current view of a request-to-pay.

        An unparseable body or unrecognized status yields status UNKNOWN
        rather than an error.
        """
        reference_id = _validate_reference_id(reference_id)

        status_code, body = self._get(f"{self._EP_REQUEST_TO_PAY}/{reference_id}", "get_status")

        if status_code == 200:
            try:
                data = _result_schema.load(body if isinstance(body, dict) else {})
            except ValidationError as exc:
                logger.warning("MoMo status ref=%s unparseable response: %s", reference_id, exc.messages)
                return CollectionTransaction(reference_id=reference_id, status=CollectionStatus.UNKNOWN)

            if data['status'] is CollectionStatus.UNKNOWN:
                logger.warning("MoMo status ref=%s unrecognized status %r", reference_id, body.get("status"))

            return CollectionTransaction(reference_id=reference_id, **data)

        self._raise_for_read(status_code, body, "get_status", reference_id)

    def get_status(self, reference_id: str) -> CollectionStatus:
        """Current CollectionStatus of a request-to-pay; never cached."""
        return self.get_transaction(reference_id).status

    def get_balance(self) -> Balance:
        """Available balance of the collection account."""
        status_code, body = self._get(self._EP_BALANCE, "get_balance")

        if status_code == 200:
            try:
                return _balance_schema.load(body if isinstance(body, dict) else {})
            except ValidationError as exc:
                raise TransientError(
                    f"CollectionClient [get_balance]: malformed response – {exc.messages}"
                ) from exc

        self._raise_for_read(status_code, body, "get_balance")

    # Private helpers

    def _headers(self, token, extra: Optional[Dict[str, str]] = None) -> Dict[str, str]:
        headers = {
            "Authorization": token.authorization,
            "X-Target-Environment": self.target_environment,
            "Ocp-Apim-Subscription-Key": self.subscription_key,
        }
        if extra:
            headers.update(extra)
        return headers

    def _get(self, path: str, context: str) -> Tuple[int, Any]:
        """GET with a single token refresh on 401."""
        for attempt in (1, 2):
            token = self._token_manager.get_token()
            try:
                status_code, body = self._transport.request("GET", path, headers=self._headers(token))
            except TransientError as exc:
                raise TransientError(f"CollectionClient [{context}]: network error – {exc}") from exc

            if status_code == 401 and attempt == 1:
                logger.debug("MoMo [%s] unauthorized, refreshing access token", context)
                self._token_manager.invalidate()
                continue

            return status_code, body

    def _raise_for_read(self, status_code, body, context, reference_id=None):
        message = _error_message(body)
        logger.debug("MoMo [%s] HTTP %s: %s", context, status_code, message)

        if status_code == 401:
            raise TokenAcquisitionFailed(
                f"CollectionClient [{context}]: access token rejected after refresh – {message}"
            )
        if 400 <= status_code < 500:
            raise RequestRejected(message, operator_status=status_code, reference_id=reference_id)

        raise TransientError(f"CollectionClient [{context}] HTTP {status_code}: {message}",
                             reference_id=reference_id)

    def _resolve_callback_url(self, callback_url: Optional[str]) -> Optional[str]:
        if callback_url:
            ok, error = validate_callback_url(callback_url, self.callback_host)
            if not ok:
                raise InvalidInput(error)
            return callback_url
        return self.callback_url


def _validate_reference_id(reference_id) -> str:
    ok, error = validate_reference_id(reference_id)
    if not ok:
        raise InvalidInput(error)
    return str(uuid.UUID(str(reference_id)))


def _error_message(body) -> str:
    if isinstance(body, dict):
        return str(body.get("message") or body.get("code") or body.get("reason") or body)
    return str(body or "")[:300] or "no response body"
