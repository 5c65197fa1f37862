"""
Custom Validators
Validation functions for collection request fields
"""

import re
import uuid
from decimal import Decimal, InvalidOperation
from typing import Any, Iterable, Optional
from urllib.parse import urlparse


def _as_decimal(amount: Any) -> Decimal:
    # floats via str(): 10.1 -> Decimal('10.1')
    if isinstance(amount, bool) or not isinstance(amount, (int, float, str, Decimal)):
        raise TypeError(f"Amount must be a number, got {type(amount).__name__}")
    return amount if isinstance(amount, Decimal) else Decimal(str(amount).strip())


def validate_amount(amount: Any, max_amount: Optional[Decimal] = None) -> tuple[bool, Optional[str]]:
    """
    Validate a request-to-pay amount

    Args:
        amount: Decimal, int, float or numeric string
        max_amount: Optional upper bound

    Returns:
        Tuple of (is_valid, error_message)
    """
    try:
        value = _as_decimal(amount)
    except TypeError as e:
        return False, str(e)
    except InvalidOperation:
        return False, f"Amount {amount!r} is not a number"

    if not value.is_finite():
        return False, "Amount must be a finite number"
    if value <= 0:
        return False, "Amount must be positive"
    if max_amount is not None and value > max_amount:
        return False, f"Amount exceeds the {max_amount} limit"
    if value.as_tuple().exponent < -2:
        return False, "Amount has more than two decimal places"

    return True, None


def validate_currency(currency: str, allowed_currencies: Optional[Iterable[str]] = None) -> tuple[bool, Optional[str]]:
    """
    Validate currency code

    Args:
        currency: Currency code to validate (e.g., 'GHS', 'EUR')
        allowed_currencies: Currency codes accepted by the configured account

    Returns:
        Tuple of (is_valid, error_message)
    """
    if not currency:
        return False, "Currency is required"

    if not isinstance(currency, str) or not re.match(r'^[A-Z]{3}$', currency):
        return False, "Currency must be a 3-letter uppercase code (e.g., GHS, NGN, EUR)"

    if allowed_currencies is not None:
        allowed = list(allowed_currencies)
        if currency not in allowed:
            return False, f"Currency must be one of: {', '.join(allowed)}"

    return True, None


def validate_callback_url(url: str, callback_host: Optional[str] = None) -> tuple[bool, Optional[str]]:
    """
    Validate a request-to-pay callback url

    The operator only delivers callbacks to the host registered for the API user,
    so a url on any other host is rejected up front.

    Returns:
        Tuple of (is_valid, error_message)
    """
    parsed = urlparse(url or '')
    if parsed.scheme not in ('http', 'https') or not parsed.hostname:
        return False, "Callback url must be an absolute http(s) url"

    if callback_host and parsed.hostname.lower() != callback_host.lower():
        return False, f"Callback url host must be {callback_host}"

    return True, None


def validate_reference_id(reference_id: str) -> tuple[bool, Optional[str]]:
    """
    Validate a request-to-pay reference id (UUID, as sent in X-Reference-Id)

    Returns:
        Tuple of (is_valid, error_message)
    """
    try:
        uuid.UUID(str(reference_id))
    except ValueError:
        return False, f"Reference id must be a UUID, got {reference_id!r}"

    return True, None
