"""
Utils Package
Utility functions and helpers
"""

from momopay.utils.logger import get_logger, configure_app_logging, RequestLogger
from momopay.utils.msisdn import normalize, NUMBER_PLANS
from momopay.utils.validators import (
    validate_amount,
    validate_currency,
    validate_callback_url,
    validate_reference_id
)

__all__ = [
    'get_logger',
    'configure_app_logging',
    'RequestLogger',
    'normalize',
    'NUMBER_PLANS',
    'validate_amount',
    'validate_currency',
    'validate_callback_url',
    'validate_reference_id'
]
