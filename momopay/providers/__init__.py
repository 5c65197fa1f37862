import logging
from typing import Mapping, Optional

from flask import current_app

from momopay.errors import AppError
from momopay.models import Credentials
from momopay.providers.collection_client import CollectionClient
from momopay.providers.token_manager import TokenManager, DEFAULT_SAFETY_MARGIN
from momopay.providers.transport import Transport, RequestsTransport

logger = logging.getLogger(__name__)

EXTENSION_KEY = 'momopay'

SANDBOX = 'sandbox'
# Production gateways; anything else is treated as the sandbox
PRODUCTION_BASE_URLS = (
    'https://momodeveloper.mtn.com',
    'https://proxy.momoapi.mtn.com',
)


def resolve_target_environment(base_url: str, configured: Optional[str] = None) -> str:
    """
    Work out the X-Target-Environment header value.

    Production target environments are market specific (e.g. 'mtnghana'),
    so they must be configured explicitly.
    """
    if configured:
        return configured

    if (base_url or '').rstrip('/').startswith(PRODUCTION_BASE_URLS):
        raise ValueError(
            "MOMO_TARGET_ENVIRONMENT is required when MOMO_BASE_URL points at a production gateway"
        )

    return SANDBOX


def create_collection_client(config: Mapping, transport: Optional[Transport] = None) -> CollectionClient:
    """
    Build a CollectionClient and its TokenManager from configuration.

    Args:
        config: Mapping with the MOMO_* keys (Flask app config or a dict)
        transport: Optional transport; a RequestsTransport is created otherwise

    Returns:
        Initialized collection client
    """
    missing = [
        key for key in ('MOMO_SUBSCRIPTION_KEY', 'MOMO_API_USER', 'MOMO_API_KEY')
        if not config.get(key)
    ]
    if missing:
        raise ValueError(f"create_collection_client: missing config – {', '.join(missing)}")

    base_url = config.get('MOMO_BASE_URL') or 'https://sandbox.momodeveloper.mtn.com'
    target_environment = resolve_target_environment(base_url, config.get('MOMO_TARGET_ENVIRONMENT'))

    if transport is None:
        transport = RequestsTransport(base_url, timeout=config.get('MOMO_HTTP_TIMEOUT', 30))

    credentials = Credentials(
        subscription_key=config['MOMO_SUBSCRIPTION_KEY'],
        api_user=config['MOMO_API_USER'],
        api_key=config['MOMO_API_KEY'],
    )
    token_manager = TokenManager(
        transport,
        credentials,
        safety_margin=config.get('MOMO_TOKEN_SAFETY_MARGIN', DEFAULT_SAFETY_MARGIN),
    )

    return CollectionClient(
        transport,
        token_manager,
        subscription_key=credentials.subscription_key,
        target_environment=target_environment,
        supported_currencies=config.get('MOMO_SUPPORTED_CURRENCIES') or ('GHS', 'NGN', 'EUR'),
        default_country=config.get('MOMO_DEFAULT_COUNTRY') or 'GH',
        callback_host=config.get('MOMO_CALLBACK_HOST'),
        callback_url=config.get('MOMO_CALLBACK_URL'),
    )


def init_collection_client(app) -> Optional[CollectionClient]:
    """Create the app's collection client, if credentials are configured."""
    try:
        client = create_collection_client(app.config)
    except ValueError as exc:
        logger.warning("MoMo collection client not configured: %s", exc)
        client = None

    app.extensions[EXTENSION_KEY] = client
    return client


def get_collection_client() -> CollectionClient:
    """
    Get the current app's collection client.

    Raises:
        AppError: If the app has no configured client
    """
    client = current_app.extensions.get(EXTENSION_KEY)

    if client is None:
        raise AppError('MoMo collection client is not configured', status_code=500)

    return client


__all__ = [
    'CollectionClient',
    'TokenManager',
    'Transport',
    'RequestsTransport',
    'create_collection_client',
    'init_collection_client',
    'get_collection_client',
    'resolve_target_environment',
]
