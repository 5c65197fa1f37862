"""
Sandbox API user provisioning.

    POST /v1_0/apiuser                  X-Reference-Id: <new api user id>
    POST /v1_0/apiuser/{id}/apikey      -> {"apiKey": ...}

The resulting api user / api key pair is what the TokenManager exchanges
for access tokens. Only available against the sandbox.
"""

import logging
import uuid

from marshmallow import ValidationError

from momopay.errors import RequestRejected, TransientError
from momopay.models import Credentials
from momopay.providers.transport import Transport
from momopay.schemas import SandboxApiKeySchema

logger = logging.getLogger(__name__)

SANDBOX_BASE_URL = "https://sandbox.momodeveloper.mtn.com"
# The callback host is fixed per api user; any reachable host works in the sandbox
DEFAULT_CALLBACK_HOST = "webhook.site"

_api_key_schema = SandboxApiKeySchema()


def create_sandbox_credentials(
        transport: Transport,
        subscription_key: str,
        callback_host: str = DEFAULT_CALLBACK_HOST
) -> Credentials:
    """
    Create a sandbox api user and api key

    Args:
        transport: Transport pointed at the sandbox
        subscription_key: Collection product subscription key
        callback_host: Host that request-to-pay callbacks will target

    Returns:
        Credentials for the new api user

    Raises:
        RequestRejected: The sandbox refused to create the user or key
        TransientError: Network failure or sandbox server error
    """
    api_user = str(uuid.uuid4())
    headers = {
        "X-Reference-Id": api_user,
        "Ocp-Apim-Subscription-Key": subscription_key,
        "Content-Type": "application/json",
    }

    status_code, body = transport.request(
        "POST", "/v1_0/apiuser", headers=headers, body={"providerCallbackHost": callback_host}
    )
    _expect(status_code, 201, body, "creating a sandbox user")
    logger.debug("Sandbox api user %s created", api_user)

    status_code, body = transport.request(
        "POST",
        f"/v1_0/apiuser/{api_user}/apikey",
        headers={"Ocp-Apim-Subscription-Key": subscription_key},
    )
    _expect(status_code, 201, body, "creating a sandbox api key")

    try:
        data = _api_key_schema.load(body if isinstance(body, dict) else {})
    except ValidationError as exc:
        raise TransientError(f"creating a sandbox api key failed – malformed response {exc.messages}") from exc

    return Credentials(subscription_key=subscription_key, api_user=api_user, api_key=data["api_key"])


def _expect(status_code, expected, body, context):
    if status_code == expected:
        return
    message = body.get("message", body) if isinstance(body, dict) else (body or "")
    if 400 <= status_code < 500:
        raise RequestRejected(f"{context} failed – HTTP {status_code}: {message}", operator_status=status_code)
    raise TransientError(f"{context} failed – HTTP {status_code}: {message}")
