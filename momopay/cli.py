"""
Sandbox credential bootstrap

    momo-sandbox-user --subscription-key=<key> [--callback-host=<host>]
    flask sandbox-user --subscription-key=<key> [--callback-host=<host>]

Prints {"api_user": ..., "api_key": ...} on success. Nothing is stored.
"""

import json

import click

from momopay.errors import AppError
from momopay.providers.sandbox import (
    DEFAULT_CALLBACK_HOST,
    SANDBOX_BASE_URL,
    create_sandbox_credentials,
)
from momopay.providers.transport import RequestsTransport


@click.command('sandbox-user')
@click.option('--subscription-key', required=True, envvar='MOMO_SUBSCRIPTION_KEY',
              help='Collection product subscription key.')
@click.option('--callback-host', default=DEFAULT_CALLBACK_HOST, show_default=True,
              help='Host that request-to-pay callbacks will target.')
@click.option('--base-url', default=SANDBOX_BASE_URL, show_default=True, hidden=True)
def sandbox_user(subscription_key, callback_host, base_url):
    """Create MoMo sandbox api user credentials."""
    transport = RequestsTransport(base_url)
    try:
        credentials = create_sandbox_credentials(transport, subscription_key, callback_host)
    except AppError as exc:
        raise click.ClickException(exc.message)
    finally:
        transport.close()

    click.echo(json.dumps({
        'api_user': credentials.api_user,
        'api_key': credentials.api_key,
    }))


main = sandbox_user
