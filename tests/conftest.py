"""
Pytest Configuration and Fixtures
"""
import os
import threading

import pytest

from momopay import create_app
from momopay.models import Credentials
from momopay.providers import EXTENSION_KEY, CollectionClient, TokenManager
from momopay.providers.transport import Transport

TOKEN_PATH = '/collection/token/'
RTP_PATH = '/collection/v1_0/requesttopay'
BALANCE_PATH = '/collection/v1_0/account/balance'

REFERENCE_ID = '6f5a1c2e-3b4d-4e5f-8a9b-0c1d2e3f4a5b'


def token_response(token='tok-abc', expires_in=3600):
    return 200, {'access_token': token, 'token_type': 'access_token', 'expires_in': expires_in}


def status_response(status, **extra):
    body = {
        'amount': '100',
        'currency': 'GHS',
        'externalId': 'ORD-1',
        'payer': {'partyIdType': 'MSISDN', 'partyId': '233551234567'},
        'status': status,
    }
    body.update(extra)
    return 200, body


class FakeTransport(Transport):
    """
    Scripted transport.

    Responses are queued per (method, path); a path ending in '*' matches by
    prefix. The last queued response for a route is repeated. A queued
    exception is raised instead of returned.
    """

    def __init__(self):
        self.calls = []
        self._routes = []
        self._lock = threading.Lock()
        self.gate = None
        self.closed = False

    def add(self, method, path, *responses):
        self._routes.append((method, path, list(responses)))
        return self

    def calls_to(self, method, path):
        return [c for c in self.calls if c['method'] == method and c['path'] == path]

    def request(self, method, path, headers=None, body=None):
        with self._lock:
            self.calls.append({'method': method, 'path': path, 'headers': dict(headers or {}), 'body': body})
            response = self._next(method, path)

        if self.gate is not None:
            self.gate(method, path)

        if isinstance(response, Exception):
            raise response
        return response

    def close(self):
        self.closed = True

    def _next(self, method, path):
        for route_method, route_path, queue in self._routes:
            if route_method != method:
                continue
            if route_path == path or (route_path.endswith('*') and path.startswith(route_path[:-1])):
                return queue.pop(0) if len(queue) > 1 else queue[0]
        raise AssertionError(f'unexpected request {method} {path}')


class FakeClock:
    def __init__(self, now=1000.0):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


@pytest.fixture
def transport():
    return FakeTransport()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def credentials():
    return Credentials(subscription_key='sub-key', api_user='api-user', api_key='api-key')


@pytest.fixture
def token_manager(transport, credentials, clock):
    return TokenManager(transport, credentials, safety_margin=60, clock=clock)


@pytest.fixture
def collection_client(transport, token_manager):
    return CollectionClient(
        transport,
        token_manager,
        subscription_key='sub-key',
        target_environment='sandbox',
        supported_currencies=('GHS', 'NGN', 'EUR'),
        default_country='GH',
        callback_host='example.com',
    )


@pytest.fixture(scope='session')
def app():
    """Create application for testing"""
    os.environ['FLASK_ENV'] = 'testing'

    app = create_app('testing')

    ctx = app.app_context()
    ctx.push()

    yield app

    ctx.pop()


@pytest.fixture(scope='function')
def client(app):
    """Create a test client"""
    return app.test_client()


@pytest.fixture(scope='function')
def app_transport(app):
    """Swap the app's collection client for one backed by a FakeTransport."""
    fake = FakeTransport()
    original = app.extensions.get(EXTENSION_KEY)

    from momopay.providers import create_collection_client
    app.extensions[EXTENSION_KEY] = create_collection_client(app.config, transport=fake)

    yield fake

    app.extensions[EXTENSION_KEY] = original
