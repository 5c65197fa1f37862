"""
Unit Tests for the CollectionClient
"""

import uuid
from decimal import Decimal
from unittest.mock import patch

import pytest

from conftest import BALANCE_PATH, REFERENCE_ID, RTP_PATH, TOKEN_PATH, status_response, token_response
from momopay.errors import (
    InvalidInput,
    InvalidNumber,
    RequestRejected,
    TokenAcquisitionFailed,
    TransientError,
    TransportError,
)
from momopay.models import Balance, CollectionStatus, CollectionTransaction
from momopay.providers import CollectionClient, create_collection_client, resolve_target_environment
from momopay.utils.msisdn import normalize

STATUS_PATH = f'{RTP_PATH}/{REFERENCE_ID}'


@pytest.fixture
def accepted(transport):
    transport.add('POST', TOKEN_PATH, token_response('tok-1'), token_response('tok-2'))
    transport.add('POST', RTP_PATH, (202, None))
    return transport


class TestRequestToPay:
    """Tests for request_to_pay"""

    def test_success_returns_reference_id(self, collection_client, accepted):
        reference_id = collection_client.request_to_pay(
            amount=100, currency='GHS', payer_raw='0551234567', country='GH',
            external_id='ORD-1', payer_message='Order 1', payee_note='thanks',
        )

        assert str(uuid.UUID(reference_id)) == reference_id

    def test_submits_normalized_payer_and_headers(self, collection_client, accepted):
        reference_id = collection_client.request_to_pay(
            amount=100, currency='GHS', payer_raw='0551234567', country='GH',
            external_id='ORD-1', payer_message='Order 1', payee_note='thanks',
        )

        call = accepted.calls_to('POST', RTP_PATH)[0]
        assert call['body'] == {
            'amount': '100',
            'currency': 'GHS',
            'externalId': 'ORD-1',
            'payer': {'partyIdType': 'MSISDN', 'partyId': '233551234567'},
            'payerMessage': 'Order 1',
            'payeeNote': 'thanks',
        }
        headers = call['headers']
        assert headers['X-Reference-Id'] == reference_id
        assert headers['Authorization'] == 'Bearer tok-1'
        assert headers['X-Target-Environment'] == 'sandbox'
        assert headers['Ocp-Apim-Subscription-Key'] == 'sub-key'
        assert 'X-Callback-Url' not in headers

    def test_successive_calls_use_distinct_reference_ids(self, collection_client, accepted):
        first = collection_client.request_to_pay(100, 'GHS', '0551234567', 'GH')
        second = collection_client.request_to_pay(100, 'GHS', '0551234567', 'GH')

        assert first != second
        sent = [c['headers']['X-Reference-Id'] for c in accepted.calls_to('POST', RTP_PATH)]
        assert sent == [first, second]
        # token reused across submissions
        assert len(accepted.calls_to('POST', TOKEN_PATH)) == 1

    def test_external_id_defaults_to_reference_id(self, collection_client, accepted):
        reference_id = collection_client.request_to_pay(Decimal('10.50'), 'EUR', '+233241234567')

        body = accepted.calls_to('POST', RTP_PATH)[0]['body']
        assert body['externalId'] == reference_id
        assert body['amount'] == '10.50'
        assert body['payerMessage'] == ''

    def test_default_country_used(self, collection_client, accepted):
        collection_client.request_to_pay(5, 'GHS', '0241234567')

        body = accepted.calls_to('POST', RTP_PATH)[0]['body']
        assert body['payer']['partyId'] == '233241234567'

    def test_nigerian_payer(self, collection_client, accepted):
        collection_client.request_to_pay(5, 'NGN', '08031234567', country='NG')

        body = accepted.calls_to('POST', RTP_PATH)[0]['body']
        assert body['payer']['partyId'] == '2348031234567'

    def test_normalized_payer_used_as_is(self, collection_client, accepted):
        payer = normalize('+234 803 123 4567', 'NG')

        with patch('momopay.providers.collection_client.normalize') as mock_normalize:
            collection_client.request_to_pay(5, 'NGN', payer)

        mock_normalize.assert_not_called()
        body = accepted.calls_to('POST', RTP_PATH)[0]['body']
        assert body['payer']['partyId'] == '2348031234567'

    def test_callback_url_header(self, collection_client, accepted):
        collection_client.request_to_pay(5, 'GHS', '0241234567', callback_url='https://example.com/cb/1')

        headers = accepted.calls_to('POST', RTP_PATH)[0]['headers']
        assert headers['X-Callback-Url'] == 'https://example.com/cb/1'

    def test_default_callback_url_header(self, transport, token_manager, accepted):
        client = CollectionClient(
            transport, token_manager, subscription_key='sub-key',
            callback_host='example.com', callback_url='https://example.com/momo',
        )

        client.request_to_pay(5, 'GHS', '0241234567')

        headers = accepted.calls_to('POST', RTP_PATH)[0]['headers']
        assert headers['X-Callback-Url'] == 'https://example.com/momo'

    # ── validation ────────────────────────────────────────────────────────

    @pytest.mark.parametrize('amount', [0, -5, '0.00', 'abc', 1.234, None, True, float('nan')])
    def test_invalid_amount(self, collection_client, transport, amount):
        with pytest.raises(InvalidInput):
            collection_client.request_to_pay(amount, 'GHS', '0551234567')

        assert transport.calls == []

    @pytest.mark.parametrize('currency', ['', 'ghs', 'USD', 'GHSS', None])
    def test_invalid_currency(self, collection_client, transport, currency):
        with pytest.raises(InvalidInput):
            collection_client.request_to_pay(100, currency, '0551234567')

        assert transport.calls == []

    def test_invalid_number_propagates_unchanged(self, collection_client, transport):
        with pytest.raises(InvalidNumber) as exc_info:
            collection_client.request_to_pay(100, 'GHS', '12345')

        assert exc_info.value.raw == '12345'
        assert transport.calls == []

    def test_callback_on_foreign_host_rejected(self, collection_client, transport):
        with pytest.raises(InvalidInput, match='example.com'):
            collection_client.request_to_pay(5, 'GHS', '0241234567', callback_url='https://evil.test/cb')

        assert transport.calls == []

    # ── operator and transport failures ───────────────────────────────────

    def test_token_failure_propagates_unchanged(self, collection_client, transport):
        transport.add('POST', TOKEN_PATH, (401, {'error': 'login_failed'}))

        with pytest.raises(TokenAcquisitionFailed):
            collection_client.request_to_pay(100, 'GHS', '0551234567')

        assert transport.calls_to('POST', RTP_PATH) == []

    @pytest.mark.parametrize('status_code', [400, 403, 409])
    def test_client_error_is_rejection(self, collection_client, transport, status_code):
        transport.add('POST', TOKEN_PATH, token_response())
        transport.add('POST', RTP_PATH, (status_code, {'code': 'PAYER_NOT_FOUND', 'message': 'Payer not found'}))

        with pytest.raises(RequestRejected) as exc_info:
            collection_client.request_to_pay(100, 'GHS', '0551234567')

        assert exc_info.value.reason == 'Payer not found'
        assert exc_info.value.operator_status == status_code
        assert exc_info.value.reference_id is not None

    @pytest.mark.parametrize('status_code', [500, 502, 503, 200])
    def test_server_error_is_transient_and_not_retried(self, collection_client, transport, status_code):
        transport.add('POST', TOKEN_PATH, token_response())
        transport.add('POST', RTP_PATH, (status_code, 'upstream failure'))

        with pytest.raises(TransientError) as exc_info:
            collection_client.request_to_pay(100, 'GHS', '0551234567')

        assert len(transport.calls_to('POST', RTP_PATH)) == 1
        assert exc_info.value.reference_id == transport.calls_to('POST', RTP_PATH)[0]['headers']['X-Reference-Id']

    def test_network_error_is_transient_and_not_retried(self, collection_client, transport):
        transport.add('POST', TOKEN_PATH, token_response())
        transport.add('POST', RTP_PATH, TransportError('connection reset'))

        with pytest.raises(TransientError, match='connection reset'):
            collection_client.request_to_pay(100, 'GHS', '0551234567')

        assert len(transport.calls_to('POST', RTP_PATH)) == 1

    def test_unauthorized_invalidates_token_without_resubmitting(self, collection_client, transport):
        transport.add('POST', TOKEN_PATH, token_response('tok-1'), token_response('tok-2'))
        transport.add('POST', RTP_PATH, (401, {'message': 'Access token expired'}), (202, None))

        with pytest.raises(TransientError, match='401'):
            collection_client.request_to_pay(100, 'GHS', '0551234567')
        assert len(transport.calls_to('POST', RTP_PATH)) == 1

        collection_client.request_to_pay(100, 'GHS', '0551234567')
        assert transport.calls_to('POST', RTP_PATH)[1]['headers']['Authorization'] == 'Bearer tok-2'


class TestGetStatus:
    """Tests for get_status / get_transaction"""

    @pytest.fixture(autouse=True)
    def token(self, transport):
        transport.add('POST', TOKEN_PATH, token_response('tok-1'), token_response('tok-2'))

    @pytest.mark.parametrize('raw, expected', [
        ('PENDING', CollectionStatus.PENDING),
        ('SUCCESSFUL', CollectionStatus.SUCCESSFUL),
        ('FAILED', CollectionStatus.FAILED),
        ('successful', CollectionStatus.SUCCESSFUL),
        ('ONGOING', CollectionStatus.UNKNOWN),
        ('', CollectionStatus.UNKNOWN),
    ])
    def test_status_mapping(self, collection_client, transport, raw, expected):
        transport.add('GET', STATUS_PATH, status_response(raw))

        assert collection_client.get_status(REFERENCE_ID) is expected

    @pytest.mark.parametrize('body', [None, 'not json', [], {'amount': '1'}, {'status': 7}, {'status': None}])
    def test_unparseable_response_is_unknown(self, collection_client, transport, body):
        transport.add('GET', STATUS_PATH, (200, body))

        assert collection_client.get_status(REFERENCE_ID) is CollectionStatus.UNKNOWN

    def test_query_headers(self, collection_client, transport):
        transport.add('GET', STATUS_PATH, status_response('PENDING'))

        collection_client.get_status(REFERENCE_ID)

        call = transport.calls_to('GET', STATUS_PATH)[0]
        assert call['headers']['Authorization'] == 'Bearer tok-1'
        assert call['headers']['X-Target-Environment'] == 'sandbox'
        assert call['headers']['Ocp-Apim-Subscription-Key'] == 'sub-key'
        assert call['body'] is None

    def test_repeated_queries_are_identical(self, collection_client, transport):
        transport.add('GET', STATUS_PATH, status_response('PENDING'))

        statuses = [collection_client.get_status(REFERENCE_ID) for _ in range(3)]

        assert statuses == [CollectionStatus.PENDING] * 3
        assert all(c['method'] == 'GET' for c in transport.calls if c['path'] == STATUS_PATH)

    def test_transaction_details(self, collection_client, transport):
        transport.add('GET', STATUS_PATH, status_response(
            'FAILED', financialTransactionId=123456, reason={'code': 'APPROVAL_REJECTED', 'message': 'Declined'},
        ))

        transaction = collection_client.get_transaction(REFERENCE_ID)

        assert isinstance(transaction, CollectionTransaction)
        assert transaction.status is CollectionStatus.FAILED
        assert transaction.amount == Decimal('100')
        assert transaction.currency == 'GHS'
        assert transaction.external_id == 'ORD-1'
        assert transaction.financial_transaction_id == '123456'
        assert transaction.payer_id == '233551234567'
        assert transaction.reason == 'APPROVAL_REJECTED: Declined'
        assert transaction.to_dict()['status'] == 'FAILED'

    def test_string_reason(self, collection_client, transport):
        transport.add('GET', STATUS_PATH, status_response('FAILED', reason='INTERNAL_PROCESSING_ERROR'))

        assert collection_client.get_transaction(REFERENCE_ID).reason == 'INTERNAL_PROCESSING_ERROR'

    def test_invalid_reference_id(self, collection_client, transport):
        with pytest.raises(InvalidInput, match='UUID'):
            collection_client.get_status('../account/balance')

        assert transport.calls == []

    def test_not_found_is_rejection(self, collection_client, transport):
        transport.add('GET', STATUS_PATH, (404, {'code': 'RESOURCE_NOT_FOUND', 'message': 'Requested resource was not found.'}))

        with pytest.raises(RequestRejected) as exc_info:
            collection_client.get_status(REFERENCE_ID)

        assert exc_info.value.operator_status == 404
        assert exc_info.value.reference_id == REFERENCE_ID

    @pytest.mark.parametrize('response', [(500, 'error'), (503, None), TransportError('timeout')])
    def test_server_and_network_errors_are_transient(self, collection_client, transport, response):
        transport.add('GET', STATUS_PATH, response)

        with pytest.raises(TransientError):
            collection_client.get_status(REFERENCE_ID)

    def test_unauthorized_refreshes_token_once(self, collection_client, transport):
        transport.add('GET', STATUS_PATH, (401, {'message': 'expired'}), status_response('SUCCESSFUL'))

        assert collection_client.get_status(REFERENCE_ID) is CollectionStatus.SUCCESSFUL

        calls = transport.calls_to('GET', STATUS_PATH)
        assert [c['headers']['Authorization'] for c in calls] == ['Bearer tok-1', 'Bearer tok-2']

    def test_repeated_unauthorized_raises(self, collection_client, transport):
        transport.add('GET', STATUS_PATH, (401, {'message': 'expired'}))

        with pytest.raises(TokenAcquisitionFailed):
            collection_client.get_status(REFERENCE_ID)

        assert len(transport.calls_to('GET', STATUS_PATH)) == 2


class TestGetBalance:

    def test_balance(self, collection_client, transport):
        transport.add('POST', TOKEN_PATH, token_response())
        transport.add('GET', BALANCE_PATH, (200, {'availableBalance': '1500.25', 'currency': 'EUR'}))

        balance = collection_client.get_balance()

        assert balance == Balance(available_balance=Decimal('1500.25'), currency='EUR')
        assert balance.to_dict() == {'available_balance': '1500.25', 'currency': 'EUR'}

    def test_malformed_balance_is_transient(self, collection_client, transport):
        transport.add('POST', TOKEN_PATH, token_response())
        transport.add('GET', BALANCE_PATH, (200, {'currency': 'EUR'}))

        with pytest.raises(TransientError, match='malformed'):
            collection_client.get_balance()


class TestClientConstruction:

    @pytest.fixture
    def config(self):
        return {
            'MOMO_BASE_URL': 'https://sandbox.momodeveloper.mtn.com',
            'MOMO_SUBSCRIPTION_KEY': 'sub-key',
            'MOMO_API_USER': 'api-user',
            'MOMO_API_KEY': 'api-key',
            'MOMO_DEFAULT_COUNTRY': 'NG',
        }

    def test_create_from_config(self, config, transport):
        client = create_collection_client(config, transport=transport)

        assert client.target_environment == 'sandbox'
        assert client.default_country.value == 'NG'
        assert client.supported_currencies == ('GHS', 'NGN', 'EUR')

    def test_missing_credentials(self, config):
        del config['MOMO_API_KEY']

        with pytest.raises(ValueError, match='MOMO_API_KEY'):
            create_collection_client(config)

    @pytest.mark.parametrize('base_url, configured, expected', [
        ('https://sandbox.momodeveloper.mtn.com/', None, 'sandbox'),
        ('http://localhost:8080', None, 'sandbox'),
        ('https://proxy.momoapi.mtn.com', 'mtnghana', 'mtnghana'),
    ])
    def test_target_environment(self, base_url, configured, expected):
        assert resolve_target_environment(base_url, configured) == expected

    def test_production_requires_target_environment(self):
        with pytest.raises(ValueError, match='MOMO_TARGET_ENVIRONMENT'):
            resolve_target_environment('https://momodeveloper.mtn.com/')

    def test_invalid_default_callback(self, transport, token_manager):
        with pytest.raises(ValueError, match='callback'):
            CollectionClient(transport, token_manager, subscription_key='k',
                             callback_host='example.com', callback_url='https://other.test/cb')
