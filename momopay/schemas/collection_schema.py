from marshmallow import Schema, fields, validate, post_load, EXCLUDE

from momopay.models import Balance, CollectionStatus


class RequestToPaySchema(Schema):
    """Outgoing request-to-pay body, dumped from a CollectionRequest"""
    amount = fields.Decimal(as_string=True)
    currency = fields.Str()
    externalId = fields.Str(attribute='external_id')
    payer = fields.Method('get_payer')
    payerMessage = fields.Str(attribute='payer_message')
    payeeNote = fields.Str(attribute='payee_note')

    def get_payer(self, request):
        return {
            'partyIdType': 'MSISDN',
            'partyId': request.payer.canonical,
        }


class PartySchema(Schema):
    class Meta:
        unknown = EXCLUDE

    party_id_type = fields.Str(data_key='partyIdType', load_default=None)
    party_id = fields.Raw(data_key='partyId', load_default=None)


class RequestToPayResultSchema(Schema):
    """Status query response schema"""

    class Meta:
        unknown = EXCLUDE

    amount = fields.Decimal(load_default=None, allow_none=True)
    currency = fields.Str(load_default=None, allow_none=True)
    external_id = fields.Raw(data_key='externalId', load_default=None)
    financial_transaction_id = fields.Raw(data_key='financialTransactionId', load_default=None)
    payer = fields.Nested(PartySchema, load_default=None, allow_none=True)
    status = fields.Str(required=True)
    # Either a plain string or {"code": ..., "message": ...} depending on API version
    reason = fields.Raw(load_default=None, allow_none=True)

    @post_load
    def normalize_fields(self, data, **kwargs):
        payer = data.pop('payer') or {}
        data['payer_id'] = _as_text(payer.get('party_id'))
        data['external_id'] = _as_text(data['external_id'])
        data['financial_transaction_id'] = _as_text(data['financial_transaction_id'])
        data['reason'] = _reason_text(data['reason'])
        data['status'] = CollectionStatus.from_operator(data['status'])
        return data


class BalanceSchema(Schema):
    """Account balance response schema"""

    class Meta:
        unknown = EXCLUDE

    available_balance = fields.Decimal(required=True, data_key='availableBalance')
    currency = fields.Str(required=True)

    @post_load
    def make_balance(self, data, **kwargs):
        return Balance(**data)


class InitiateCollectionSchema(Schema):
    """Collection initiation request schema"""
    amount = fields.Decimal(required=True)
    currency = fields.Str(required=True, validate=validate.Length(equal=3))
    payer = fields.Str(required=True)
    country = fields.Str(load_default=None, validate=validate.OneOf(['GH', 'NG']))
    external_id = fields.Str(load_default=None)
    payer_message = fields.Str(load_default=None, validate=validate.Length(max=160))
    payee_note = fields.Str(load_default=None, validate=validate.Length(max=160))
    callback_url = fields.Url(load_default=None)


def _as_text(value):
    if value is None or value == '':
        return None
    return str(value)


def _reason_text(reason):
    if reason is None or reason == '':
        return None
    if isinstance(reason, dict):
        code = reason.get('code')
        message = reason.get('message')
        if code and message:
            return f'{code}: {message}'
        return _as_text(code or message)
    return str(reason)
