from marshmallow import Schema, fields, validate, EXCLUDE


class AccessTokenSchema(Schema):
    """Token endpoint response schema"""

    class Meta:
        unknown = EXCLUDE

    access_token = fields.Str(required=True, validate=validate.Length(min=1))
    # Some gateways send expires_in as a string ("3600")
    expires_in = fields.Int(required=True, validate=validate.Range(min=0))
    token_type = fields.Str(load_default='access_token')


class SandboxApiKeySchema(Schema):
    """Sandbox provisioning api key response schema"""

    class Meta:
        unknown = EXCLUDE

    api_key = fields.Str(required=True, data_key='apiKey')
