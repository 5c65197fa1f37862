"""
Schemas Package
Marshmallow schemas for MoMo wire payloads and API request validation
"""

from momopay.schemas.token_schema import AccessTokenSchema, SandboxApiKeySchema
from momopay.schemas.collection_schema import (
    RequestToPaySchema,
    RequestToPayResultSchema,
    BalanceSchema,
    InitiateCollectionSchema,
)

__all__ = [
    'AccessTokenSchema',
    'SandboxApiKeySchema',
    'RequestToPaySchema',
    'RequestToPayResultSchema',
    'BalanceSchema',
    'InitiateCollectionSchema',
]
