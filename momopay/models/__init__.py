from momopay.models.phone_number import Country, PhoneNumber
from momopay.models.token import Credentials, AccessToken
from momopay.models.collection import (
    CollectionStatus,
    CollectionRequest,
    CollectionTransaction,
    Balance,
)

__all__ = ['Country', 'PhoneNumber', 'Credentials', 'AccessToken', 'CollectionStatus',
           'CollectionRequest', 'CollectionTransaction', 'Balance']
