from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Optional

from momopay.models.phone_number import PhoneNumber


class CollectionStatus(str, Enum):
    PENDING = 'PENDING'
    SUCCESSFUL = 'SUCCESSFUL'
    FAILED = 'FAILED'
    UNKNOWN = 'UNKNOWN'

    @classmethod
    def from_operator(cls, raw) -> 'CollectionStatus':
        """Map the operator's raw status string; anything unexpected is UNKNOWN."""
        if not isinstance(raw, str):
            return cls.UNKNOWN
        try:
            status = cls(raw.strip().upper())
        except ValueError:
            return cls.UNKNOWN
        return status

    @property
    def is_terminal(self) -> bool:
        return self in (CollectionStatus.SUCCESSFUL, CollectionStatus.FAILED)


@dataclass(frozen=True)
class CollectionRequest:
    amount: Decimal
    currency: str
    payer: PhoneNumber
    reference_id: str
    external_id: str
    payer_message: Optional[str] = None
    payee_note: Optional[str] = None

    def __repr__(self):
        return f'<CollectionRequest {self.reference_id} - {self.amount} {self.currency}>'


@dataclass(frozen=True)
class CollectionTransaction:
    reference_id: str
    status: CollectionStatus
    amount: Optional[Decimal] = None
    currency: Optional[str] = None
    external_id: Optional[str] = None
    financial_transaction_id: Optional[str] = None
    payer_id: Optional[str] = None
    reason: Optional[str] = None

    def to_dict(self):
        return {
            'reference_id': self.reference_id,
            'status': self.status.value,
            'amount': str(self.amount) if self.amount is not None else None,
            'currency': self.currency,
            'external_id': self.external_id,
            'financial_transaction_id': self.financial_transaction_id,
            'payer': self.payer_id,
            'reason': self.reason,
        }


@dataclass(frozen=True)
class Balance:
    available_balance: Decimal
    currency: str

    def to_dict(self):
        return {
            'available_balance': str(self.available_balance),
            'currency': self.currency,
        }
