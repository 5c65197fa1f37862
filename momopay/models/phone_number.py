from dataclasses import dataclass
from enum import Enum


class Country(str, Enum):
    GH = 'GH'
    NG = 'NG'


@dataclass(frozen=True)
class PhoneNumber:
    raw: str
    country: Country
    canonical: str

    @property
    def masked(self) -> str:
        """Canonical form with all but the last three digits hidden, for logs."""
        return '*' * (len(self.canonical) - 3) + self.canonical[-3:]

    def to_dict(self):
        return {
            'country': self.country.value,
            'msisdn': self.canonical,
        }

    def __str__(self):
        return self.canonical
