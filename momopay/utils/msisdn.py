"""
MSISDN Normalization
Canonicalizes subscriber phone numbers to the international digit form
the MoMo API expects as a payer partyId (e.g. 233551234567).

Accepted input shapes, per country:
    0551234567          local, with national trunk prefix
    551234567           national significant number
    233551234567        international, calling code without "+"
    +233551234567       international, with "+"
    00233551234567      international, with the 00 access prefix
    2330551234567       calling code followed by a stray trunk "0"
    0233551234567       calling code padded with leading zeros

Spaces, hyphens, dots and parentheses are treated as visual separators.
"""

import re
from dataclasses import dataclass
from typing import Dict, Pattern, Union

from momopay.errors import InvalidNumber
from momopay.models.phone_number import Country, PhoneNumber

_SEPARATORS = re.compile(r'[\s\-.()]')
_DIGITS = re.compile(r'[0-9]+')

TRUNK_PREFIX = '0'


@dataclass(frozen=True)
class NumberPlan:
    calling_code: str
    national_digits: int
    # Operator independent: mobile ranges only, no per-operator checks
    national_pattern: Pattern


NUMBER_PLANS: Dict[Country, NumberPlan] = {
    Country.GH: NumberPlan(
        calling_code='233',
        national_digits=9,
        national_pattern=re.compile(r'[25][0-9]{8}'),
    ),
    Country.NG: NumberPlan(
        calling_code='234',
        national_digits=10,
        national_pattern=re.compile(r'[789][01][0-9]{8}'),
    ),
}


def normalize(raw: str, country: Union[Country, str]) -> PhoneNumber:
    """
    Normalize a phone number for the given country.

    Args:
        raw: Phone number as supplied by the caller
        country: Country tag (Country.GH / Country.NG or 'GH' / 'NG')

    Returns:
        PhoneNumber carrying the canonical international digit form

    Raises:
        InvalidNumber: If the number cannot be made valid for the country
    """
    try:
        country = Country(country)
    except ValueError:
        raise InvalidNumber(raw, f"unsupported country {country!r}") from None

    if not isinstance(raw, str) or not raw.strip():
        raise InvalidNumber(raw, "phone number is required")

    plan = NUMBER_PLANS[country]
    digits = _SEPARATORS.sub('', raw)

    international = False
    if digits.startswith('+'):
        digits = digits[1:]
        international = True
    elif digits.startswith('00'):
        digits = digits[2:]
        international = True

    if not _DIGITS.fullmatch(digits):
        raise InvalidNumber(raw, "phone number must contain only digits")

    code = plan.calling_code
    international_length = len(code) + plan.national_digits
    unpadded = digits.lstrip(TRUNK_PREFIX)
    if unpadded.startswith(code) and len(unpadded) in (international_length, international_length + 1):
        # zero padding ahead of the calling code, e.g. 0233551234567
        digits = unpadded

    if international and not digits.startswith(code):
        raise InvalidNumber(raw, f"not a {country.value} number, expected calling code {code}")

    national = digits
    if digits.startswith(code) and len(digits) >= len(code) + plan.national_digits:
        national = digits[len(code):]

    if national.startswith(TRUNK_PREFIX) and len(national) == plan.national_digits + 1:
        national = national[1:]

    if len(national) != plan.national_digits:
        raise InvalidNumber(
            raw,
            f"expected {plan.national_digits} national digits for {country.value}, got {len(national)}"
        )

    if not plan.national_pattern.fullmatch(national):
        raise InvalidNumber(raw, f"unrecognized {country.value} mobile prefix {national[:2]}")

    return PhoneNumber(raw=raw, country=country, canonical=f'{code}{national}')
