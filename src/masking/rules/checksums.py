"""Checksum algorithms used to gate format-preserving masking."""

import string
from types import MappingProxyType
from typing import Mapping, Optional

# Expected IBAN length per country; countries not listed are accepted
# on the generic 15..34 length rule alone.
IBAN_LENGTHS: Mapping[str, int] = MappingProxyType({
    "AD": 24, "AE": 23, "AL": 28, "AT": 20, "AZ": 28, "BA": 20, "BE": 16,
    "BG": 22, "BH": 22, "BR": 29, "BY": 28, "CH": 21, "CR": 22, "CY": 28,
    "CZ": 24, "DE": 22, "DK": 18, "DO": 28, "EE": 20, "EG": 29, "ES": 24,
    "FI": 18, "FO": 18, "FR": 27, "GB": 22, "GE": 22, "GI": 23, "GL": 18,
    "GR": 27, "GT": 28, "HR": 21, "HU": 28, "IE": 22, "IL": 23, "IS": 26,
    "IT": 27, "JO": 30, "KW": 30, "KZ": 20, "LB": 28, "LC": 32, "LI": 21,
    "LT": 20, "LU": 20, "LV": 21, "MC": 27, "MD": 24, "ME": 22, "MK": 19,
    "MR": 27, "MT": 31, "MU": 30, "NL": 18, "NO": 15, "PK": 24, "PL": 28,
    "PS": 29, "PT": 25, "QA": 29, "RO": 24, "RS": 22, "SA": 24, "SE": 24,
    "SI": 19, "SK": 24, "SM": 27, "TN": 24, "TR": 26, "UA": 29, "VA": 22,
    "VG": 24, "XK": 20,
})

IBAN_MIN_LENGTH = 15
IBAN_MAX_LENGTH = 34

_ASCII_ALNUM = frozenset(string.ascii_uppercase + string.digits)


def luhn_is_valid(number: Optional[str]) -> bool:
    """Validate a digit string with the Luhn (mod 10) algorithm.

    Non-digit characters are ignored so formatted card numbers can be passed
    directly. Strings without digits are invalid.
    """
    if not number:
        return False
    digits = [int(c) for c in number if c.isdecimal()]
    if not digits:
        return False

    total = 0
    for position, digit in enumerate(reversed(digits)):
        if position % 2 == 1:
            digit *= 2
            if digit > 9:
                digit -= 9
        total += digit
    return total % 10 == 0


def normalize_iban(iban: str) -> str:
    return iban.replace(" ", "").upper()


def iban_mod97_is_valid(iban: Optional[str]) -> bool:
    """ISO 7064 mod 97-10 check of a normalized IBAN.

    The first four characters move to the end, letters expand to two-digit
    numbers (A=10 .. Z=35) and the remainder is accumulated digit by digit so
    no large integer is ever built.
    """
    if not iban or len(iban) < 4:
        return False
    rearranged = iban[4:] + iban[:4]

    remainder = 0
    for char in rearranged:
        if char.isdigit() and char.isascii():
            remainder = (remainder * 10 + int(char)) % 97
        elif "A" <= char <= "Z":
            value = ord(char) - ord("A") + 10
            remainder = (remainder * 100 + value) % 97
        else:
            return False
    return remainder == 1


def iban_structure_is_valid(iban: str) -> bool:
    """Check length, country prefix, check digits and character set of a normalized IBAN."""
    if not IBAN_MIN_LENGTH <= len(iban) <= IBAN_MAX_LENGTH:
        return False
    country, check_digits = iban[:2], iban[2:4]
    if not (country.isascii() and country.isalpha() and country.isupper()):
        return False
    if not (check_digits.isascii() and check_digits.isdigit()):
        return False
    expected = IBAN_LENGTHS.get(country)
    if expected is not None and len(iban) != expected:
        return False
    return all(c in _ASCII_ALNUM for c in iban[4:])


def iban_is_valid(iban: Optional[str]) -> bool:
    """Full IBAN validation: structure plus mod-97 checksum."""
    if not iban:
        return False
    normalized = normalize_iban(iban)
    return iban_structure_is_valid(normalized) and iban_mod97_is_valid(normalized)
