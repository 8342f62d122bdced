"""Masking rules for payment card numbers and IBANs."""

from ..core.rule_base import (
    TextRule, mask_between, require_mask_char, require_non_negative
)
from ..logging.logging_config import get_logger
from ..utils.error_utils import ConfigurationError, FormatValidationError
from .checksums import iban_mod97_is_valid, iban_structure_is_valid, luhn_is_valid, normalize_iban

logger = get_logger(__name__)

# PCI-DSS allows at most the first six and last four digits to be displayed
PCI_MAX_VISIBLE_DIGITS = 10

IBAN_VISIBLE_PREFIX = 4  # Country code + check digits
IBAN_GROUP_SIZE = 4


def _is_digit(char: str) -> bool:
    return char.isdecimal()


class CardMaskRule(TextRule):
    """Masks a payment card number, keeping separators in place.

    Example:
        ```python
        CardMaskRule(keep_first=6, keep_last=4).apply("4532-0151-1283-0366")
        # "4532-01**-****-0366"
        ```
    """

    def __init__(
        self,
        keep_first: int = 0,
        keep_last: int = 4,
        preserve_grouping: bool = True,
        validate_luhn: bool = False,
        mask_char: str = "*"
    ):
        self.keep_first = require_non_negative(keep_first, "keep_first")
        self.keep_last = require_non_negative(keep_last, "keep_last")
        if keep_first + keep_last > PCI_MAX_VISIBLE_DIGITS:
            raise ConfigurationError(
                "Total visible digits (keep_first + keep_last) must not exceed "
                f"{PCI_MAX_VISIBLE_DIGITS} (PCI-DSS limit)"
            )
        self.preserve_grouping = preserve_grouping
        self.validate_luhn = validate_luhn
        self.glyph = require_mask_char(mask_char)

    def apply(self, value):
        if not value:
            return value

        digits = "".join(c for c in value if c.isdecimal())
        if not digits:
            return value

        if self.validate_luhn and not luhn_is_valid(digits):
            raise FormatValidationError("Invalid card number (Luhn check failed)")

        masked = mask_between(value, _is_digit, self.keep_first, self.keep_last, self.glyph)
        if masked is None:
            return value
        if self.preserve_grouping:
            return masked
        return "".join(c for c in masked if c.isdecimal() or c == self.glyph)

    def __repr__(self) -> str:
        return f"CardMaskRule(keep_first={self.keep_first}, keep_last={self.keep_last})"


def group_iban(iban: str) -> str:
    """Format a normalized IBAN in blocks of four."""
    return " ".join(iban[i:i + IBAN_GROUP_SIZE] for i in range(0, len(iban), IBAN_GROUP_SIZE))


class IBANMaskRule(TextRule):
    """Masks an IBAN, keeping the country code, check digits and last characters.

    Input that fails structural or mod-97 validation is returned unchanged.
    When the input was written with spaces and ``preserve_grouping`` is set,
    the result is regrouped in blocks of four.
    """

    def __init__(self, keep_last: int = 4, preserve_grouping: bool = True, mask_char: str = "*"):
        self.keep_last = require_non_negative(keep_last, "keep_last")
        self.preserve_grouping = preserve_grouping
        self.glyph = require_mask_char(mask_char)

    def apply(self, value):
        if not value:
            return value

        had_grouping = " " in value
        normalized = normalize_iban(value)
        if not (iban_structure_is_valid(normalized) and iban_mod97_is_valid(normalized)):
            logger.debug("Invalid IBAN left unchanged")
            return value

        mask_end = len(normalized) - self.keep_last
        if mask_end <= IBAN_VISIBLE_PREFIX:
            return value

        masked = (
            normalized[:IBAN_VISIBLE_PREFIX]
            + self.glyph * (mask_end - IBAN_VISIBLE_PREFIX)
            + normalized[mask_end:]
        )
        if self.preserve_grouping and had_grouping:
            return group_iban(masked)
        return masked

    def __repr__(self) -> str:
        return f"IBANMaskRule(keep_last={self.keep_last})"
