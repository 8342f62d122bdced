"""Masking rules for personal identifiers: phone numbers, national IDs, emails."""

from enum import Enum
from typing import Mapping, Optional

import regex

from ..core.rule_base import (
    TextRule, mask_between, require_mask_char, require_non_negative
)
from ..logging.logging_config import get_logger
from ..utils.error_utils import FormatValidationError
from .national_id_catalog import NATIONAL_ID_CATALOG, PATTERN_TIMEOUT, CountryIdPattern

logger = get_logger(__name__)


class PhoneMaskRule(TextRule):
    """Masks every digit of a phone number except the last ``keep_last``.

    With ``preserve_separators`` the masked digits stay in place, so
    ``"+1 (555) 123-4567"`` becomes ``"+* (***) ***-4567"`` for
    ``keep_last=4``. Without it only the digits are returned.
    """

    def __init__(self, keep_last: int = 2, preserve_separators: bool = True, mask_char: str = "*"):
        self.keep_last = require_non_negative(keep_last, "keep_last")
        self.preserve_separators = preserve_separators
        self.glyph = require_mask_char(mask_char)

    def apply(self, value):
        if not value:
            return value

        if not self.preserve_separators:
            digits = "".join(c for c in value if c.isdecimal())
            if self.keep_last >= len(digits):
                return digits
            visible = digits[len(digits) - self.keep_last:] if self.keep_last else ""
            return self.glyph * (len(digits) - self.keep_last) + visible

        masked = mask_between(value, str.isdecimal, 0, self.keep_last, self.glyph)
        return value if masked is None else masked

    def __repr__(self) -> str:
        return f"PhoneMaskRule(keep_last={self.keep_last})"


class NationalIdMaskRule(TextRule):
    """Masks national identifiers using per-country formats.

    With a ``country_code`` only that country's pattern is tried; with
    ``country_code=None`` the catalog is searched in order and the first
    matching format wins. Input that matches nothing, or an unknown country
    code, is returned unchanged. Pattern tests are bounded in time and a
    timeout counts as no match.

    Example:
        ```python
        NationalIdMaskRule("UK").apply("AB123456C")      # "AB******C"
        NationalIdMaskRule(None).apply("123-45-6789")   # "***-**-6789" (US)
        ```
    """

    def __init__(
        self,
        country_code: Optional[str] = "US",
        keep_first: Optional[int] = None,
        keep_last: Optional[int] = None,
        mask_char: str = "*",
        catalog: Mapping[str, CountryIdPattern] = NATIONAL_ID_CATALOG,
        timeout: float = PATTERN_TIMEOUT
    ):
        if keep_first is not None:
            require_non_negative(keep_first, "keep_first")
        if keep_last is not None:
            require_non_negative(keep_last, "keep_last")
        self.country_code = country_code
        self.keep_first = keep_first
        self.keep_last = keep_last
        self.glyph = require_mask_char(mask_char)
        self.catalog = catalog
        self.timeout = timeout

    def _matches(self, pattern: CountryIdPattern, value: str) -> bool:
        try:
            return pattern.matches(value, timeout=self.timeout)
        except TimeoutError:
            logger.warning(f"National ID pattern {pattern.code} timed out, treating as no match")
            return False

    def detect(self, value: str) -> Optional[CountryIdPattern]:
        """Return the format ``value`` belongs to, or ``None``."""
        if self.country_code:
            pattern = self.catalog.get(self.country_code)
            if pattern is None or not self._matches(pattern, value):
                return None
            return pattern

        for pattern in self.catalog.values():
            if self._matches(pattern, value):
                return pattern
        return None

    def apply(self, value):
        if not value:
            return value

        pattern = self.detect(value)
        if pattern is None:
            return value

        keep_first = pattern.keep_first if self.keep_first is None else self.keep_first
        keep_last = pattern.keep_last if self.keep_last is None else self.keep_last
        masked = mask_between(value, str.isalnum, keep_first, keep_last, self.glyph)
        return value if masked is None else masked

    def __repr__(self) -> str:
        return f"NationalIdMaskRule(country_code={self.country_code!r})"


class EmailDomainStrategy(Enum):
    """How ``EmailMaskRule`` treats the domain part."""
    KEEP_ROOT = "keep_root"  # Keep only the last two labels
    KEEP_FULL = "keep_full"
    MASK_ALL = "mask_all"    # Keep the first character of each label


EMAIL_PATTERN = regex.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$", regex.IGNORECASE)


class EmailMaskRule(TextRule):
    """Masks the local part of an email address and optionally its domain.

    A ``+tag`` suffix of the local part is kept after the masked name.
    """

    def __init__(
        self,
        local_keep: int = 1,
        domain_strategy: EmailDomainStrategy = EmailDomainStrategy.KEEP_ROOT,
        mask_char: str = "*",
        validate_format: bool = True
    ):
        self.local_keep = require_non_negative(local_keep, "local_keep")
        self.domain_strategy = EmailDomainStrategy(domain_strategy)
        self.glyph = require_mask_char(mask_char)
        self.validate_format = validate_format

    def apply(self, value):
        if not value:
            return value

        if self.validate_format:
            try:
                valid = EMAIL_PATTERN.search(value, timeout=PATTERN_TIMEOUT) is not None
            except TimeoutError:
                valid = False
            if not valid:
                raise FormatValidationError("Invalid email format")

        parts = value.split("@")
        if len(parts) != 2:
            return value
        local, domain = parts

        return f"{self._mask_local(local)}@{self._mask_domain(domain)}"

    def _mask_local(self, local: str) -> str:
        plus = local.find("+")
        base, tag = (local[:plus], local[plus:]) if plus > 0 else (local, "")
        if self.local_keep >= len(base):
            return local
        return base[:self.local_keep] + self.glyph * (len(base) - self.local_keep) + tag

    def _mask_domain(self, domain: str) -> str:
        labels = domain.split(".")
        if self.domain_strategy is EmailDomainStrategy.KEEP_ROOT:
            return ".".join(labels[-2:])
        if self.domain_strategy is EmailDomainStrategy.MASK_ALL:
            return ".".join(
                label if len(label) <= 1 else label[0] + self.glyph * (len(label) - 1)
                for label in labels
            )
        return domain

    def __repr__(self) -> str:
        return f"EmailMaskRule(local_keep={self.local_keep}, domain_strategy={self.domain_strategy.value})"
