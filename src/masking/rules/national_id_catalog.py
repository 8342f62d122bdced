"""Catalog of national identifier formats by country.

Auto-detection walks ``NATIONAL_ID_CATALOG`` in insertion order and commits to
the first pattern that matches. Several countries share a pattern (ten plain
digits match AT before BG, HU, UA and EC; nine digits match GR before NL, PT,
US_UNFORMATTED and IL), so the order below is part of the behavior and must not
be re-sorted.
"""

from dataclasses import dataclass
from types import MappingProxyType
from typing import Mapping, Tuple

import regex

# Upper bound for one pattern test, in seconds
PATTERN_TIMEOUT = 0.1


@dataclass(frozen=True)
class CountryIdPattern:
    """Validation pattern and default visibility for one identifier format."""
    code: str
    pattern: "regex.Pattern"
    keep_first: int
    keep_last: int
    mask_char: str = "*"

    def matches(self, text: str, timeout: float = PATTERN_TIMEOUT) -> bool:
        """Test ``text`` against the pattern.

        Raises:
            TimeoutError: If the match exceeds ``timeout`` seconds
        """
        return self.pattern.search(text, timeout=timeout) is not None


# (code, pattern, keep_first, keep_last)
_ENTRIES: Tuple[Tuple[str, str, int, int], ...] = (
    # European Union
    ("AT", r"^\d{10}$", 0, 4),
    ("BE", r"^\d{2}\d{2}\d{2}[-.\s]?\d{3}[-.\s]?\d{2}$", 0, 4),
    ("BG", r"^\d{10}$", 0, 4),
    ("HR", r"^\d{11}$", 0, 4),
    ("CY", r"^\d{8}[A-Z]$", 0, 3),
    ("CZ", r"^\d{2}[0-1]\d[0-3]\d\/?\d{3,4}$", 0, 4),
    ("DK", r"^\d{6}-?\d{4}$", 0, 4),
    ("EE", r"^\d{11}$", 0, 4),
    ("FI", r"^\d{6}[+\-A]\d{3}[0-9A-Z]$", 0, 4),
    ("FR", r"^\d{13}(\s?\d{2})?$", 0, 4),
    ("DE", r"^\d{11}$", 0, 4),
    ("GR", r"^\d{9}$", 0, 3),
    ("HU", r"^\d{10}$", 0, 4),
    ("IE", r"^\d{7}[A-Z]{1,2}$", 0, 3),
    ("IT", r"^[A-Z]{6}\d{2}[A-Z]\d{2}[A-Z]\d{3}[A-Z]$", 3, 3),
    ("LV", r"^\d{11}$", 0, 4),
    ("LT", r"^\d{11}$", 0, 4),
    ("LU", r"^\d{13}$", 0, 4),
    ("MT", r"^\d{7}[A-Z]$", 0, 3),
    ("NL", r"^\d{9}$", 0, 3),
    ("PL", r"^\d{11}$", 0, 4),
    ("PT", r"^\d{9}$", 0, 3),
    ("RO", r"^\d{13}$", 0, 4),
    ("SK", r"^\d{2}[0-1]\d[0-3]\d\/?\d{3,4}$", 0, 4),
    ("SI", r"^\d{8}$", 0, 3),
    ("ES", r"^\d{8}[A-Z]$|^[XYZ]\d{7}[A-Z]$", 0, 3),
    ("SE", r"^\d{6}[-+]?\d{4}$", 0, 4),
    # Other European and North American formats
    ("US", r"^\d{3}-\d{2}-\d{4}$", 0, 4),
    ("US_UNFORMATTED", r"^\d{9}$", 0, 4),
    ("UK", r"^[A-CEGHJ-PR-TW-Z]{2}\d{6}[A-D]$", 2, 1),
    ("CA", r"^\d{3}-\d{3}-\d{3}$", 0, 3),
    ("CH", r"^756\.\d{4}\.\d{4}\.\d{2}$|^756\d{10}$", 3, 2),
    ("NO", r"^\d{11}$", 0, 4),
    ("IS", r"^\d{6}-?\d{4}$", 0, 4),
    ("RU", r"^\d{3}-?\d{3}-?\d{3}\s?\d{2}$|^\d{11}$", 0, 2),
    ("TR", r"^[1-9]\d{10}$", 0, 4),
    ("UA", r"^\d{10}$", 0, 4),
    # Latin America
    ("MX", r"^[A-Z]{4}\d{6}[HM][A-Z]{5}\d{2}$", 4, 2),
    ("BR", r"^\d{3}\.?\d{3}\.?\d{3}-?\d{2}$", 0, 4),
    ("AR", r"^\d{7,8}$", 0, 3),
    ("CL", r"^\d{1,2}\.?\d{3}\.?\d{3}-?[\dkK]$", 0, 3),
    ("CO", r"^\d{6,10}$", 0, 3),
    ("PE", r"^\d{8}$", 0, 3),
    ("UY", r"^\d{7}-?\d$", 0, 2),
    ("EC", r"^\d{10}$", 0, 3),
    ("BO", r"^\d{5,9}$", 0, 3),
    ("VE", r"^[VE]-?\d{7,9}$", 0, 3),
    # Asia-Pacific
    ("AU", r"^\d{8,9}$", 0, 3),
    ("NZ", r"^\d{8,9}$", 0, 3),
    ("JP", r"^\d{12}$", 0, 4),
    ("CN", r"^\d{17}[\dXx]$", 0, 4),
    ("KR", r"^\d{6}-?\d{7}$", 0, 4),
    ("IN", r"^\d{4}\s?\d{4}\s?\d{4}$", 0, 4),
    ("SG", r"^[STFG]\d{7}[A-Z]$", 1, 1),
    ("HK", r"^[A-Z]{1,2}\d{6}\([0-9A]\)$", 1, 2),
    ("TW", r"^[A-Z][12]\d{8}$", 1, 2),
    ("MY", r"^\d{6}-?\d{2}-?\d{4}$", 0, 4),
    ("TH", r"^\d{13}$", 0, 4),
    ("VN", r"^(\d{9}|\d{12})$", 0, 4),
    ("IDN", r"^\d{16}$", 0, 4),
    ("PH", r"^\d{3}-?\d{3}-?\d{3}-?\d{3}$", 0, 4),
    ("IL", r"^\d{9}$", 0, 3),
    # Middle East and Africa
    ("SA", r"^[12]\d{9}$", 0, 4),
    ("AE", r"^784-\d{4}-\d{7}-\d$", 3, 1),
    ("EG", r"^\d{14}$", 0, 4),
    ("MA", r"^[A-Z]{1,2}\d{5,6}$", 1, 2),
    ("ZA", r"^\d{13}$", 0, 4),
    ("NG", r"^\d{11}$", 0, 4),
    ("KE", r"^\d{5,8}$", 0, 3),
    ("GH", r"^[A-Z]{2}\d{9}$", 2, 2),
    ("CH_UNFORMATTED", r"^756\d{10}$", 3, 2),
    # Variants without separators
    ("BR_UNFORMATTED", r"^\d{11}$", 0, 4),
    ("CL_UNFORMATTED", r"^\d{7,8}[0-9Kk]$", 0, 3),
    ("KR_UNFORMATTED", r"^\d{13}$", 0, 4),
    ("MY_UNFORMATTED", r"^\d{12}$", 0, 4),
    ("PK", r"^\d{5}-?\d{7}-?\d$", 0, 3),
    ("RU_UNFORMATTED", r"^\d{11}$", 0, 2),
)


def _build_catalog() -> Mapping[str, CountryIdPattern]:
    catalog = {
        code: CountryIdPattern(code, regex.compile(pattern), keep_first, keep_last)
        for code, pattern, keep_first, keep_last in _ENTRIES
    }
    return MappingProxyType(catalog)


NATIONAL_ID_CATALOG: Mapping[str, CountryIdPattern] = _build_catalog()

SUPPORTED_COUNTRIES: Tuple[str, ...] = tuple(NATIONAL_ID_CATALOG)
