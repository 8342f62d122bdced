"""String masking rules: positional masks, character filters, hashing,
URL masking, regex masking and templates."""

import base64
import hashlib
import math
import os
from enum import Enum
from typing import Iterable, Optional, Union
from urllib.parse import unquote_plus, urlsplit, urlunsplit

import regex

from ..core.rule_base import TextRule, require_mask_char, require_non_negative
from ..logging.logging_config import get_logger
from ..utils.error_utils import ConfigurationError, PatternTimeoutError

logger = get_logger(__name__)

REGEX_TIMEOUT = 0.1
REDACTED = "[REDACTED]"


class KeepFirstRule(TextRule):
    """Keeps the first ``count`` characters and masks the rest."""

    def __init__(self, count: int, mask_char: str = "*"):
        self.count = require_non_negative(count, "count")
        self.glyph = require_mask_char(mask_char)

    def apply(self, value):
        if not value or self.count >= len(value):
            return value
        return value[:self.count] + self.glyph * (len(value) - self.count)


class KeepLastRule(TextRule):
    """Keeps the last ``count`` characters and masks the rest."""

    def __init__(self, count: int, mask_char: str = "*"):
        self.count = require_non_negative(count, "count")
        self.glyph = require_mask_char(mask_char)

    def apply(self, value):
        if not value or self.count >= len(value):
            return value
        masked = len(value) - self.count
        return self.glyph * masked + value[masked:]


class MaskStartRule(TextRule):
    """Masks the first ``count`` characters."""

    def __init__(self, count: int, mask_char: str = "*"):
        self.count = require_non_negative(count, "count")
        self.glyph = require_mask_char(mask_char)

    def apply(self, value):
        if not value or self.count == 0:
            return value
        count = min(self.count, len(value))
        return self.glyph * count + value[count:]


class MaskEndRule(TextRule):
    """Masks the last ``count`` characters."""

    def __init__(self, count: int, mask_char: str = "*"):
        self.count = require_non_negative(count, "count")
        self.glyph = require_mask_char(mask_char)

    def apply(self, value):
        if not value or self.count == 0:
            return value
        count = min(self.count, len(value))
        return value[:len(value) - count] + self.glyph * count


MaskFirstRule = MaskStartRule
MaskLastRule = MaskEndRule


class MaskMiddleRule(TextRule):
    """Keeps ``keep_first`` and ``keep_last`` characters and masks what is between."""

    def __init__(self, keep_first: int, keep_last: int, mask_char: str = "*"):
        self.keep_first = require_non_negative(keep_first, "keep_first")
        self.keep_last = require_non_negative(keep_last, "keep_last")
        self.glyph = require_mask_char(mask_char)

    def apply(self, value):
        if not value:
            return value
        if self.keep_first + self.keep_last >= len(value):
            return value
        end = len(value) - self.keep_last
        return value[:self.keep_first] + self.glyph * (end - self.keep_first) + value[end:]


class MaskRangeRule(TextRule):
    """Masks ``length`` characters starting at ``start``, clipped to the string."""

    def __init__(self, start: int, length: int, mask_char: str = "*"):
        self.start = require_non_negative(start, "start")
        self.length = require_non_negative(length, "length")
        self.glyph = require_mask_char(mask_char)

    def apply(self, value):
        if not value or self.start >= len(value) or self.length == 0:
            return value
        end = min(self.start + self.length, len(value))
        return value[:self.start] + self.glyph * (end - self.start) + value[end:]


class MaskFrom(Enum):
    """Where ``MaskPercentageRule`` places the masked span."""
    START = "start"
    END = "end"
    MIDDLE = "middle"


class MaskPercentageRule(TextRule):
    """Masks a fraction of the string (rounded up) from the start, end or middle."""

    def __init__(self, percentage: float, mask_from: MaskFrom = MaskFrom.END, mask_char: str = "*"):
        if not 0 <= percentage <= 1:
            raise ConfigurationError("Percentage must be between 0 and 1")
        self.percentage = percentage
        self.mask_from = MaskFrom(mask_from)
        self.mask_char = mask_char
        require_mask_char(mask_char)

    def apply(self, value):
        if not value:
            return value
        count = math.ceil(len(value) * self.percentage)
        if self.mask_from is MaskFrom.START:
            return MaskStartRule(count, self.mask_char).apply(value)
        if self.mask_from is MaskFrom.END:
            return MaskEndRule(count, self.mask_char).apply(value)
        keep = (len(value) - count) // 2
        if count and keep == 0:
            return self.mask_char[0] * len(value)
        return MaskMiddleRule(keep, keep, self.mask_char).apply(value)


class TruncateRule(TextRule):
    """Cuts the string to ``max_length`` characters including ``suffix``."""

    def __init__(self, max_length: int, suffix: str = "…"):
        self.max_length = require_non_negative(max_length, "max_length")
        self.suffix = suffix or ""

    def apply(self, value):
        if not value or len(value) <= self.max_length:
            return value
        keep = max(0, self.max_length - len(self.suffix))
        return value[:keep] + self.suffix


class RedactRule(TextRule):
    """Replaces any value with a fixed redaction text."""

    def __init__(self, redaction_text: str = REDACTED):
        if redaction_text is None:
            raise ConfigurationError("Redaction text cannot be None")
        self.redaction_text = redaction_text

    def apply(self, value):
        return self.redaction_text


class NullOutRule(TextRule):
    """Replaces any value with ``None``."""

    def apply(self, value):
        return None


class CharClass(Enum):
    """Character classes for ``MaskCharClassRule``."""
    DIGIT = "digit"
    LETTER = "letter"
    LETTER_OR_DIGIT = "letter_or_digit"
    WHITESPACE = "whitespace"
    PUNCTUATION = "punctuation"
    UPPER = "upper"
    LOWER = "lower"


_PUNCTUATION = regex.compile(r"\p{P}")

_CHAR_CLASS_TESTS = {
    CharClass.DIGIT: str.isdigit,
    CharClass.LETTER: str.isalpha,
    CharClass.LETTER_OR_DIGIT: str.isalnum,
    CharClass.WHITESPACE: str.isspace,
    CharClass.PUNCTUATION: lambda c: _PUNCTUATION.match(c) is not None,
    CharClass.UPPER: str.isupper,
    CharClass.LOWER: str.islower,
}


class MaskCharClassRule(TextRule):
    """Masks every character belonging to a character class."""

    def __init__(self, char_class: CharClass, mask_char: str = "*"):
        self.char_class = CharClass(char_class)
        self.glyph = require_mask_char(mask_char)
        self._test = _CHAR_CLASS_TESTS[self.char_class]

    def apply(self, value):
        if not value:
            return value
        return "".join(self.glyph if self._test(c) else c for c in value)


class WhitelistCharsRule(TextRule):
    """Keeps only allowed characters; others are replaced (or dropped when
    ``replace_with`` is empty)."""

    def __init__(self, allowed_chars: Iterable[str], replace_with: str = ""):
        allowed = set(allowed_chars or "")
        if not allowed:
            raise ConfigurationError("Allowed chars cannot be null or empty")
        self.allowed = frozenset(allowed)
        self.replace_with = replace_with or ""

    def apply(self, value):
        if not value:
            return value
        return "".join(c if c in self.allowed else self.replace_with for c in value)


class BlacklistCharsRule(TextRule):
    """Replaces (or drops, when ``replace_with`` is empty) forbidden characters."""

    def __init__(self, blacklisted_chars: Iterable[str], replace_with: str = "*"):
        blocked = set(blacklisted_chars or "")
        if not blocked:
            raise ConfigurationError("Blacklisted chars cannot be null or empty")
        self.blocked = frozenset(blocked)
        self.replace_with = replace_with or ""

    def apply(self, value):
        if not value:
            return value
        return "".join(self.replace_with if c in self.blocked else c for c in value)


class HashAlgorithm(Enum):
    SHA256 = "sha256"
    SHA512 = "sha512"
    MD5 = "md5"


class SaltMode(Enum):
    PER_RECORD = "per_record"  # Fresh random salt for every value
    STATIC = "static"          # One salt for the rule instance
    PER_FIELD = "per_field"    # SHA-256 of the field name


class HashOutputFormat(Enum):
    HEX = "hex"
    BASE64 = "base64"
    BASE64URL = "base64url"


class HashRule(TextRule):
    """Replaces a value with a salted hash of it.

    The salt is prepended to the UTF-8 encoded input. STATIC and PER_FIELD
    salts give stable pseudonyms; PER_RECORD salts make every output unique.
    """

    def __init__(
        self,
        algorithm: HashAlgorithm = HashAlgorithm.SHA256,
        salt_mode: SaltMode = SaltMode.STATIC,
        output_format: HashOutputFormat = HashOutputFormat.HEX,
        static_salt: Optional[Union[str, bytes]] = None,
        field_name: Optional[str] = None
    ):
        self.algorithm = HashAlgorithm(algorithm)
        self.salt_mode = SaltMode(salt_mode)
        self.output_format = HashOutputFormat(output_format)

        if self.algorithm is HashAlgorithm.MD5:
            logger.warning("MD5 is cryptographically broken and should not be used for security purposes")

        self._salt = b""
        if self.salt_mode is SaltMode.STATIC:
            if not static_salt:
                raise ConfigurationError("Static salt required for STATIC salt mode")
            if isinstance(static_salt, str):
                self._salt = static_salt.encode("utf-8")
            else:
                self._salt = static_salt
        elif self.salt_mode is SaltMode.PER_FIELD:
            if not field_name:
                raise ConfigurationError("Field name required for PER_FIELD salt mode")
            self._salt = hashlib.sha256(field_name.encode("utf-8")).digest()

    def _get_salt(self) -> bytes:
        if self.salt_mode is SaltMode.PER_RECORD:
            return os.urandom(16)
        return self._salt

    def apply(self, value):
        if not value:
            return value
        digest = hashlib.new(self.algorithm.value, self._get_salt() + value.encode("utf-8")).digest()

        if self.output_format is HashOutputFormat.BASE64:
            return base64.b64encode(digest).decode("ascii")
        if self.output_format is HashOutputFormat.BASE64URL:
            return base64.urlsafe_b64encode(digest).decode("ascii").rstrip("=")
        return digest.hex()

    def __repr__(self) -> str:
        return f"HashRule(algorithm={self.algorithm.value}, salt_mode={self.salt_mode.value})"


class URLMaskRule(TextRule):
    """Masks parts of an absolute URL.

    Args:
        hide_query: Drop the query string entirely
        mask_query_keys: Query parameters whose values are replaced
        mask_path_segments: Zero-based indexes of non-empty path segments to replace
        mask_value: Replacement text
    """

    def __init__(
        self,
        hide_query: bool = False,
        mask_query_keys: Optional[Iterable[str]] = None,
        mask_path_segments: Optional[Iterable[int]] = None,
        mask_value: str = "***"
    ):
        self.hide_query = hide_query
        self.mask_query_keys = frozenset(mask_query_keys or ())
        self.mask_path_segments = frozenset(i for i in (mask_path_segments or ()) if i >= 0)
        self.mask_value = mask_value if mask_value is not None else "***"

    def apply(self, value):
        if not value:
            return value
        parts = urlsplit(value)
        if not parts.scheme or not parts.netloc:
            return value

        query = parts.query
        if self.hide_query:
            query = ""
        elif self.mask_query_keys and query:
            query = self._mask_query(query)

        path = parts.path
        if self.mask_path_segments and path not in ("", "/"):
            path = self._mask_path(path)

        return urlunsplit((parts.scheme, parts.netloc, path, query, parts.fragment))

    def _mask_query(self, query: str) -> str:
        pairs = []
        for pair in query.split("&"):
            key, _, _ = pair.partition("=")
            if unquote_plus(key) in self.mask_query_keys:
                pair = f"{key}={self.mask_value}"
            pairs.append(pair)
        return "&".join(pairs)

    def _mask_path(self, path: str) -> str:
        segments = path.split("/")
        index = 0
        for i, segment in enumerate(segments):
            if not segment:
                continue
            if index in self.mask_path_segments:
                segments[i] = self.mask_value
            index += 1
        return "/".join(segments)


def _compile(pattern: str, flags: int = 0) -> "regex.Pattern":
    if not pattern:
        raise ConfigurationError("Pattern cannot be null or empty")
    try:
        return regex.compile(pattern, flags)
    except regex.error as e:
        raise ConfigurationError(f"Invalid regex pattern: {pattern}", original_error=e) from e


class RegexMaskGroupRule(TextRule):
    """Masks one capture group of every match, keeping the rest of the match."""

    def __init__(self, pattern: str, group: int, mask_char: str = "*", flags: int = 0,
                 timeout: float = REGEX_TIMEOUT):
        self.pattern = _compile(pattern, flags)
        self.group = require_non_negative(group, "group")
        self.glyph = require_mask_char(mask_char)
        self.timeout = timeout

    def _mask_match(self, match) -> str:
        if self.group > (match.re.groups or 0):
            return match.group(0)
        start, end = match.span(self.group)
        if start < 0:
            return match.group(0)
        offset = match.start(0)
        text = match.group(0)
        return text[:start - offset] + self.glyph * (end - start) + text[end - offset:]

    def apply(self, value):
        if not value:
            return value
        try:
            return self.pattern.sub(self._mask_match, value, timeout=self.timeout)
        except TimeoutError as e:
            raise PatternTimeoutError(
                f"Regex timeout exceeded ({self.timeout * 1000:.0f}ms)",
                original_error=e,
                context={"pattern": self.pattern.pattern}
            ) from e


class RegexReplaceRule(TextRule):
    """Replaces every match of ``pattern``; ``replacement`` uses ``\\1`` / ``\\g<name>`` references."""

    def __init__(self, pattern: str, replacement: str, flags: int = 0, timeout: float = REGEX_TIMEOUT):
        if replacement is None:
            raise ConfigurationError("Replacement cannot be None")
        self.pattern = _compile(pattern, flags)
        self.replacement = replacement
        self.timeout = timeout

    def apply(self, value):
        if not value:
            return value
        try:
            return self.pattern.sub(self.replacement, value, timeout=self.timeout)
        except TimeoutError as e:
            raise PatternTimeoutError(
                f"Regex timeout exceeded ({self.timeout * 1000:.0f}ms)",
                original_error=e,
                context={"pattern": self.pattern.pattern}
            ) from e


_TEMPLATE_TOKEN = regex.compile(r"\{\{([^}]+)\}\}")


def _slice_range(text: str, bounds: Optional[str]) -> str:
    """Apply an ``a-b`` (end exclusive) or ``-n`` (last n) range to ``text``."""
    if not bounds:
        return text
    start_text, _, end_text = bounds.partition("-")
    if not start_text and end_text:
        return text[max(0, len(text) - int(end_text)):]
    start = int(start_text) if start_text else 0
    end = int(end_text) if end_text else len(text)
    return text[start:end]


class TemplateMaskRule(TextRule):
    """Builds the output from a template with tokens drawn from the input.

    Tokens:
        ``{{F|n}}`` first n characters (default 1), ``{{L|n}}`` last n
        characters, ``{{*xN}}`` N asterisks, ``{{digits|a-b}}`` and
        ``{{letters|a-b}}`` a range of the input's digits or letters.
        Unknown tokens are left as written.

    Example:
        ```python
        TemplateMaskRule("{{F}}***{{L|2}}").apply("Jonathan")  # "J***an"
        ```
    """

    def __init__(self, template: str):
        if template is None:
            raise ConfigurationError("Template cannot be None")
        self.template = template

    def apply(self, value):
        if not value:
            return value
        return _TEMPLATE_TOKEN.sub(lambda m: self._render(m.group(1), value), self.template)

    @staticmethod
    def _render(token: str, value: str) -> str:
        command, _, args = token.partition("|")
        if command == "F":
            count = int(args) if args else 1
            return value[:count]
        if command == "L":
            count = int(args) if args else 1
            return value[-count:] if count else ""
        if command.startswith("*x"):
            return "*" * int(command[2:])
        if command == "digits":
            return _slice_range("".join(c for c in value if c.isdigit()), args)
        if command == "letters":
            return _slice_range("".join(c for c in value if c.isalpha()), args)
        return "{{" + token + "}}"
