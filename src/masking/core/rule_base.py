"""Base types shared by all masking rules."""

from enum import Enum
from typing import Any, Callable, Iterable, Optional

from ..utils.error_utils import ConfigurationError


class RuleKind(Enum):
    """How a rule consumes the field value."""
    TEXT = "text"    # Operates on str only; other types are bridged through text
    TYPED = "typed"  # Operates on the field's native type


class MaskRule:
    """A pure value -> value transform with configuration fixed at construction.

    Rules return ``None`` and empty input unchanged and are safe to share
    between threads once constructed.
    """

    kind: RuleKind = RuleKind.TYPED

    def apply(self, value: Any) -> Any:
        raise NotImplementedError

    def __call__(self, value: Any) -> Any:
        return self.apply(value)

    @property
    def name(self) -> str:
        return type(self).__name__

    def __repr__(self) -> str:
        return f"{self.name}()"


class TextRule(MaskRule):
    """Rule defined over strings."""
    kind = RuleKind.TEXT


class TypedRule(MaskRule):
    """Rule defined over the field's native type (numbers, dates)."""
    kind = RuleKind.TYPED


def require_mask_char(mask_char: str) -> str:
    """Validate a mask glyph and return its first character."""
    if not mask_char:
        raise ConfigurationError("Mask character cannot be null or empty")
    return mask_char[0]


def require_non_negative(value: int, name: str) -> int:
    if value < 0:
        raise ConfigurationError(f"{name} must be non-negative")
    return value


def mask_positions(text: str, positions: Iterable[int], glyph: str) -> str:
    """Replace the characters at ``positions`` with ``glyph``, leaving the rest in place."""
    chars = list(text)
    for index in positions:
        chars[index] = glyph
    return "".join(chars)


def mask_between(
    text: str,
    is_payload: Callable[[str], bool],
    keep_first: int,
    keep_last: int,
    glyph: str
) -> Optional[str]:
    """Mask payload characters except the first and last few, in place.

    Characters rejected by ``is_payload`` (separators) keep their positions.

    Returns:
        The masked text, or ``None`` when there is nothing left to mask.
    """
    payload = [i for i, c in enumerate(text) if is_payload(c)]
    if not payload or keep_first + keep_last >= len(payload):
        return None
    return mask_positions(text, payload[keep_first:len(payload) - keep_last], glyph)
