"""Value <-> text converters used to run text rules on typed fields."""

import threading
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Callable, Dict, Optional, Type

from ..logging.logging_config import get_logger
from ..utils.error_utils import ConversionError

logger = get_logger(__name__)


@dataclass(frozen=True)
class TypeConverter:
    """Pair of functions converting one type to text and back."""
    to_text: Callable[[Any], str]
    from_text: Callable[[str], Any]


def _parse_bool(text: str) -> bool:
    lowered = text.strip().lower()
    if lowered in ("true", "1", "yes"):
        return True
    if lowered in ("false", "0", "no"):
        return False
    raise ValueError(f"Not a boolean: {text!r}")


def _parse_datetime(text: str) -> datetime:
    # fromisoformat rejects a trailing Z before Python 3.11
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    return datetime.fromisoformat(text)


DEFAULT_CONVERTERS: Dict[Type, TypeConverter] = {
    int: TypeConverter(to_text=str, from_text=int),
    float: TypeConverter(to_text=repr, from_text=float),
    Decimal: TypeConverter(to_text=str, from_text=Decimal),
    bool: TypeConverter(to_text=str, from_text=_parse_bool),
    datetime: TypeConverter(to_text=datetime.isoformat, from_text=_parse_datetime),
    date: TypeConverter(to_text=date.isoformat, from_text=date.fromisoformat),
}


class ConverterRegistry:
    """Registry of per-type converters.

    Converters are looked up by exact type. Registration is first-writer-wins:
    a second registration for the same type is discarded unless ``replace`` is
    set, so concurrent maskers populating the registry agree on one converter.
    """

    def __init__(self, converters: Optional[Dict[Type, TypeConverter]] = None):
        self._lock = threading.Lock()
        self._converters: Dict[Type, TypeConverter] = dict(
            DEFAULT_CONVERTERS if converters is None else converters
        )

    def register(
        self,
        value_type: Type,
        converter: TypeConverter,
        replace: bool = False
    ) -> TypeConverter:
        """Register a converter and return the one now in effect."""
        with self._lock:
            existing = self._converters.get(value_type)
            if existing is not None and not replace:
                logger.debug(f"Converter for {value_type.__name__} already registered, keeping first")
                return existing
            self._converters[value_type] = converter
            return converter

    def get(self, value_type: Type) -> Optional[TypeConverter]:
        return self._converters.get(value_type)

    def has(self, value_type: Type) -> bool:
        return value_type in self._converters

    def to_text(self, value: Any) -> str:
        """Convert a value to text, falling back to ``str``."""
        converter = self.get(type(value))
        if converter is None:
            return str(value)
        try:
            return converter.to_text(value)
        except (TypeError, ValueError) as e:
            raise ConversionError(
                f"Cannot convert {type(value).__name__} to text",
                original_error=e
            ) from e

    def from_text(self, text: Optional[str], value_type: Type) -> Any:
        """Convert text back to ``value_type``.

        Returns the text unchanged when no converter is registered, and
        ``None`` when the text is ``None``.

        Raises:
            ConversionError: If the registered converter rejects the text
        """
        if text is None:
            return None
        converter = self.get(value_type)
        if converter is None:
            return text
        try:
            return converter.from_text(text)
        except (TypeError, ValueError, ArithmeticError) as e:
            raise ConversionError(
                f"Cannot convert masked text back to {value_type.__name__}",
                original_error=e
            ) from e


_default_registry = ConverterRegistry()


def default_registry() -> ConverterRegistry:
    """Return the process-wide converter registry."""
    return _default_registry
