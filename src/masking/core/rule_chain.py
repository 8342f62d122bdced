"""Ordered rule chains bound to one field, and the executor that runs them."""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, Iterator, List, Optional, Tuple

from ..logging.logging_config import get_logger
from .rule_base import MaskRule, RuleKind
from .type_converters import ConverterRegistry, default_registry

logger = get_logger(__name__)


class StageKind(Enum):
    """Closed set of stage variants a chain can hold."""
    TEXT = "text"          # Text rule, typed values bridged through converters
    TYPED = "typed"        # Rule over the value's native type
    FOR_EACH = "for_each"  # Child masker applied to a nested record or collection


@dataclass(frozen=True)
class Stage:
    """One step of a rule chain.

    ``target`` is a ``MaskRule`` for TEXT and TYPED stages and a child
    ``Masker`` for FOR_EACH stages.
    """
    kind: StageKind
    target: Any

    @classmethod
    def for_rule(cls, rule: MaskRule) -> "Stage":
        kind = StageKind.TEXT if rule.kind is RuleKind.TEXT else StageKind.TYPED
        return cls(kind, rule)

    @classmethod
    def for_each(cls, masker) -> "Stage":
        return cls(StageKind.FOR_EACH, masker)


class RuleChain:
    """Append-only sequence of stages for one field."""

    def __init__(self, field: str, stages: Tuple[Stage, ...] = ()):
        self.field = field
        self._stages: List[Stage] = list(stages)

    def append(self, rule: MaskRule) -> "RuleChain":
        """Append a rule as a TEXT or TYPED stage according to its kind."""
        self._stages.append(Stage.for_rule(rule))
        return self

    def append_stage(self, stage: Stage) -> "RuleChain":
        self._stages.append(stage)
        return self

    @property
    def stages(self) -> Tuple[Stage, ...]:
        return tuple(self._stages)

    def __iter__(self) -> Iterator[Stage]:
        return iter(tuple(self._stages))

    def __len__(self) -> int:
        return len(self._stages)

    def __repr__(self) -> str:
        names = ", ".join(getattr(s.target, "name", type(s.target).__name__) for s in self._stages)
        return f"RuleChain({self.field!r}: [{names}])"


StageHandler = Callable[[Any, Any, ConverterRegistry, List[str]], Any]


def _apply_text(value: Any, rule: MaskRule, converters: ConverterRegistry, errors: List[str]) -> Any:
    if isinstance(value, str):
        return rule.apply(value)

    value_type = type(value)
    if not converters.has(value_type):
        return rule.apply(str(value))

    masked = rule.apply(converters.to_text(value))
    return converters.from_text(masked, value_type)


def _apply_typed(value: Any, rule: MaskRule, converters: ConverterRegistry, errors: List[str]) -> Any:
    return rule.apply(value)


def _is_collection(value: Any) -> bool:
    return isinstance(value, (list, tuple, set, frozenset))


def _apply_for_each(value: Any, masker, converters: ConverterRegistry, errors: List[str]) -> Any:
    if not _is_collection(value):
        result = masker.mask(value)
        errors.extend(result.errors)
        return result.masked_data if result.is_success else None

    masked_items = []
    for item in value:
        result = masker.mask(item)
        if result.is_success:
            masked_items.append(result.masked_data)
        else:
            errors.extend(result.errors)
    return masked_items


_STAGE_HANDLERS: Dict[StageKind, StageHandler] = {
    StageKind.TEXT: _apply_text,
    StageKind.TYPED: _apply_typed,
    StageKind.FOR_EACH: _apply_for_each,
}


def apply_chain(
    value: Any,
    chain: RuleChain,
    converters: Optional[ConverterRegistry] = None,
    errors: Optional[List[str]] = None
) -> Any:
    """Run every stage of ``chain`` over ``value``, left to right.

    Args:
        value: The field value
        chain: The field's rule chain
        converters: Registry bridging typed values to text rules
        errors: Optional list collecting errors reported by child maskers

    Returns:
        The masked value. ``None`` short-circuits the remaining stages.
    """
    converters = converters or default_registry()
    errors = errors if errors is not None else []

    for stage in chain:
        if value is None:
            break
        value = _STAGE_HANDLERS[stage.kind](value, stage.target, converters, errors)

    return value


def compose(*rules: MaskRule) -> RuleChain:
    """Build an anonymous chain from rules, e.g. for a one-off value."""
    chain = RuleChain("")
    for rule in rules:
        chain.append(rule)
    return chain
