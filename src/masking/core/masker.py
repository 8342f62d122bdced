"""Masking orchestrator: applies per-field rule chains to whole records."""

import dataclasses
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Union

from ..logging.logging_config import get_logger
from ..utils.error_utils import error_message, is_recoverable, wrap_error
from ..utils.json_utils import dumps
from .builder import MaskingBuilder
from .random_source import entity_scope
from .rule_base import MaskRule
from .rule_chain import RuleChain, Stage, apply_chain
from .type_converters import ConverterRegistry, default_registry

logger = get_logger(__name__)

BuilderConfigurator = Callable[[MaskingBuilder], MaskingBuilder]


class UnmappedFieldPolicy(Enum):
    """What happens to fields that have no rule chain."""
    INCLUDE = "include"  # Pass the value through unchanged
    EXCLUDE = "exclude"  # Keep the field with a None value
    REMOVE = "remove"    # Omit the field


@dataclass
class MaskingResult:
    """Outcome of masking one record."""
    is_success: bool
    errors: List[str] = field(default_factory=list)
    masked_data: Dict[str, Any] = field(default_factory=dict)

    def to_json(self, **kwargs) -> str:
        """Serialize ``masked_data`` to JSON."""
        return dumps(self.masked_data, **kwargs)


def record_fields(record: Any) -> Dict[str, Any]:
    """Enumerate the fields of a record in declaration order.

    Supports dicts, dataclass instances and plain objects (public instance
    attributes).

    Raises:
        TypeError: If the value has no enumerable fields
    """
    if isinstance(record, dict):
        return dict(record)
    if dataclasses.is_dataclass(record) and not isinstance(record, type):
        return {f.name: getattr(record, f.name) for f in dataclasses.fields(record)}
    if hasattr(record, "__dict__"):
        return {k: v for k, v in vars(record).items() if not k.startswith("_")}
    raise TypeError(f"Cannot enumerate fields of {type(record).__name__}")


class Masker:
    """Masks records field by field.

    Each mapped field runs through its own ``RuleChain``. Fields without a
    chain follow the unmapped-field policy. A failure in one field is recorded
    in the result and does not stop the others.

    With ``entity_key_field`` set, the value of that field is made the current
    entity while the record is masked (see ``random_source.entity_scope``).

    Example:
        ```python
        masker = (Masker()
            .mask_for("name", KeepFirstRule(1))
            .mask_for("email", lambda b: b.mask_email(local_keep=2)))
        result = masker.mask({"name": "Alice", "email": "alice@example.com"})
        ```
    """

    def __init__(
        self,
        unmapped_policy: UnmappedFieldPolicy = UnmappedFieldPolicy.EXCLUDE,
        converters: Optional[ConverterRegistry] = None,
        entity_key_field: Optional[str] = None
    ):
        self.unmapped_policy = UnmappedFieldPolicy(unmapped_policy)
        self.converters = converters or default_registry()
        self.entity_key_field = entity_key_field
        self._chains: Dict[str, RuleChain] = {}

    def set_unmapped_policy(self, policy: UnmappedFieldPolicy) -> "Masker":
        self.unmapped_policy = UnmappedFieldPolicy(policy)
        return self

    def _chain(self, field_name: str) -> RuleChain:
        chain = self._chains.get(field_name)
        if chain is None:
            chain = self._chains[field_name] = RuleChain(field_name)
        return chain

    def mask_for(
        self,
        field_name: str,
        rule_or_configure: Union[MaskRule, BuilderConfigurator]
    ) -> "Masker":
        """Append rules to a field's chain.

        Args:
            field_name: Name of the record field
            rule_or_configure: A rule, or a callable that receives a
                ``MaskingBuilder`` and returns it

        Returns:
            The masker, for chaining
        """
        chain = self._chain(field_name)
        if isinstance(rule_or_configure, MaskRule):
            chain.append(rule_or_configure)
        else:
            builder = rule_or_configure(MaskingBuilder())
            for rule in builder.build():
                chain.append(rule)

        logger.debug(f"Configured {len(chain)} stage(s) for field {field_name}")
        return self

    def mask_for_each(self, field_name: str, child: "Masker") -> "Masker":
        """Mask a nested record or each element of a collection with ``child``."""
        self._chain(field_name).append_stage(Stage.for_each(child))
        return self

    @property
    def fields(self) -> List[str]:
        """Names of the fields that have a rule chain."""
        return list(self._chains)

    def mask(self, record: Any) -> MaskingResult:
        """Mask one record.

        Args:
            record: A dict, dataclass instance or plain object

        Returns:
            MaskingResult: The masked fields and any per-field errors
        """
        fields = record_fields(record)
        if self.entity_key_field and fields.get(self.entity_key_field) is not None:
            with entity_scope(fields[self.entity_key_field]):
                return self._mask_fields(fields)
        return self._mask_fields(fields)

    def _mask_fields(self, fields: Dict[str, Any]) -> MaskingResult:
        errors: List[str] = []
        masked: Dict[str, Any] = {}

        for name, value in fields.items():
            chain = self._chains.get(name)
            if chain is None:
                if self.unmapped_policy is UnmappedFieldPolicy.INCLUDE:
                    masked[name] = value
                elif self.unmapped_policy is UnmappedFieldPolicy.EXCLUDE:
                    masked[name] = None
                continue

            try:
                masked[name] = apply_chain(value, chain, self.converters, errors)
            except Exception as e:
                error = wrap_error(e, context={"field": name})
                # Recoverable categories: timeouts and conversions
                level = logging.INFO if is_recoverable(error) else logging.WARNING
                logger.log(level, f"Failed to mask field {name}: {type(e).__name__} ({error.category.value})")
                errors.append(f"Error masking property {name}: {error_message(e)}")

        return MaskingResult(is_success=not errors, errors=errors, masked_data=masked)
