"""Deterministic data masking for structured records."""

from .core.masker import Masker, MaskingResult, UnmappedFieldPolicy
from .core.builder import MaskingBuilder
from .core.masker_factory import RULE_FACTORIES, build_masker, create_rule
from .core.random_source import (
    entity_scope, entity_seed_provider, get_generator, keyed_seed_provider, seed_from_key
)
from .core.rule_chain import RuleChain, StageKind, apply_chain
from .core.type_converters import ConverterRegistry, TypeConverter

__all__ = [
    "ConverterRegistry",
    "Masker",
    "MaskingBuilder",
    "MaskingResult",
    "RULE_FACTORIES",
    "RuleChain",
    "StageKind",
    "TypeConverter",
    "UnmappedFieldPolicy",
    "apply_chain",
    "build_masker",
    "create_rule",
    "entity_scope",
    "entity_seed_provider",
    "get_generator",
    "keyed_seed_provider",
    "seed_from_key",
]
