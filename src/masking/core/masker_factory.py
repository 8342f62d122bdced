"""Builds ``Masker`` instances from loaded configuration."""

from types import MappingProxyType
from typing import Any, Callable, Dict, List, Mapping, Optional

from ..config.config_manager import FieldRuleConfig, ForEachConfig, MaskingConfig
from ..logging.logging_config import get_logger
from ..rules import bucketing_presets
from ..rules.financial import CardMaskRule, IBANMaskRule
from ..rules.identifiers import EmailMaskRule, NationalIdMaskRule, PhoneMaskRule
from ..rules.numeric import BucketizeRule, NoiseAdditiveRule, RoundToRule
from ..rules.temporal import DateAgeMaskRule, DateShiftRule, TimeBucketRule
from ..rules.text import (
    BlacklistCharsRule, HashRule, KeepFirstRule, KeepLastRule, MaskCharClassRule,
    MaskEndRule, MaskMiddleRule, MaskPercentageRule, MaskRangeRule, MaskStartRule,
    NullOutRule, RedactRule, RegexMaskGroupRule, RegexReplaceRule, TemplateMaskRule,
    TruncateRule, URLMaskRule, WhitelistCharsRule
)
from ..utils.error_utils import ConfigurationError
from .masker import Masker, UnmappedFieldPolicy
from .random_source import SeededRule, SeedProvider, entity_or_value, keyed_seed_provider
from .rule_base import MaskRule

logger = get_logger(__name__)

RuleFactory = Callable[..., MaskRule]

RULE_FACTORIES: Mapping[str, RuleFactory] = MappingProxyType({
    "keep_first": KeepFirstRule,
    "keep_last": KeepLastRule,
    "mask_first": MaskStartRule,
    "mask_last": MaskEndRule,
    "mask_start": MaskStartRule,
    "mask_end": MaskEndRule,
    "mask_middle": MaskMiddleRule,
    "mask_range": MaskRangeRule,
    "mask_percentage": MaskPercentageRule,
    "truncate": TruncateRule,
    "redact": RedactRule,
    "null_out": NullOutRule,
    "mask_char_class": MaskCharClassRule,
    "whitelist_chars": WhitelistCharsRule,
    "blacklist_chars": BlacklistCharsRule,
    "hash": HashRule,
    "url": URLMaskRule,
    "regex_mask_group": RegexMaskGroupRule,
    "regex_replace": RegexReplaceRule,
    "template": TemplateMaskRule,
    "email": EmailMaskRule,
    "card": CardMaskRule,
    "iban": IBANMaskRule,
    "phone": PhoneMaskRule,
    "national_id": NationalIdMaskRule,
    "date_age": DateAgeMaskRule,
    "date_shift": DateShiftRule,
    "time_bucket": TimeBucketRule,
    "noise": NoiseAdditiveRule,
    "round_to": RoundToRule,
    "bucketize": BucketizeRule,
    "bucketize_preset": bucketing_presets.preset_rule,
})


def create_rule(definition: Dict[str, Any], seed_provider: Optional[SeedProvider] = None) -> MaskRule:
    """Create a rule from a ``{"type": ..., **kwargs}`` definition.

    Args:
        definition: Rule type plus constructor arguments; ``seeded: true``
            attaches ``seed_provider``
        seed_provider: Provider for seeded rules

    Raises:
        ConfigurationError: If the type is unknown or the arguments are invalid
    """
    options = dict(definition)
    rule_type = options.pop("type")
    seeded = options.pop("seeded", False)

    factory = RULE_FACTORIES.get(rule_type)
    if factory is None:
        raise ConfigurationError(
            f"Unknown rule type: {rule_type}",
            context={"available": sorted(RULE_FACTORIES)}
        )

    try:
        rule = factory(**options)
    except TypeError as e:
        raise ConfigurationError(
            f"Invalid arguments for rule '{rule_type}'",
            original_error=e
        ) from e

    if seeded:
        if not isinstance(rule, SeededRule):
            raise ConfigurationError(f"Rule '{rule_type}' does not support seeding")
        if seed_provider is None:
            raise ConfigurationError(f"Rule '{rule_type}' is seeded but no seed secret is configured")
        rule.with_seed_provider(seed_provider)

    return rule


def _add_fields(
    masker: Masker,
    fields: List[FieldRuleConfig],
    for_each: List[ForEachConfig],
    seed_provider: Optional[SeedProvider]
) -> Masker:
    for field_config in fields:
        for definition in field_config.rules:
            masker.mask_for(field_config.field, create_rule(definition, seed_provider))

    for entry in for_each:
        child = Masker(unmapped_policy=UnmappedFieldPolicy(entry.unmapped_policy), converters=masker.converters)
        _add_fields(child, entry.fields, entry.for_each, seed_provider)
        masker.mask_for_each(entry.field, child)

    return masker


def build_masker(config: MaskingConfig) -> Masker:
    """Create a ``Masker`` from configuration.

    Args:
        config: Loaded masking configuration

    Returns:
        Masker: The configured masker
    """
    seeding = config.seeding
    seed_provider = None
    if seeding.secret:
        key_func = entity_or_value if seeding.key_field else None
        seed_provider = keyed_seed_provider(seeding.secret, key_func)

    masker = Masker(
        unmapped_policy=UnmappedFieldPolicy(config.unmapped_policy),
        entity_key_field=seeding.key_field
    )
    _add_fields(masker, config.fields, config.for_each, seed_provider)

    logger.info(f"Built masker for {len(masker.fields)} field(s)")
    return masker
