"""Fluent builder assembling the rule list for one field."""

from typing import List, Optional, Tuple

from ..logging.logging_config import get_logger
from ..rules import bucketing_presets
from ..rules.financial import CardMaskRule, IBANMaskRule
from ..rules.identifiers import (
    EmailDomainStrategy, EmailMaskRule, NationalIdMaskRule, PhoneMaskRule
)
from ..rules.numeric import BucketizeRule, NoiseAdditiveRule, NoiseDistribution, RoundToRule
from ..rules.temporal import (
    DateAgeMaskRule, DateMaskMode, DateShiftRule, TimeBucketRule, TimeGranularity
)
from ..rules.text import (
    BlacklistCharsRule, CharClass, HashAlgorithm, HashOutputFormat, HashRule,
    KeepFirstRule, KeepLastRule, MaskCharClassRule, MaskEndRule, MaskFrom,
    MaskMiddleRule, MaskPercentageRule, MaskRangeRule, MaskStartRule, NullOutRule,
    RedactRule, RegexMaskGroupRule, RegexReplaceRule, SaltMode, TemplateMaskRule,
    TruncateRule, URLMaskRule, WhitelistCharsRule, REDACTED
)
from .random_source import SeededRule, SeedProvider
from .rule_base import MaskRule

logger = get_logger(__name__)


class MaskingBuilder:
    """Collects rules in order for ``Masker.mask_for``.

    Example:
        ```python
        masker.mask_for("visit_date", lambda b: b
            .with_seed_provider(entity_seed_provider(patient_id))
            .date_shift(30))
        ```
    """

    def __init__(self):
        self._rules: List[MaskRule] = []
        self._pending_seed_provider: Optional[SeedProvider] = None

    def with_seed_provider(self, provider: SeedProvider) -> "MaskingBuilder":
        """Attach ``provider`` to the next seeded rule added."""
        self._pending_seed_provider = provider
        return self

    def add_rule(self, rule: MaskRule) -> "MaskingBuilder":
        if self._pending_seed_provider is not None and isinstance(rule, SeededRule):
            rule.with_seed_provider(self._pending_seed_provider)
            self._pending_seed_provider = None
        self._rules.append(rule)
        return self

    def build(self) -> Tuple[MaskRule, ...]:
        if self._pending_seed_provider is not None:
            logger.debug("Seed provider set but no seeded rule followed")
        return tuple(self._rules)

    # Positional
    def keep_first(self, count: int, mask_char: str = "*") -> "MaskingBuilder":
        return self.add_rule(KeepFirstRule(count, mask_char))

    def keep_last(self, count: int, mask_char: str = "*") -> "MaskingBuilder":
        return self.add_rule(KeepLastRule(count, mask_char))

    def mask_start(self, count: int, mask_char: str = "*") -> "MaskingBuilder":
        return self.add_rule(MaskStartRule(count, mask_char))

    def mask_end(self, count: int, mask_char: str = "*") -> "MaskingBuilder":
        return self.add_rule(MaskEndRule(count, mask_char))

    mask_first = mask_start
    mask_last = mask_end

    def mask_middle(self, keep_first: int, keep_last: int, mask_char: str = "*") -> "MaskingBuilder":
        return self.add_rule(MaskMiddleRule(keep_first, keep_last, mask_char))

    def mask_range(self, start: int, length: int, mask_char: str = "*") -> "MaskingBuilder":
        return self.add_rule(MaskRangeRule(start, length, mask_char))

    def mask_percentage(
        self,
        percentage: float,
        mask_from: MaskFrom = MaskFrom.END,
        mask_char: str = "*"
    ) -> "MaskingBuilder":
        return self.add_rule(MaskPercentageRule(percentage, mask_from, mask_char))

    def truncate(self, max_length: int, suffix: str = "…") -> "MaskingBuilder":
        return self.add_rule(TruncateRule(max_length, suffix))

    def redact(self, redaction_text: str = REDACTED) -> "MaskingBuilder":
        return self.add_rule(RedactRule(redaction_text))

    def null_out(self) -> "MaskingBuilder":
        return self.add_rule(NullOutRule())

    # Character filters
    def mask_char_class(self, char_class: CharClass, mask_char: str = "*") -> "MaskingBuilder":
        return self.add_rule(MaskCharClassRule(char_class, mask_char))

    def whitelist_chars(self, allowed_chars: str, replace_with: str = "") -> "MaskingBuilder":
        return self.add_rule(WhitelistCharsRule(allowed_chars, replace_with))

    def blacklist_chars(self, blacklisted_chars: str, replace_with: str = "*") -> "MaskingBuilder":
        return self.add_rule(BlacklistCharsRule(blacklisted_chars, replace_with))

    # Pseudonymization and patterns
    def hash(
        self,
        algorithm: HashAlgorithm = HashAlgorithm.SHA256,
        salt_mode: SaltMode = SaltMode.STATIC,
        output_format: HashOutputFormat = HashOutputFormat.HEX,
        static_salt=None,
        field_name: Optional[str] = None
    ) -> "MaskingBuilder":
        return self.add_rule(HashRule(algorithm, salt_mode, output_format, static_salt, field_name))

    def url_mask(self, hide_query: bool = False, mask_query_keys=None,
                 mask_path_segments=None, mask_value: str = "***") -> "MaskingBuilder":
        return self.add_rule(URLMaskRule(hide_query, mask_query_keys, mask_path_segments, mask_value))

    def regex_mask_group(self, pattern: str, group: int, mask_char: str = "*") -> "MaskingBuilder":
        return self.add_rule(RegexMaskGroupRule(pattern, group, mask_char))

    def regex_replace(self, pattern: str, replacement: str) -> "MaskingBuilder":
        return self.add_rule(RegexReplaceRule(pattern, replacement))

    def template(self, template: str) -> "MaskingBuilder":
        return self.add_rule(TemplateMaskRule(template))

    # Identifiers
    def mask_email(
        self,
        local_keep: int = 1,
        domain_strategy: EmailDomainStrategy = EmailDomainStrategy.KEEP_ROOT,
        mask_char: str = "*",
        validate_format: bool = True
    ) -> "MaskingBuilder":
        return self.add_rule(EmailMaskRule(local_keep, domain_strategy, mask_char, validate_format))

    def card_mask(
        self,
        keep_first: int = 0,
        keep_last: int = 4,
        preserve_grouping: bool = True,
        validate_luhn: bool = False,
        mask_char: str = "*"
    ) -> "MaskingBuilder":
        return self.add_rule(CardMaskRule(keep_first, keep_last, preserve_grouping, validate_luhn, mask_char))

    def iban_mask(self, keep_last: int = 4, preserve_grouping: bool = True,
                  mask_char: str = "*") -> "MaskingBuilder":
        return self.add_rule(IBANMaskRule(keep_last, preserve_grouping, mask_char))

    def phone_mask(self, keep_last: int = 2, preserve_separators: bool = True,
                   mask_char: str = "*") -> "MaskingBuilder":
        return self.add_rule(PhoneMaskRule(keep_last, preserve_separators, mask_char))

    def national_id_mask(
        self,
        country_code: Optional[str] = "US",
        keep_first: Optional[int] = None,
        keep_last: Optional[int] = None,
        mask_char: str = "*"
    ) -> "MaskingBuilder":
        return self.add_rule(NationalIdMaskRule(country_code, keep_first, keep_last, mask_char))

    # Dates
    def date_age_mask(self, mode: DateMaskMode = DateMaskMode.YEAR_ONLY, **options) -> "MaskingBuilder":
        return self.add_rule(DateAgeMaskRule(mode, **options))

    def date_shift(self, days_range: int, preserve_time: bool = True) -> "MaskingBuilder":
        return self.add_rule(DateShiftRule(days_range, preserve_time))

    def time_bucket(self, granularity: TimeGranularity) -> "MaskingBuilder":
        return self.add_rule(TimeBucketRule(granularity))

    # Numbers
    def add_noise(
        self,
        max_abs: float,
        distribution: NoiseDistribution = NoiseDistribution.UNIFORM,
        min_value=None,
        max_value=None
    ) -> "MaskingBuilder":
        return self.add_rule(NoiseAdditiveRule(max_abs, distribution, min_value, max_value))

    def round_to(self, increment) -> "MaskingBuilder":
        return self.add_rule(RoundToRule(increment))

    def bucketize(self, breaks, labels) -> "MaskingBuilder":
        return self.add_rule(BucketizeRule(breaks, labels))

    def bucketize_preset(self, name: str) -> "MaskingBuilder":
        return self.add_rule(bucketing_presets.preset_rule(name))
