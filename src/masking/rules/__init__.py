"""Masking rules."""

from .bucketing_presets import PRESETS, preset_rule
from .checksums import iban_is_valid, iban_mod97_is_valid, luhn_is_valid
from .financial import CardMaskRule, IBANMaskRule
from .identifiers import EmailDomainStrategy, EmailMaskRule, NationalIdMaskRule, PhoneMaskRule
from .national_id_catalog import NATIONAL_ID_CATALOG, SUPPORTED_COUNTRIES, CountryIdPattern
from .numeric import (
    BucketizeRule, BucketTable, NoiseAdditiveRule, NoiseDistribution, RoundToRule
)
from .temporal import (
    DateAgeMaskRule, DateMaskMode, DateShiftRule, TimeBucketRule, TimeGranularity
)
from .text import (
    BlacklistCharsRule, CharClass, HashAlgorithm, HashOutputFormat, HashRule,
    KeepFirstRule, KeepLastRule, MaskCharClassRule, MaskEndRule, MaskFirstRule,
    MaskFrom, MaskLastRule, MaskMiddleRule, MaskPercentageRule, MaskRangeRule,
    MaskStartRule, NullOutRule, RedactRule, RegexMaskGroupRule, RegexReplaceRule,
    SaltMode, TemplateMaskRule, TruncateRule, URLMaskRule, WhitelistCharsRule
)

__all__ = [
    "BlacklistCharsRule",
    "BucketizeRule",
    "BucketTable",
    "CardMaskRule",
    "CharClass",
    "CountryIdPattern",
    "DateAgeMaskRule",
    "DateMaskMode",
    "DateShiftRule",
    "EmailDomainStrategy",
    "EmailMaskRule",
    "HashAlgorithm",
    "HashOutputFormat",
    "HashRule",
    "IBANMaskRule",
    "KeepFirstRule",
    "KeepLastRule",
    "MaskCharClassRule",
    "MaskEndRule",
    "MaskFirstRule",
    "MaskFrom",
    "MaskLastRule",
    "MaskMiddleRule",
    "MaskPercentageRule",
    "MaskRangeRule",
    "MaskStartRule",
    "NATIONAL_ID_CATALOG",
    "NationalIdMaskRule",
    "NoiseAdditiveRule",
    "NoiseDistribution",
    "NullOutRule",
    "PRESETS",
    "PhoneMaskRule",
    "RedactRule",
    "RegexMaskGroupRule",
    "RegexReplaceRule",
    "RoundToRule",
    "SaltMode",
    "SUPPORTED_COUNTRIES",
    "TemplateMaskRule",
    "TimeBucketRule",
    "TimeGranularity",
    "TruncateRule",
    "URLMaskRule",
    "WhitelistCharsRule",
    "iban_is_valid",
    "iban_mod97_is_valid",
    "luhn_is_valid",
    "preset_rule",
]
