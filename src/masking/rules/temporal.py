"""Temporal masking rules: date shifting, date/age generalization, time buckets."""

from datetime import date, datetime, timedelta
from enum import Enum
from types import MappingProxyType
from typing import Optional, Sequence, Tuple, Union

from ..core.random_source import SeededRule, SeedProvider
from ..core.rule_base import TextRule, TypedRule, require_non_negative
from ..logging.logging_config import get_logger
from ..utils.error_utils import ConfigurationError
from .numeric import BucketTable

logger = get_logger(__name__)

DateLike = Union[date, datetime]

SECONDS_PER_DAY = 86400
REDACTED = "[REDACTED]"
AGE_CAP_LABEL = "90+"
AGE_CAP = 90

# Safe-Harbor age groups; ages 90 and over collapse into one bucket.
DEFAULT_AGE_TABLE = BucketTable(
    breaks=(0, 6, 11, 21, 31, 41, 51, 61, 71, 81, 90, 150),
    labels=("0-5", "6-10", "11-20", "21-30", "31-40", "41-50",
            "51-60", "61-70", "71-80", "81-89", "90+")
)

# Tried in order after an ISO-8601 parse fails; day-first wins over month-first.
DATE_FORMATS: Tuple[str, ...] = (
    "%Y-%m-%d",
    "%Y/%m/%d",
    "%d-%m-%Y",
    "%d/%m/%Y",
    "%m-%d-%Y",
    "%m/%d/%Y",
    "%d.%m.%Y",
    "%Y-%m-%dT%H:%M:%S",
    "%Y-%m-%dT%H:%M:%SZ",
    "%Y-%m-%dT%H:%M:%S.%fZ",
)


def parse_date(text: Optional[str]) -> Optional[datetime]:
    """Parse a textual date, returning ``None`` when no known format matches."""
    if not text or not text.strip():
        return None
    candidate = text.strip()

    iso_candidate = candidate[:-1] + "+00:00" if candidate.endswith("Z") else candidate
    try:
        return datetime.fromisoformat(iso_candidate)
    except ValueError:
        pass

    for fmt in DATE_FORMATS:
        try:
            return datetime.strptime(candidate, fmt)
        except ValueError:
            continue
    return None


def shift_clamped(value: DateLike, offset: timedelta) -> DateLike:
    """Add ``offset`` to ``value``, saturating at the first or last representable day."""
    try:
        return value + offset
    except OverflowError:
        logger.debug("Shifted date out of range, clamped")
        if isinstance(value, datetime):
            bound = datetime.max if offset > timedelta(0) else datetime.min
            return bound.replace(tzinfo=value.tzinfo)
        return date.max if offset > timedelta(0) else date.min


def calculate_age(date_of_birth: DateLike, reference_date: DateLike) -> int:
    """Whole years between ``date_of_birth`` and ``reference_date``."""
    age = reference_date.year - date_of_birth.year
    if (reference_date.month, reference_date.day) < (date_of_birth.month, date_of_birth.day):
        age -= 1
    return age


class DateShiftRule(SeededRule, TypedRule):
    """Shifts a date by a random offset in ``[-days_range, +days_range]`` days.

    Attach a seed provider keyed by entity so that every date of that entity
    moves by the same offset and intervals between events are preserved.

    With ``preserve_time`` (default) only whole days are added, so the time of
    day is untouched. Without it the offset is drawn in seconds over the same
    range and the full timestamp moves.
    """

    def __init__(
        self,
        days_range: int,
        preserve_time: bool = True,
        seed_provider: Optional[SeedProvider] = None
    ):
        self.days_range = require_non_negative(days_range, "days_range")
        self.preserve_time = preserve_time
        self.seed_provider = seed_provider

    def offset_for(self, input_value) -> timedelta:
        rng = self.get_generator(input_value)
        if self.preserve_time:
            return timedelta(days=rng.randint(-self.days_range, self.days_range))
        span = self.days_range * SECONDS_PER_DAY
        return timedelta(seconds=rng.randint(-span, span))

    def apply(self, value):
        if value is None or self.days_range == 0:
            return value
        if not isinstance(value, date):
            raise TypeError(f"{self.name} requires a date or datetime, got {type(value).__name__}")

        offset = self.offset_for(value)
        if not isinstance(value, datetime):
            # Plain dates have no time component to move
            offset = timedelta(days=offset.days)
        return shift_clamped(value, offset)

    def __repr__(self) -> str:
        return f"DateShiftRule(days_range={self.days_range}, preserve_time={self.preserve_time})"


class DateMaskMode(Enum):
    """Generalization applied by ``DateAgeMaskRule``."""
    YEAR_ONLY = "year_only"
    DATE_SHIFT = "date_shift"
    REDACT = "redact"


class DateAgeMaskRule(SeededRule, TextRule):
    """Generalizes textual dates and ages.

    Dates that cannot be parsed are returned unchanged. Ages are exposed
    through ``apply_age`` and ``calculate_and_mask_age``; with bucketing off
    any age of 90 or above becomes ``"90+"``, with bucketing on the bucket
    table decides, and a custom table may drop the 90+ collapse entirely.
    """

    def __init__(
        self,
        mode: DateMaskMode = DateMaskMode.YEAR_ONLY,
        days_range: int = 180,
        age_bucketing: bool = False,
        custom_age_breaks: Optional[Sequence[int]] = None,
        custom_age_labels: Optional[Sequence[str]] = None,
        mask_char: str = "*",
        separator: str = "-",
        seed_provider: Optional[SeedProvider] = None
    ):
        self.mode = DateMaskMode(mode)
        self.days_range = require_non_negative(days_range, "days_range")
        self.age_bucketing = age_bucketing
        self.mask_char = mask_char
        self.separator = separator
        self.seed_provider = seed_provider

        if custom_age_breaks is not None and custom_age_labels is not None:
            if len(custom_age_breaks) != len(custom_age_labels) + 1:
                raise ConfigurationError(
                    "custom_age_labels must have length = len(custom_age_breaks) - 1"
                )
            self.age_table = BucketTable(tuple(custom_age_breaks), tuple(custom_age_labels))
            if AGE_CAP_LABEL not in self.age_table.labels:
                logger.warning("Custom age buckets do not collapse ages 90 and over")
        else:
            self.age_table = DEFAULT_AGE_TABLE

    def apply(self, value):
        if value is None or not value.strip():
            return value

        parsed = parse_date(value)
        if parsed is None:
            logger.debug("Unparseable date left unchanged")
            return value

        if self.mode is DateMaskMode.YEAR_ONLY:
            return self._format_year_only(parsed)
        if self.mode is DateMaskMode.DATE_SHIFT:
            return self._shift(parsed, value).date().isoformat()
        return REDACTED

    def _format_year_only(self, parsed: datetime) -> str:
        masked = self.mask_char * 2
        return f"{parsed.year}{self.separator}{masked}{self.separator}{masked}"

    def _shift(self, parsed: datetime, original: str) -> datetime:
        if self.days_range == 0:
            return parsed
        # Seeded from the original text so equal inputs shift equally
        shifter = DateShiftRule(self.days_range, seed_provider=self.seed_provider)
        return shift_clamped(parsed, shifter.offset_for(original))

    def apply_age(self, age: int) -> str:
        """Generalize an age in years."""
        if self.age_bucketing:
            return self.age_table.label_for(age)
        if age >= AGE_CAP:
            return AGE_CAP_LABEL
        return str(age)

    def calculate_and_mask_age(
        self,
        date_of_birth: DateLike,
        reference_date: Optional[DateLike] = None
    ) -> str:
        """Compute the age at ``reference_date`` (default today) and generalize it."""
        reference = reference_date or date.today()
        return self.apply_age(calculate_age(date_of_birth, reference))

    def __repr__(self) -> str:
        return f"DateAgeMaskRule(mode={self.mode.value}, age_bucketing={self.age_bucketing})"


class TimeGranularity(Enum):
    """Truncation levels for ``TimeBucketRule``."""
    HOUR = "hour"
    DAY = "day"
    WEEK = "week"
    MONTH = "month"
    QUARTER = "quarter"
    YEAR = "year"


def _week_start(value: datetime) -> datetime:
    monday = value - timedelta(days=value.weekday())
    return monday.replace(hour=0, minute=0, second=0, microsecond=0)


def _quarter_start(value: datetime) -> datetime:
    month = ((value.month - 1) // 3) * 3 + 1
    return value.replace(month=month, day=1, hour=0, minute=0, second=0, microsecond=0)


_MIDNIGHT = dict(hour=0, minute=0, second=0, microsecond=0)

_TRUNCATE = MappingProxyType({
    TimeGranularity.HOUR: lambda v: v.replace(minute=0, second=0, microsecond=0),
    TimeGranularity.DAY: lambda v: v.replace(**_MIDNIGHT),
    TimeGranularity.WEEK: _week_start,
    TimeGranularity.MONTH: lambda v: v.replace(day=1, **_MIDNIGHT),
    TimeGranularity.QUARTER: _quarter_start,
    TimeGranularity.YEAR: lambda v: v.replace(month=1, day=1, **_MIDNIGHT),
})


class TimeBucketRule(TypedRule):
    """Truncates a datetime to the start of its hour, day, week (Monday),
    month, quarter or year. Time zone information is kept as-is."""

    def __init__(self, granularity: TimeGranularity):
        self.granularity = TimeGranularity(granularity)

    def apply(self, value):
        if value is None:
            return None
        if not isinstance(value, datetime):
            if isinstance(value, date):
                value = datetime(value.year, value.month, value.day)
                return _TRUNCATE[self.granularity](value).date()
            raise TypeError(f"{self.name} requires a datetime, got {type(value).__name__}")
        return _TRUNCATE[self.granularity](value)

    def __repr__(self) -> str:
        return f"TimeBucketRule(granularity={self.granularity.value})"
