"""Statistical masking rules: noise addition, rounding and bucketization."""

import bisect
import math
import sys
from dataclasses import dataclass
from decimal import ROUND_HALF_EVEN, Decimal
from enum import Enum
from fractions import Fraction
from typing import Any, Iterable, Optional, Sequence, Tuple, Union

from ..core.random_source import SeededRule, SeedProvider
from ..core.rule_base import TypedRule
from ..logging.logging_config import get_logger
from ..utils.error_utils import ConfigurationError

logger = get_logger(__name__)

Number = Union[int, float, Decimal]

LAPLACE_EPSILON = 1e-10


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float, Decimal)) and not isinstance(value, bool)


def _require_number(value: Any, rule: str) -> None:
    if not _is_number(value):
        raise TypeError(f"{rule} requires a numeric value, got {type(value).__name__}")


class NoiseDistribution(Enum):
    """Distributions available for additive noise."""
    UNIFORM = "uniform"
    LAPLACE = "laplace"


def uniform_noise(u: float, max_abs: float) -> float:
    """Map ``u`` in [0, 1) to [-max_abs, +max_abs)."""
    return u * 2.0 * max_abs - max_abs


def laplace_noise(u: float, max_abs: float) -> float:
    """Inverse-CDF Laplace sample from ``u`` in [0, 1).

    The scale ``b = max_abs / ln 2`` puts about half of the mass inside
    ``[-max_abs, +max_abs]``.
    """
    b = max_abs / math.log(2.0)
    centered = u - 0.5
    sign = -1.0 if centered < 0 else 1.0
    magnitude = abs(centered)
    if magnitude >= 0.5:
        magnitude = 0.5 - LAPLACE_EPSILON
    return -b * sign * math.log(1.0 - 2.0 * magnitude)


class NoiseAdditiveRule(SeededRule, TypedRule):
    """Adds zero-mean random noise to a numeric value.

    The result keeps the input's numeric type: ints are rounded half-to-even,
    Decimals stay exact around the noise, floats stay floats. Results are
    clamped to ``[min_value, max_value]`` when bounds are given and floats
    never overflow to infinity.
    """

    def __init__(
        self,
        max_abs: float,
        distribution: NoiseDistribution = NoiseDistribution.UNIFORM,
        min_value: Optional[Number] = None,
        max_value: Optional[Number] = None,
        seed_provider: Optional[SeedProvider] = None
    ):
        if max_abs < 0:
            raise ConfigurationError("max_abs must be non-negative")
        if min_value is not None and max_value is not None and min_value > max_value:
            raise ConfigurationError("min_value cannot exceed max_value")
        self.max_abs = float(max_abs)
        self.distribution = NoiseDistribution(distribution)
        self.min_value = min_value
        self.max_value = max_value
        self.seed_provider = seed_provider

    def sample_noise(self, input_value: Any) -> float:
        u = self.get_generator(input_value).random()
        if self.distribution is NoiseDistribution.LAPLACE:
            return laplace_noise(u, self.max_abs)
        return uniform_noise(u, self.max_abs)

    def apply(self, value):
        if value is None or self.max_abs == 0:
            return value
        _require_number(value, self.name)

        noise = self.sample_noise(value)
        if isinstance(value, Decimal):
            result = value + Decimal(repr(noise))
        elif isinstance(value, int):
            result = value + round(noise)
        else:
            result = value + noise
            if math.isinf(result):
                result = math.copysign(sys.float_info.max, result)

        return self._saturate(result)

    def _saturate(self, result: Number) -> Number:
        if self.min_value is not None and result < self.min_value:
            return type(result)(self.min_value)
        if self.max_value is not None and result > self.max_value:
            return type(result)(self.max_value)
        return result

    def __repr__(self) -> str:
        return f"NoiseAdditiveRule(max_abs={self.max_abs}, distribution={self.distribution.value})"


class RoundToRule(TypedRule):
    """Rounds to the nearest multiple of ``increment`` (half-to-even).

    A negative increment is treated as its absolute value; an increment of
    zero leaves values unchanged.
    """

    def __init__(self, increment: Number):
        if not _is_number(increment):
            raise ConfigurationError("increment must be numeric")
        self.increment = abs(increment)

    def apply(self, value):
        if value is None or self.increment == 0:
            return value
        _require_number(value, self.name)

        if isinstance(value, Decimal):
            if not value.is_finite():
                return value
            increment = Decimal(str(self.increment))
            steps = (value / increment).quantize(Decimal(1), rounding=ROUND_HALF_EVEN)
            return steps * increment
        if isinstance(value, int):
            increment = Fraction(str(self.increment))
            result = round(Fraction(value) / increment) * increment
            return int(result) if result.denominator == 1 else float(result)
        increment = float(self.increment)
        steps = value / increment
        if not math.isfinite(steps):
            # Infinite or NaN inputs, or a quotient past the float range
            return value
        result = round(steps) * increment
        if math.isinf(result):
            result = math.copysign(sys.float_info.max, result)
        return float(result)

    def __repr__(self) -> str:
        return f"RoundToRule(increment={self.increment})"


@dataclass(frozen=True)
class BucketTable:
    """Strictly ascending breakpoints with one label per interval.

    Interval ``i`` is ``[breaks[i], breaks[i+1])``; values below the first
    breakpoint fall in the first interval and values at or above the last
    fall in the last one.
    """
    breaks: Tuple[Number, ...]
    labels: Tuple[str, ...]

    def __post_init__(self):
        breaks = tuple(self.breaks)
        labels = tuple(self.labels)
        object.__setattr__(self, "breaks", breaks)
        object.__setattr__(self, "labels", labels)

        if len(breaks) < 2:
            raise ConfigurationError("Bucket table needs at least 2 breakpoints")
        if len(labels) != len(breaks) - 1:
            raise ConfigurationError(
                f"Labels length ({len(labels)}) must equal breaks length - 1 ({len(breaks) - 1})"
            )
        for lower, upper in zip(breaks, breaks[1:]):
            if not lower < upper:
                raise ConfigurationError(
                    f"Breaks must be strictly ascending: {lower} is not less than {upper}"
                )

    def label_for(self, value: Number) -> str:
        index = bisect.bisect_right(self.breaks, value) - 1
        index = max(0, min(index, len(self.labels) - 1))
        return self.labels[index]


class BucketizeRule(TypedRule):
    """Replaces a number with the label of the bucket that contains it."""

    def __init__(self, breaks: Sequence[Number], labels: Sequence[str]):
        self.table = BucketTable(tuple(breaks), tuple(labels))

    @classmethod
    def from_table(cls, table: BucketTable) -> "BucketizeRule":
        return cls(table.breaks, table.labels)

    @property
    def breaks(self) -> Tuple[Number, ...]:
        return self.table.breaks

    @property
    def labels(self) -> Tuple[str, ...]:
        return self.table.labels

    def apply(self, value):
        if value is None:
            return None
        _require_number(value, self.name)
        return self.table.label_for(value)

    def __repr__(self) -> str:
        return f"BucketizeRule(breaks={list(self.breaks)}, labels={list(self.labels)})"


# Statistical checks used to verify that masking preserved distribution shape

def mean(values: Iterable[Number]) -> float:
    items = [float(v) for v in values]
    if not items:
        raise ValueError("Cannot calculate mean of empty collection")
    return sum(items) / len(items)


def standard_deviation(values: Iterable[Number]) -> float:
    """Sample standard deviation (N - 1)."""
    items = [float(v) for v in values]
    if len(items) < 2:
        raise ValueError("Cannot calculate standard deviation with less than 2 values")
    avg = sum(items) / len(items)
    squared = sum((v - avg) ** 2 for v in items)
    return math.sqrt(squared / (len(items) - 1))


def variance(values: Iterable[Number]) -> float:
    return standard_deviation(values) ** 2


def _within_tolerance(expected: float, actual: float, tolerance_percent: float) -> bool:
    if abs(expected) < sys.float_info.epsilon:
        # Relative difference is undefined around zero; compare absolutely
        return abs(actual - expected) <= tolerance_percent
    return abs((actual - expected) / expected) <= tolerance_percent / 100.0


def validate_mean_preservation(
    original: Iterable[Number],
    masked: Iterable[Number],
    tolerance_percent: float = 5.0
) -> bool:
    """Check that masking kept the mean within ``tolerance_percent`` percent."""
    return _within_tolerance(mean(original), mean(masked), tolerance_percent)


def validate_std_dev_preservation(
    original: Iterable[Number],
    masked: Iterable[Number],
    tolerance_percent: float = 10.0
) -> bool:
    """Check that masking kept the sample standard deviation within tolerance."""
    return _within_tolerance(
        standard_deviation(original), standard_deviation(masked), tolerance_percent
    )
