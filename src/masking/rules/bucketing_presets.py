"""Ready-made bucket tables for common generalizations.

Every preset is a ``BucketTable`` built once at import; ``preset_rule`` turns
a preset name into a ``BucketizeRule``.
"""

import math
from types import MappingProxyType
from typing import Mapping

from ..utils.error_utils import ConfigurationError
from .numeric import BucketizeRule, BucketTable

AGE_GROUPS = BucketTable(
    breaks=(0, 18, 30, 45, 60, 100),
    labels=("<18", "18-29", "30-44", "45-59", "60+")
)

DETAILED_AGE_GROUPS = BucketTable(
    breaks=(0, 18, 30, 40, 50, 60, 70, 120),
    labels=("<18", "18-29", "30-39", "40-49", "50-59", "60-69", "70+")
)

SALARY_RANGES = BucketTable(
    breaks=(0, 30000, 60000, 90000, 120000, 150000, math.inf),
    labels=("<30k", "30-60k", "60-90k", "90-120k", "120-150k", "150k+")
)

SENIOR_SALARY_RANGES = BucketTable(
    breaks=(0, 50000, 75000, 100000, 150000, 200000, 300000, math.inf),
    labels=("<50k", "50-75k", "75-100k", "100-150k", "150-200k", "200-300k", "300k+")
)

CREDIT_SCORE = BucketTable(
    breaks=(300, 580, 670, 740, 800, 850),
    labels=("Poor", "Fair", "Good", "Very Good", "Excellent")
)

# 2024 US federal brackets, single filer
US_TAX_BRACKETS = BucketTable(
    breaks=(0, 11600, 47150, 100525, 191950, 243725, 609350, math.inf),
    labels=("10%", "12%", "22%", "24%", "32%", "35%", "37%")
)

HOUSING_PRICE = BucketTable(
    breaks=(0, 100000, 200000, 300000, 500000, 750000, 1000000, math.inf),
    labels=("<100k", "100-200k", "200-300k", "300-500k", "500-750k", "750k-1M", "1M+")
)

PERCENTAGE_QUINTILES = BucketTable(
    breaks=(0.0, 0.2, 0.4, 0.6, 0.8, 1.0),
    labels=("0-20%", "20-40%", "40-60%", "60-80%", "80-100%")
)

TRANSACTION_AMOUNTS = BucketTable(
    breaks=(0, 10, 50, 100, 500, 1000, 5000, math.inf),
    labels=("<$10", "$10-50", "$50-100", "$100-500", "$500-1k", "$1k-5k", "$5k+")
)

BMI = BucketTable(
    breaks=(0.0, 18.5, 25.0, 30.0, 35.0, 40.0, 100.0),
    labels=("Underweight", "Normal", "Overweight", "Obese Class I", "Obese Class II", "Obese Class III")
)

PRESETS: Mapping[str, BucketTable] = MappingProxyType({
    "age_groups": AGE_GROUPS,
    "detailed_age_groups": DETAILED_AGE_GROUPS,
    "salary_ranges": SALARY_RANGES,
    "senior_salary_ranges": SENIOR_SALARY_RANGES,
    "credit_score": CREDIT_SCORE,
    "us_tax_brackets": US_TAX_BRACKETS,
    "housing_price": HOUSING_PRICE,
    "percentage_quintiles": PERCENTAGE_QUINTILES,
    "transaction_amounts": TRANSACTION_AMOUNTS,
    "bmi": BMI,
})


def preset_rule(name: str) -> BucketizeRule:
    """Create a ``BucketizeRule`` from a named preset.

    Raises:
        ConfigurationError: If the preset does not exist
    """
    table = PRESETS.get(name)
    if table is None:
        raise ConfigurationError(
            f"Unknown bucketing preset: {name}",
            context={"available": sorted(PRESETS)}
        )
    return BucketizeRule.from_table(table)
