import math
from fractions import Fraction
from typing import Union

from models import Frequency, PeriodType

# Periods per month; weekly is 4 (not 52/12) so a month is exactly four
# month-aligned weeks or two fortnights.
PERIODS_PER_MONTH: dict[Frequency, Fraction] = {
    Frequency.weekly: Fraction(4),
    Frequency.fortnightly: Fraction(2),
    Frequency.monthly: Fraction(1),
    Frequency.quarterly: Fraction(1, 3),
    Frequency.yearly: Fraction(1, 12),
}


def round_cents(value: Union[Fraction, int]) -> int:
    """Round to whole cents, halves rounding up."""
    return math.floor(Fraction(value) + Fraction(1, 2))


def to_monthly_equivalent(
    amount_cents: int, from_frequency: Union[Frequency, PeriodType, str]
) -> Fraction:
    """Exact (unrounded) monthly amount for ``amount_cents`` at ``from_frequency``."""
    return amount_cents * PERIODS_PER_MONTH[Frequency(from_frequency)]


def convert_to_target_period(
    amount_cents: int,
    from_frequency: Union[Frequency, PeriodType, str],
    to_frequency: Union[Frequency, PeriodType, str],
) -> int:
    from_frequency = Frequency(from_frequency)
    to_frequency = Frequency(to_frequency)
    if from_frequency == to_frequency:
        return amount_cents
    monthly = to_monthly_equivalent(amount_cents, from_frequency)
    return round_cents(monthly / PERIODS_PER_MONTH[to_frequency])
