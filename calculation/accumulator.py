# calculation/accumulator.py
"""Simple-interest accrual over rate-aligned sub-ranges."""
from decimal import Decimal, ROUND_HALF_UP, ROUND_HALF_EVEN, ROUND_DOWN, ROUND_UP
from typing import Iterable, List

from calculation.dates import days_between
from models.interest_data import InterestRow, SubRange
from utils.error_handler import ValidationError

# Annual denominator fixed by the governing rate convention, leap years included
DAYS_IN_YEAR = Decimal('365')
CURRENCY_PRECISION = Decimal('0.01')

ROUNDING_METHODS = {
    'half_up': ROUND_HALF_UP,
    'half_even': ROUND_HALF_EVEN,
    'down': ROUND_DOWN,
    'up': ROUND_UP,
}


def simple_interest(principal: Decimal, rate: Decimal, days: int,
                    day_count_basis: Decimal = DAYS_IN_YEAR) -> Decimal:
    """
    principal × (rate / 100) × (days / basis), unrounded.

    ``rate`` is a percentage per annum, e.g. Decimal('2.5') for 2.5%.
    """
    if days <= 0:
        return Decimal('0')
    return principal * (rate / Decimal('100')) * Decimal(days) / Decimal(day_count_basis)


def accrue_interest(sub_ranges: Iterable[SubRange], principal: Decimal,
                    description: str = "", source: str = "base",
                    day_count_basis: Decimal = DAYS_IN_YEAR) -> List[InterestRow]:
    """One InterestRow per sub-range, including zero-interest rows."""
    rows = []
    for sub_range in sub_ranges:
        days = days_between(sub_range.start, sub_range.end)
        rows.append(InterestRow(
            period_start=sub_range.start,
            period_end=sub_range.end,
            days=days,
            rate=sub_range.rate,
            principal=principal,
            interest=simple_interest(principal, sub_range.rate, days, day_count_basis),
            description=f"{description} ({days} days)" if description else f"{days} days",
            source=source,
        ))
    return rows


def round_currency(amount: Decimal, precision: Decimal = CURRENCY_PRECISION,
                   rounding_method: str = 'half_up') -> Decimal:
    """Rounds to the smallest currency unit."""
    try:
        rounding = ROUNDING_METHODS[rounding_method]
    except KeyError:
        raise ValidationError(
            f"Unknown rounding method: {rounding_method!r}. Expected one of {sorted(ROUNDING_METHODS)}",
            field_name="rounding_method",
        ) from None
    return Decimal(amount).quantize(Decimal(precision), rounding=rounding)
