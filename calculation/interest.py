# calculation/interest.py
"""Court order interest over rate-aligned periods, with special damages."""
from datetime import date
from decimal import Decimal
from typing import Any, Iterable, List, Sequence, Tuple

from calculation.accumulator import (
    CURRENCY_PRECISION, DAYS_IN_YEAR, accrue_interest, round_currency, simple_interest,
)
from calculation.dates import normalize
from calculation.periods import split_date_range
from models.interest_data import (
    CalculationResult, InterestRow, RatePeriod, Regime, SpecialDamageItem, as_decimal,
)
from rates.rate_table import rate_in_effect
from utils.error_handler import InvalidRangeError


def _base_rows(regime: Regime, start: date, end: date, principal: Decimal,
               rate_periods: Sequence[RatePeriod], principal_reductions: Iterable[Tuple[Any, Any]],
               day_count_basis: Decimal) -> List[InterestRow]:
    # The principal drops on each reduction date and accrues at the lower amount from that day on
    reductions = sorted(
        ((normalize(on_date), as_decimal(amount, 'principal_reduction')) for on_date, amount in principal_reductions),
        key=lambda reduction: reduction[0],
    )
    rows: List[InterestRow] = []
    segment_start = start
    outstanding = principal
    for reduced_on, amount in reductions:
        if reduced_on >= end:
            break
        if reduced_on > segment_start:
            sub_ranges = split_date_range(segment_start, reduced_on, rate_periods, regime)
            rows.extend(accrue_interest(sub_ranges, max(outstanding, Decimal('0')), day_count_basis=day_count_basis))
            segment_start = reduced_on
        outstanding -= amount

    sub_ranges = split_date_range(segment_start, end, rate_periods, regime)
    rows.extend(accrue_interest(sub_ranges, max(outstanding, Decimal('0')), day_count_basis=day_count_basis))
    return rows


def calculate_interest_periods(
    regime: Any,
    start: Any,
    end: Any,
    principal: Any,
    rate_periods: Sequence[RatePeriod],
    special_damages: Iterable[SpecialDamageItem] = (),
    day_count_basis: Decimal = DAYS_IN_YEAR,
    currency_precision: Decimal = CURRENCY_PRECISION,
    rounding_method: str = 'half_up',
    principal_reductions: Iterable[Tuple[Any, Any]] = (),
) -> CalculationResult:
    """
    Calculates simple interest on a principal and on each special damage.

    The base principal accrues over [start, end]. Each special damage accrues
    from its own date to ``end``; damages dated before ``start`` accrue from
    ``start`` and damages dated after ``end`` are left out.

    Args:
        regime: Regime or its string value; selects the rate column.
        start: First day of interest.
        end: Last day of interest.
        principal: Base judgment amount.
        rate_periods: The jurisdiction's rate periods, ordered by start.
        special_damages: Dated special damage items.
        day_count_basis: Annual denominator of the per-annum rate.
        currency_precision: Quantum the total is rounded to.
        rounding_method: Name from calculation.accumulator.ROUNDING_METHODS.
        principal_reductions: (date, amount) pairs, e.g. the principal part of
            payments. The base principal accrues at the reduced amount from
            each date on; reductions dated on or before ``start`` apply from
            ``start`` and those on or after ``end`` change nothing.

    Returns:
        CalculationResult whose rows are ordered by period start, base rows
        first on a shared start date, and whose total is rounded once.
        ``principal`` is the base principal at ``start``, before reductions.

    Raises:
        InvalidDateError: If a date cannot be normalized.
        InvalidRangeError: If start is after end.
        RateTableGapError: If the rate periods do not cover a needed range.
    """
    regime = Regime.parse(regime)
    start, end = normalize(start), normalize(end)
    principal = as_decimal(principal, 'principal')
    damages = [
        item if isinstance(item, SpecialDamageItem) else SpecialDamageItem.from_dict(item)
        for item in special_damages
    ]
    if start > end:
        raise InvalidRangeError(
            f"Interest start {start.isoformat()} is after the end {end.isoformat()}",
            start=start, end=end,
        )

    keyed_rows: List[Tuple[Tuple[date, int, int], InterestRow]] = []
    for row in _base_rows(regime, start, end, principal, rate_periods, principal_reductions, day_count_basis):
        keyed_rows.append(((row.period_start, 0, 0), row))

    in_range = sorted(
        (item for item in damages if item.date <= end),
        key=lambda item: item.date,
    )
    for order, item in enumerate(in_range, start=1):
        damage_start = max(item.date, start)
        sub_ranges = split_date_range(damage_start, end, rate_periods, regime)
        rows = accrue_interest(sub_ranges, item.amount, description=item.description,
                               source="special_damage", day_count_basis=day_count_basis)
        keyed_rows.extend(((row.period_start, 1, order), row) for row in rows)

    keyed_rows.sort(key=lambda pair: pair[0])
    details = tuple(row for _, row in keyed_rows)
    total = round_currency(sum((row.interest for row in details), Decimal('0')),
                           currency_precision, rounding_method)
    return CalculationResult(details=details, total=total, principal=principal)


def calculate_per_diem(principal: Any, rate_periods: Sequence[RatePeriod], on_date: Any,
                       regime: Any = Regime.POSTJUDGMENT,
                       day_count_basis: Decimal = DAYS_IN_YEAR) -> Decimal:
    """
    One day of interest on ``principal`` at the rate in effect on ``on_date``.

    Returns zero for a zero principal without requiring a rate.
    """
    principal = as_decimal(principal, 'principal', allow_negative=True)
    if principal <= 0:
        return Decimal('0')
    rate = rate_in_effect(rate_periods, regime, on_date)
    return simple_interest(principal, rate, 1, day_count_basis)
