# calculation/periods.py
"""Splits a date range into pieces that each fall in a single rate period."""
from datetime import date
from typing import List, Sequence

from models.interest_data import RatePeriod, Regime, SubRange
from rates.rate_table import first_uncovered_range
from utils.error_handler import InvalidRangeError, RateTableGapError


def split_date_range(start: date, end: date, periods: Sequence[RatePeriod], regime: Regime) -> List[SubRange]:
    """
    Decomposes [start, end] into rate-aligned sub-ranges.

    Each period is clipped to the range; consecutive sub-ranges meet on a
    shared boundary day (a sub-range accrues up to, but not including, its
    end), so the day counts of all sub-ranges add up to the undivided range.
    A same-day range yields exactly one zero-day sub-range.

    Args:
        start: First day of the range.
        end: Last day of the range (start <= end).
        periods: Rate periods ordered by start.
        regime: Selects the rate column used for each sub-range.

    Returns:
        Ordered, gap-free list of SubRange objects.

    Raises:
        InvalidRangeError: If start is after end.
        RateTableGapError: If part of the range has no covering period.
    """
    if start > end:
        raise InvalidRangeError(
            f"Range start {start.isoformat()} is after its end {end.isoformat()}",
            start=start, end=end,
        )

    gap = first_uncovered_range(periods, start, end)
    if gap is not None:
        raise RateTableGapError(gap[0], gap[1])

    clipped = []
    for period in periods:
        clipped_start = max(period.start, start)
        clipped_end = min(period.end, end)
        if clipped_start <= clipped_end:
            clipped.append((clipped_start, period.rate_for(regime)))

    sub_ranges: List[SubRange] = []
    for index, (clipped_start, rate) in enumerate(clipped):
        boundary = clipped[index + 1][0] if index + 1 < len(clipped) else end
        # A range ending on the first day of a new period accrues nothing in it
        if sub_ranges and clipped_start == boundary:
            continue
        sub_ranges.append(SubRange(start=clipped_start, end=boundary, rate=rate))
    return sub_ranges
