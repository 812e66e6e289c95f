#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Published interest rate tables

A RateTable maps a jurisdiction code (e.g. "BC") to its ordered,
non-overlapping rate periods. Tables are immutable snapshots; a refreshed
table is a new object.
"""

from datetime import date
from decimal import Decimal
from typing import Dict, Iterable, Mapping, Optional, Sequence, Tuple, Any

from calculation.dates import add_days, normalize
from models.interest_data import RatePeriod, Regime
from utils.error_handler import InvalidRangeError, RateNotFoundError, RateTableError, RateTableGapError


def first_uncovered_range(periods: Sequence[RatePeriod], start: date, end: date) -> Optional[Tuple[date, date]]:
    """
    Returns the first (gap_start, gap_end) inside [start, end] that no period
    covers, or None when the periods cover the whole range contiguously.

    The periods must be ordered by start.
    """
    cursor = start
    for period in periods:
        if period.end < cursor:
            continue
        if period.start > end:
            break
        if period.start > cursor:
            return cursor, min(add_days(period.start, -1), end)
        if period.end >= end:
            return None
        cursor = add_days(period.end, 1)
    return cursor, end


def rate_in_effect(periods: Sequence[RatePeriod], regime: Regime, day: Any) -> Decimal:
    """Rate of the period containing ``day``."""
    regime = Regime.parse(regime)
    day = normalize(day)
    for period in periods:
        if period.contains(day):
            return period.rate_for(regime)
    raise RateNotFoundError(f"No {regime.value} rate for {day.isoformat()}", on_date=day)


class RateTable:
    """Rate periods per jurisdiction"""

    def __init__(self, periods_by_jurisdiction: Mapping[str, Iterable[Any]]):
        table: Dict[str, Tuple[RatePeriod, ...]] = {}
        for jurisdiction, periods in periods_by_jurisdiction.items():
            code = self._normalize_code(jurisdiction)
            records = tuple(
                p if isinstance(p, RatePeriod) else RatePeriod.from_dict(p)
                for p in periods
            )
            self._validate_order(code, records)
            table[code] = records
        self._table = table

    @staticmethod
    def _normalize_code(jurisdiction: str) -> str:
        return str(jurisdiction).strip().upper()

    @staticmethod
    def _validate_order(jurisdiction: str, periods: Sequence[RatePeriod]) -> None:
        for previous, current in zip(periods, periods[1:]):
            if current.start <= previous.end:
                raise RateTableError(
                    f"{jurisdiction} rate periods are unordered or overlap: "
                    f"{previous.start.isoformat()}..{previous.end.isoformat()} and "
                    f"{current.start.isoformat()}..{current.end.isoformat()}",
                    context={"jurisdiction": jurisdiction},
                )

    @property
    def jurisdictions(self) -> Tuple[str, ...]:
        return tuple(self._table)

    def __contains__(self, jurisdiction: object) -> bool:
        return isinstance(jurisdiction, str) and self._normalize_code(jurisdiction) in self._table

    def periods_for(self, jurisdiction: str) -> Tuple[RatePeriod, ...]:
        code = self._normalize_code(jurisdiction)
        try:
            return self._table[code]
        except KeyError:
            raise RateNotFoundError(
                f"No rate table for jurisdiction {code!r}",
                user_message=f"Interest rates for {code} are not available.",
                context={"jurisdiction": code},
            ) from None

    def periods_overlapping(self, jurisdiction: str, regime: Regime,
                            start: Any, end: Any) -> Tuple[RatePeriod, ...]:
        """
        Every period overlapping [start, end], ordered by start.

        Raises:
            RateTableGapError: If part of [start, end] has no covering period.
        """
        Regime.parse(regime)
        start, end = normalize(start), normalize(end)
        if start > end:
            raise InvalidRangeError(
                f"Range start {start.isoformat()} is after its end {end.isoformat()}",
                start=start, end=end,
            )
        periods = self.periods_for(jurisdiction)
        overlapping = tuple(p for p in periods if p.start <= end and p.end >= start)
        gap = first_uncovered_range(overlapping, start, end)
        if gap is not None:
            raise RateTableGapError(gap[0], gap[1], context={"jurisdiction": self._normalize_code(jurisdiction)})
        return overlapping

    def rate_on(self, jurisdiction: str, regime: Regime, day: Any) -> Decimal:
        """Rate of the jurisdiction's period containing ``day``."""
        try:
            return rate_in_effect(self.periods_for(jurisdiction), regime, day)
        except RateNotFoundError as e:
            e.context["jurisdiction"] = self._normalize_code(jurisdiction)
            raise

    def latest_period(self, jurisdiction: str) -> Optional[RatePeriod]:
        periods = self.periods_for(jurisdiction)
        return periods[-1] if periods else None

    def to_dict(self) -> Dict[str, Any]:
        return {code: [p.to_dict() for p in periods] for code, periods in self._table.items()}
