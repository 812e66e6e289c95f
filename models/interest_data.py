#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Interest calculation data models
"""

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Optional, Dict, List, Any, Tuple, Iterable

from calculation.dates import add_days, normalize
from utils.error_handler import ValidationError


def as_decimal(value: Any, field_name: str, allow_negative: bool = False) -> Decimal:
    """Converts a number or numeric string to a finite Decimal."""
    if isinstance(value, bool) or value is None:
        raise ValidationError(f"{field_name} must be a number, got {value!r}.", field_name=field_name)
    if isinstance(value, Decimal):
        result = value
    else:
        try:
            result = Decimal(str(value).strip())
        except (InvalidOperation, ValueError) as e:
            raise ValidationError(f"{field_name} must be a number, got {value!r}.",
                                  field_name=field_name) from e
    if not result.is_finite():
        raise ValidationError(f"{field_name} must be finite, got {value!r}.", field_name=field_name)
    if not allow_negative and result < 0:
        raise ValidationError(f"{field_name} cannot be negative, got {value!r}.", field_name=field_name)
    return result


class Regime(Enum):
    """Interest rule set; selects the rate column of a RatePeriod"""
    PREJUDGMENT = "prejudgment"
    POSTJUDGMENT = "postjudgment"

    @classmethod
    def parse(cls, value: Any) -> 'Regime':
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError as e:
            raise ValidationError(f"Unknown interest regime: {value!r}", field_name="regime") from e


@dataclass(frozen=True)
class RatePeriod:
    """Calendar interval (inclusive on both ends) with one annual rate per regime"""
    start: date
    end: date
    prejudgment_rate: Decimal
    postjudgment_rate: Decimal

    def __post_init__(self):
        object.__setattr__(self, 'start', normalize(self.start))
        object.__setattr__(self, 'end', normalize(self.end))
        object.__setattr__(self, 'prejudgment_rate', as_decimal(self.prejudgment_rate, 'prejudgment_rate'))
        object.__setattr__(self, 'postjudgment_rate', as_decimal(self.postjudgment_rate, 'postjudgment_rate'))
        if self.start > self.end:
            raise ValidationError(
                f"Rate period starts after it ends: {self.start.isoformat()} > {self.end.isoformat()}",
                field_name="end"
            )

    def rate_for(self, regime: Regime) -> Decimal:
        if Regime.parse(regime) is Regime.PREJUDGMENT:
            return self.prejudgment_rate
        return self.postjudgment_rate

    def contains(self, day: date) -> bool:
        return self.start <= day <= self.end

    def to_dict(self) -> Dict[str, Any]:
        return {
            'start': self.start.isoformat(),
            'end': self.end.isoformat(),
            'prejudgment': str(self.prejudgment_rate),
            'postjudgment': str(self.postjudgment_rate),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'RatePeriod':
        return cls(
            start=data['start'],
            end=data['end'],
            prejudgment_rate=data.get('prejudgment', data.get('prejudgment_rate')),
            postjudgment_rate=data.get('postjudgment', data.get('postjudgment_rate')),
        )


@dataclass(frozen=True)
class SpecialDamageItem:
    """Itemized loss accruing interest from its own incurred date"""
    date: date
    amount: Decimal
    description: str = "Special damage"

    def __post_init__(self):
        object.__setattr__(self, 'date', normalize(self.date))
        object.__setattr__(self, 'amount', as_decimal(self.amount, 'amount'))
        object.__setattr__(self, 'description', (self.description or "Special damage").strip())

    def to_dict(self) -> Dict[str, Any]:
        return {
            'date': self.date.isoformat(),
            'description': self.description,
            'amount': str(self.amount),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'SpecialDamageItem':
        return cls(
            date=data.get('date'),
            amount=data.get('amount'),
            description=data.get('description') or "Special damage",
        )


@dataclass(frozen=True)
class SubRange:
    """Portion of a requested range lying in one rate period.

    ``end`` is the accrual boundary: days are counted from ``start`` up to,
    but not including, ``end``.
    """
    start: date
    end: date
    rate: Decimal


@dataclass(frozen=True)
class InterestRow:
    """One itemized line: interest on one principal over one sub-range

    Days accrue from ``period_start`` up to, but not including,
    ``period_end``; on a row followed by another, ``period_end`` is the first
    day of the next rate period. ``last_day`` is the last day that accrued.
    """
    period_start: date
    period_end: date
    days: int
    rate: Decimal
    principal: Decimal
    interest: Decimal
    description: str = ""
    source: str = "base"  # base, special_damage

    def __post_init__(self):
        if self.days < 0:
            raise ValidationError(f"Row day count cannot be negative: {self.days}", field_name="days")

    @property
    def is_special_damage(self) -> bool:
        return self.source == "special_damage"

    @property
    def last_day(self) -> date:
        if self.days == 0:
            return self.period_start
        return add_days(self.period_end, -1)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'period_start': self.period_start.isoformat(),
            'period_end': self.period_end.isoformat(),
            'last_day': self.last_day.isoformat(),
            'days': self.days,
            'rate': str(self.rate),
            'principal': str(self.principal),
            'interest': str(self.interest),
            'description': self.description,
            'source': self.source,
        }


@dataclass(frozen=True)
class CalculationResult:
    """Itemized rows and the once-rounded total for one request"""
    details: Tuple[InterestRow, ...]
    total: Decimal
    principal: Decimal

    def __post_init__(self):
        object.__setattr__(self, 'details', tuple(self.details))

    @property
    def special_damage_rows(self) -> List[InterestRow]:
        return [row for row in self.details if row.is_special_damage]

    def to_dict(self) -> Dict[str, Any]:
        return {
            'details': [row.to_dict() for row in self.details],
            'total': str(self.total),
            'principal': str(self.principal),
        }


@dataclass(frozen=True)
class CalculationRequest:
    """Input of one interest calculation"""
    regime: Regime
    start: date
    end: date
    principal: Decimal
    jurisdiction: str
    special_damages: Tuple[SpecialDamageItem, ...] = field(default_factory=tuple)

    def __post_init__(self):
        object.__setattr__(self, 'regime', Regime.parse(self.regime))
        object.__setattr__(self, 'start', normalize(self.start))
        object.__setattr__(self, 'end', normalize(self.end))
        object.__setattr__(self, 'principal', as_decimal(self.principal, 'principal'))
        if not self.jurisdiction or not str(self.jurisdiction).strip():
            raise ValidationError("Jurisdiction is required.", field_name="jurisdiction")
        object.__setattr__(self, 'jurisdiction', str(self.jurisdiction).strip().upper())
        object.__setattr__(self, 'special_damages', _damage_tuple(self.special_damages))

    def to_dict(self) -> Dict[str, Any]:
        return {
            'regime': self.regime.value,
            'start': self.start.isoformat(),
            'end': self.end.isoformat(),
            'principal': str(self.principal),
            'jurisdiction': self.jurisdiction,
            'special_damages': [item.to_dict() for item in self.special_damages],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'CalculationRequest':
        return cls(
            regime=data.get('regime'),
            start=data.get('start'),
            end=data.get('end'),
            principal=data.get('principal'),
            jurisdiction=data.get('jurisdiction', ''),
            special_damages=data.get('special_damages') or data.get('specialDamages') or (),
        )


@dataclass(frozen=True)
class Payment:
    """Payment received against a judgment"""
    date: date
    amount: Decimal

    def __post_init__(self):
        object.__setattr__(self, 'date', normalize(self.date))
        object.__setattr__(self, 'amount', as_decimal(self.amount, 'amount'))

    def to_dict(self) -> Dict[str, Any]:
        return {'date': self.date.isoformat(), 'amount': str(self.amount)}


@dataclass(frozen=True)
class PaymentAllocation:
    """How a payment was split between accrued interest and principal"""
    payment: Payment
    interest_applied: Decimal
    principal_applied: Decimal
    remaining_principal: Decimal

    def to_dict(self) -> Dict[str, Any]:
        return {
            'payment': self.payment.to_dict(),
            'interest_applied': str(self.interest_applied),
            'principal_applied': str(self.principal_applied),
            'remaining_principal': str(self.remaining_principal),
        }


@dataclass(frozen=True)
class JudgmentCase:
    """Judgment facts needed to run both interest regimes"""
    jurisdiction: str
    judgment_amount: Decimal
    prejudgment_start: date
    judgment_date: date
    special_damages: Tuple[SpecialDamageItem, ...] = field(default_factory=tuple)

    def __post_init__(self):
        if not self.jurisdiction or not str(self.jurisdiction).strip():
            raise ValidationError("Jurisdiction is required.", field_name="jurisdiction")
        object.__setattr__(self, 'jurisdiction', str(self.jurisdiction).strip().upper())
        object.__setattr__(self, 'judgment_amount', as_decimal(self.judgment_amount, 'judgment_amount'))
        object.__setattr__(self, 'prejudgment_start', normalize(self.prejudgment_start))
        object.__setattr__(self, 'judgment_date', normalize(self.judgment_date))
        object.__setattr__(self, 'special_damages', _damage_tuple(self.special_damages))

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'JudgmentCase':
        return cls(
            jurisdiction=data.get('jurisdiction', ''),
            judgment_amount=data.get('judgment_amount'),
            prejudgment_start=data.get('prejudgment_start'),
            judgment_date=data.get('judgment_date'),
            special_damages=data.get('special_damages') or (),
        )


@dataclass(frozen=True)
class JudgmentInterestSummary:
    """Prejudgment and postjudgment results up to a calculation date"""
    calculation_date: date
    prejudgment: Optional[CalculationResult]
    postjudgment: Optional[CalculationResult]
    total_interest: Decimal
    principal_owing: Decimal
    per_diem: Decimal

    def to_dict(self) -> Dict[str, Any]:
        return {
            'calculation_date': self.calculation_date.isoformat(),
            'prejudgment': self.prejudgment.to_dict() if self.prejudgment else None,
            'postjudgment': self.postjudgment.to_dict() if self.postjudgment else None,
            'total_interest': str(self.total_interest),
            'principal_owing': str(self.principal_owing),
            'per_diem': str(self.per_diem),
        }


def _damage_tuple(items: Iterable[Any]) -> Tuple[SpecialDamageItem, ...]:
    if items is None:
        return ()
    return tuple(
        item if isinstance(item, SpecialDamageItem) else SpecialDamageItem.from_dict(item)
        for item in items
    )
