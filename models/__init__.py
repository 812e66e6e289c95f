#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Data models shared across the calculator
"""

from .interest_data import (
    Regime, RatePeriod, SpecialDamageItem, SubRange, InterestRow,
    CalculationResult, CalculationRequest, Payment, PaymentAllocation,
    JudgmentCase, JudgmentInterestSummary, as_decimal,
)

__all__ = [
    'Regime',
    'RatePeriod',
    'SpecialDamageItem',
    'SubRange',
    'InterestRow',
    'CalculationResult',
    'CalculationRequest',
    'Payment',
    'PaymentAllocation',
    'JudgmentCase',
    'JudgmentInterestSummary',
    'as_decimal',
]
