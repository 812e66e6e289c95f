#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Court order interest engine
Entry point used by the surrounding application: rate lookup, both interest
regimes, per diem and payment allocation
"""

from datetime import date
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple, Union
import logging

from calculation.accumulator import round_currency
from calculation.dates import normalize
from calculation.interest import calculate_interest_periods, calculate_per_diem
from calculation.payments import allocate_payment, applied_totals
from config.app_config import AppConfig, CalculationConfig, build_error_handler
from models.interest_data import (
    CalculationRequest, CalculationResult, JudgmentCase, JudgmentInterestSummary,
    Payment, PaymentAllocation, Regime,
)
from rates.loader import default_rate_table_path, load_rate_table
from rates.rate_table import RateTable
from utils.error_handler import (
    ErrorInfo, ErrorHandler, InterestCalculatorError, InvalidRangeError, get_error_handler,
)


class InterestEngine:
    """Court order interest calculation engine"""

    def __init__(self, rate_table: RateTable, config: Optional[CalculationConfig] = None,
                 error_handler: Optional[ErrorHandler] = None):
        self.logger = logging.getLogger(__name__)
        self.rate_table = rate_table
        self.config = config or CalculationConfig()
        self.error_handler = error_handler or get_error_handler()

    @classmethod
    def from_config(cls, app_config: AppConfig, rate_table: Optional[RateTable] = None) -> 'InterestEngine':
        """Engine wired from application settings; loads the configured rate table unless one is given."""
        if rate_table is None:
            document = load_rate_table(app_config.rates.rate_table_path or default_rate_table_path(),
                                       valid_until=app_config.rates.valid_until)
            rate_table = document.table
        return cls(rate_table, app_config.calculation, build_error_handler(app_config.error_handling))

    def _round(self, amount: Decimal) -> Decimal:
        return round_currency(amount, self.config.currency_precision_decimal, self.config.rounding_method)

    def _run_periods(self, regime: Regime, jurisdiction: str, start: date, end: date,
                     principal: Decimal, special_damages=(), principal_reductions=()) -> CalculationResult:
        periods = self.rate_table.periods_overlapping(jurisdiction, regime, start, end)
        return calculate_interest_periods(
            regime, start, end, principal, periods, special_damages,
            day_count_basis=self.config.day_count_basis_decimal,
            currency_precision=self.config.currency_precision_decimal,
            rounding_method=self.config.rounding_method,
            principal_reductions=principal_reductions,
        )

    def _request_from_dict(self, data: Mapping[str, Any]) -> CalculationRequest:
        data = dict(data)
        data['regime'] = data.get('regime') or self.config.default_regime
        data['jurisdiction'] = data.get('jurisdiction') or self.config.default_jurisdiction
        return CalculationRequest.from_dict(data)

    def calculate(self, request: Union[CalculationRequest, Mapping[str, Any]]) -> CalculationResult:
        """
        Itemized interest for one request; errors propagate to the caller.

        A dict request without a regime or jurisdiction uses the configured
        defaults.
        """
        if not isinstance(request, CalculationRequest):
            request = self._request_from_dict(request)

        self.logger.debug(
            f"Calculating {request.regime.value} interest for {request.jurisdiction} "
            f"{request.start.isoformat()}..{request.end.isoformat()} on {request.principal} "
            f"with {len(request.special_damages)} special damage item(s)"
        )
        result = self._run_periods(request.regime, request.jurisdiction, request.start, request.end,
                                   request.principal, request.special_damages)
        self.logger.info(
            f"{request.regime.value} interest {request.start.isoformat()}..{request.end.isoformat()}: "
            f"{len(result.details)} row(s), total {result.total}"
        )
        return result

    def calculate_or_report(self, request: Union[CalculationRequest, Mapping[str, Any]]
                            ) -> Tuple[Optional[CalculationResult], Optional[ErrorInfo]]:
        """
        Like calculate(), but converts calculator errors into ErrorInfo for
        display instead of raising.
        """
        try:
            return self.calculate(request), None
        except InterestCalculatorError as e:
            context = {}
            if isinstance(request, CalculationRequest):
                context = {"jurisdiction": request.jurisdiction, "regime": request.regime.value}
            return None, self.error_handler.handle_exception(e, context=context)

    def per_diem(self, principal: Any, on_date: Any, jurisdiction: str,
                 regime: Regime = Regime.POSTJUDGMENT) -> Decimal:
        """Daily interest on ``principal`` at the rate in effect on ``on_date``, rounded."""
        periods = self.rate_table.periods_for(jurisdiction)
        amount = calculate_per_diem(principal, periods, on_date, regime,
                                    day_count_basis=self.config.day_count_basis_decimal)
        return self._round(amount)

    def judgment_interest(self, case: JudgmentCase, calculation_date: Any,
                          prior_payments: Iterable[PaymentAllocation] = ()) -> JudgmentInterestSummary:
        """
        Prejudgment and postjudgment interest owed on ``calculation_date``.

        Prejudgment interest runs from the prejudgment start date to the
        judgment date (or the calculation date, if earlier) on the judgment
        amount and the special damages. Postjudgment interest runs from the
        judgment date on the judgment amount plus the special damages incurred
        up to judgment.

        Allocations dated on or before ``calculation_date`` count; later ones
        are ignored. Each allocation's principal portion lowers the accruing
        principal from its payment date on, and the interest portions are
        deducted from the interest owing.
        """
        calculation_date = normalize(calculation_date)
        if case.judgment_date < case.prejudgment_start:
            raise InvalidRangeError(
                f"Judgment date {case.judgment_date.isoformat()} precedes the prejudgment "
                f"start {case.prejudgment_start.isoformat()}",
                start=case.prejudgment_start, end=case.judgment_date,
            )
        if calculation_date < case.prejudgment_start:
            raise InvalidRangeError(
                f"Calculation date {calculation_date.isoformat()} precedes the prejudgment "
                f"start {case.prejudgment_start.isoformat()}",
                start=case.prejudgment_start, end=calculation_date,
            )

        prior = [a for a in prior_payments if a.payment.date <= calculation_date]
        interest_paid, principal_paid = applied_totals(prior)
        reductions = [(a.payment.date, a.principal_applied) for a in prior if a.principal_applied > 0]

        prejudgment_end = min(case.judgment_date, calculation_date)
        prejudgment = self._run_periods(Regime.PREJUDGMENT, case.jurisdiction, case.prejudgment_start,
                                        prejudgment_end, case.judgment_amount, case.special_damages,
                                        principal_reductions=reductions)
        principal_awarded = case.judgment_amount + sum(
            (item.amount for item in case.special_damages if item.date <= prejudgment_end),
            Decimal('0'),
        )
        principal_owing = max(principal_awarded - principal_paid, Decimal('0'))
        gross_interest = prejudgment.total

        postjudgment = None
        if calculation_date > case.judgment_date:
            postjudgment = self._run_periods(Regime.POSTJUDGMENT, case.jurisdiction, case.judgment_date,
                                             calculation_date, principal_awarded,
                                             principal_reductions=reductions)
            gross_interest += postjudgment.total

        per_diem_regime = Regime.POSTJUDGMENT if calculation_date >= case.judgment_date else Regime.PREJUDGMENT
        summary = JudgmentInterestSummary(
            calculation_date=calculation_date,
            prejudgment=prejudgment,
            postjudgment=postjudgment,
            total_interest=max(gross_interest - interest_paid, Decimal('0')),
            principal_owing=principal_owing,
            per_diem=self.per_diem(principal_owing, calculation_date, case.jurisdiction, per_diem_regime),
        )
        self.logger.debug(
            f"Judgment interest to {calculation_date.isoformat()}: gross {gross_interest}, "
            f"paid {interest_paid}, principal owing {principal_owing}"
        )
        return summary

    def allocate_payment(self, case: JudgmentCase, payment: Payment,
                         prior_payments: Iterable[PaymentAllocation] = ()) -> PaymentAllocation:
        """
        Splits ``payment`` between interest owing on its date and principal.

        ``prior_payments`` are the allocations already made; those dated
        after ``payment`` are ignored, same-day ones count as earlier.
        """
        summary = self.judgment_interest(case, payment.date, prior_payments)
        allocation = allocate_payment(payment, summary.total_interest, summary.principal_owing)
        self.logger.info(
            f"Payment of {payment.amount} on {payment.date.isoformat()}: "
            f"interest {allocation.interest_applied}, principal {allocation.principal_applied}"
        )
        return allocation

    def apply_payments(self, case: JudgmentCase, payments: Iterable[Payment]) -> List[PaymentAllocation]:
        """Allocates payments in date order, each after the ones before it."""
        allocations: List[PaymentAllocation] = []
        for payment in sorted(payments, key=lambda p: p.date):
            allocations.append(self.allocate_payment(case, payment, allocations))
        return allocations

    @staticmethod
    def result_summary(result: CalculationResult) -> Dict[str, Any]:
        """Totals by principal source, for summary tables."""
        base_interest = sum((row.interest for row in result.details if not row.is_special_damage), Decimal('0'))
        damage_interest = sum((row.interest for row in result.details if row.is_special_damage), Decimal('0'))
        return {
            'principal': result.principal,
            'base_interest': base_interest,
            'special_damages_interest': damage_interest,
            'total': result.total,
            'rows': len(result.details),
        }
