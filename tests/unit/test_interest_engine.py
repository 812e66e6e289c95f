#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Interest engine tests
"""

import logging
import pytest
from datetime import date
from decimal import Decimal

from calculation.interest_engine import InterestEngine
from config.app_config import CalculationConfig
from models.interest_data import (
    CalculationRequest, JudgmentCase, Payment, Regime, SpecialDamageItem,
)
from utils.error_handler import (
    InvalidRangeError, RateNotFoundError, RateTableGapError, ValidationError,
)


@pytest.fixture
def request_across_boundary():
    return CalculationRequest(
        regime=Regime.PREJUDGMENT,
        start=date(2022, 6, 25),
        end=date(2022, 7, 5),
        principal=Decimal('10000'),
        jurisdiction="BC",
    )


@pytest.fixture
def judgment_case():
    return JudgmentCase(
        jurisdiction="BC",
        judgment_amount=Decimal('10000'),
        prejudgment_start=date(2022, 6, 25),
        judgment_date=date(2022, 7, 5),
    )


class TestCalculate:

    def test_request_object(self, engine, request_across_boundary):
        result = engine.calculate(request_across_boundary)
        assert [row.days for row in result.details] == [6, 4]
        assert result.total == Decimal('6.03')

    def test_request_dict(self, engine):
        result = engine.calculate({
            "regime": "prejudgment",
            "start": "2022-06-25",
            "end": "2022-07-05",
            "principal": "10000",
            "jurisdiction": "bc",
            "specialDamages": [{"date": "2022-07-03", "amount": "500", "description": "Prescription"}],
        })
        assert len(result.special_damage_rows) == 1
        # (1200 + 1000 + 25) / 365
        assert result.total == Decimal('6.10')

    def test_range_spanning_years(self, engine):
        result = engine.calculate(CalculationRequest(
            Regime.POSTJUDGMENT, date(2022, 1, 1), date(2023, 12, 31), Decimal('1000'), "BC"))
        assert [row.rate for row in result.details] == [
            Decimal('4.0'), Decimal('4.5'), Decimal('5.0'), Decimal('5.5')]
        assert sum(row.days for row in result.details) == 729

    def test_rounding_follows_config(self, rate_table, error_handler, request_across_boundary):
        truncating = InterestEngine(rate_table, CalculationConfig(rounding_method='down'), error_handler)
        assert truncating.calculate(request_across_boundary).total == Decimal('6.02')

        whole_units = InterestEngine(rate_table, CalculationConfig(currency_precision="1"), error_handler)
        assert whole_units.calculate(request_across_boundary).total == Decimal('6')

    def test_unknown_jurisdiction(self, engine):
        with pytest.raises(RateNotFoundError):
            engine.calculate(CalculationRequest(
                Regime.PREJUDGMENT, date(2022, 1, 1), date(2022, 2, 1), Decimal('100'), "ON"))

    def test_range_past_table(self, engine):
        with pytest.raises(RateTableGapError):
            engine.calculate(CalculationRequest(
                Regime.PREJUDGMENT, date(2023, 12, 1), date(2024, 1, 10), Decimal('100'), "BC"))

    def test_dict_defaults_from_config(self, engine):
        result = engine.calculate({"start": "2022-06-25", "end": "2022-07-05", "principal": "10000"})
        assert result.details[0].rate == Decimal('2.0')
        assert result.total == Decimal('6.03')

    def test_configured_defaults(self, rate_table, error_handler):
        config = CalculationConfig(default_regime="postjudgment", default_jurisdiction="bc")
        engine = InterestEngine(rate_table, config, error_handler)
        result = engine.calculate({"start": "2022-07-05", "end": "2022-07-15", "principal": "10000"})
        assert result.details[0].rate == Decimal('4.5')
        assert result.total == Decimal('12.33')

    def test_blank_jurisdiction(self):
        with pytest.raises(ValidationError):
            CalculationRequest(Regime.PREJUDGMENT, date(2022, 1, 1), date(2022, 2, 1), Decimal('100'), "")

    def test_logs_summary(self, engine, request_across_boundary, caplog):
        with caplog.at_level(logging.INFO, logger="calculation.interest_engine"):
            engine.calculate(request_across_boundary)
        assert any("total 6.03" in record.getMessage() for record in caplog.records)


class TestCalculateOrReport:

    def test_success(self, engine, request_across_boundary):
        result, error = engine.calculate_or_report(request_across_boundary)
        assert error is None
        assert result.total == Decimal('6.03')

    def test_gap_is_reported(self, engine, error_handler):
        result, error = engine.calculate_or_report(CalculationRequest(
            Regime.PREJUDGMENT, date(2023, 12, 1), date(2024, 1, 10), Decimal('100'), "BC"))
        assert result is None
        assert error.error_code == "RATE_TABLE_GAP"
        assert error.context["jurisdiction"] == "BC"
        assert error.context["gap_start"] == "2024-01-01"
        assert error_handler.error_history[-1] is error

    def test_invalid_dict_is_reported(self, engine):
        result, error = engine.calculate_or_report({
            "regime": "prejudgment", "start": "2022-07-05", "end": "2022-06-25",
            "principal": "100", "jurisdiction": "BC",
        })
        assert result is None
        assert error.error_code == "INVALID_RANGE"


class TestPerDiem:

    def test_postjudgment_by_default(self, engine):
        assert engine.per_diem(Decimal('10000'), "2023-03-01", "BC") == Decimal('1.37')

    def test_prejudgment(self, engine):
        assert engine.per_diem(Decimal('10000'), "2023-03-01", "BC", Regime.PREJUDGMENT) == Decimal('0.82')

    def test_date_outside_table(self, engine):
        with pytest.raises(RateNotFoundError):
            engine.per_diem(Decimal('10000'), "2024-03-01", "BC")


class TestJudgmentInterest:

    def test_on_judgment_date(self, engine, judgment_case):
        summary = engine.judgment_interest(judgment_case, date(2022, 7, 5))
        assert summary.prejudgment.total == Decimal('6.03')
        assert summary.postjudgment is None
        assert summary.total_interest == Decimal('6.03')
        assert summary.principal_owing == Decimal('10000')
        assert summary.per_diem == Decimal('1.23')

    def test_after_judgment(self, engine, judgment_case):
        summary = engine.judgment_interest(judgment_case, "2022-07-15")
        # 10 days at 4.5% on 10000
        assert summary.postjudgment.total == Decimal('12.33')
        assert summary.total_interest == Decimal('18.36')

    def test_before_judgment(self, engine, judgment_case):
        summary = engine.judgment_interest(judgment_case, date(2022, 7, 1))
        assert summary.prejudgment.total == Decimal('3.29')
        assert summary.postjudgment is None
        # prejudgment rate on 2022-07-01 is 2.5%
        assert summary.per_diem == Decimal('0.68')

    def test_special_damages_join_principal_at_judgment(self, engine):
        case = JudgmentCase(
            jurisdiction="BC",
            judgment_amount=Decimal('10000'),
            prejudgment_start=date(2022, 6, 25),
            judgment_date=date(2022, 7, 5),
            special_damages=(
                SpecialDamageItem(date(2022, 7, 1), Decimal('1000')),
                SpecialDamageItem(date(2022, 8, 1), Decimal('500')),
            ),
        )
        summary = engine.judgment_interest(case, date(2022, 7, 15))
        assert summary.principal_owing == Decimal('11000')
        assert summary.prejudgment.total == Decimal('6.30')
        assert summary.postjudgment.total == Decimal('13.56')
        assert summary.total_interest == Decimal('19.86')

    def test_judgment_before_prejudgment_start(self, engine):
        case = JudgmentCase("BC", Decimal('100'), date(2022, 7, 5), date(2022, 6, 25))
        with pytest.raises(InvalidRangeError):
            engine.judgment_interest(case, date(2022, 8, 1))

    def test_calculation_date_before_prejudgment_start(self, engine, judgment_case):
        with pytest.raises(InvalidRangeError):
            engine.judgment_interest(judgment_case, date(2022, 6, 1))

    def test_to_dict(self, engine, judgment_case):
        data = engine.judgment_interest(judgment_case, date(2022, 7, 15)).to_dict()
        assert data["calculation_date"] == "2022-07-15"
        assert data["total_interest"] == "18.36"
        assert len(data["postjudgment"]["details"]) == 1


class TestPayments:

    def test_allocate_payment(self, engine, judgment_case):
        allocation = engine.allocate_payment(judgment_case, Payment(date(2022, 7, 15), Decimal('100')))
        assert allocation.interest_applied == Decimal('18.36')
        assert allocation.principal_applied == Decimal('81.64')
        assert allocation.remaining_principal == Decimal('9918.36')

    def test_apply_payments_in_date_order(self, engine, judgment_case):
        allocations = engine.apply_payments(judgment_case, [
            Payment(date(2022, 7, 15), Decimal('100')),
            Payment(date(2022, 7, 5), Decimal('5')),
        ])
        assert [a.payment.date for a in allocations] == [date(2022, 7, 5), date(2022, 7, 15)]

        first, second = allocations
        assert first.interest_applied == Decimal('5')
        assert first.principal_applied == Decimal('0')
        assert second.interest_applied == Decimal('13.36')
        assert second.principal_applied == Decimal('86.64')
        assert second.remaining_principal == Decimal('9913.36')

    def test_prior_payments_reduce_principal(self, engine, judgment_case):
        allocations = engine.apply_payments(judgment_case, [Payment(date(2022, 7, 15), Decimal('1018.36'))])
        summary = engine.judgment_interest(judgment_case, date(2022, 7, 15), allocations)
        assert summary.principal_owing == Decimal('9000')

    def test_later_payments_are_ignored(self, engine, judgment_case):
        allocations = engine.apply_payments(judgment_case, [Payment(date(2022, 7, 15), Decimal('50'))])
        summary = engine.judgment_interest(judgment_case, date(2022, 7, 5), allocations)
        assert summary.total_interest == Decimal('6.03')
        assert summary.principal_owing == Decimal('10000')

    def test_overpayment_clears_the_judgment(self, engine, judgment_case):
        allocations = engine.apply_payments(judgment_case, [Payment(date(2022, 7, 15), Decimal('20000'))])
        assert allocations[0].principal_applied == Decimal('10000')
        assert allocations[0].interest_applied == Decimal('10000')
        assert allocations[0].remaining_principal == Decimal('0')

        summary = engine.judgment_interest(judgment_case, date(2022, 7, 15), allocations)
        assert summary.total_interest == Decimal('0')
        assert summary.principal_owing == Decimal('0')
        assert summary.per_diem == Decimal('0')

    def test_principal_drops_from_payment_date(self, engine):
        case = JudgmentCase("BC", Decimal('10000'), date(2022, 1, 1), date(2022, 12, 31))
        allocation = engine.allocate_payment(case, Payment(date(2022, 12, 1), Decimal('5000')))
        # (3620 + 3825) / 365
        assert allocation.interest_applied == Decimal('20.40')
        assert allocation.principal_applied == Decimal('4979.60')

        summary = engine.judgment_interest(case, date(2022, 12, 31), [allocation])
        assert summary.prejudgment.total >= allocation.interest_applied
        assert [row.principal for row in summary.prejudgment.details] == [
            Decimal('10000'), Decimal('10000'), Decimal('5020.40')]
        # (3620 + 3825 + 3765.30) / 365 = 30.71, less 20.40 paid
        assert summary.prejudgment.total == Decimal('30.71')
        assert summary.total_interest == Decimal('10.31')
        assert summary.principal_owing == Decimal('5020.40')

    def test_postjudgment_principal_drops_from_payment_date(self, engine, judgment_case):
        allocation = engine.allocate_payment(judgment_case, Payment(date(2022, 7, 15), Decimal('5018.36')))
        assert allocation.principal_applied == Decimal('5000')

        summary = engine.judgment_interest(judgment_case, date(2022, 7, 25), [allocation])
        assert [row.principal for row in summary.postjudgment.details] == [Decimal('10000'), Decimal('5000')]
        # (4500 + 2250) / 365
        assert summary.postjudgment.total == Decimal('18.49')
        assert summary.principal_owing == Decimal('5000')

    def test_same_day_payments_see_each_other(self, engine, judgment_case):
        first, second = engine.apply_payments(judgment_case, [
            Payment(date(2022, 7, 15), Decimal('10')),
            Payment(date(2022, 7, 15), Decimal('10')),
        ])
        assert first.interest_applied == Decimal('10')
        assert second.interest_applied == Decimal('8.36')
        assert second.principal_applied == Decimal('1.64')
        assert second.remaining_principal == Decimal('9998.36')


def test_result_summary(engine):
    result = engine.calculate(CalculationRequest(
        Regime.PREJUDGMENT, date(2022, 6, 25), date(2022, 7, 5), Decimal('10000'), "BC",
        special_damages=(
            SpecialDamageItem(date(2022, 6, 20), Decimal('1000')),
            SpecialDamageItem(date(2022, 7, 3), Decimal('500')),
        ),
    ))
    summary = InterestEngine.result_summary(result)
    assert summary['principal'] == Decimal('10000')
    assert summary['rows'] == 5
    assert summary['total'] == Decimal('6.70')
    assert summary['base_interest'] + summary['special_damages_interest'] == sum(
        row.interest for row in result.details)
    assert summary['special_damages_interest'] < summary['base_interest']
