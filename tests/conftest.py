#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Court order interest calculator - shared test fixtures
"""

import pytest
import sys
from datetime import date
from decimal import Decimal
from pathlib import Path

# Add the project root to the path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))


def pytest_configure(config):
    """pytest settings"""
    config.addinivalue_line(
        "markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')"
    )
    config.addinivalue_line(
        "markers", "integration: marks tests as integration tests"
    )
    config.addinivalue_line(
        "markers", "unit: marks tests as unit tests"
    )


def pytest_collection_modifyitems(config, items):
    """Mark tests by directory"""
    for item in items:
        if "integration" in str(item.fspath):
            item.add_marker(pytest.mark.integration)
        elif "unit" in str(item.fspath):
            item.add_marker(pytest.mark.unit)


@pytest.fixture
def bc_periods():
    """Two half-year BC periods for 2022"""
    from models.interest_data import RatePeriod
    return (
        RatePeriod(date(2022, 1, 1), date(2022, 6, 30), Decimal('2.0'), Decimal('4.0')),
        RatePeriod(date(2022, 7, 1), date(2022, 12, 31), Decimal('2.5'), Decimal('4.5')),
    )


@pytest.fixture
def rate_table(bc_periods):
    """Rate table with BC covering 2022 and 2023"""
    from models.interest_data import RatePeriod
    from rates.rate_table import RateTable
    return RateTable({
        "BC": bc_periods + (
            RatePeriod(date(2023, 1, 1), date(2023, 6, 30), Decimal('3.0'), Decimal('5.0')),
            RatePeriod(date(2023, 7, 1), date(2023, 12, 31), Decimal('3.5'), Decimal('5.5')),
        ),
    })


@pytest.fixture
def error_handler():
    """Isolated error handler"""
    from utils.error_handler import ErrorHandler
    return ErrorHandler()


@pytest.fixture
def engine(rate_table, error_handler):
    """Engine with default calculation settings"""
    from calculation.interest_engine import InterestEngine
    return InterestEngine(rate_table, error_handler=error_handler)


@pytest.fixture
def config_path(tmp_path):
    """Settings file location inside tmp_path"""
    return tmp_path / "config" / "app_config.json"
