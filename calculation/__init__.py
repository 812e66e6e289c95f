#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Interest calculation

Import directly from the submodules to avoid circular imports:
- from calculation.interest import calculate_interest_periods
- from calculation.interest_engine import InterestEngine
"""
