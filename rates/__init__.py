#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Interest rate tables

- from rates.rate_table import RateTable
- from rates.loader import load_rate_table, build_rate_table
"""
