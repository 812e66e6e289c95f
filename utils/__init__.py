#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Utilities

Import directly from the submodules to avoid circular imports:
- from utils.error_handler import ErrorHandler, InterestCalculatorError
"""
