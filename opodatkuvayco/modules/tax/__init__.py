"""
Tax Module

Lot matching, deal valuation and tax aggregation for broker reports.

Features:
- Same-day, same-price buys merge into one lot
- Short sales matched against later purchases
- Every amount converted at the official rate of its own date

Copyright (c) 2026 Andreas Wagner. All rights reserved.
"""

__all__ = ['engine', 'valuation', 'aggregator', 'dividends', 'calculators']
