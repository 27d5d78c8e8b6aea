"""
Shared fixtures for the tax engine tests.

Copyright (c) 2026 Andreas Wagner. All rights reserved.
"""

import threading
from datetime import date
from decimal import Decimal

import pytest

from opodatkuvayco.core.errors import RateUnresolvableError
from opodatkuvayco.lib.nbu_rates import CurrencyConverter, RateQuote, to_date
from opodatkuvayco.lib.parsers.report_models import TradeRecord


class FakeConverter(CurrencyConverter):
    """In-memory converter that records every lookup."""

    def __init__(self, rates=None, default=None):
        self.rates = {
            (currency.upper(), day): Decimal(str(rate))
            for (currency, day), rate in (rates or {}).items()
        }
        self.default = Decimal(str(default)) if default is not None else None
        self.calls = []
        self._lock = threading.Lock()

    def resolve_rate(self, currency, on_date):
        day = to_date(on_date)
        with self._lock:
            self.calls.append((currency, day))

        local = self.local_quote(currency, day)
        if local is not None:
            return local

        rate = self.rates.get((currency.upper(), day), self.default)
        if rate is None:
            raise RateUnresolvableError(currency, day)
        return RateQuote(currency=currency.upper(), on_date=day, rate=rate)


@pytest.fixture
def make_converter():
    """Factory for FakeConverter instances."""
    return FakeConverter


@pytest.fixture
def make_trade():
    """Factory for TradeRecord instances using the broker's JSON keys."""
    def _make(ticker, operation, q, p, commission=0, currency="USD", when="2023-01-10 10:00:00"):
        return TradeRecord.model_validate({
            "instr_nm": ticker,
            "operation": operation,
            "q": q,
            "p": p,
            "commission": commission,
            "curr_c": currency,
            "date": when,
        })
    return _make


@pytest.fixture
def usd_rates():
    """Rates used by the report fixtures below."""
    return {
        ("USD", date(2023, 1, 10)): "36",
        ("USD", date(2023, 2, 1)): "37",
        ("USD", date(2023, 3, 1)): "38",
        ("USD", date(2023, 3, 2)): "38",
        ("USD", date(2023, 5, 18)): "40",
    }


@pytest.fixture
def sample_report_dict():
    """A broker export with merged buys, two tickers and corporate actions."""
    return {
        "trades": {
            "detailed": [
                {"instr_nm": "AAPL.US", "operation": "buy", "q": 5, "p": 100, "commission": 1,
                 "curr_c": "USD", "date": "2023-01-10 10:00:00"},
                {"instr_nm": "AAPL.US", "operation": "buy", "q": 5, "p": 100, "commission": 1,
                 "curr_c": "USD", "date": "2023-01-10 15:00:00"},
                {"instr_nm": "MSFT.US", "operation": "buy", "q": 4, "p": 200, "commission": 2,
                 "curr_c": "USD", "date": "2023-02-01 11:00:00"},
                {"instr_nm": "AAPL.US", "operation": "sell", "q": 8, "p": 120, "commission": 4,
                 "curr_c": "USD", "date": "2023-03-01 12:00:00"},
                {"instr_nm": "MSFT.US", "operation": "sell", "q": 4, "p": 150, "commission": 2,
                 "curr_c": "USD", "date": "2023-03-02 12:00:00"},
            ]
        },
        "corporate_actions": {
            "detailed": [
                {"type_id": "dividend", "ticker": "AAPL.US", "currency": "USD",
                 "date": "2023-05-18", "amount": 2.5},
                {"type_id": "split", "ticker": "MSFT.US", "currency": "USD",
                 "date": "2023-05-18", "amount": 0},
            ]
        },
    }
