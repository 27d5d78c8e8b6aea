"""
Unit Tests for Deal Valuation

Verifies the UAH deal arithmetic, the commission fallbacks, degenerate
percent values and rate failure propagation.

Copyright (c) 2026 Andreas Wagner. All rights reserved.
"""

from datetime import date, datetime
from decimal import Decimal

import pytest

from opodatkuvayco.core.errors import ErrorKind, RateUnresolvableError
from opodatkuvayco.modules.tax.tax_events import LotMatch
from opodatkuvayco.modules.tax.valuation import DealValuation, compute_deal, safe_ratio_return

BUY_DATE = datetime(2023, 1, 10, 10, 0)
SELL_DATE = datetime(2023, 6, 1, 15, 0)


@pytest.fixture
def lot_match():
    """Buy 10 @ 100 (commission 5), sell all 10 @ 120 (commission 6)."""
    return LotMatch(
        ticker="AAPL",
        quantity=Decimal(10),
        purchase_price=Decimal(100),
        purchase_commission=Decimal(5),
        purchase_currency="USD",
        purchase_date=BUY_DATE,
        sale_price=Decimal(120),
        sale_commission=Decimal(6),
        sale_currency="USD",
        sale_date=SELL_DATE,
    )


class TestComputeDeal:

    def test_reference_arithmetic(self):
        """
        Scenario:
        - purchase: (1000 + 5) * 27 + 6 * 28 = 27303
        - sale: 1200 * 28 = 33600
        - gain: 6297
        """
        deal = compute_deal(
            ticker="AAPL",
            quantity=Decimal(10),
            purchase_price=Decimal(100),
            purchase_commission=Decimal(5),
            purchase_date=BUY_DATE,
            purchase_rate=Decimal(27),
            sale_price=Decimal(120),
            sale_commission=Decimal(6),
            sale_date=SELL_DATE,
            sale_rate=Decimal(28),
        )

        assert deal.purchase.sum == Decimal(1000)
        assert deal.purchase.uah == Decimal(27303)
        assert deal.sale.sum == Decimal(1200)
        assert deal.sale.uah == Decimal(33600)
        assert deal.total == Decimal(6297)
        assert deal.percent == Decimal(33600) / Decimal(27303) - 1
        assert float(deal.percent) == pytest.approx(0.2307, abs=1e-3)

    def test_zero_purchase_commission_falls_back_to_principal(self):
        deal = compute_deal(
            ticker="AAPL",
            quantity=Decimal(2),
            purchase_price=Decimal(50),
            purchase_commission=Decimal(0),
            purchase_date=BUY_DATE,
            purchase_rate=Decimal(1),
            sale_price=Decimal(60),
            sale_commission=Decimal(1),
            sale_date=SELL_DATE,
            sale_rate=Decimal(1),
        )

        assert deal.purchase.commission == Decimal(100)
        assert deal.purchase.uah == Decimal(201)
        assert deal.total == Decimal(-81)

    def test_missing_sale_commission_falls_back_to_principal(self):
        deal = compute_deal(
            ticker="AAPL",
            quantity=Decimal(2),
            purchase_price=Decimal(50),
            purchase_commission=Decimal(1),
            purchase_date=BUY_DATE,
            purchase_rate=Decimal(1),
            sale_price=Decimal(60),
            sale_commission=None,
            sale_date=SELL_DATE,
            sale_rate=Decimal(2),
        )

        assert deal.sale.commission == Decimal(120)
        # (100 + 1) * 1 + 120 * 2
        assert deal.purchase.uah == Decimal(341)
        assert deal.sale.uah == Decimal(240)

    def test_zero_values_give_nan_percent_instead_of_error(self):
        deal = compute_deal(
            ticker="FREE",
            quantity=Decimal(3),
            purchase_price=Decimal(0),
            purchase_commission=Decimal(0),
            purchase_date=BUY_DATE,
            purchase_rate=Decimal(30),
            sale_price=Decimal(0),
            sale_commission=Decimal(0),
            sale_date=SELL_DATE,
            sale_rate=Decimal(31),
        )

        assert deal.purchase.uah == 0
        assert deal.total == 0
        assert deal.percent.is_nan()

    def test_zero_purchase_value_gives_infinite_percent(self):
        percent = safe_ratio_return(Decimal(500), Decimal(0))
        assert percent.is_infinite()
        assert percent > 0


class TestDealValuation:

    def test_value_resolves_both_legs(self, lot_match, make_converter):
        converter = make_converter({
            ("USD", date(2023, 1, 10)): 27,
            ("USD", date(2023, 6, 1)): 28,
        })

        deal = DealValuation(converter).value(lot_match)

        assert deal.purchase.rate == Decimal(27)
        assert deal.sale.rate == Decimal(28)
        assert deal.total == Decimal(6297)
        assert sorted(converter.calls) == [("USD", date(2023, 1, 10)), ("USD", date(2023, 6, 1))]

    def test_dates_are_kept_on_legs(self, lot_match, make_converter):
        deal = DealValuation(make_converter(default=30)).value(lot_match)

        assert deal.purchase.date == BUY_DATE
        assert deal.sale.date == SELL_DATE

    def test_local_currency_needs_no_rate(self, make_converter):
        match = LotMatch(
            ticker="UKRN",
            quantity=Decimal(1),
            purchase_price=Decimal(100),
            purchase_commission=Decimal(1),
            purchase_currency="UAH",
            purchase_date=BUY_DATE,
            sale_price=Decimal(110),
            sale_commission=Decimal(1),
            sale_currency="UAH",
            sale_date=SELL_DATE,
        )

        deal = DealValuation(make_converter()).value(match)

        assert deal.purchase.rate == Decimal(1)
        assert deal.total == Decimal(8)

    def test_missing_sale_rate_fails_whole_valuation(self, lot_match, make_converter):
        converter = make_converter({("USD", date(2023, 1, 10)): 27})

        with pytest.raises(RateUnresolvableError) as exc_info:
            DealValuation(converter).value(lot_match)

        assert exc_info.value.kind == ErrorKind.RATE_UNRESOLVABLE
        assert exc_info.value.on_date == date(2023, 6, 1)

    def test_value_all_aborts_on_first_failure(self, lot_match, make_converter):
        converter = make_converter({
            ("USD", date(2023, 1, 10)): 27,
            ("USD", date(2023, 6, 1)): 28,
        })
        broken = LotMatch(
            ticker="BRKN",
            quantity=Decimal(1),
            purchase_price=Decimal(1),
            purchase_commission=Decimal(1),
            purchase_currency="XYZ",
            purchase_date=BUY_DATE,
            sale_price=Decimal(1),
            sale_commission=Decimal(1),
            sale_currency="USD",
            sale_date=SELL_DATE,
        )

        with pytest.raises(RateUnresolvableError):
            DealValuation(converter).value_all([lot_match, broken])
