"""
Deal Valuation

Converts matched lots into local-currency (UAH) deals.

Conventions kept from the broker-report tax workflow:
- A zero or missing commission falls back to the leg's full principal
- The sale commission is added to the cost side, converted at the sale rate

Copyright (c) 2026 Andreas Wagner. All rights reserved.
"""

from datetime import datetime
from decimal import Decimal, DivisionByZero, InvalidOperation, localcontext
from typing import List, Optional

from opodatkuvayco.core.concurrency import fan_out
from opodatkuvayco.lib.nbu_rates import CurrencyConverter
from opodatkuvayco.lib.utils.logging_config import setup_logger
from opodatkuvayco.modules.tax.tax_events import DealLeg, LotMatch, MatchedDeal

logger = setup_logger(__name__)


def safe_ratio_return(sale_uah: Decimal, purchase_uah: Decimal) -> Decimal:
    """
    sale / purchase - 1, without trapping division by zero.

    A zero purchase value yields Decimal('Infinity') (or '-Infinity'), and
    0 / 0 yields Decimal('NaN').
    """
    with localcontext() as ctx:
        ctx.traps[DivisionByZero] = False
        ctx.traps[InvalidOperation] = False
        return sale_uah / purchase_uah - 1


def compute_deal(
    ticker: str,
    quantity: Decimal,
    purchase_price: Decimal,
    purchase_commission: Optional[Decimal],
    purchase_date: datetime,
    purchase_rate: Decimal,
    sale_price: Decimal,
    sale_commission: Optional[Decimal],
    sale_date: datetime,
    sale_rate: Decimal
) -> MatchedDeal:
    """Pure deal arithmetic, given both resolved rates."""
    purchase_sum = purchase_price * quantity
    purchase_commission = purchase_commission or purchase_sum

    sale_sum = sale_price * quantity
    sale_commission = sale_commission or sale_sum

    purchase_uah = (
        (purchase_sum + purchase_commission) * purchase_rate
        + sale_commission * sale_rate
    )
    sale_uah = sale_sum * sale_rate

    percent = safe_ratio_return(sale_uah, purchase_uah)
    if not percent.is_finite():
        logger.warning(f"Deal {ticker} has zero purchase value; percent is {percent}")

    return MatchedDeal(
        ticker=ticker,
        quantity=quantity,
        purchase=DealLeg(
            price=purchase_price,
            commission=purchase_commission,
            date=purchase_date,
            rate=purchase_rate,
            sum=purchase_sum,
            uah=purchase_uah,
        ),
        sale=DealLeg(
            price=sale_price,
            commission=sale_commission,
            date=sale_date,
            rate=sale_rate,
            sum=sale_sum,
            uah=sale_uah,
        ),
        total=sale_uah - purchase_uah,
        percent=percent,
    )


class DealValuation:
    """Values LotMatch records using a CurrencyConverter."""

    def __init__(self, converter: CurrencyConverter, max_workers: Optional[int] = None):
        self.converter = converter
        self.max_workers = max_workers

    def fetch_purchase_and_sale_rate(self, match: LotMatch) -> List[Decimal]:
        """
        Resolve both legs' rates as one concurrent pair.

        Raises:
            RateUnresolvableError: If either lookup fails
        """
        quotes = fan_out(
            [
                (self.converter.resolve_rate, (match.purchase_currency, match.purchase_date)),
                (self.converter.resolve_rate, (match.sale_currency, match.sale_date)),
            ],
            max_workers=self.max_workers,
        )
        return [quote.rate for quote in quotes]

    def value(self, match: LotMatch) -> MatchedDeal:
        purchase_rate, sale_rate = self.fetch_purchase_and_sale_rate(match)

        return compute_deal(
            ticker=match.ticker,
            quantity=match.quantity,
            purchase_price=match.purchase_price,
            purchase_commission=match.purchase_commission,
            purchase_date=match.purchase_date,
            purchase_rate=purchase_rate,
            sale_price=match.sale_price,
            sale_commission=match.sale_commission,
            sale_date=match.sale_date,
            sale_rate=sale_rate,
        )

    def value_all(self, matches: List[LotMatch]) -> List[MatchedDeal]:
        """Value matches in order; the first failure aborts the whole list."""
        return [self.value(match) for match in matches]
