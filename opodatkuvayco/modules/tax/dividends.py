"""
Dividend Calculator

Values dividend corporate actions in UAH at the official rate of the
payment date and computes the dividend tax and military levy.

Copyright (c) 2026 Andreas Wagner. All rights reserved.
"""

from decimal import Decimal
from typing import Iterable, List, Optional

from opodatkuvayco.core.concurrency import fan_out
from opodatkuvayco.lib.nbu_rates import CurrencyConverter
from opodatkuvayco.lib.parsers.report_models import CorporateActionRecord
from opodatkuvayco.lib.utils.logging_config import setup_logger
from opodatkuvayco.modules.tax.calculators import DEFAULT_JURISDICTION, TaxCalculator, get_calculator
from opodatkuvayco.modules.tax.tax_events import DividendRecord, DividendReport, DividendTotals

logger = setup_logger(__name__)


class DividendCalculator:
    """Dividend pipeline, independent of lot matching."""

    def __init__(
        self,
        converter: CurrencyConverter,
        calculator: Optional[TaxCalculator] = None,
        max_workers: Optional[int] = None
    ):
        self.converter = converter
        self.calculator = calculator or get_calculator(DEFAULT_JURISDICTION)
        self.max_workers = max_workers

    def value_dividends(self, actions: Iterable[CorporateActionRecord]) -> List[DividendRecord]:
        """
        Resolve every dividend's rate as one concurrent batch.

        Non-dividend actions are skipped. Any failed lookup aborts the batch.
        """
        dividends = [action for action in actions if action.is_dividend()]
        logger.debug(f"Valuing {len(dividends)} dividends")

        quotes = fan_out(
            [(self.converter.resolve_rate, (d.currency, d.date)) for d in dividends],
            max_workers=self.max_workers,
        )

        return [
            DividendRecord(
                ticker=dividend.ticker,
                currency=dividend.currency,
                date=dividend.date,
                amount=dividend.amount,
                rate=quote.rate,
                uah=dividend.amount * quote.rate,
            )
            for dividend, quote in zip(dividends, quotes)
        ]

    def calculate(self, actions: Iterable[CorporateActionRecord]) -> DividendReport:
        records = self.value_dividends(actions)

        sum_uah = sum((record.uah for record in records), start=Decimal(0))
        fees = self.calculator.calculate_dividend_fees(sum_uah)

        logger.info(f"Dividends: {len(records)} payments, {sum_uah:.2f} UAH")

        return DividendReport(
            total=DividendTotals(
                sum_uah=sum_uah,
                tax_fee=fees.tax_fee,
                military_fee=fees.military_fee,
            ),
            dividends=records,
        )
