"""
Tax aggregation over matched deals.

Copyright (c) 2026 Andreas Wagner. All rights reserved.
"""

from typing import Dict, List, Optional

from opodatkuvayco.modules.tax.calculators import DEFAULT_JURISDICTION, TaxCalculator, get_calculator
from opodatkuvayco.modules.tax.tax_events import DealReport, DealShort, MatchedDeal, ShortReport


class TaxAggregator:
    """Builds full and short reports from valued deals."""

    def __init__(self, calculator: Optional[TaxCalculator] = None):
        self.calculator = calculator or get_calculator(DEFAULT_JURISDICTION)

    def aggregate(self, deals: List[MatchedDeal]) -> DealReport:
        """Totals plus deals sorted by ticker, ignoring case (stable within a ticker)."""
        total = self.calculator.calculate_total_gain(deals)
        fees = self.calculator.calculate_capital_gains_fees(total)

        return DealReport(
            total=total,
            total_tax_fee=fees.tax_fee,
            total_military_fee=fees.military_fee,
            deals=sorted(deals, key=lambda deal: deal.ticker.casefold()),
        )

    def summarize(self, report: DealReport) -> ShortReport:
        """
        Collapse deals per ticker.

        The first deal of a ticker seeds its row, percent included; later
        deals only add their sale, purchase and gain amounts. Percent is not
        recomputed from the sums.
        """
        rows: Dict[str, DealShort] = {}

        for deal in report.deals:
            row = rows.get(deal.ticker)
            if row is None:
                rows[deal.ticker] = DealShort(
                    ticker=deal.ticker,
                    total=deal.total,
                    percent=deal.percent,
                    purchase_uah=deal.purchase.uah,
                    sale_uah=deal.sale.uah,
                )
            else:
                rows[deal.ticker] = DealShort(
                    ticker=row.ticker,
                    total=row.total + deal.total,
                    percent=row.percent,
                    purchase_uah=row.purchase_uah + deal.purchase.uah,
                    sale_uah=row.sale_uah + deal.sale.uah,
                )

        return ShortReport(
            total=report.total,
            total_tax_fee=report.total_tax_fee,
            total_military_fee=report.total_military_fee,
            deals=list(rows.values()),
        )
