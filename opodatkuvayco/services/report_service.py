"""
Report Service

Orchestrates the tax pipelines for one uploaded broker report:
- trades -> lot matching -> valuation -> tax aggregation (full or short form)
- trades -> lot matching -> open lots (previous-period mode, no rate lookups)
- corporate actions -> dividend valuation -> dividend tax

Each call works on its own copies of the trades; nothing is kept between calls.

Copyright (c) 2026 Andreas Wagner. All rights reserved.
"""

from typing import Iterable, List, Optional, Union

from opodatkuvayco.lib.nbu_rates import CurrencyConverter, get_default_converter
from opodatkuvayco.lib.parsers.report_models import BrokerReport, TradeRecord
from opodatkuvayco.lib.parsers.report_parser import ReportParser
from opodatkuvayco.lib.utils.logging_config import setup_logger, get_perf_logger
from opodatkuvayco.modules.tax.aggregator import TaxAggregator
from opodatkuvayco.modules.tax.calculators import TaxCalculator
from opodatkuvayco.modules.tax.dividends import DividendCalculator
from opodatkuvayco.modules.tax.engine import LotMatchingEngine
from opodatkuvayco.modules.tax.tax_events import DealReport, DividendReport, OpenLot, ShortReport
from opodatkuvayco.modules.tax.valuation import DealValuation

logger = setup_logger(__name__)

ReportSource = Union[bytes, str, BrokerReport]


class ReportService:
    """Entry point for computing tax reports from broker exports."""

    def __init__(
        self,
        converter: Optional[CurrencyConverter] = None,
        calculator: Optional[TaxCalculator] = None,
        max_workers: Optional[int] = None
    ):
        self.converter = converter or get_default_converter()
        self.parser = ReportParser()
        self.engine = LotMatchingEngine(date_key=self.converter.canonical_date_key)
        self.valuation = DealValuation(self.converter, max_workers=max_workers)
        self.aggregator = TaxAggregator(calculator)
        self.dividend_calculator = DividendCalculator(
            self.converter,
            calculator=self.aggregator.calculator,
            max_workers=max_workers,
        )

    def read_report(self, source: ReportSource) -> BrokerReport:
        """Decode uploaded content; already parsed reports pass through."""
        if isinstance(source, BrokerReport):
            return source
        return self.parser.parse(source)

    def get_report_extended(self, trades: Iterable[TradeRecord]) -> DealReport:
        """Full report: totals and every matched deal with leg detail."""
        trades = list(trades)

        with get_perf_logger(logger, f"extended report for {len(trades)} trades"):
            result = self.engine.match_all(trades)
            deals = self.valuation.value_all(result.matches)
            report = self.aggregator.aggregate(deals)

        logger.info(
            f"Report: {len(report.deals)} deals, total {report.total:.2f} UAH, "
            f"tax {report.total_tax_fee:.2f}, military {report.total_military_fee:.2f}"
        )
        return report

    def get_report(self, trades: Iterable[TradeRecord]) -> ShortReport:
        """Short report: totals and one collapsed row per ticker."""
        return self.aggregator.summarize(self.get_report_extended(trades))

    def get_previous_period_lots(self, trades: Iterable[TradeRecord]) -> List[OpenLot]:
        """Unmatched buy remainders to carry forward; no rates are resolved."""
        result = self.engine.match_all(trades)
        logger.info(f"Previous period: {len(result.open_lots)} open lots")
        return result.open_lots

    def calculate_dividends(self, source: ReportSource) -> DividendReport:
        report = self.read_report(source)
        with get_perf_logger(logger, "dividend report"):
            return self.dividend_calculator.calculate(report.dividend_actions)

    def build_report(
        self,
        source: ReportSource,
        short: bool = False
    ) -> Union[DealReport, ShortReport]:
        """Read uploaded content and compute the full or short report."""
        trades = self.read_report(source).trade_records
        if short:
            return self.get_report(trades)
        return self.get_report_extended(trades)

    def build_previous_period(self, source: ReportSource) -> List[OpenLot]:
        return self.get_previous_period_lots(self.read_report(source).trade_records)
