"""
Tax Event and Lot Data Models

Defines the core data structures for lot matching and valuation:
- LotTrade: a trade held in a per-ticker arena, mutated only by the matcher
- LotMatch: a matched purchase/sale pair before currency conversion
- MatchedDeal: a valued (UAH) realized deal
- OpenLot: unmatched buy quantity carried to a future period
- DealReport / ShortReport / DividendReport: report outputs

Copyright (c) 2026 Andreas Wagner. All rights reserved.
"""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import List

from opodatkuvayco.lib.parsers.report_models import OperationType


@dataclass
class LotTrade:
    """
    A trade inside its ticker group's arena.

    Key Invariant: `quantity` (remaining) is non-increasing during matching
    and never drops below zero. Merged buys increase the surviving lot's
    quantity and commission before any matching against it. `commission` is
    the part not yet attributed to a match, for buys and sells alike.
    """

    ticker: str
    raw_ticker: str
    operation: OperationType
    quantity: Decimal
    price: Decimal
    commission: Decimal
    currency: str
    date: datetime
    position: int

    @property
    def is_buy(self) -> bool:
        return self.operation == OperationType.BUY

    @property
    def is_sell(self) -> bool:
        return self.operation == OperationType.SELL


@dataclass(frozen=True)
class LotMatch:
    """
    A purchase lot (or part of it) paired with a sale.

    Commissions are the amounts attributed to this match only. Currency
    conversion happens later, in DealValuation.
    """

    ticker: str
    quantity: Decimal
    purchase_price: Decimal
    purchase_commission: Decimal
    purchase_currency: str
    purchase_date: datetime
    sale_price: Decimal
    sale_commission: Decimal
    sale_currency: str
    sale_date: datetime
    forward: bool = False  # buy follows the sell in the input sequence


@dataclass(frozen=True)
class DealLeg:
    """One side of a valued deal."""

    price: Decimal
    commission: Decimal
    date: datetime
    rate: Decimal
    sum: Decimal
    uah: Decimal


@dataclass(frozen=True)
class MatchedDeal:
    """A realized, valued pairing of one purchase lot with one sale lot."""

    ticker: str
    quantity: Decimal
    purchase: DealLeg
    sale: DealLeg
    total: Decimal
    percent: Decimal


@dataclass(frozen=True)
class OpenLot:
    """Unmatched buy remainder, carried forward to the next period."""

    ticker: str
    raw_ticker: str
    quantity: Decimal
    price: Decimal
    commission: Decimal
    currency: str
    date: datetime


@dataclass(frozen=True)
class DealReport:
    """Full report: totals plus every matched deal, ordered by ticker."""

    total: Decimal
    total_tax_fee: Decimal
    total_military_fee: Decimal
    deals: List[MatchedDeal]


@dataclass(frozen=True)
class DealShort:
    """Per-ticker collapsed deal row."""

    ticker: str
    total: Decimal
    percent: Decimal
    purchase_uah: Decimal
    sale_uah: Decimal


@dataclass(frozen=True)
class ShortReport:
    total: Decimal
    total_tax_fee: Decimal
    total_military_fee: Decimal
    deals: List[DealShort]


@dataclass(frozen=True)
class DividendRecord:
    """A dividend converted into the local currency."""

    ticker: str
    currency: str
    date: datetime
    amount: Decimal
    rate: Decimal
    uah: Decimal


@dataclass(frozen=True)
class DividendTotals:
    sum_uah: Decimal
    tax_fee: Decimal
    military_fee: Decimal


@dataclass(frozen=True)
class DividendReport:
    total: DividendTotals
    dividends: List[DividendRecord]
