"""
Ticker normalization and ordered grouping.

Brokers suffix instrument codes with the venue (AAPL.US, SAP.EU); trades on
the same underlying security are bucketed together under the bare ticker.

Copyright (c) 2026 Andreas Wagner. All rights reserved.
"""

from typing import Callable, Dict, Iterable, List, TypeVar

from opodatkuvayco.lib.parsers.report_models import TradeRecord
from opodatkuvayco.modules.tax.tax_events import LotTrade

T = TypeVar('T')
K = TypeVar('K')


def normalize_ticker(raw_ticker: str) -> str:
    """Return the part of the instrument code before the first '.'."""
    return raw_ticker.split('.', 1)[0]


def ordered_buckets(items: Iterable[T], key: Callable[[T], K]) -> Dict[K, List[T]]:
    """
    Group items by key.

    Bucket order is the order in which each key first occurs; items keep
    their relative order inside a bucket.
    """
    buckets: Dict[K, List[T]] = {}
    for item in items:
        buckets.setdefault(key(item), []).append(item)
    return buckets


def group_by_ticker(trades: Iterable[TradeRecord]) -> Dict[str, List[LotTrade]]:
    """
    Build one arena of LotTrade records per normalized ticker.

    Each record's `position` is its index inside its own group; the matcher
    uses it for forward lookups. Input records are never mutated.
    """
    grouped = ordered_buckets(trades, key=lambda t: normalize_ticker(t.ticker))

    return {
        ticker: [
            LotTrade(
                ticker=ticker,
                raw_ticker=record.ticker,
                operation=record.operation,
                quantity=record.quantity,
                price=record.price,
                commission=record.commission,
                currency=record.currency,
                date=record.date,
                position=position,
            )
            for position, record in enumerate(records)
        ]
        for ticker, records in grouped.items()
    }
