"""
Report export helpers (pandas DataFrames, JSON, CSV).

Copyright (c) 2026 Andreas Wagner. All rights reserved.
"""

import json
from dataclasses import asdict, is_dataclass
from datetime import date
from decimal import Decimal
from pathlib import Path
from typing import Any, List, Union

import pandas as pd

from opodatkuvayco.lib.utils.logging_config import setup_logger, log_dataframe_info
from opodatkuvayco.modules.tax.tax_events import (
    DealReport,
    DividendReport,
    OpenLot,
    ShortReport,
)

logger = setup_logger(__name__)


def decimal_serializer(obj):
    """json.dump default= hook for Decimal and dates."""
    if isinstance(obj, Decimal):
        if not obj.is_finite():
            # JSON has no Infinity/NaN; keep the marker readable
            return str(obj)
        return float(obj)
    if isinstance(obj, date):
        return obj.isoformat()
    raise TypeError(f"Type {type(obj)} not serializable")


def to_plain(report: Any) -> Any:
    """Report dataclasses (or lists of them) as plain dicts/lists."""
    if isinstance(report, list):
        return [to_plain(item) for item in report]
    if is_dataclass(report):
        return asdict(report)
    return report


def deals_to_dataframe(report: DealReport) -> pd.DataFrame:
    rows = [
        {
            "ticker": deal.ticker,
            "quantity": float(deal.quantity),
            "purchase_date": deal.purchase.date,
            "purchase_price": float(deal.purchase.price),
            "purchase_commission": float(deal.purchase.commission),
            "purchase_rate": float(deal.purchase.rate),
            "purchase_uah": float(deal.purchase.uah),
            "sale_date": deal.sale.date,
            "sale_price": float(deal.sale.price),
            "sale_commission": float(deal.sale.commission),
            "sale_rate": float(deal.sale.rate),
            "sale_uah": float(deal.sale.uah),
            "total": float(deal.total),
            "percent": float(deal.percent),
        }
        for deal in report.deals
    ]
    df = pd.DataFrame(rows)
    log_dataframe_info(logger, df, "Deals")
    return df


def short_rows_to_dataframe(report: ShortReport) -> pd.DataFrame:
    df = pd.DataFrame([
        {
            "ticker": row.ticker,
            "total": float(row.total),
            "percent": float(row.percent),
            "purchase_uah": float(row.purchase_uah),
            "sale_uah": float(row.sale_uah),
        }
        for row in report.deals
    ])
    log_dataframe_info(logger, df, "Short report")
    return df


def open_lots_to_dataframe(lots: List[OpenLot]) -> pd.DataFrame:
    df = pd.DataFrame([
        {
            "ticker": lot.ticker,
            "instrument": lot.raw_ticker,
            "quantity": float(lot.quantity),
            "price": float(lot.price),
            "commission": float(lot.commission),
            "currency": lot.currency,
            "date": lot.date,
        }
        for lot in lots
    ])
    log_dataframe_info(logger, df, "Open lots")
    return df


def dividends_to_dataframe(report: DividendReport) -> pd.DataFrame:
    df = pd.DataFrame([
        {
            "ticker": record.ticker,
            "currency": record.currency,
            "date": record.date,
            "amount": float(record.amount),
            "rate": float(record.rate),
            "uah": float(record.uah),
        }
        for record in report.dividends
    ])
    log_dataframe_info(logger, df, "Dividends")
    return df


def export_to_json(report: Any, filepath: Union[str, Path]):
    """Export a report (or list of open lots) to a JSON file."""
    data = to_plain(report)

    with open(filepath, 'w', encoding='utf-8') as f:
        json.dump(data, f, indent=2, default=decimal_serializer, ensure_ascii=False)

    logger.info(f"Exported report to {filepath}")


def export_to_csv(df: pd.DataFrame, filepath: Union[str, Path]):
    df.to_csv(filepath, index=False)
    logger.info(f"Exported {len(df)} rows to {filepath}")
