"""
Offline exchange rate table.

Loads official rates from a CSV export so reports can be computed without
network access. Expected columns: currency, date, rate

    currency,date,rate
    USD,2024-01-15,37.9716
    EUR,2024-01-15,41.5423

Copyright (c) 2026 Andreas Wagner. All rights reserved.
"""

from decimal import Decimal, InvalidOperation
from io import StringIO
from pathlib import Path
from typing import Dict, Tuple, Union

import pandas as pd

from opodatkuvayco.core.errors import InputMalformedError, RateUnresolvableError
from opodatkuvayco.lib.nbu_rates import CurrencyConverter, DateLike, RateQuote, to_date
from opodatkuvayco.lib.utils.logging_config import setup_logger, log_dataframe_info

logger = setup_logger(__name__)

REQUIRED_COLUMNS = ('currency', 'date', 'rate')


class RateTableConverter(CurrencyConverter):
    """Converter backed by a fixed (currency, date) -> rate table."""

    def __init__(self, rates: Dict[Tuple[str, str], Decimal]):
        self.rates = dict(rates)

    @classmethod
    def from_dataframe(cls, df: pd.DataFrame) -> 'RateTableConverter':
        columns = {c.strip().lower(): c for c in df.columns}
        missing = [c for c in REQUIRED_COLUMNS if c not in columns]
        if missing:
            raise InputMalformedError(f"Rate table is missing columns: {', '.join(missing)}")

        log_dataframe_info(logger, df, "Rate table")

        converter = cls({})
        for _, row in df.iterrows():
            currency = str(row[columns['currency']]).strip().upper()
            try:
                day = pd.to_datetime(row[columns['date']]).date()
                rate = Decimal(str(row[columns['rate']]).replace(',', '').strip())
            except (ValueError, InvalidOperation) as e:
                raise InputMalformedError(f"Invalid rate table row {dict(row)}: {e}") from e

            converter.rates[(currency, converter.canonical_date_key(day))] = rate

        return converter

    @classmethod
    def from_csv(cls, source: Union[str, Path]) -> 'RateTableConverter':
        """Load from a CSV path, or from CSV text if `source` contains newlines."""
        if isinstance(source, str) and '\n' in source:
            source = StringIO(source)

        try:
            df = pd.read_csv(source, dtype=str, keep_default_na=False)
        except OSError as e:
            raise InputMalformedError(f"Cannot read rate table {source}: {e}") from e
        return cls.from_dataframe(df)

    def resolve_rate(self, currency: str, on_date: DateLike) -> RateQuote:
        currency = currency.upper()
        day = to_date(on_date)

        local = self.local_quote(currency, day)
        if local is not None:
            return local

        rate = self.rates.get((currency, self.canonical_date_key(day)))
        if rate is None:
            logger.warning(f"Rate table has no {currency} rate for {day}")
            raise RateUnresolvableError(currency, day, "not in rate table")

        return RateQuote(currency=currency, on_date=day, rate=rate)
