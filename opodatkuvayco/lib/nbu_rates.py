"""
National Bank of Ukraine (NBU) FX Rate Provider

Provides official NBU exchange rates (foreign currency -> UAH) for tax
reporting.

Features:
- Fetches historical official rates from the NBU statistics API
- In-memory caching (rates are immutable historical data)
- Thread-safe, so rate pairs and dividend batches can be fetched concurrently

API Documentation: https://bank.gov.ua/ua/open-data/api-dev

Copyright (c) 2026 Andreas Wagner. All rights reserved.
"""

import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Dict, Optional, Tuple, Union

import requests

from opodatkuvayco.core.config import LOCAL_CURRENCY, get_settings
from opodatkuvayco.core.errors import RateUnresolvableError
from opodatkuvayco.lib.utils.logging_config import setup_logger

logger = setup_logger(__name__)

DateLike = Union[date, datetime]


def to_date(value: DateLike) -> date:
    """Drop the time part of trade timestamps."""
    if isinstance(value, datetime):
        return value.date()
    return value


def canonical_date_key(value: DateLike) -> str:
    """Comparison key for same-day detection (YYYYMMDD, the NBU date format)."""
    return to_date(value).strftime('%Y%m%d')


@dataclass(frozen=True)
class RateQuote:
    """Official rate: 1 unit of `currency` costs `rate` UAH on `on_date`."""
    currency: str
    on_date: date
    rate: Decimal


class CurrencyConverter(ABC):
    """Resolves date-specific exchange rates into the local currency."""

    @abstractmethod
    def resolve_rate(self, currency: str, on_date: DateLike) -> RateQuote:
        """
        Resolve the rate for a currency on a date.

        Raises:
            RateUnresolvableError: If the currency or date has no known rate
        """
        pass

    def canonical_date_key(self, on_date: DateLike) -> str:
        """Comparison key used by the lot-merge rule to detect same-day buys."""
        return canonical_date_key(on_date)

    def local_quote(self, currency: str, on_date: DateLike) -> Optional[RateQuote]:
        """Quote for the reporting currency itself, or None for foreign currencies."""
        if currency.upper() == LOCAL_CURRENCY:
            return RateQuote(currency=LOCAL_CURRENCY, on_date=to_date(on_date), rate=Decimal(1))
        return None


class NBURateProvider(CurrencyConverter):
    """
    National Bank of Ukraine official FX rate provider.

    NBU sets an official rate for every calendar day, weekends included,
    so no previous-business-day fallback is needed.
    """

    def __init__(
        self,
        api_url: Optional[str] = None,
        timeout: Optional[float] = None,
        session: Optional[requests.Session] = None
    ):
        settings = get_settings()
        self.api_url = api_url or settings.nbu_api_url
        self.timeout = timeout if timeout is not None else settings.nbu_timeout

        self.session = session or requests.Session()
        self.session.headers.update({
            "User-Agent": "Opodatkuvayco/1.0 (Tax Reporting)",
            "Accept": "application/json"
        })

        self._cache: Dict[Tuple[str, str], Decimal] = {}
        self._lock = threading.Lock()

    def resolve_rate(self, currency: str, on_date: DateLike) -> RateQuote:
        currency = currency.upper()
        day = to_date(on_date)

        local = self.local_quote(currency, day)
        if local is not None:
            return local

        key = (currency, self.canonical_date_key(day))

        with self._lock:
            cached_rate = self._cache.get(key)
        if cached_rate is not None:
            logger.debug(f"NBU rate cache HIT: {currency}/UAH on {day} = {cached_rate}")
            return RateQuote(currency=currency, on_date=day, rate=cached_rate)

        rate = self._fetch_from_api(currency, day)

        with self._lock:
            self._cache[key] = rate

        logger.info(f"NBU rate fetched: {currency}/UAH on {day} = {rate}")
        return RateQuote(currency=currency, on_date=day, rate=rate)

    def _fetch_from_api(self, currency: str, day: date) -> Decimal:
        """
        Fetch the official rate for one currency and day.

        NBU returns a JSON list: [{"r030": 840, "cc": "USD", "rate": 36.5686,
        "exchangedate": "15.01.2024", ...}]; an unknown currency gives [].
        """
        params = {
            "valcode": currency,
            "date": self.canonical_date_key(day),
            "json": ""
        }

        try:
            response = self.session.get(self.api_url, params=params, timeout=self.timeout)
            response.raise_for_status()
            payload = response.json()
        except requests.RequestException as e:
            logger.error(f"NBU API request failed for {currency} on {day}: {e}")
            raise RateUnresolvableError(currency, day, f"NBU API request failed: {e}") from e
        except ValueError as e:
            logger.error(f"Failed to parse NBU response for {currency} on {day}: {e}")
            raise RateUnresolvableError(currency, day, "NBU response is not JSON") from e

        if not isinstance(payload, list) or not payload:
            logger.warning(f"NBU has no rate for {currency} on {day}")
            raise RateUnresolvableError(currency, day, "NBU returned no rate")

        entry = next(
            (item for item in payload if isinstance(item, dict) and str(item.get("cc", "")).upper() == currency),
            None
        )
        if entry is None or entry.get("rate") is None:
            raise RateUnresolvableError(currency, day, "NBU response has no matching entry")

        try:
            rate = Decimal(str(entry["rate"]))
        except InvalidOperation as e:
            raise RateUnresolvableError(currency, day, f"invalid rate {entry['rate']!r}") from e

        if rate <= 0:
            raise RateUnresolvableError(currency, day, f"non-positive rate {rate}")

        return rate

    def clear_cache(self):
        with self._lock:
            self._cache.clear()


# Singleton instance
_nbu_provider_instance: Optional[NBURateProvider] = None


def get_default_converter() -> NBURateProvider:
    """Process-wide NBU provider (shares its rate cache across reports)."""
    global _nbu_provider_instance

    if _nbu_provider_instance is None:
        _nbu_provider_instance = NBURateProvider()

    return _nbu_provider_instance


def get_nbu_rate(currency: str, on_date: DateLike) -> Decimal:
    """
    Get the official NBU rate for a currency on a date.

    Example:
        >>> rate = get_nbu_rate("USD", date(2024, 1, 15))
        >>> cost_uah = cost_usd * rate
    """
    return get_default_converter().resolve_rate(currency, on_date).rate
