"""
Abstract Base Class for Tax Calculators

Defines the interface that all country-specific tax calculators must implement.
Each calculator turns realized totals (capital gains, dividends) into the
tax and levy amounts owed.

Copyright (c) 2026 Andreas Wagner. All rights reserved.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from decimal import Decimal
from typing import Dict, Iterable, List, Type

from opodatkuvayco.modules.tax.tax_events import MatchedDeal


@dataclass(frozen=True)
class TaxFees:
    """Tax and military levy owed on one income category."""
    tax_fee: Decimal
    military_fee: Decimal


class TaxCalculator(ABC):
    """
    Abstract base class for jurisdiction-specific tax calculators.
    """

    @abstractmethod
    def calculate_capital_gains_fees(self, total: Decimal) -> TaxFees:
        """
        Tax owed on the net realized capital gain of a report.

        Args:
            total: Sum of realized gains (negative = loss)

        Returns:
            TaxFees for the capital gains category
        """
        pass

    @abstractmethod
    def calculate_dividend_fees(self, total: Decimal) -> TaxFees:
        """
        Tax owed on dividends received.

        Args:
            total: Sum of dividends in local currency

        Returns:
            TaxFees for the dividend category
        """
        pass

    @abstractmethod
    def get_jurisdiction_name(self) -> str:
        """Return the human-readable name of this tax jurisdiction."""
        pass

    @abstractmethod
    def get_jurisdiction_code(self) -> str:
        """Return the ISO-style code for this jurisdiction."""
        pass

    def calculate_total_gain(self, deals: Iterable[MatchedDeal]) -> Decimal:
        """
        Sum up total realized gains (or losses) from deals.

        Returns:
            Total realized gain (negative = loss)
        """
        return sum(
            (deal.total for deal in deals),
            start=Decimal(0)
        )


# Registry of available calculators
_CALCULATOR_REGISTRY: Dict[str, Type[TaxCalculator]] = {}


def register_calculator(jurisdiction_code: str):
    """
    Decorator to register a tax calculator class.

    Usage:
        @register_calculator("UA")
        class UkraineTaxCalculator(TaxCalculator):
            ...
    """
    def decorator(cls: Type[TaxCalculator]):
        _CALCULATOR_REGISTRY[jurisdiction_code.upper()] = cls
        return cls
    return decorator


def get_calculator(jurisdiction_code: str) -> TaxCalculator:
    """
    Factory method to get a tax calculator instance.

    Raises:
        ValueError: If jurisdiction is not supported
    """
    code = jurisdiction_code.upper()

    if code not in _CALCULATOR_REGISTRY:
        available = ", ".join(sorted(_CALCULATOR_REGISTRY.keys()))
        raise ValueError(
            f"Tax calculator for '{jurisdiction_code}' not found. "
            f"Available: {available}"
        )

    calculator_class = _CALCULATOR_REGISTRY[code]
    return calculator_class()


def list_available_jurisdictions() -> List[str]:
    """
    Get list of all supported tax jurisdictions.

    Returns:
        List of jurisdiction codes (e.g., ["UA"])
    """
    return sorted(_CALCULATOR_REGISTRY.keys())
