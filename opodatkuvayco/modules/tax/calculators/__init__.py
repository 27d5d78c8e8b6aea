"""
Jurisdiction tax calculators.

Importing this package registers every bundled calculator.
"""

from opodatkuvayco.modules.tax.calculators.base import (
    TaxCalculator,
    TaxFees,
    get_calculator,
    list_available_jurisdictions,
    register_calculator,
)
from opodatkuvayco.modules.tax.calculators.ukraine import UkraineTaxCalculator

DEFAULT_JURISDICTION = "UA"

__all__ = [
    'TaxCalculator',
    'TaxFees',
    'UkraineTaxCalculator',
    'DEFAULT_JURISDICTION',
    'get_calculator',
    'list_available_jurisdictions',
    'register_calculator',
]
