"""
Ukrainian Tax Calculator (ПДФО + військовий збір)

Implements the individual investor rules for foreign broker income:
- 18% personal income tax on net realized capital gains
- 9% personal income tax on dividends
- 1.5% military levy on both
- No tax on a net capital loss; dividends are always taxed

Copyright (c) 2026 Andreas Wagner. All rights reserved.
"""

from decimal import Decimal

from opodatkuvayco.modules.tax.calculators.base import TaxCalculator, TaxFees, register_calculator


@register_calculator("UA")
class UkraineTaxCalculator(TaxCalculator):
    """
    Tax calculator for Ukraine.
    """

    CAPITAL_GAINS_TAX_RATE = Decimal("0.18")  # 18%
    DIVIDEND_TAX_RATE = Decimal("0.09")  # 9%
    MILITARY_LEVY_RATE = Decimal("0.015")  # 1.5%

    def get_jurisdiction_name(self) -> str:
        return "Ukraine"

    def get_jurisdiction_code(self) -> str:
        return "UA"

    def calculate_capital_gains_fees(self, total: Decimal) -> TaxFees:
        if total <= 0:
            return TaxFees(tax_fee=Decimal(0), military_fee=Decimal(0))

        return TaxFees(
            tax_fee=total * self.CAPITAL_GAINS_TAX_RATE,
            military_fee=total * self.MILITARY_LEVY_RATE,
        )

    def calculate_dividend_fees(self, total: Decimal) -> TaxFees:
        # Dividend amounts are non-negative, so no loss floor here
        return TaxFees(
            tax_fee=total * self.DIVIDEND_TAX_RATE,
            military_fee=total * self.MILITARY_LEVY_RATE,
        )
