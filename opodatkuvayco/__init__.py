"""
Opodatkuvayco - capital gains and dividend tax for Ukrainian investors.

Matches broker trades into lots, converts every amount into UAH at the
official NBU rate of its date, and computes income tax and military levy.

Copyright (c) 2026 Andreas Wagner. All rights reserved.
"""

__version__ = "1.0.0"
