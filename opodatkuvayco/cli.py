"""
Command-line entry point.

Usage:
    python -m opodatkuvayco report.json                   # full deal report
    python -m opodatkuvayco report.json --short           # one row per ticker
    python -m opodatkuvayco report.json --previous-period # open lots only
    python -m opodatkuvayco report.json --dividends       # dividend tax
    python -m opodatkuvayco report.json --rates rates.csv --json out.json

Exit codes: 0 ok, 2 malformed input, 3 unresolvable exchange rate.

Copyright (c) 2026 Andreas Wagner. All rights reserved.
"""

import argparse
import sys
from pathlib import Path
from typing import List, Optional

from opodatkuvayco.core.errors import ErrorKind, InputMalformedError, ReportError
from opodatkuvayco.lib.export import (
    deals_to_dataframe,
    dividends_to_dataframe,
    export_to_csv,
    export_to_json,
    open_lots_to_dataframe,
    short_rows_to_dataframe,
)
from opodatkuvayco.lib.nbu_rates import get_default_converter
from opodatkuvayco.lib.rate_table import RateTableConverter
from opodatkuvayco.lib.utils.logging_config import setup_logger
from opodatkuvayco.services.report_service import ReportService

logger = setup_logger(__name__)

EXIT_CODES = {
    ErrorKind.INPUT_MALFORMED: 2,
    ErrorKind.RATE_UNRESOLVABLE: 3,
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="opodatkuvayco",
        description="Capital gains and dividend tax from a broker JSON report"
    )
    parser.add_argument("file", help="Path to the broker JSON export")

    mode = parser.add_mutually_exclusive_group()
    mode.add_argument("--short", action="store_true", help="Collapse deals per ticker")
    mode.add_argument("--previous-period", action="store_true", help="List unmatched buy lots only")
    mode.add_argument("--dividends", action="store_true", help="Compute dividend tax")

    parser.add_argument("--rates", help="CSV rate table (currency,date,rate) instead of the NBU API")
    parser.add_argument("--json", dest="json_out", help="Write the result as JSON")
    parser.add_argument("--csv", dest="csv_out", help="Write the result rows as CSV")
    return parser


def read_input(path: str) -> bytes:
    try:
        return Path(path).read_bytes()
    except OSError as e:
        raise InputMalformedError(f"Cannot read report {path}: {e.strerror or e}") from e


def run(args: argparse.Namespace) -> int:
    content = read_input(args.file)
    converter = RateTableConverter.from_csv(args.rates) if args.rates else get_default_converter()
    service = ReportService(converter)

    if args.previous_period:
        result = service.build_previous_period(content)
        df = open_lots_to_dataframe(result)
    elif args.dividends:
        result = service.calculate_dividends(content)
        df = dividends_to_dataframe(result)
        print(f"Dividends: {result.total.sum_uah:.2f} UAH")
        print(f"Tax fee: {result.total.tax_fee:.2f} UAH")
        print(f"Military fee: {result.total.military_fee:.2f} UAH")
    elif args.short:
        result = service.build_report(content, short=True)
        df = short_rows_to_dataframe(result)
    else:
        result = service.build_report(content)
        df = deals_to_dataframe(result)

    if not args.dividends and not args.previous_period:
        print(f"Total gain: {result.total:.2f} UAH")
        print(f"Tax fee: {result.total_tax_fee:.2f} UAH")
        print(f"Military fee: {result.total_military_fee:.2f} UAH")

    if not df.empty:
        print(df.to_string(index=False))

    if args.json_out:
        export_to_json(result, args.json_out)
    if args.csv_out:
        export_to_csv(df, args.csv_out)

    return 0


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    try:
        return run(args)
    except ReportError as e:
        logger.error(f"{e.kind.value}: {e}")
        return EXIT_CODES[e.kind]


if __name__ == "__main__":
    sys.exit(main())
