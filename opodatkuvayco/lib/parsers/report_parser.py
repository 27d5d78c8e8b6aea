"""
Parser for broker JSON export reports.

Decodes uploaded file bytes (UTF-8 JSON) into a validated BrokerReport.
Any decoding, JSON or schema problem is raised as InputMalformedError.

Copyright (c) 2026 Andreas Wagner. All rights reserved.
"""

import json
from pathlib import Path
from typing import Union

from pydantic import ValidationError

from opodatkuvayco.core.errors import InputMalformedError
from opodatkuvayco.lib.parsers.report_models import BrokerReport
from opodatkuvayco.lib.utils.logging_config import setup_logger

logger = setup_logger(__name__)


class ReportParser:
    """
    Parser for broker export documents (trades + corporate actions).
    """

    def parse(self, content: Union[bytes, str]) -> BrokerReport:
        if isinstance(content, bytes):
            try:
                content = content.decode('utf-8')
            except UnicodeDecodeError as e:
                logger.error(f"Report is not valid UTF-8: {e}")
                raise InputMalformedError(f"Report is not valid UTF-8: {e}") from e

        try:
            document = json.loads(content)
        except json.JSONDecodeError as e:
            logger.error(f"Report is not valid JSON: {e}")
            raise InputMalformedError(f"Report is not valid JSON: {e}") from e

        if not isinstance(document, dict):
            raise InputMalformedError(
                f"Report must be a JSON object, got {type(document).__name__}"
            )

        try:
            report = BrokerReport.model_validate(document)
        except ValidationError as e:
            logger.error(f"Report failed validation with {e.error_count()} error(s)")
            raise InputMalformedError(f"Report failed validation: {e}") from e

        logger.info(
            f"Parsed report: {len(report.trade_records)} trades, "
            f"{len(report.corporate_actions.detailed)} corporate actions"
        )
        return report

    def parse_file(self, path: Union[str, Path]) -> BrokerReport:
        return self.parse(Path(path).read_bytes())


def read_report(content: Union[bytes, str]) -> BrokerReport:
    """Decode an uploaded report's content."""
    return ReportParser().parse(content)
