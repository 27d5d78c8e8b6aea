"""
Error kinds raised by the tax engine.

Callers distinguish user-input problems (the uploaded report cannot be read)
from external-dependency problems (an exchange rate cannot be resolved).
Both abort the whole report; neither is retried.

Copyright (c) 2026 Andreas Wagner. All rights reserved.
"""

from datetime import date
from enum import Enum
from typing import Optional


class ErrorKind(str, Enum):
    """Failure categories surfaced by report computations."""
    INPUT_MALFORMED = "InputMalformed"
    RATE_UNRESOLVABLE = "RateUnresolvable"


class ReportError(Exception):
    """Base class for all report failures."""

    kind: ErrorKind

    def __init__(self, message: str, kind: ErrorKind):
        super().__init__(message)
        self.kind = kind


class InputMalformedError(ReportError, ValueError):
    """Raised when the uploaded report cannot be decoded or validated."""

    def __init__(self, message: str):
        super().__init__(message, ErrorKind.INPUT_MALFORMED)


class RateUnresolvableError(ReportError, LookupError):
    """Raised when no exchange rate is known for a currency/date pair."""

    def __init__(
        self,
        currency: str,
        on_date: date,
        reason: Optional[str] = None
    ):
        message = f"No exchange rate for {currency} on {on_date.isoformat()}"
        if reason:
            message += f": {reason}"
        super().__init__(message, ErrorKind.RATE_UNRESOLVABLE)
        self.currency = currency
        self.on_date = on_date
