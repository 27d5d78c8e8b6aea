"""
Logging setup shared by every module.

One line per record, optionally followed by the report context the caller
attached:

    [2026-01-15 10:00:00.123] [INFO    ] [nbu_rates:resolve_rate:127] NBU rate fetched {currency=USD}

Level and log file come from Settings (LOG_LEVEL, LOG_FILE).

Copyright (c) 2026 Andreas Wagner. All rights reserved.
"""

import logging
import sys
from pathlib import Path
from datetime import datetime
from typing import Optional

from opodatkuvayco.core.config import get_settings


class StructuredFormatter(logging.Formatter):
    """Timestamp, level and code location, then the message and report context."""

    def format(self, record: logging.LogRecord) -> str:
        context = getattr(record, 'report_context', '')

        timestamp = datetime.fromtimestamp(record.created).strftime('%Y-%m-%d %H:%M:%S.%f')[:-3]
        location = f"{record.module}:{record.funcName}:{record.lineno}"

        line = f"[{timestamp}] [{record.levelname:8s}] [{location}] {record.getMessage()}"

        if record.exc_info:
            line += f"\n{self.formatException(record.exc_info)}"

        # e.g. extra={"report_context": "ticker=AAPL"}
        if context:
            line += f" {{{context}}}"

        return line


class PerformanceLogger:
    """
    Times a block of work.

    `duration_ms` is kept for callers. Runs above `threshold_ms` are logged
    as warnings; failed runs only at debug level, since the error itself is
    reported by whoever handles it.
    """

    def __init__(self, logger: logging.Logger, operation: str, threshold_ms: float = 1000):
        self.logger = logger
        self.operation = operation
        self.threshold_ms = threshold_ms
        self.start_time = None
        self.duration_ms: Optional[float] = None

    def __enter__(self):
        self.start_time = datetime.now()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if self.start_time is None:
            return

        self.duration_ms = (datetime.now() - self.start_time).total_seconds() * 1000

        if exc_type is not None:
            self.logger.debug(f"{self.operation} failed after {self.duration_ms:.1f}ms")
        elif self.duration_ms > self.threshold_ms:
            self.logger.warning(f"SLOW: {self.operation} took {self.duration_ms:.1f}ms")
        else:
            self.logger.debug(f"{self.operation} took {self.duration_ms:.1f}ms")


def setup_logger(
    name: str,
    level: Optional[str] = None,
    log_file: Optional[str] = None
) -> logging.Logger:
    """
    Module logger writing to stdout and, if configured, to a log file.

    `level` and `log_file` override Settings for this logger only. Calling
    it again for the same name returns the logger unchanged.
    """
    logger = logging.getLogger(name)

    if logger.handlers:
        return logger

    settings = get_settings()
    level = (level or settings.log_level).upper()
    if log_file is None:
        log_file = settings.log_file

    log_level = getattr(logging, level, logging.INFO)
    logger.setLevel(log_level)

    handlers = [logging.StreamHandler(sys.stdout)]
    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_file, encoding='utf-8'))

    for handler in handlers:
        handler.setLevel(log_level)
        handler.setFormatter(StructuredFormatter())
        logger.addHandler(handler)

    # Records go to the handlers above only
    logger.propagate = False

    return logger


def get_perf_logger(logger: logging.Logger, operation: str, threshold_ms: float = 1000):
    """
    Usage:
        with get_perf_logger(logger, "value deals", threshold_ms=500):
            deals = valuation.value_all(matches)
    """
    return PerformanceLogger(logger, operation, threshold_ms)


def log_dataframe_info(logger: logging.Logger, df, name: str = "DataFrame"):
    """Log the shape of a rate table or export frame."""
    if df is None:
        logger.warning(f"{name} is None")
    elif df.empty:
        logger.info(f"{name} is empty (0 rows)")
    else:
        logger.info(f"{name}: {len(df)} rows, {len(df.columns)} columns")
