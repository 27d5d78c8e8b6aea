"""
Runtime settings read from the environment.

Variables:
    LOG_LEVEL     log level for all module loggers (default INFO)
    LOG_FILE      optional log file path
    NBU_API_URL   National Bank of Ukraine exchange endpoint
    NBU_TIMEOUT   HTTP timeout in seconds for a single rate request
    RATE_WORKERS  maximum concurrent rate lookups per fan-out

Copyright (c) 2026 Andreas Wagner. All rights reserved.
"""

import os
from dataclasses import dataclass
from typing import Optional

NBU_API_URL = "https://bank.gov.ua/NBUStatService/v1/statdirectory/exchange"

# Reporting currency; always converts at rate 1
LOCAL_CURRENCY = "UAH"


@dataclass(frozen=True)
class Settings:
    """Immutable snapshot of the environment configuration."""

    log_level: str = "INFO"
    log_file: Optional[str] = None
    nbu_api_url: str = NBU_API_URL
    nbu_timeout: float = 10.0
    rate_workers: int = 8

    @classmethod
    def from_env(cls) -> 'Settings':
        """Build settings from environment variables, falling back to defaults."""
        return cls(
            log_level=os.getenv('LOG_LEVEL', 'INFO').upper(),
            log_file=os.getenv('LOG_FILE') or None,
            nbu_api_url=os.getenv('NBU_API_URL', NBU_API_URL),
            nbu_timeout=float(os.getenv('NBU_TIMEOUT', '10')),
            rate_workers=max(1, int(os.getenv('RATE_WORKERS', '8'))),
        )


_settings_instance: Optional[Settings] = None


def get_settings() -> Settings:
    """Return the process-wide settings, reading the environment once."""
    global _settings_instance

    if _settings_instance is None:
        _settings_instance = Settings.from_env()

    return _settings_instance


def reset_settings():
    """Forget cached settings so the next call re-reads the environment."""
    global _settings_instance
    _settings_instance = None
