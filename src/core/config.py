"""Runtime configuration model for Tabula.

This module owns all environment variable parsing and validation.
Other modules consume a typed config object instead of raw env reads.
"""

from __future__ import annotations

from dataclasses import dataclass
import logging
import os

from core.constants import DEFAULT_HTTP_TIMEOUT_SECONDS, DEFAULT_LOG_LEVEL
from core.errors import TabulaConfigError


@dataclass(frozen=True)
class TabulaConfig:
    """Validated runtime configuration.

    Attributes:
        log_level: Minimum structured log level name.
        http_timeout: Timeout in seconds for remote fetches.
        s3_region: Optional default AWS region for S3 sources.
        s3_profile: Optional AWS profile for boto3 session initialization.
    """

    log_level: str
    http_timeout: float
    s3_region: str | None
    s3_profile: str | None

    @classmethod
    def from_env(cls) -> "TabulaConfig":
        """Build config from process environment variables.

        Returns:
            A validated config object.

        Raises:
            TabulaConfigError: If environment values are invalid.
        """
        log_level = _parse_log_level(os.getenv("TABULA_LOG_LEVEL", DEFAULT_LOG_LEVEL))
        http_timeout = _parse_http_timeout(
            os.getenv("TABULA_HTTP_TIMEOUT", str(DEFAULT_HTTP_TIMEOUT_SECONDS))
        )
        return cls(
            log_level=log_level,
            http_timeout=http_timeout,
            s3_region=os.getenv("TABULA_S3_REGION"),
            s3_profile=os.getenv("TABULA_S3_PROFILE"),
        )

    @property
    def log_level_number(self) -> int:
        """Return the stdlib numeric level for ``log_level``."""
        return logging.getLevelName(self.log_level)


def _parse_log_level(raw_value: str) -> str:
    """Parse the log level environment value.

    Args:
        raw_value: Raw string from environment.

    Returns:
        Upper-cased level name.

    Raises:
        TabulaConfigError: If the level name is unknown.
    """
    level_name = raw_value.strip().upper()
    if not isinstance(logging.getLevelName(level_name), int):
        raise TabulaConfigError(
            "Invalid TABULA_LOG_LEVEL value: "
            f"expected a logging level name, got '{raw_value}'. "
            "Use DEBUG, INFO, WARNING or ERROR."
        )
    return level_name


def _parse_http_timeout(raw_value: str) -> float:
    """Parse the HTTP timeout environment value.

    Raises:
        TabulaConfigError: If value is not a positive number.
    """
    try:
        timeout = float(raw_value)
    except ValueError as error:
        raise TabulaConfigError(
            "Invalid TABULA_HTTP_TIMEOUT value: "
            f"expected seconds as a number, got '{raw_value}'. "
            "Set TABULA_HTTP_TIMEOUT to a numeric value."
        ) from error
    if timeout <= 0:
        raise TabulaConfigError(
            f"Invalid TABULA_HTTP_TIMEOUT value: expected a positive number, got {timeout}."
        )
    return timeout
