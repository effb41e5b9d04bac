"""Structured logging configuration.

This module initializes structlog once with a stable JSON format.
Modules call ``get_logger(__name__)`` and log events with keyword fields.
"""

from __future__ import annotations

from typing import Any

import structlog

from core.config import TabulaConfig

_CONFIGURED = False


def get_logger(name: str) -> Any:
    """Return a module logger instance.

    Args:
        name: Logger name, usually __name__.

    Returns:
        A structlog bound logger with structured output.
    """
    configure_logging()
    return structlog.get_logger(name)


def configure_logging(config: TabulaConfig | None = None, force: bool = False) -> None:
    """Configure structlog processors and level filtering.

    Args:
        config: Optional runtime config, read from env when omitted.
        force: Reconfigure even if logging was already set up.
    """
    global _CONFIGURED
    if _CONFIGURED and not force:
        return
    runtime_config = config or TabulaConfig.from_env()
    structlog.configure(
        processors=[
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.add_log_level,
            structlog.processors.JSONRenderer(sort_keys=True),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(runtime_config.log_level_number),
        cache_logger_on_first_use=True,
    )
    _CONFIGURED = True
