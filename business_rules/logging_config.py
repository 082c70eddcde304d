"""Structured logging setup.

The library only obtains loggers via ``structlog.get_logger``; nothing is
configured on import. Host applications call ``configure_logging`` once.
"""

from __future__ import annotations

import logging
import sys
from typing import Optional

import structlog

from business_rules.config import get_config


def configure_logging(level: Optional[str] = None, json: Optional[bool] = None) -> None:
    """Configure structlog and stdlib logging for rule evaluation events."""
    config = get_config()
    level_name = (level or config.log_level).upper()
    use_json = config.log_json if json is None else json

    renderer = (
        structlog.processors.JSONRenderer()
        if use_json
        else structlog.dev.ConsoleRenderer(colors=False)
    )

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            renderer,
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, level_name),
    )
