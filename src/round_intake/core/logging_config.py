"""Logging setup for the Round Intake service."""

from __future__ import annotations

import logging

from round_intake.core.settings import Settings

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(config: Settings) -> None:
    """Apply the configured log level to the package loggers."""
    level = logging.getLevelName(config.log_level.upper())
    if not isinstance(level, int):
        level = logging.INFO
    logging.basicConfig(level=level, format=LOG_FORMAT)
    logging.getLogger("round_intake").setLevel(level)
    if config.sql_debug:
        logging.getLogger("sqlalchemy.engine").setLevel(logging.INFO)
