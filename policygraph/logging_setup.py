"""Logging configuration shared by the CLI and the HTTP app."""

import logging
import sys
from typing import Optional

from policygraph.config import PolicyGraphSettings, get_settings


def configure_logging(settings: Optional[PolicyGraphSettings] = None) -> None:
    """Configure logging from settings.

    Settings:
        log_level: DEBUG, INFO, WARNING, ERROR or CRITICAL. Default: INFO
        log_format: simple or detailed. Default: detailed
    """
    settings = settings or get_settings()

    level_map = {
        "DEBUG": logging.DEBUG,
        "INFO": logging.INFO,
        "WARNING": logging.WARNING,
        "ERROR": logging.ERROR,
        "CRITICAL": logging.CRITICAL,
    }
    level = level_map.get(settings.log_level.upper(), logging.INFO)

    if settings.log_format == "simple":
        format_str = "%(levelname)s: %(message)s"
    else:
        format_str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    logging.basicConfig(level=level, format=format_str, stream=sys.stderr)
    logging.getLogger("policygraph").setLevel(level)

    # Reduce noise from third-party libraries unless DEBUG
    if level > logging.DEBUG:
        logging.getLogger("httpcore").setLevel(logging.WARNING)
        logging.getLogger("httpx").setLevel(logging.WARNING)
