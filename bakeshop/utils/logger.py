"""
Logging configuration for bakeshop.

All bakeshop loggers hang off the "bakeshop" package logger, which writes to
stdout at LOG_LEVEL (default INFO) and does not propagate to the root logger.

Individual modules can be made louder or quieter without touching the rest:

    LOG_LEVELS="coupons.client=DEBUG,api.server=WARNING"

or, in config/default.yaml:

    logging:
      levels:
        coupons.client: DEBUG
"""
import logging
import os
import sys
from typing import Dict, Mapping, Optional

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
logger = logging.getLogger("bakeshop")
logger.setLevel(LOG_LEVEL)

if not logger.handlers:
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT))
    logger.addHandler(console_handler)

logger.propagate = False


def parse_levels(value: Optional[str]) -> Dict[str, str]:
    """Parse "name=LEVEL,name=LEVEL" into {name: LEVEL}; blank entries are skipped."""
    levels: Dict[str, str] = {}
    for item in (value or "").split(","):
        if not item.strip():
            continue
        name, sep, level = item.partition("=")
        if not sep or not name.strip() or not level.strip():
            raise ValueError(f"Bad log level entry {item!r}, expected name=LEVEL")
        levels[name.strip()] = level.strip().upper()
    return levels


def set_module_levels(levels: Mapping[str, str]) -> None:
    """
    Override levels for bakeshop sub-loggers.

    Names are relative to the package ("coupons.client"), matching get_logger().
    """
    for name, level in levels.items():
        logging.getLogger(f"bakeshop.{name}").setLevel(str(level).upper())


def get_logger(name: str = None) -> logging.Logger:
    """
    Get a logger instance.

    Args:
        name: Optional name for the logger (will be appended to 'bakeshop')

    Returns:
        Logger instance
    """
    if name:
        return logging.getLogger(f"bakeshop.{name}")
    return logger


set_module_levels(parse_levels(os.getenv("LOG_LEVELS")))
