"""
Logging setup for mediashrink.

Log records go to stderr. A terminal gets Rich's colored handler, anything
else gets plain text lines. Progress bars are written to stdout directly
and never pass through logging.
"""

import logging
import os
import sys
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler

_LEVEL_MAP = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "warning": logging.WARNING,
    "error": logging.ERROR,
}

TEXT_FORMAT = "%(asctime)s %(levelname)-7s %(name)s: %(message)s"


def resolve_level(verbose: bool, env_level: Optional[str] = None) -> int:
    """Pick the log level from --verbose, overridden by LOG_LEVEL when set."""
    level = logging.DEBUG if verbose else logging.INFO
    if env_level is None:
        env_level = os.getenv("LOG_LEVEL", "")
    if env_level:
        level = _LEVEL_MAP.get(env_level.strip().lower(), level)
    return level


def _stderr_is_terminal() -> bool:
    try:
        return sys.stderr.isatty()
    except (AttributeError, ValueError):
        return False


def configure_logging(verbose: bool = False) -> int:
    """
    Configure the root logger.

    Args:
        verbose: Enable debug output.

    Returns:
        The effective log level.
    """
    level = resolve_level(verbose)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers.clear()

    handler: logging.Handler
    if _stderr_is_terminal():
        handler = RichHandler(
            console=Console(stderr=True),
            show_path=False,
            rich_tracebacks=verbose,
            log_time_format="[%X]",
        )
        handler.setFormatter(logging.Formatter("%(message)s"))
    else:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter(TEXT_FORMAT, datefmt="%Y-%m-%dT%H:%M:%S%z"))

    handler.setLevel(level)
    root_logger.addHandler(handler)
    return level
