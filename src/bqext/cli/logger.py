"""Logging helpers for the bqext CLI."""

from __future__ import annotations

import logging
import os
import sys

import colorlog

from ..scripting.bq_logging import quiet_client_libraries

LOG_COLORS = {
    "DEBUG": "bold_cyan",
    "INFO": "bold_green",
    "WARNING": "bold_yellow",
    "ERROR": "bold_red",
    "CRITICAL": "bold_red,bg_white",
}

_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
_PLAIN_FORMAT = "[%(asctime)s] <%(name)s> %(levelname)s: %(message)s"
_COLOR_FORMAT = "%(log_color)s[%(asctime)s] <%(name)s> %(levelname)s:%(reset)s %(message)s"


def _use_color() -> bool:
    if os.getenv("NO_COLOR") is not None:
        return False
    return sys.stderr.isatty()


def _make_handler() -> logging.Handler:
    handler = logging.StreamHandler()
    if _use_color():
        handler.setFormatter(
            colorlog.ColoredFormatter(fmt=_COLOR_FORMAT, log_colors=LOG_COLORS, datefmt=_DATE_FORMAT)
        )
    else:
        handler.setFormatter(logging.Formatter(fmt=_PLAIN_FORMAT, datefmt=_DATE_FORMAT))
    return handler


def configure_logging(verbose: bool) -> None:
    """
    Log to stderr, using colors when stderr is a TTY and NO_COLOR is unset.

    Without verbose, we log at INFO and keep the client libraries quiet.
    """
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(level=level, handlers=[_make_handler()], force=True)
    quiet_client_libraries(verbose)
