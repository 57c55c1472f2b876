"""Optional scripting extensions to configure logging."""

from __future__ import annotations

import logging
from datetime import datetime

from rich.console import Console
from rich.logging import RichHandler

NOISY_LOGGERS = ("google.auth", "google.cloud.bigquery", "urllib3")
"""Loggers we keep at WARNING unless running in verbose mode."""


class LocalTZRichHandler(RichHandler):
    """
    Extend the RichHandler to provide timezone aware timestamps.

    The path column shows the logger name (e.g., `bqext/partition`) rather
    than the source file, since bqext loggers are named after the area
    emitting the message.
    """

    def render(self, *, record, traceback, message_renderable):
        level = self.get_level_text(record)
        time_format = None if self.formatter is None else self.formatter.datefmt
        log_time = datetime.fromtimestamp(record.created).astimezone()
        return self._log_render(
            self.console,
            [message_renderable] if not traceback else [message_renderable, traceback],
            log_time=log_time,
            time_format=time_format,
            level=level,
            path=record.name,
            line_no=None,
            link_path=None,
        )


def quiet_client_libraries(verbose: bool) -> None:
    """Keep the Google client libraries at WARNING unless verbose."""
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.NOTSET if verbose else logging.WARNING)


def configure(verbose: bool) -> None:
    """
    Configure the logging subsystem to use LocalTZRichHandler on stderr.

    Logs go to stderr so that stdout only carries the command output.
    In verbose mode we log at DEBUG level, including the client libraries.
    """
    handler = LocalTZRichHandler(
        console=Console(stderr=True),
        show_time=True,
        show_level=True,
        show_path=True,
        rich_tracebacks=True,
        log_time_format="[%Y-%m-%d %H:%M:%S %z]",
    )
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        handlers=[handler],
        force=True,
    )
    quiet_client_libraries(verbose)


log = logging.getLogger("scripting")
"""Logger that the scripting package should use."""
