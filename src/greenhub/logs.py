"""Logging setup for the CLI.

Modules just use logging.getLogger(__name__); this wires the root logger
to a rich handler on stderr once, so log lines never mix with command
output on stdout.
"""

import logging

from rich.console import Console
from rich.logging import RichHandler

_configured = False


def configure_logging(level: str | int = "WARNING") -> None:
    global _configured

    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.WARNING

    root = logging.getLogger("greenhub")
    root.setLevel(level)
    if not _configured:
        handler = RichHandler(
            console=Console(stderr=True),
            show_path=False,
            rich_tracebacks=False,
        )
        handler.setFormatter(logging.Formatter("%(message)s"))
        root.addHandler(handler)
        _configured = True
