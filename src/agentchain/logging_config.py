"""Logging setup for agentchain.

Library modules only create module-level loggers; applications (the CLI)
call ``setup_logging`` once to attach a Rich console handler to the
``agentchain`` logger.
"""

from __future__ import annotations

import logging
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler

LOGGER_NAME = "agentchain"


def setup_logging(verbose: bool = False, console: Optional[Console] = None) -> logging.Logger:
    """Configure the package logger; calling it again replaces the handler."""
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(logging.DEBUG if verbose else logging.WARNING)

    # Remove existing handlers (idempotent)
    for handler in list(logger.handlers):
        if getattr(handler, "_agentchain", False):
            logger.removeHandler(handler)

    handler = RichHandler(
        console=console or Console(stderr=True),
        show_path=verbose,
        rich_tracebacks=True,
        markup=False,
    )
    handler.setFormatter(logging.Formatter("%(message)s", datefmt="[%X]"))
    handler._agentchain = True  # type: ignore[attr-defined]
    logger.addHandler(handler)
    return logger
