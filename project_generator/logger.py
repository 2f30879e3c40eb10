"""Logging bound to the shared Rich console."""

from __future__ import annotations

import logging

from rich.logging import RichHandler

from project_generator.utils import console

ROOT_LOGGER = "project_generator"


def get_logger(name: str) -> logging.Logger:
    """Get a logger whose records reach the Rich console.

    The handler is attached once, to the package root logger, so child
    loggers (``project_generator.resolver`` and so on) share it.

    Args:
        name: Logger name (typically ``__name__``).
    """
    root = logging.getLogger(ROOT_LOGGER)
    if not any(isinstance(h, RichHandler) for h in root.handlers):
        handler = RichHandler(console=console, show_path=False)
        handler.setFormatter(logging.Formatter("%(message)s"))
        root.addHandler(handler)
        root.setLevel(logging.WARNING)
    return logging.getLogger(name)


def set_verbose(verbose: bool) -> None:
    """Switch the package loggers between WARNING and DEBUG."""
    logging.getLogger(ROOT_LOGGER).setLevel(logging.DEBUG if verbose else logging.WARNING)
