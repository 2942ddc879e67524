"""Logging setup for notebooks and scripts.

Library modules only create ``logging.getLogger(__name__)`` loggers; the package root
carries a ``NullHandler`` so nothing is printed unless the caller opts in here.
"""

from __future__ import annotations

import logging


LOG_FORMAT = "%(levelname)s: %(message)s"


def configure_logging(level: int | str = logging.INFO, *, fmt: str = LOG_FORMAT) -> logging.Logger:
    """Attach a stream handler to the ``gog_tlbx`` logger and set its level.

    Calling it again replaces the handler instead of stacking duplicates (notebook cells
    tend to be re-run).

    Returns:
        The configured package logger.
    """
    logger = logging.getLogger("gog_tlbx")
    for handler in list(logger.handlers):
        if getattr(handler, "_gog_tlbx", False):
            logger.removeHandler(handler)

    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(fmt))
    handler._gog_tlbx = True  # type: ignore[attr-defined]
    logger.addHandler(handler)
    logger.setLevel(level)
    return logger
