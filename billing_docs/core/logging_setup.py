# billing_docs/core/logging_setup.py
from __future__ import annotations

import logging
import sys
from typing import Optional

from billing_docs.core.config import settings

LOGGER_NAME = "billing_docs"


def configure_logging(level: Optional[str] = None,
                      log_file: Optional[str] = None) -> logging.Logger:
    """
    Attach console (and optionally file) handlers to the package logger.

    Safe to call more than once: handlers are only added the first time.
    """
    logger = logging.getLogger(LOGGER_NAME)
    lvl = getattr(logging, str(level or settings.LOG_LEVEL).upper(),
                  logging.INFO)
    logger.setLevel(lvl)

    if getattr(logger, "_billing_docs_configured", False):
        return logger

    # Console handler
    ch = logging.StreamHandler(sys.stdout)
    ch.setLevel(lvl)
    ch.setFormatter(
        logging.Formatter("[%(asctime)s] [%(levelname)s] %(message)s",
                          datefmt="%Y-%m-%d %H:%M:%S"))
    logger.addHandler(ch)

    # File handler
    path = log_file if log_file is not None else settings.LOG_FILE
    if path:
        fh = logging.FileHandler(path, encoding="utf-8")
        fh.setLevel(lvl)
        fh.setFormatter(
            logging.Formatter(
                "%(asctime)s | %(levelname)s | %(name)s | %(message)s",
                datefmt="%Y-%m-%d %H:%M:%S",
            ))
        logger.addHandler(fh)

    logger._billing_docs_configured = True  # type: ignore[attr-defined]
    return logger
