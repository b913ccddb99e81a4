"""
Logging setup.
"""

from __future__ import annotations

import logging
import os
from typing import Optional, TextIO


APP_LOGGER_NAME = "vehicle_eval"
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(log_path: str, log_level: str, stream: Optional[TextIO] = None) -> logging.Logger:
    """
    Configure console and file logging once at startup.

    Args:
        log_path: Log file (its directory is created if missing).
        log_level: Level name, e.g. "INFO".
        stream: Console stream (stderr when omitted).

    Returns:
        The application logger.
    """
    log_dir = os.path.dirname(log_path)
    if log_dir and not os.path.exists(log_dir):
        os.makedirs(log_dir)

    logging.basicConfig(
        level=getattr(logging, log_level),
        format=LOG_FORMAT,
        handlers=[
            logging.FileHandler(log_path),
            logging.StreamHandler(stream),
        ],
        force=True,
    )
    return logging.getLogger(APP_LOGGER_NAME)
