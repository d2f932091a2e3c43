"""
Logging bootstrap.

Configures the root logger once; call setup_logging() at process start
(app.py does this on import).
"""

import logging
from typing import Optional

from . import config


def setup_logging(level: Optional[str] = None) -> None:
    """
    Initialise the global logging configuration.

    Args:
        level: Optional level name. Falls back to the LOG_LEVEL environment
               variable (default INFO).
    """
    log_level = (level or config.LOG_LEVEL).upper()
    logging.basicConfig(
        level=getattr(logging, log_level, logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
