"""
Logging setup for applications embedding the pipeline.

Modules log through ``logging.getLogger(__name__)`` and never configure
handlers themselves; the host application calls ``setup_logger()`` once
(calling it again is harmless).
"""

import logging
import os
import sys

from store_asset_studio.config import LOG_LEVEL_ENV

_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warning": logging.WARNING,
    "error": logging.ERROR,
    "critical": logging.CRITICAL,
}


def setup_logger(level: int = logging.INFO, name: str = "store_asset_studio") -> logging.Logger:
    """Create or update the project logger.

    - The ``STORE_ASSET_STUDIO_LOG_LEVEL`` env var overrides *level* on every call.
    - Ensures there is exactly one stderr StreamHandler and refreshes its
      formatter instead of adding another.
    """
    logger = logging.getLogger(name)

    env_level = (os.getenv(LOG_LEVEL_ENV) or "").strip().lower()
    if env_level:
        level = _LEVELS.get(env_level, level)
    logger.setLevel(level)

    stream_handler = None
    for h in logger.handlers:
        if isinstance(h, logging.StreamHandler) and getattr(h, "stream", None) is sys.stderr:
            stream_handler = h
            break

    if stream_handler is None:
        stream_handler = logging.StreamHandler(stream=sys.stderr)
        logger.addHandler(stream_handler)

    stream_handler.setFormatter(logging.Formatter(
        fmt="[%(asctime)s] %(levelname)s: %(message)s",
        datefmt="%H:%M:%S",
    ))
    return logger
