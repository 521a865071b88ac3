"""
Logging setup for the API process.

All modules log through `logging.getLogger(__name__)`. The feature packages
are top-level packages (`core`, `media`, `products`, ...), so the handler is
attached to the root logger; uvicorn's own loggers keep their handlers.
"""

from __future__ import annotations

import logging
import sys

_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

_HANDLER_NAME = "storefront"


def setup_logging(level: str = "INFO") -> None:
    """
    Install a single stderr handler on the root logger.

    Safe to call more than once (lifespan restarts, tests): the handler is
    only added the first time, later calls just update the level.
    """
    root = logging.getLogger()
    root.setLevel(getattr(logging, level.upper(), logging.INFO))

    if any(h.get_name() == _HANDLER_NAME for h in root.handlers):
        return

    handler = logging.StreamHandler(sys.stderr)
    handler.set_name(_HANDLER_NAME)
    handler.setFormatter(logging.Formatter(_FORMAT, datefmt=_DATE_FORMAT))
    root.addHandler(handler)
