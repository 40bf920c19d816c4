"""
Logging setup shared by the service modules and the import script.

Format: 2026-01-06T14:05:52Z [namematch] INFO message
"""

import logging
import sys
import time
from typing import Optional

from config import LOG_LEVEL

_HANDLER_NAME = "namematch"


class ISO8601Formatter(logging.Formatter):
    """UTC timestamps, source tag in brackets."""

    converter = time.gmtime

    def __init__(self, source: str = "namematch"):
        super().__init__(
            fmt=f"%(asctime)s [{source}] %(levelname)s %(message)s",
            datefmt="%Y-%m-%dT%H:%M:%SZ",
        )


def configure_logging(level: Optional[str] = None, source: str = "namematch") -> None:
    """Install a single stderr handler on the root logger.

    Calling it again only adjusts the level.
    """
    root = logging.getLogger()
    root.setLevel((level or LOG_LEVEL).upper())

    if any(h.get_name() == _HANDLER_NAME for h in root.handlers):
        return

    handler = logging.StreamHandler(sys.stderr)
    handler.set_name(_HANDLER_NAME)
    handler.setFormatter(ISO8601Formatter(source))
    root.addHandler(handler)

    # the engine logs every statement at INFO when echo is on
    logging.getLogger("aiosqlite").setLevel(logging.WARNING)
