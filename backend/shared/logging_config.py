"""
Logging setup shared by the API server and the command-line tools.

Modules log through ``logging.getLogger(__name__)``; this module only
installs the root handler once.
"""

import logging
from typing import Optional

from .config import get_settings

LOG_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

_configured = False


def configure_logging(level: Optional[str] = None) -> None:
    """
    Configure root logging.

    Args:
        level: Level name (e.g. "DEBUG"). Defaults to LOG_LEVEL from settings.
    """
    global _configured

    level_name = (level or get_settings().log_level).upper()
    root = logging.getLogger()
    root.setLevel(level_name)

    if _configured:
        return

    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))
    root.addHandler(handler)

    # httpx logs every request at INFO, which drowns out the CLI output
    logging.getLogger("httpx").setLevel(logging.WARNING)
    _configured = True
