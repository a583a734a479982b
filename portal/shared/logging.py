"""
Logging setup for the portal API and CLI.

One stdout handler with a pipe-separated format, installed by the app
lifespan and by the CLI before any command runs. Passwords, password
hashes, session cookies and unmasked database URLs are never logged.
"""

import logging
import sys

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Request-per-line loggers; the portal logs state changes itself.
QUIET_LOGGERS = (
    "uvicorn.access",
    "uvicorn.error",
    "sqlalchemy.engine",
    "httpx",
    "multipart",
)


def configure_logging(level: str = "INFO") -> None:
    """Install the portal log handler on the root logger.

    Args:
        level: Level name (DEBUG, INFO, WARNING, ERROR). Unknown names
            fall back to INFO.
    """
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format=LOG_FORMAT,
        datefmt=LOG_DATE_FORMAT,
        stream=sys.stdout,
        force=True,
    )
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
