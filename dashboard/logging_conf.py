"""Logging setup shared by the CLI and the API server."""
import logging
import sys

from dashboard.config import config

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def setup_logging(level: str | None = None) -> None:
    """Configure root logging once, from LOG_LEVEL unless overridden."""
    level_name = (level or config.LOG_LEVEL or "INFO").upper()
    logging.basicConfig(
        level=getattr(logging, level_name, logging.INFO),
        format=LOG_FORMAT,
        stream=sys.stdout,
        force=True,
    )
    # httpx logs every request line at INFO, including query strings
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
