"""Logging configuration shared by the API server and the CLI."""

import logging

LOG_FORMAT = "[%(asctime)s] %(levelname)s %(name)s: %(message)s"
DATE_FORMAT = "%H:%M:%S"


def configure_logging(level: str | int = "INFO") -> None:
    """Install a timestamped stream handler on the package logger once."""
    logger = logging.getLogger("webpilot")
    logger.setLevel(level if isinstance(level, int) else level.upper())

    if not any(getattr(h, "_webpilot", False) for h in logger.handlers):
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT, DATE_FORMAT))
        handler._webpilot = True
        logger.addHandler(handler)
