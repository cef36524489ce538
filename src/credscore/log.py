"""credscore.log — Structured JSON logging for the credscore package."""

import logging

from pythonjsonlogger.json import JsonFormatter


def setup_structured_logging(level: str = "INFO") -> logging.Logger:
    """Configure JSON logging on the ``credscore`` logger (idempotent)."""
    logger = logging.getLogger("credscore")
    logger.setLevel(getattr(logging, level.upper(), logging.INFO))

    if not logger.handlers:
        handler = logging.StreamHandler()
        formatter = JsonFormatter(
            fmt="%(asctime)s %(levelname)s %(name)s %(message)s",
            rename_fields={"asctime": "timestamp", "levelname": "level"},
        )
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    return logger
