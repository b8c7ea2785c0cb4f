"""
Logging setup shared by the API process and the Celery worker.
"""

import logging
import logging.config
from typing import Any, Dict


LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)-32s | %(message)s"


def configure_logging(level: str = "INFO") -> None:
    """
    Apply the console logging configuration.

    Args:
        level: Root logging level (DEBUG, INFO, WARNING, ERROR)
    """
    config: Dict[str, Any] = {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "detailed": {
                "format": LOG_FORMAT,
                "datefmt": "%Y-%m-%d %H:%M:%S",
            },
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "level": level,
                "formatter": "detailed",
                "stream": "ext://sys.stdout",
            },
        },
        "loggers": {
            "": {"level": level, "handlers": ["console"]},
            # Request logs from the HTTP clients are too chatty at INFO
            "httpx": {"level": "WARNING"},
            "openai": {"level": "WARNING"},
        },
    }
    logging.config.dictConfig(config)
    logging.getLogger(__name__).info(f"Logging configured - Level: {level}")
