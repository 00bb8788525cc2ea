import logging
import logging.config
from typing import Dict, Any

from wikicontent.config import LOG_LEVEL

# Structured JSON logging configuration.
LOGGING_CONFIG: Dict[str, Any] = {
    "version": 1,
    "disable_existing_loggers": False,
    "filters": {
        "correlation_id": {
            "()": "asgi_correlation_id.CorrelationIdFilter",
            "uuid_length": 32,
            "default_value": "-",
        },
    },
    "formatters": {
        "json": {
            "()": "pythonjsonlogger.json.JsonFormatter",
            "format": "%(asctime)s %(levelname)s [%(correlation_id)s] %(name)s: %(message)s",
        },
    },
    "handlers": {
        "default": {
            "class": "logging.StreamHandler",
            "formatter": "json",
            "filters": ["correlation_id"],
            "level": "INFO",
        },
    },
    "loggers": {
        "fastapi": {"handlers": ["default"], "level": "INFO", "propagate": False},
        "uvicorn": {"handlers": ["default"], "level": "INFO", "propagate": False},
        "wikicontent": {"handlers": ["default"], "level": "INFO", "propagate": False},
    },
}

# Package-wide logger; handlers are attached by setup_logging.
logger = logging.getLogger("wikicontent")

def setup_logging(level: str = LOG_LEVEL) -> None:
    """
    Applies the logging configuration from the LOGGING_CONFIG dictionary.
    `level` applies to the package logger and its handler; framework loggers
    stay at INFO.
    """
    LOGGING_CONFIG["handlers"]["default"]["level"] = level
    LOGGING_CONFIG["loggers"]["wikicontent"]["level"] = level
    logging.config.dictConfig(LOGGING_CONFIG)
