"""Process-wide logging setup."""

from __future__ import annotations

import logging
from logging.config import dictConfig

from app.security.logging_filters import SensitiveFilter


def configure_logging(level: str = "INFO") -> None:
    """Install console logging with correlation ids and redaction."""
    dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "filters": {
                "correlation_id": {
                    "()": "asgi_correlation_id.CorrelationIdFilter",
                    "uuid_length": 32,
                    "default_value": "-",
                },
                "sensitive": {"()": SensitiveFilter},
            },
            "formatters": {
                "console": {
                    "format": "%(asctime)s %(levelname)s [%(correlation_id)s] %(name)s: %(message)s",
                },
            },
            "handlers": {
                "console": {
                    "class": "logging.StreamHandler",
                    "filters": ["correlation_id", "sensitive"],
                    "formatter": "console",
                },
            },
            "loggers": {
                "app": {"level": level, "handlers": ["console"], "propagate": False},
                "uvicorn": {"level": level, "handlers": ["console"], "propagate": False},
            },
        }
    )
    for _logger_name in ("uvicorn.access", "uvicorn.error"):
        _logger = logging.getLogger(_logger_name)
        if not any(isinstance(flt, SensitiveFilter) for flt in _logger.filters):
            _logger.addFilter(SensitiveFilter())
