"""
Logging setup for the Kargo API.

Log followers run on their own threads, so records carry the thread name
(``kargo-logs-<namespace>-<pod>``). Health checks hitting ``/health`` are
dropped from the access log, and the HTTP client libraries are kept at
WARNING so every cluster request does not produce a line.
"""

import logging
import logging.config
from typing import Any, Dict

HEALTH_PATHS = frozenset({"/health"})

# Libraries that log each request at INFO or DEBUG
QUIET_LOGGERS = ("httpx", "httpcore")


class HealthCheckFilter(logging.Filter):
    """Drops uvicorn access records for health check requests."""

    def filter(self, record: logging.LogRecord) -> bool:
        if record.name != "uvicorn.access":
            return True
        # uvicorn passes (client, method, path, http_version, status)
        args = record.args
        if isinstance(args, tuple) and len(args) >= 3:
            method, path = args[1], str(args[2]).split("?", 1)[0]
            return not (method == "GET" and path in HEALTH_PATHS)
        return True


def get_logging_config(level: str = "INFO") -> Dict[str, Any]:
    """dictConfig mapping for uvicorn and the ``kargo`` loggers."""
    loggers: Dict[str, Any] = {
        "uvicorn": {"handlers": ["default"], "level": "INFO", "propagate": False},
        "uvicorn.error": {"handlers": ["default"], "level": "INFO", "propagate": False},
        "uvicorn.access": {"handlers": ["access"], "level": "INFO", "propagate": False},
        "kargo": {"handlers": ["default"], "level": level, "propagate": False},
    }
    for name in QUIET_LOGGERS:
        loggers[name] = {"handlers": ["default"], "level": "WARNING", "propagate": False}

    return {
        "version": 1,
        "disable_existing_loggers": False,
        "filters": {"health_checks": {"()": HealthCheckFilter}},
        "formatters": {
            "default": {
                "format": "%(asctime)s - %(name)s - %(levelname)s - [%(threadName)s] %(message)s"
            },
            "access": {"format": "%(message)s"},
        },
        "handlers": {
            "default": {
                "class": "logging.StreamHandler",
                "formatter": "default",
                "stream": "ext://sys.stdout",
            },
            "access": {
                "class": "logging.StreamHandler",
                "formatter": "access",
                "stream": "ext://sys.stdout",
                "filters": ["health_checks"],
            },
        },
        "loggers": loggers,
        "root": {"level": level, "handlers": ["default"]},
    }


def configure_logging(level: str = "INFO") -> None:
    """Apply the logging configuration process-wide."""
    logging.config.dictConfig(get_logging_config(level))
