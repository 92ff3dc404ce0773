# backend/app/logging_config.py
import logging
from typing import Any, Dict


class RequestIdFilter(logging.Filter):
    def filter(self, record):
        # Provide a default request_id if not already set
        if not hasattr(record, "request_id"):
            record.request_id = "no-request-id"
        return True


DEFAULT_FORMAT = "%(levelprefix)s %(asctime)s [%(name)s] [%(request_id)s] %(message)s"
ACCESS_FORMAT = (
    "%(levelprefix)s %(asctime)s [%(name)s] [%(request_id)s] "
    '%(client_addr)s - "%(request_line)s" %(status_code)s'
)
DETAILED_FORMAT = (
    "%(levelname)s %(asctime)s [%(name)s] [%(module)s:%(lineno)d] - %(message)s"
)


LOGGING_CONFIG: Dict[str, Any] = {
    "version": 1,
    "disable_existing_loggers": False,
    "filters": {
        "request_id_filter": {
            "()": RequestIdFilter,
        },
    },
    "formatters": {
        "default": {
            "()": "uvicorn.logging.DefaultFormatter",
            "fmt": DEFAULT_FORMAT,
            "datefmt": "%Y-%m-%d %H:%M:%S",
        },
        "access": {
            "()": "uvicorn.logging.AccessFormatter",
            "fmt": ACCESS_FORMAT,
            "datefmt": "%Y-%m-%d %H:%M:%S",
        },
        # Tracebacks are appended by the formatter itself
        "detailed": {
            "format": DETAILED_FORMAT,
            "datefmt": "%Y-%m-%d %H:%M:%S",
        },
    },
    "handlers": {
        "default": {
            "formatter": "default",
            "class": "logging.StreamHandler",
            "stream": "ext://sys.stdout",
            "filters": ["request_id_filter"],
        },
        "access": {
            "formatter": "access",
            "class": "logging.StreamHandler",
            "stream": "ext://sys.stdout",
            "filters": ["request_id_filter"],
        },
        "error": {
            "formatter": "detailed",
            "class": "logging.StreamHandler",
            "stream": "ext://sys.stderr",
            "level": "ERROR",
            "filters": ["request_id_filter"],
        },
    },
    "loggers": {
        "": {
            "handlers": ["default", "error"],
            "level": "INFO",
        },
        "uvicorn.access": {
            "handlers": ["access"],
            "level": "INFO",
            "propagate": False,
        },
        "backend": {
            "handlers": ["default", "error"],
            "level": "DEBUG",
            "propagate": False,
        },
        # The engine attaches its own stream handler; keep it out of the root
        "preflight_engine": {
            "level": "INFO",
            "propagate": False,
        },
    },
}


def build_logging_config(level: str = "INFO") -> Dict[str, Any]:
    """LOGGING_CONFIG with the application loggers set to ``level``."""
    config = {
        **LOGGING_CONFIG,
        "loggers": {name: dict(v) for name, v in LOGGING_CONFIG["loggers"].items()},
    }
    config["loggers"]["backend"]["level"] = level.upper()
    config["loggers"]["preflight_engine"]["level"] = level.upper()
    return config
