# backend/invigilation/logging_config.py
import logging
from typing import Any, Dict


class RequestIdFilter(logging.Filter):
    def filter(self, record):
        # Provide a default request_id if not already set
        if not hasattr(record, "request_id"):
            record.request_id = "no-request-id"
        return True


class CoverageRunFilter(logging.Filter):
    """Tags records from the coverage engine and service with a run id field."""

    def filter(self, record):
        if not hasattr(record, "run_id"):
            record.run_id = "-"
        return True


LOGGING_CONFIG: Dict[str, Any] = {
    "version": 1,
    "disable_existing_loggers": False,
    "filters": {
        "request_id_filter": {
            "()": RequestIdFilter,
        },
        "coverage_run_filter": {
            "()": CoverageRunFilter,
        },
    },
    "formatters": {
        "default": {
            "()": "uvicorn.logging.DefaultFormatter",
            "fmt": "%(levelprefix)s %(asctime)s [%(name)s] [%(request_id)s] %(message)s",
            "datefmt": "%Y-%m-%d %H:%M:%S",
        },
        "access": {
            "()": "uvicorn.logging.AccessFormatter",
            "fmt": '%(levelprefix)s %(asctime)s [%(name)s] [%(request_id)s] %(client_addr)s - "%(request_line)s" %(status_code)s',
            "datefmt": "%Y-%m-%d %H:%M:%S",
        },
        "coverage": {
            "format": "%(levelname)s %(asctime)s [%(name)s] [run %(run_id)s] %(message)s",
            "datefmt": "%Y-%m-%d %H:%M:%S",
        },
        # Tracebacks go through this one
        "detailed": {
            "format": "%(levelname)s %(asctime)s [%(name)s] [%(module)s:%(lineno)d] - %(message)s",
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
        "coverage": {
            "formatter": "coverage",
            "class": "logging.StreamHandler",
            "stream": "ext://sys.stdout",
            "filters": ["coverage_run_filter"],
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
        "coverage_engine": {
            "handlers": ["coverage", "error"],
            "level": "INFO",
            "propagate": False,
        },
        "backend": {
            "handlers": ["default", "error"],
            "level": "DEBUG",
            "propagate": False,
        },
    },
}
