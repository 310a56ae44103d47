"""
Logging configuration for the study cafe seating service.
"""

import json
import logging
import logging.config
import re
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional

from ..config import get_settings


def setup_logging(
    log_level: str = "INFO",
    log_file: Optional[str] = None,
    enable_json_logging: bool = False,
) -> None:
    """
    Set up application-wide logging.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Optional log file path
        enable_json_logging: Emit one JSON document per record
    """
    settings = get_settings()

    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)

    formatter = "json" if enable_json_logging else "detailed"
    record_filters = ["request_id", "sensitive_data"]

    config: Dict[str, Any] = {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "detailed": {
                "format": (
                    "%(asctime)s [%(levelname)s] %(name)s:%(lineno)d "
                    "[%(request_id)s] %(message)s"
                ),
                "datefmt": "%Y-%m-%d %H:%M:%S"
            },
            "json": {
                "()": "study_cafe_seating.utils.logging_config.JSONFormatter",
            }
        },
        "filters": {
            "request_id": {
                "()": "study_cafe_seating.utils.logging_config.RequestIDFilter"
            },
            "sensitive_data": {
                "()": "study_cafe_seating.utils.logging_config.SensitiveDataFilter"
            }
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "level": log_level,
                "formatter": formatter,
                "stream": sys.stdout,
                "filters": record_filters
            }
        },
        "loggers": {
            "study_cafe_seating": {
                "level": log_level,
                "handlers": ["console"],
                "propagate": False
            },
            "uvicorn": {
                "level": "INFO",
                "handlers": ["console"],
                "propagate": False
            },
            "uvicorn.access": {
                "level": "INFO",
                "handlers": ["console"],
                "propagate": False
            },
            "sqlalchemy.engine": {
                "level": "WARNING",
                "handlers": ["console"],
                "propagate": False
            },
            "redis": {
                "level": "WARNING",
                "handlers": ["console"],
                "propagate": False
            },
            "celery": {
                "level": "INFO",
                "handlers": ["console"],
                "propagate": False
            },
        },
        "root": {
            "level": log_level,
            "handlers": ["console"]
        }
    }

    if log_file:
        config["handlers"]["file"] = {
            "class": "logging.handlers.RotatingFileHandler",
            "level": log_level,
            "formatter": formatter,
            "filename": log_file,
            "maxBytes": 10 * 1024 * 1024,  # 10MB
            "backupCount": 5,
            "filters": record_filters
        }
        for logger_config in config["loggers"].values():
            logger_config["handlers"].append("file")
        config["root"]["handlers"].append("file")

    if settings.environment == "production":
        error_file = log_file.replace(".log", "_errors.log") if log_file else "logs/errors.log"
        Path(error_file).parent.mkdir(parents=True, exist_ok=True)
        config["handlers"]["error_file"] = {
            "class": "logging.handlers.RotatingFileHandler",
            "level": "ERROR",
            "formatter": formatter,
            "filename": error_file,
            "maxBytes": 10 * 1024 * 1024,
            "backupCount": 10,
            "filters": record_filters
        }
        config["loggers"]["study_cafe_seating"]["handlers"].append("error_file")

    logging.config.dictConfig(config)


class RequestIDFilter(logging.Filter):
    """Attach the current request ID to every record."""

    def filter(self, record):
        request_id = getattr(record, "request_id", None)

        if not request_id:
            try:
                from study_cafe_seating.middleware.logging import request_id_var
                request_id = request_id_var.get()
            except (ImportError, LookupError):
                request_id = "no-request-id"

        record.request_id = request_id or "no-request-id"
        return True


class SensitiveDataFilter(logging.Filter):
    """Mask tokens and entry passwords before records leave the process."""

    SENSITIVE_KEYS = {
        "password", "entry_password", "token", "secret", "authorization",
        "access_token", "api_key",
    }

    _BEARER = re.compile(r"(?i)bearer\s+[A-Za-z0-9._-]+")
    _LONG_TOKEN = re.compile(r"\b[A-Za-z0-9_-]{40,}\b")

    def filter(self, record):
        if isinstance(record.msg, str):
            record.msg = self._sanitize_string(record.msg)

        for key, value in list(record.__dict__.items()):
            if key.lower() in self.SENSITIVE_KEYS and value is not None:
                setattr(record, key, "***MASKED***")
            elif isinstance(value, dict):
                setattr(record, key, self._sanitize_data(value))

        return True

    def _sanitize_string(self, text: str) -> str:
        text = self._BEARER.sub("Bearer ***MASKED***", text)
        return self._LONG_TOKEN.sub("***MASKED***", text)

    def _sanitize_data(self, data):
        """Recursively mask sensitive keys."""
        if isinstance(data, dict):
            return {
                key: "***MASKED***" if str(key).lower() in self.SENSITIVE_KEYS
                else self._sanitize_data(value)
                for key, value in data.items()
            }
        if isinstance(data, (list, tuple)):
            return type(data)(self._sanitize_data(item) for item in data)
        return data


_RESERVED_ATTRS = {
    "name", "msg", "args", "levelname", "levelno", "pathname",
    "filename", "module", "lineno", "funcName", "created",
    "msecs", "relativeCreated", "thread", "threadName", "taskName",
    "processName", "process", "exc_info", "exc_text", "stack_info",
    "request_id", "message", "asctime",
}


class JSONFormatter(logging.Formatter):
    """JSON formatter for structured logging."""

    def format(self, record):
        log_entry = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        if hasattr(record, "request_id"):
            log_entry["request_id"] = record.request_id

        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)

        extra_fields = {
            key: value for key, value in record.__dict__.items()
            if key not in _RESERVED_ATTRS
        }
        if extra_fields:
            log_entry["extra"] = extra_fields

        return json.dumps(log_entry, default=str, ensure_ascii=False)


def log_business_event(event_type: str, details: Dict[str, Any], actor_id: Optional[str] = None):
    """Log a ledger state change (reserve, release, assign, ...)."""
    logger = logging.getLogger("study_cafe_seating.business")
    logger.info(
        f"Business event: {event_type}",
        extra={
            "event_type": event_type,
            "business_event": True,
            "actor_id": actor_id,
            **details
        }
    )


def log_security_event(event_type: str, details: Dict[str, Any], severity: str = "WARNING"):
    """Log authentication and authorization failures."""
    logger = logging.getLogger("study_cafe_seating.security")

    log_method = getattr(logger, severity.lower(), logger.warning)
    log_method(
        f"Security event: {event_type}",
        extra={
            "event_type": event_type,
            "security_event": True,
            "severity": severity,
            **details
        }
    )
