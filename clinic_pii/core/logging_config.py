"""
Logging Configuration Module.

This module provides the central logging configuration for the PII protection
layer. Every handler carries a sanitizing filter so that an email address or
phone number that slips into a log message is masked before it is written.
"""

import copy
import logging
import logging.config
import re
from pathlib import Path
from typing import Any

_EMAIL_PATTERN = re.compile(r"[^\s@]+@[^\s@]+\.[^\s@]+")
_DIGIT_RUN_PATTERN = re.compile(r"\+?\d[\d\s\-()]{6,}\d")
# Record ids are left readable so log lines can be correlated
_UUID_PATTERN = re.compile(
    r"\b[0-9a-fA-F]{8}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{12}\b"
)


def _mask(segment: str) -> str:
    segment = _EMAIL_PATTERN.sub("[REDACTED EMAIL]", segment)
    return _DIGIT_RUN_PATTERN.sub("[REDACTED NUMBER]", segment)


class PIISanitizingFilter(logging.Filter):
    """Logging filter that masks emails and long digit runs in log records."""

    def __init__(self, name: str = "PIISanitizer"):
        super().__init__(name)

    @staticmethod
    def sanitize(text: str) -> str:
        parts = []
        position = 0
        for match in _UUID_PATTERN.finditer(text):
            parts.append(_mask(text[position : match.start()]))
            parts.append(match.group())
            position = match.end()
        parts.append(_mask(text[position:]))
        return "".join(parts)

    def filter(self, record: logging.LogRecord) -> bool:
        try:
            message = record.getMessage()
        except (TypeError, ValueError):
            # Leave the record as is; the handler reports the formatting error
            return True
        # Bake args into msg so formatters see the sanitized text only
        record.msg = self.sanitize(message)
        record.args = ()
        return True


LOGGING_CONFIG_BASE: dict[str, Any] = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "standard": {
            "format": "[%(asctime)s] [%(levelname)s] [%(name)s] - %(message)s",
            "datefmt": "%Y-%m-%d %H:%M:%S",
        },
        "detailed": {
            "format": "[%(asctime)s] [%(levelname)s] [%(name)s:%(lineno)d] - %(message)s",
            "datefmt": "%Y-%m-%d %H:%M:%S",
        },
    },
    "filters": {
        "pii_sanitizer": {
            "()": "clinic_pii.core.logging_config.PIISanitizingFilter",
        }
    },
    "handlers": {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "standard",
            "filters": ["pii_sanitizer"],
            "stream": "ext://sys.stdout",
        },
    },
    "loggers": {
        "clinic_pii": {
            "handlers": ["console"],
            "propagate": False,
        },
        "sqlalchemy.engine": {
            "level": "WARNING",
            "handlers": ["console"],
            "propagate": False,
        },
        "botocore": {
            "level": "WARNING",
            "handlers": ["console"],
            "propagate": False,
        },
    },
}


def build_logging_config(log_level: str = "INFO", log_dir: str | None = None) -> dict[str, Any]:
    """
    Build a concrete logging configuration for the given level.

    Args:
        log_level: Level applied to the console handler and the package logger
        log_dir: Optional directory; when given, a rotating file handler is added

    Returns:
        A dictionary suitable for ``logging.config.dictConfig``
    """
    config = copy.deepcopy(LOGGING_CONFIG_BASE)
    config["handlers"]["console"]["level"] = log_level
    config["loggers"]["clinic_pii"]["level"] = log_level

    if log_dir:
        config["handlers"]["file_handler"] = {
            "class": "logging.handlers.RotatingFileHandler",
            "level": log_level,
            "formatter": "detailed",
            "filters": ["pii_sanitizer"],
            "filename": str(Path(log_dir) / "clinic_pii.log"),
            "maxBytes": 10485760,  # 10MB
            "backupCount": 10,
            "encoding": "utf8",
        }
        config["loggers"]["clinic_pii"]["handlers"].append("file_handler")

    return config


def setup_logging(log_level: str = "INFO", log_dir: str | None = None) -> None:
    """
    Configure the logging system for the package.

    Args:
        log_level: Level name, usually ``Settings.LOG_LEVEL``
        log_dir: Optional directory for the rotating file handler
    """
    if log_dir:
        Path(log_dir).mkdir(parents=True, exist_ok=True)

    logging.config.dictConfig(build_logging_config(log_level, log_dir))

    logger = logging.getLogger(__name__)
    logger.debug("Logging configured successfully")
