"""Logging setup for the Concierge API.

Configures the root logger from the environment:

- LOG_LEVEL: level name (default INFO)
- LOG_JSON: ``true`` for one JSON object per line

A filter masks listing secrets (door codes, Wi-Fi passwords) and credentials
when they are passed to a log call inside a mapping argument.
"""

from __future__ import annotations

import json
import logging
import os
from typing import Any

SENSITIVE_KEYS = {
    "door_code",
    "doorcode",
    "wifi_password",
    "wifipassword",
    "password",
    "api_key",
    "token",
    "authorization",
}

MASK = "***"

_HANDLER_NAME = "concierge"


class JsonFormatter(logging.Formatter):
    """Minimal JSON log formatter used when LOG_JSON=true."""

    def format(self, record: logging.LogRecord) -> str:
        log_record = {
            "level": record.levelname,
            "time": self.formatTime(record, "%Y-%m-%dT%H:%M:%S"),
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            log_record["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(log_record, ensure_ascii=False)


def scrub(data: Any) -> Any:
    """Recursively mask sensitive keys in mappings and sequences."""
    if isinstance(data, dict):
        return {
            k: (MASK if str(k).lower() in SENSITIVE_KEYS else scrub(v)) for k, v in data.items()
        }
    if isinstance(data, (list, tuple)):
        return type(data)(scrub(v) for v in data)
    return data


class SecretMaskingFilter(logging.Filter):
    """Mask sensitive values in log record arguments."""

    def filter(self, record: logging.LogRecord) -> bool:
        if isinstance(record.args, dict):
            record.args = scrub(record.args)
        elif isinstance(record.args, tuple):
            record.args = tuple(scrub(arg) for arg in record.args)
        return True


def _get_formatter(log_json: bool) -> logging.Formatter:
    if log_json:
        return JsonFormatter()
    return logging.Formatter("[%(asctime)s] %(levelname)s in %(name)s: %(message)s")


def init_logging() -> None:
    """Install the Concierge handler on the root logger (idempotent)."""
    log_level_str = os.getenv("LOG_LEVEL", "INFO").upper()
    log_json = os.getenv("LOG_JSON", "false").lower() == "true"
    log_level = getattr(logging, log_level_str, logging.INFO)

    root = logging.getLogger()
    root.setLevel(log_level)

    handler = next((h for h in root.handlers if h.get_name() == _HANDLER_NAME), None)
    if handler is None:
        handler = logging.StreamHandler()
        handler.set_name(_HANDLER_NAME)
        handler.addFilter(SecretMaskingFilter())
        root.addHandler(handler)

    handler.setFormatter(_get_formatter(log_json))
    handler.setLevel(log_level)
