"""JSON log lines for the query service.

Every record becomes one JSON object: a fixed header (time, level, logger,
service, host) followed by whatever the call site passed through ``extra``.
Keys matching a redaction pattern are masked at any nesting depth before the
line is written.
"""

from __future__ import annotations

import json
import logging
import os
import socket
import traceback
from datetime import datetime, timezone
from typing import Any, Iterable

REDACTED = "[REDACTED]"

# Present on every LogRecord; anything else arrived through ``extra``.
_RECORD_BUILTINS = frozenset(
    logging.LogRecord("", 0, "", 0, "", (), None).__dict__.keys()
) | {"message", "asctime", "taskName"}

# Driver chatter (connect/disconnect per query) drowns the request logs.
NOISY_LOGGERS = ("clickhouse_driver",)


class SensitiveDataFilter:
    def __init__(self, patterns: Iterable[str]):
        self.patterns = tuple(p.lower() for p in patterns)

    def _sensitive(self, key: str) -> bool:
        lowered = key.lower()
        return any(p in lowered for p in self.patterns)

    def redact(self, value: Any) -> Any:
        if isinstance(value, dict):
            return self.filter(value)
        if isinstance(value, (list, tuple)):
            return [self.redact(v) for v in value]
        return value

    def filter(self, data: dict) -> dict:
        return {
            k: REDACTED if self._sensitive(str(k)) else self.redact(v)
            for k, v in data.items()
        }


class CustomJsonFormatter(logging.Formatter):
    def __init__(
        self,
        service: str,
        environment: str,
        redaction_patterns: Iterable[str],
    ):
        super().__init__()
        self.header = {
            "service": service,
            "environment": environment,
            "hostname": socket.gethostname(),
            "pid": os.getpid(),
        }
        self.sensitive_filter = SensitiveDataFilter(redaction_patterns)

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "timestamp": datetime.fromtimestamp(
                record.created, tz=timezone.utc
            ).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            **self.header,
        }
        payload.update(
            (k, v)
            for k, v in record.__dict__.items()
            if k not in _RECORD_BUILTINS and k not in payload
        )
        if record.exc_info:
            payload["exception"] = self.format_exception(record.exc_info)
        return json.dumps(self.sensitive_filter.filter(payload), default=str)

    @staticmethod
    def format_exception(exc_info) -> dict:
        exc_type, exc, tb = exc_info
        return {
            "type": exc_type.__name__,
            "message": str(exc),
            "stack": traceback.format_tb(tb),
        }


def configure_logging(
    service: str,
    environment: str,
    level: str,
    redaction_patterns: Iterable[str],
) -> logging.Logger:
    """Route every logger through one JSON handler on stderr.

    Replaces existing root handlers so repeated calls never duplicate lines.
    """
    handler = logging.StreamHandler()
    handler.setFormatter(CustomJsonFormatter(service, environment, redaction_patterns))
    root = logging.getLogger()
    root.handlers = [handler]
    root_level = getattr(logging, level.upper(), logging.INFO)
    root.setLevel(root_level)
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(root_level, logging.WARNING))

    from shared.logging.logger import mark_configured

    mark_configured()
    return root


__all__ = [
    "CustomJsonFormatter",
    "configure_logging",
    "SensitiveDataFilter",
]
