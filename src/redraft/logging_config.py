"""Structured logging configuration for redraft.

Provides JSON-formatted logs for batch jobs and human-readable text for
interactive use. A contextvars-based run_id is automatically included in
every log record while a pipeline run is in progress.
"""

import contextvars
import json
import logging
import re
import sys
from datetime import datetime, timezone
from typing import Optional


# Shared contextvar: set by the pipeline for the duration of a run, read by the formatter.
run_id_var: contextvars.ContextVar[str] = contextvars.ContextVar("run_id", default="")


class _JsonFormatter(logging.Formatter):
    """Emit each log record as a single JSON line.

    Merges any ``extra`` fields from the record into the top-level object
    so callers can do ``logger.info("msg", extra={"batch": 3})`` and
    get ``{"batch": 3}`` alongside the standard fields.
    """

    # Keys that belong to the LogRecord itself and should not leak into output.
    _RESERVED = frozenset(logging.LogRecord("", 0, "", 0, "", (), None).__dict__.keys())

    def format(self, record: logging.LogRecord) -> str:
        payload: dict = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        rid = run_id_var.get("")
        if rid:
            payload["run_id"] = rid

        for key, value in record.__dict__.items():
            if key not in self._RESERVED and key not in payload:
                payload[key] = value

        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)

        return json.dumps(payload, default=str)


class _TextFormatter(logging.Formatter):
    """Human-readable lines, prefixed with the run id when one is set."""

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        rid = run_id_var.get("")
        return f"[{rid}] {line}" if rid else line


# ---------------------------------------------------------------------------
# Secret redaction: keeps API keys and bearer tokens out of log output
# ---------------------------------------------------------------------------

_SECRET_PATTERNS = [
    re.compile(r'\bsk-[a-zA-Z0-9]{20,}\b'),           # OpenAI keys
    re.compile(r'\bxai-[a-zA-Z0-9]{20,}\b'),           # xAI keys
    re.compile(r'\bkey-[a-zA-Z0-9]{20,}\b'),           # Generic API keys
    re.compile(r'(?i)(bearer\s+)[a-zA-Z0-9._\-]{20,}'),  # Bearer tokens
    re.compile(                                            # key=value secrets
        r'(?i)((?:api_key|apikey|secret|password|token|authorization)[=:]\s*)[^\s,\'"]{8,}'
    ),
]

_REDACTED = "***REDACTED***"


class _SecretFilter(logging.Filter):
    """Redact potential secrets from log messages and exception text."""

    def filter(self, record: logging.LogRecord) -> bool:
        if record.args:
            record.msg = record.getMessage()
            record.args = None
        record.msg = self._redact(str(record.msg))
        if record.exc_text:
            record.exc_text = self._redact(record.exc_text)
        return True

    @staticmethod
    def _redact(text: str) -> str:
        for pattern in _SECRET_PATTERNS:
            text = pattern.sub(
                lambda m: m.group(1) + _REDACTED if m.lastindex else _REDACTED,
                text,
            )
        return text


def setup_logging(log_level: Optional[str] = None, log_format: Optional[str] = None) -> None:
    """Configure application-wide logging.

    Logs go to stderr so that rewritten HTML written to stdout stays clean.

    Args:
        log_level: One of DEBUG, INFO, WARNING, ERROR, CRITICAL. Defaults to INFO.
        log_format: ``"json"`` for structured output, ``"text"`` for human-readable.
                    Defaults to ``"text"``.
    """
    level = (log_level or "INFO").upper()
    fmt = (log_format or "text").lower()

    handler = logging.StreamHandler(sys.stderr)
    handler.addFilter(_SecretFilter())

    if fmt == "json":
        handler.setFormatter(_JsonFormatter())
    else:
        handler.setFormatter(
            _TextFormatter(
                fmt="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
                datefmt="%Y-%m-%d %H:%M:%S",
            )
        )

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level)

    # httpx logs every request at INFO; one batch per line is too noisy.
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)

    logger = logging.getLogger(__name__)
    logger.debug("Logging configured", extra={"level": level, "format": fmt})
