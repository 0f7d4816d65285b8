"""
Structured logging for the call quality analyzer.

Every record is written to stderr as one JSON object so stdout stays free
for the report payload. Transcript and reply text never reach the log:
the formatter drops known free-text keys from the ``data`` context.
"""
import json
import logging
import os
import sys
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, Optional

LOG_LEVEL_ENV_VAR = "CALLQA_LOG_LEVEL"
VALID_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")

# Keys whose values may contain call content
REDACTED_DATA_KEYS = frozenset({"transcript", "prompt", "reply", "raw_reply", "raw_text"})

_CONTEXT_FIELDS = ("component", "step", "data", "duration_ms")


def new_execution_id() -> str:
    return uuid.uuid4().hex[:8]


def _redact(data: Dict[str, Any]) -> Dict[str, Any]:
    return {
        key: ("<redacted>" if key in REDACTED_DATA_KEYS else value)
        for key, value in data.items()
    }


class JSONFormatter(logging.Formatter):
    """Formats a record as a single JSON line."""

    def __init__(self, execution_id: Optional[str] = None):
        super().__init__()
        self.execution_id = execution_id or new_execution_id()

    def format(self, record: logging.LogRecord) -> str:
        entry: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "execution_id": self.execution_id,
        }

        for field in _CONTEXT_FIELDS:
            value = getattr(record, field, None)
            if value is None:
                continue
            entry[field] = _redact(value) if field == "data" and isinstance(value, dict) else value

        if record.exc_info and record.exc_info[1] is not None:
            error = record.exc_info[1]
            entry["error"] = {
                "type": type(error).__name__,
                "message": str(error),
                "traceback": self.formatException(record.exc_info),
            }
            reason = getattr(error, "reason", None)
            if reason:
                entry["error"]["reason"] = reason

        return json.dumps(entry, ensure_ascii=False, default=str)


class _AnalyzerHandler(logging.StreamHandler):
    """Marker type so reconfiguration only replaces our own handler."""


def resolve_log_level(cli_level: Optional[str] = None, verbose: bool = False,
                      default: str = "INFO") -> str:
    """
    Pick the effective log level.

    Priority: --verbose, --log-level, the CALLQA_LOG_LEVEL environment
    variable, then ``default`` (analyzer.yaml when called from main.py).
    Unknown names fall back to INFO.
    """
    if verbose:
        return "DEBUG"
    level = (cli_level or os.getenv(LOG_LEVEL_ENV_VAR) or default or "INFO").upper()
    return level if level in VALID_LOG_LEVELS else "INFO"


def setup_analyzer_logging(log_level: Optional[str] = None, verbose: bool = False,
                           execution_id: Optional[str] = None, default_level: str = "INFO") -> str:
    """
    Install the JSON stderr handler on the root logger.

    Safe to call repeatedly: a previously installed analyzer handler is
    replaced and the level is updated. Returns the effective level name.
    """
    level_name = resolve_log_level(log_level, verbose, default_level)
    level = getattr(logging, level_name)

    handler = _AnalyzerHandler(sys.stderr)
    handler.setFormatter(JSONFormatter(execution_id=execution_id))
    handler.setLevel(level)

    root_logger = logging.getLogger()
    for existing in root_logger.handlers[:]:
        if isinstance(existing, _AnalyzerHandler):
            root_logger.removeHandler(existing)
    root_logger.addHandler(handler)
    root_logger.setLevel(level)

    return level_name


def log_with_context(logger: logging.Logger, level: int, message: str,
                     exc_info=None, **context) -> None:
    """Log ``message`` with the non-empty context fields attached to the record."""
    if not logger.isEnabledFor(level):
        return
    extra = {key: value for key, value in context.items() if value is not None and key in _CONTEXT_FIELDS}
    logger.log(level, message, exc_info=exc_info, extra=extra)


def log_step_start(logger: logging.Logger, component: str, step: str, message: str,
                   data: Dict[str, Any] = None) -> None:
    log_with_context(logger, logging.INFO, message, component=component, step=step, data=data)


def log_step_complete(logger: logging.Logger, component: str, step: str, message: str,
                      data: Dict[str, Any] = None, duration_ms: float = None) -> None:
    log_with_context(
        logger, logging.INFO, message,
        component=component, step=step, data=data, duration_ms=duration_ms
    )


def log_debug(logger: logging.Logger, message: str, component: str = None,
              data: Dict[str, Any] = None) -> None:
    log_with_context(logger, logging.DEBUG, message, component=component, data=data)


def log_error(logger: logging.Logger, message: str, component: str = None,
              error: Exception = None) -> None:
    """Log at ERROR; the traceback is attached when ``error`` is given."""
    exc_info = (type(error), error, error.__traceback__) if error else None
    log_with_context(logger, logging.ERROR, message, exc_info=exc_info, component=component)
