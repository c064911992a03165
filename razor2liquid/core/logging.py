"""
Logging for the converter.

Library modules ask for a logger with ``get_logger`` or, when their records
should carry fixed fields such as the component or template being
converted, with ``get_context_logger``. Only the CLI calls
``setup_logging``.

Context fields travel on the record as ``extra_data``. The JSON formatter
writes them as top-level keys; the text formatter appends them as
``key=value`` pairs::

    WARNING razor2liquid.router: Template problem: ... [component=router line=4]
"""

import json
import logging
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional

from .config import Settings, get_settings

# Third-party loggers that are only interesting when debugging them
NOISY_LOGGERS = ("lark",)


def _context_of(record: logging.LogRecord) -> Dict[str, Any]:
    return dict(getattr(record, "extra_data", None) or {})


class StructuredFormatter(logging.Formatter):
    """One JSON object per record, context fields at top level"""

    def format(self, record: logging.LogRecord) -> str:
        entry: Dict[str, Any] = {
            "time": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        entry.update(_context_of(record))
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


class TextFormatter(logging.Formatter):
    """Single-line records for the terminal"""

    def __init__(self):
        super().__init__(fmt="%(levelname)s %(name)s: %(message)s")

    def format(self, record: logging.LogRecord) -> str:
        text = super().format(record)
        context = _context_of(record)
        if not context:
            return text
        fields = " ".join(f"{key}={value}" for key, value in context.items())
        # Keep a traceback below the context, not after it
        first, newline, rest = text.partition("\n")
        return f"{first} [{fields}]{newline}{rest}"


def _handler(handler: logging.Handler, formatter: logging.Formatter,
             level: int) -> logging.Handler:
    handler.setFormatter(formatter)
    handler.setLevel(level)
    return handler


def setup_logging(settings: Optional[Settings] = None) -> None:
    """
    Configure the root logger from settings.

    Records go to stderr so that anything the CLI prints on stdout stays
    clean; ``LOG_FILE`` adds a second handler with the same format.
    """
    settings = settings or get_settings()
    level = logging.getLevelName(settings.LOG_LEVEL.upper())
    if not isinstance(level, int):
        level = logging.INFO

    formatter: logging.Formatter
    if settings.LOG_FORMAT == "json":
        formatter = StructuredFormatter()
    else:
        formatter = TextFormatter()

    handlers = [_handler(logging.StreamHandler(sys.stderr), formatter, level)]
    if settings.LOG_FILE:
        log_path = Path(settings.LOG_FILE)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(_handler(logging.FileHandler(log_path, encoding="utf-8"), formatter, level))

    logging.basicConfig(level=level, handlers=handlers, force=True)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


class ContextLogger(logging.LoggerAdapter):
    """
    Logger adapter with fixed context fields.

    Each call may add more fields with ``extra_data={...}``; they are merged
    over the fixed ones for that record only.
    """

    def process(self, msg: str, kwargs: Dict[str, Any]) -> tuple:
        context = {**self.extra, **kwargs.pop("extra_data", {})}
        kwargs.setdefault("extra", {})["extra_data"] = context
        return msg, kwargs

    def bind(self, **context: Any) -> "ContextLogger":
        """A logger with ``context`` added to the fixed fields."""
        return ContextLogger(self.logger, {**self.extra, **context})


def get_context_logger(name: str, **context: Any) -> ContextLogger:
    return ContextLogger(get_logger(name), context)
