"""
Structured logging setup for Wealth Strategist.

Call ``configure_logging(config)`` once at CLI entry (before any pipeline work)
to set up the root logger with the configured level and optional file handler.

All internal modules use ``logging.getLogger(__name__)``; never call
``configure_logging`` or ``basicConfig`` from within library code.

JSON format (set ``json_format = true`` in config/default.toml [logging]):
  Emits one JSON object per line::

    {"ts": "2026-02-24T15:00:00Z", "level": "WARNING",
     "logger": "wealth_strategist.scoring.safeguards", "msg": "...",
     "user_id": "u-100"}

Run context
-----------
``run_context(user_id=...)`` tags every record logged inside the block,
including records from analyzer and collector worker threads, through the
``RunContextFilter`` installed on each handler.
"""

from __future__ import annotations

import contextvars
import json
import logging
import sys
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import TYPE_CHECKING, Any, Iterator

if TYPE_CHECKING:
    from wealth_strategist.config import LoggingConfig

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%dT%H:%M:%SZ"

# Attributes every LogRecord carries; anything else came in via extra=.
_STANDARD_ATTRS = frozenset(
    logging.LogRecord("", 0, "", 0, "", None, None).__dict__
) | {"message", "asctime"}

_RUN_CONTEXT: contextvars.ContextVar[dict[str, Any]] = contextvars.ContextVar(
    "wealth_strategist_run_context", default={}
)


@contextmanager
def run_context(**fields: Any) -> Iterator[None]:
    """Attach ``fields`` to every log record emitted inside the block.

    Nested blocks add to (and may override) the enclosing fields; the outer
    fields are restored on exit.
    """
    token = _RUN_CONTEXT.set({**_RUN_CONTEXT.get(), **fields})
    try:
        yield
    finally:
        _RUN_CONTEXT.reset(token)


class RunContextFilter(logging.Filter):
    """Copy the active run-context fields onto each record.

    Fields already set through ``extra=`` win.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        for key, val in _RUN_CONTEXT.get().items():
            if not hasattr(record, key):
                setattr(record, key, val)
        return True


class _JsonFormatter(logging.Formatter):
    """Emit one JSON object per log line.

    Fields: ``ts``, ``level``, ``logger``, ``msg``.
    Extra fields from ``extra=`` kwargs and the run context are included at
    the top level.
    """

    def format(self, record: logging.LogRecord) -> str:
        payload: dict = {
            "ts": datetime.fromtimestamp(record.created, tz=timezone.utc).strftime(
                LOG_DATE_FORMAT
            ),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        if record.exc_info:
            payload["exc"] = self.formatException(record.exc_info)
        for key, val in record.__dict__.items():
            if key not in _STANDARD_ATTRS and not key.startswith("_"):
                payload[key] = val
        return json.dumps(payload, default=str)


def configure_logging(config: "LoggingConfig") -> None:
    """Configure the root logger from a ``LoggingConfig`` instance.

    Sets up:
      - StreamHandler (stdout) at the configured level.
      - Optional FileHandler if ``config.log_file`` is set.
      - JSON line format if ``config.json_format`` is ``True``.
      - A ``RunContextFilter`` on every handler.

    Args:
        config: Logging configuration section from ``AppConfig``.
    """
    level = getattr(logging, config.level.upper(), logging.INFO)

    formatter: logging.Formatter
    if config.json_format:
        formatter = _JsonFormatter()
    else:
        formatter = logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT)

    context_filter = RunContextFilter()
    handlers: list[logging.Handler] = []

    console = logging.StreamHandler(sys.stdout)
    console.setLevel(level)
    console.setFormatter(formatter)
    console.addFilter(context_filter)
    handlers.append(console)

    if config.log_file:
        log_path = Path(config.log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_path, encoding="utf-8")
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        file_handler.addFilter(context_filter)
        handlers.append(file_handler)

    logging.basicConfig(level=level, handlers=handlers, force=True)
