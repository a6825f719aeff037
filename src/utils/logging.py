"""JSON log lines for the service: one object per record, extras inlined."""

import json
import logging
from datetime import datetime, timezone
from typing import Any

# Attribute names every LogRecord carries; anything else came in via extra=
_RECORD_ATTRS = frozenset(
    vars(logging.LogRecord('', logging.INFO, '', 0, '', (), None))
) | {'message', 'asctime', 'taskName'}


class JSONFormatter(logging.Formatter):
    """Render a record as a single JSON object."""

    def format(self, record: logging.LogRecord) -> str:
        created = datetime.fromtimestamp(record.created, timezone.utc)
        entry: dict[str, Any] = {
            "timestamp": created.isoformat().replace('+00:00', 'Z'),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        if record.stack_info:
            entry["stack"] = self.formatStack(record.stack_info)

        entry.update(
            (key, value) for key, value in vars(record).items()
            if key not in _RECORD_ATTRS and not callable(value)
        )
        return json.dumps(entry, default=str)


def setup_structured_logging(level: str = "INFO", log_file: str | None = None):
    """Send JSON log lines to stderr, and to log_file when given.

    Replaces the root logger's handlers and quiets uvicorn's access log,
    since requests are logged by api.middleware.request_logging.
    """
    formatter = JSONFormatter()
    handlers: list[logging.Handler] = [logging.StreamHandler()]
    if log_file:
        handlers.append(logging.FileHandler(log_file, encoding="utf-8"))
    for handler in handlers:
        handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.setLevel(level.upper())
    root_logger.handlers = handlers

    uvicorn_access = logging.getLogger("uvicorn.access")
    uvicorn_access.handlers = handlers
    uvicorn_access.setLevel(logging.WARNING)
