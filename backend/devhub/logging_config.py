"""Log output for DevHub: readable lines locally, one JSON object per line in production."""

import json
import logging
import sys
from datetime import UTC, datetime

# Context passed by services through ``extra=``
LOG_EXTRA_FIELDS = ("user_id", "team_id", "invitation_id", "request_id")

DEV_FORMAT = "%(asctime)s %(levelname)-8s [%(name)s] %(message)s"

NOISY_LOGGERS = ("uvicorn.access", "sqlalchemy.engine", "aiosqlite")


class JSONFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.fromtimestamp(record.created, UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "location": f"{record.module}.{record.funcName}:{record.lineno}",
        }
        entry.update(
            {field: getattr(record, field) for field in LOG_EXTRA_FIELDS if hasattr(record, field)}
        )
        if record.exc_info and record.exc_info[0] is not None:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


def setup_logging(app_env: str = "development", log_level: str = "INFO") -> None:
    """Replace the root handlers with a single stdout handler for ``app_env``."""
    handler = logging.StreamHandler(sys.stdout)
    if app_env == "production":
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(logging.Formatter(DEV_FORMAT, datefmt="%H:%M:%S"))

    root = logging.getLogger()
    root.setLevel(log_level)
    for existing in root.handlers[:]:
        root.removeHandler(existing)
    root.addHandler(handler)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
