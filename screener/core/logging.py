# screener/core/logging.py
"""
Root logging setup.

Development: one readable line per record.
Production: one JSON object per line with timestamp, level, logger, message,
environment and any fields passed through ``extra=``.
"""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from screener.core.config import settings

# attributes every LogRecord carries; anything else came in through extra=
_RESERVED = set(vars(logging.LogRecord("", 0, "", 0, "", (), None))) | {"message", "asctime"}

_TEXT_FORMAT = "%(asctime)s [%(levelname)s] %(name)s - %(message)s"


class JsonFormatter(logging.Formatter):
    def __init__(self, environment: str = "development"):
        super().__init__()
        self.environment = environment

    def format(self, record: logging.LogRecord) -> str:
        entry: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for key, value in record.__dict__.items():
            if key not in _RESERVED and not key.startswith("_"):
                entry[key] = value
        if record.exc_info:
            entry["exc_info"] = self.formatException(record.exc_info)
        entry["environment"] = self.environment
        return json.dumps(entry, default=str, ensure_ascii=False)


def configure_logging(level: Optional[str] = None, json_output: Optional[bool] = None) -> None:
    """
    Install a single stream handler on the root logger. Safe to call twice.
    """
    level = (level or settings.LOG_LEVEL).upper()
    json_output = settings.json_logs if json_output is None else json_output

    handler = logging.StreamHandler(sys.stdout)
    if json_output:
        handler.setFormatter(JsonFormatter(environment=settings.APP_ENV))
    else:
        handler.setFormatter(logging.Formatter(_TEXT_FORMAT))

    root = logging.getLogger()
    for existing in list(root.handlers):
        root.removeHandler(existing)
    root.addHandler(handler)
    root.setLevel(level)
