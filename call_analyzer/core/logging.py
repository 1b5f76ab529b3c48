"""Logging setup for the analysis pipeline.

Per-pair log lines carry ``call_id`` and ``framework`` extras (see
``pair_logger``); the JSON formatter lifts them into top-level fields so a
single (call, framework) analysis can be traced end to end.
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone

from call_analyzer.core.config import settings

PAIR_FIELDS = ("call_id", "framework")

_TEXT_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"


class JSONFormatter(logging.Formatter):
    """One JSON object per record, with pair context when present."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for key in PAIR_FIELDS:
            value = getattr(record, key, None)
            if value:
                entry[key] = value
        if record.exc_info and record.exc_info[1]:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, ensure_ascii=False, default=str)


class PairContextFormatter(logging.Formatter):
    """Text formatter that prefixes the message with ``[call_id/framework]``."""

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        call_id = getattr(record, "call_id", None)
        if not call_id:
            return line
        framework = getattr(record, "framework", None)
        tag = f"[{call_id}/{framework}]" if framework else f"[{call_id}]"
        return line.replace(record.getMessage(), f"{tag} {record.getMessage()}", 1)


def pair_logger(logger: logging.Logger, call_id: str, framework: str = "") -> logging.LoggerAdapter:
    """Adapter that stamps every record with the (call, framework) pair."""
    return logging.LoggerAdapter(logger, {"call_id": call_id, "framework": framework})


def setup_logging(level: str | None = None, json_output: bool | None = None) -> logging.Handler:
    """Install a single stdout handler on the root logger and return it.

    Defaults come from ``settings.log_level`` / ``settings.log_json``.
    """
    numeric_level = getattr(logging, (level or settings.log_level).upper(), logging.INFO)
    use_json = settings.log_json if json_output is None else json_output

    root = logging.getLogger()
    root.setLevel(numeric_level)
    for existing in root.handlers[:]:
        root.removeHandler(existing)

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(numeric_level)
    if use_json:
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(PairContextFormatter(_TEXT_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
    root.addHandler(handler)

    # Generation clients log their own request errors
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    return handler
