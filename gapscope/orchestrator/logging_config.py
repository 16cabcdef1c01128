"""
GapScope Logging Configuration
==============================

One place to set up logging for the CLI (`--log-json`, `--log-file`)
and the API (LOG_LEVEL, LOG_JSON, LOG_FILE).

Pipeline stages pass context through `extra`, which the JSON format
keeps as top-level keys:

    logger.info("Analyzed app", extra={"app_id": app_id, "stage": "analyze"})
"""

import json
import logging
import logging.handlers
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional

# Context keys copied from `extra` into JSON lines
CONTEXT_KEYS = ("app_id", "stage", "duration", "score")

TEXT_FORMAT = "%(asctime)s %(levelname)-7s %(name)s: %(message)s"
LOG_FILE_BYTES = 2 * 1024 * 1024
LOG_FILE_BACKUPS = 3

NOISY_LOGGERS = ("urllib3", "httpx", "openai", "anthropic")


class JSONFormatter(logging.Formatter):
    """One JSON object per record: ts, level, logger, msg and any context keys."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "ts": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        entry.update(
            (key, getattr(record, key))
            for key in CONTEXT_KEYS
            if getattr(record, key, None) is not None
        )
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


def build_handlers(json_output: bool, log_file: Optional[str]) -> List[logging.Handler]:
    """stderr handler, plus a size-rotated file handler when log_file is set."""
    formatter = JSONFormatter() if json_output else logging.Formatter(TEXT_FORMAT)

    # stderr keeps stdout free for --json command output
    handlers: List[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.handlers.RotatingFileHandler(
            log_file, maxBytes=LOG_FILE_BYTES, backupCount=LOG_FILE_BACKUPS, encoding="utf-8",
        ))

    for handler in handlers:
        handler.setFormatter(formatter)
    return handlers


def setup_logging(level: str = "INFO", json_output: bool = False, log_file: Optional[str] = None):
    """
    Replace the root logger's handlers.

    Args:
        level: DEBUG, INFO, WARNING or ERROR (unknown names mean INFO)
        json_output: JSON lines instead of text
        log_file: Also write to this file, rotated by size
    """
    root = logging.getLogger()
    root.setLevel(getattr(logging, level.upper(), logging.INFO))
    for handler in list(root.handlers):
        root.removeHandler(handler)
    for handler in build_handlers(json_output, log_file):
        root.addHandler(handler)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    root.debug(f"Logging ready (level={level}, json={json_output}, file={log_file or '-'})")
