"""Logging configuration for the enrichment pipeline.

Console output for people, one JSONL file per day for auditing. Every
record logged while a run is active carries that run's id, so entries of
overlapping runs (e.g. two uploads at once) can be told apart.
"""

import json
import logging
import sys
import uuid
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Iterator, Optional

__all__ = [
    "setup_logging",
    "get_logger",
    "log_pipeline_event",
    "run_context",
    "current_run_id",
    "LOG_DIR",
]

LOG_DIR = Path(__file__).parent.parent / "logs"

_run_id: ContextVar[Optional[str]] = ContextVar("enrich_run_id", default=None)


def current_run_id() -> Optional[str]:
    return _run_id.get()


@contextmanager
def run_context(run_id: Optional[str] = None) -> Iterator[str]:
    """Tag everything logged inside the block with a run id."""
    run_id = run_id or uuid.uuid4().hex[:12]
    token = _run_id.set(run_id)
    try:
        yield run_id
    finally:
        _run_id.reset(token)


class RunIdFilter(logging.Filter):
    """Copies the active run id onto each record as ``run_id``."""

    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "run_id"):
            record.run_id = current_run_id()
        return True


class JSONLFormatter(logging.Formatter):
    """Renders a record as one JSON object per line."""

    def format(self, record: logging.LogRecord) -> str:
        entry: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if getattr(record, "run_id", None):
            entry["run_id"] = record.run_id
        if hasattr(record, "event_type"):
            entry["event_type"] = record.event_type
            entry.update(getattr(record, "event_data", {}))
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, ensure_ascii=False, default=str)


class DailyJSONLHandler(logging.Handler):
    """Appends formatted records to ``{prefix}_{YYYYMMDD}.jsonl``."""

    def __init__(self, log_dir: Path, prefix: str = "enrich"):
        super().__init__()
        self.log_dir = log_dir
        self.log_dir.mkdir(parents=True, exist_ok=True)
        self.prefix = prefix
        self.setFormatter(JSONLFormatter())

    def path_for(self, when: datetime) -> Path:
        return self.log_dir / f"{self.prefix}_{when.strftime('%Y%m%d')}.jsonl"

    def emit(self, record: logging.LogRecord) -> None:
        try:
            line = self.format(record)
            with open(self.path_for(datetime.fromtimestamp(record.created)), "a", encoding="utf-8") as f:
                f.write(line + "\n")
        except Exception:
            self.handleError(record)


class ColoredConsoleHandler(logging.StreamHandler):
    """Console handler that colors the level name on a terminal."""

    COLORS = {
        "DEBUG": "\033[36m",
        "INFO": "\033[32m",
        "WARNING": "\033[33m",
        "ERROR": "\033[31m",
        "CRITICAL": "\033[35m",
    }
    RESET = "\033[0m"

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        color = self.COLORS.get(record.levelname)
        if color and getattr(self.stream, "isatty", lambda: False)():
            message = message.replace(record.levelname, f"{color}{record.levelname}{self.RESET}", 1)
        return message


def setup_logging(
    level: int = logging.INFO,
    log_to_file: bool = True,
    log_to_console: bool = True,
    log_dir: Optional[Path] = None,
) -> logging.Logger:
    """Configure the ``enrich`` logger tree.

    Args:
        level: Console logging level (default: INFO)
        log_to_file: Whether to also write the daily JSONL file
        log_to_console: Whether to log to stdout
        log_dir: Directory for JSONL files (default: project logs/)

    Returns:
        The ``enrich`` package logger
    """
    logger = logging.getLogger("enrich")
    logger.setLevel(logging.DEBUG if log_to_file else level)
    logger.handlers.clear()

    if log_to_console:
        console_handler = ColoredConsoleHandler(sys.stdout)
        console_handler.setLevel(level)
        console_handler.addFilter(RunIdFilter())
        console_handler.setFormatter(
            logging.Formatter("%(asctime)s [%(levelname)s] %(message)s", datefmt="%H:%M:%S")
        )
        logger.addHandler(console_handler)

    if log_to_file:
        file_handler = DailyJSONLHandler(log_dir or LOG_DIR)
        file_handler.setLevel(logging.DEBUG)
        file_handler.addFilter(RunIdFilter())
        logger.addHandler(file_handler)

    return logger


def get_logger(name: str = "enrich") -> logging.Logger:
    """Logger under the ``enrich`` tree, e.g. ``get_logger("pool")`` -> ``enrich.pool``."""
    if name == "enrich" or name.startswith("enrich."):
        return logging.getLogger(name)
    return logging.getLogger(f"enrich.{name}")


def log_pipeline_event(
    event_type: str,
    data: Dict[str, Any],
    level: int = logging.INFO,
    logger_name: str = "enrich",
) -> None:
    """Log a structured pipeline milestone.

    Args:
        event_type: e.g. 'run_start', 'fetch_failed', 'run_complete'
        data: Fields written to the JSONL entry; an optional 'message'
            key becomes the log message
        level: Log level
        logger_name: Logger to use
    """
    fields = {k: v for k, v in data.items() if k != "message"}
    message = data.get("message") or f"{event_type} {json.dumps(fields, default=str)}"
    get_logger(logger_name).log(
        level,
        message,
        extra={"event_type": event_type, "event_data": fields, "run_id": current_run_id()},
    )
