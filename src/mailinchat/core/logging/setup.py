from __future__ import annotations

import logging
from datetime import datetime, timezone
from pathlib import Path

from pythonjsonlogger import jsonlogger

TEXT_FORMAT = "%(asctime)s %(levelname)s [%(correlation_id)s] %(name)s: %(message)s"
JSON_FORMAT = "%(asctime)s %(levelname)s %(name)s %(correlation_id)s %(message)s"

# third-party loggers that are chatty at INFO
QUIET_LOGGERS = ("googleapiclient.discovery_cache", "urllib3.connectionpool")


class CorrelationIdFilter(logging.Filter):
    """Stamps records that were not logged through an adapter with the run id."""

    def __init__(self, correlation_id: str):
        super().__init__()
        self.correlation_id = correlation_id

    def filter(self, record: logging.LogRecord) -> bool:
        if getattr(record, "correlation_id", None) is None:
            record.correlation_id = self.correlation_id
        return True


def _log_paths(log_dir: Path) -> tuple[Path, Path]:
    utc_day = datetime.now(timezone.utc).strftime("%Y-%m-%d")
    return log_dir / f"mailinchat-{utc_day}.log", log_dir / f"mailinchat-{utc_day}.jsonl"


def configure_logging(log_dir: Path, correlation_id: str, level: int | str = logging.INFO) -> None:
    """Route every record to stderr, a daily text log and a daily JSONL log."""
    log_dir.mkdir(parents=True, exist_ok=True)
    text_path, json_path = _log_paths(log_dir)

    text_formatter = logging.Formatter(fmt=TEXT_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")
    json_formatter = jsonlogger.JsonFormatter(fmt=JSON_FORMAT)

    handlers: list[tuple[logging.Handler, logging.Formatter]] = [
        (logging.StreamHandler(), text_formatter),
        (logging.FileHandler(text_path, encoding="utf-8"), text_formatter),
        (logging.FileHandler(json_path, encoding="utf-8"), json_formatter),
    ]

    root = logging.getLogger()
    root.handlers.clear()
    root.setLevel(level.upper() if isinstance(level, str) else level)

    correlation_filter = CorrelationIdFilter(correlation_id)
    for handler, formatter in handlers:
        handler.setFormatter(formatter)
        handler.addFilter(correlation_filter)
        root.addHandler(handler)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str, correlation_id: str) -> logging.LoggerAdapter:
    return logging.LoggerAdapter(logging.getLogger(name), extra={"correlation_id": correlation_id})
