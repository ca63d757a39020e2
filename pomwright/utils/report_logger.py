"""Collects log records during a test and renders them as report attachments."""

from __future__ import annotations

import json
import logging
from contextlib import contextmanager
from datetime import datetime
from typing import Iterator, Optional

from pydantic import BaseModel


class LogEntry(BaseModel):
    timestamp: datetime
    log_level: str
    prefix: str
    message: str


class Attachment(BaseModel):
    name: str
    content_type: str
    body: str


class ReportLogCollector(logging.Handler):
    """Logging handler that keeps every record it sees as a LogEntry."""

    def __init__(self, level: int = logging.NOTSET):
        super().__init__(level)
        self.entries: list[LogEntry] = []

    def emit(self, record: logging.LogRecord) -> None:
        try:
            message = record.getMessage()
        except Exception:
            self.handleError(record)
            return
        self.entries.append(LogEntry(
            timestamp=datetime.fromtimestamp(record.created),
            log_level=record.levelname,
            prefix=record.name,
            message=message,
        ))

    def attachments(self) -> list[Attachment]:
        """One attachment per entry in time order; JSON messages are pretty-printed."""
        result = []
        for entry in sorted(self.entries, key=lambda e: e.timestamp):
            name = f"{entry.timestamp:%H:%M:%S %d.%m.%Y} - {entry.log_level}: [{entry.prefix}]"
            try:
                body = json.dumps(json.loads(entry.message), indent=2)
                content_type = "application/json"
            except ValueError:
                body = entry.message
                content_type = "text/plain"
            result.append(Attachment(name=name, content_type=content_type, body=body))
        return result


@contextmanager
def capture_logs(
    level: int = logging.WARNING,
    logger_name: str = "pomwright",
    collector: Optional[ReportLogCollector] = None,
) -> Iterator[ReportLogCollector]:
    """Temporarily route ``logger_name`` records at ``level`` and above into a collector.

    Pass ``logging.DEBUG`` (e.g. when a test is retried) to also get the nested
    locator evaluation results.
    """
    collector = collector or ReportLogCollector()
    target = logging.getLogger(logger_name)
    previous_level = target.level
    target.addHandler(collector)
    target.setLevel(level)
    try:
        yield collector
    finally:
        target.removeHandler(collector)
        target.setLevel(previous_level)
