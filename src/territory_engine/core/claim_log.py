"""In-memory claim activity log.

A bounded :class:`logging.Handler` that keeps the most recent records of a
claim session so a client can show them (or export them after a field test)
without tailing process logs.
"""
from __future__ import annotations

import logging
import threading
from collections import deque
from dataclasses import dataclass
from datetime import datetime
from typing import Deque, List, Optional

# Records at INFO with this attribute set render as SUCCESS
SUCCESS_FLAG = "claim_success"


@dataclass(frozen=True)
class LogEntry:
    timestamp: datetime
    level: str  # INFO | SUCCESS | WARNING | ERROR
    message: str

    def formatted(self) -> str:
        return f"[{self.timestamp:%H:%M:%S}] [{self.level}] {self.message}"

    def formatted_for_export(self) -> str:
        return f"[{self.timestamp:%Y-%m-%d %H:%M:%S}] [{self.level}] {self.message}"


def _level_name(record: logging.LogRecord) -> str:
    if record.levelno >= logging.ERROR:
        return "ERROR"
    if record.levelno >= logging.WARNING:
        return "WARNING"
    if getattr(record, SUCCESS_FLAG, False):
        return "SUCCESS"
    return "INFO"


class ClaimLog(logging.Handler):
    """Ring buffer of the last ``max_entries`` claim log entries."""

    def __init__(self, max_entries: int = 200, level: int = logging.INFO):
        super().__init__(level=level)
        self._entries: Deque[LogEntry] = deque(maxlen=max_entries)
        self._entries_lock = threading.Lock()

    def emit(self, record: logging.LogRecord) -> None:
        try:
            entry = LogEntry(
                timestamp=datetime.fromtimestamp(record.created),
                level=_level_name(record),
                message=record.getMessage(),
            )
        except Exception:
            self.handleError(record)
            return
        with self._entries_lock:
            self._entries.append(entry)

    @property
    def entries(self) -> List[LogEntry]:
        with self._entries_lock:
            return list(self._entries)

    @property
    def text(self) -> str:
        return "\n".join(e.formatted() for e in self.entries)

    def clear(self) -> None:
        with self._entries_lock:
            self._entries.clear()

    def export(self, now: Optional[datetime] = None) -> str:
        entries = self.entries
        now = now or datetime.now()
        lines = [
            "=== Territory claim log ===",
            f"Exported: {now:%Y-%m-%d %H:%M:%S}",
            f"Entries: {len(entries)}",
            "",
        ]
        lines.extend(e.formatted_for_export() for e in entries)
        return "\n".join(lines) + "\n"


def session_logger(session_id: str, claim_log: Optional[ClaimLog] = None) -> logging.Logger:
    """Child logger for one claim session, optionally feeding ``claim_log``."""
    logger = logging.getLogger(f"territory_engine.session.{session_id}")
    if claim_log is not None and claim_log not in logger.handlers:
        logger.addHandler(claim_log)
        logger.setLevel(min(claim_log.level, logging.INFO))
    return logger


def release_session_logger(logger: logging.Logger, claim_log: Optional[ClaimLog]) -> None:
    if claim_log is not None:
        logger.removeHandler(claim_log)
