"""Bounded in-memory retention of recent log entries.

A LogBuffer is owned by the hosting process (CLI run, service, test) and
attached to loguru as a sink. It is never a module-level singleton.

Usage:
    from evidence_ledger.config.logging import logger
    from evidence_ledger.utils.log_buffer import LogBuffer

    buffer = LogBuffer(max_entries=500)
    buffer.attach(logger)
    ...
    recent_errors = buffer.errors()
    buffer.detach()
"""

import uuid
from collections import deque
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Deque, Dict, List, Optional

from evidence_ledger.config.settings import settings


@dataclass(frozen=True)
class LogEntry:
    """One retained log record."""

    timestamp: datetime
    level: str
    message: str
    metadata: Dict[str, Any] = field(default_factory=dict)
    evidence_id: Optional[str] = None
    case_id: Optional[str] = None
    id: str = field(default_factory=lambda: str(uuid.uuid4()))


class LogBuffer:
    """Ring buffer of the most recent log entries."""

    def __init__(self, max_entries: Optional[int] = None):
        self.max_entries = max_entries or settings.log_retention
        self._entries: Deque[LogEntry] = deque(maxlen=self.max_entries)
        self._handler_id: Optional[int] = None
        self._logger: Any = None

    def __len__(self) -> int:
        return len(self._entries)

    def attach(self, logger: Any, level: str = "DEBUG") -> int:
        """Register this buffer as a loguru sink. Returns the handler id."""
        if self._handler_id is not None:
            return self._handler_id
        self._logger = logger
        self._handler_id = logger.add(self.sink, level=level, format="{message}")
        return self._handler_id

    def detach(self) -> None:
        if self._handler_id is None:
            return
        self._logger.remove(self._handler_id)
        self._handler_id = None
        self._logger = None

    def sink(self, message: Any) -> None:
        """Loguru sink: convert a formatted message into a LogEntry."""
        record = message.record
        extra = dict(record["extra"])
        self.record(
            level=record["level"].name,
            message=record["message"],
            metadata=extra,
            timestamp=record["time"],
        )

    def record(
        self,
        level: str,
        message: str,
        metadata: Optional[Dict[str, Any]] = None,
        timestamp: Optional[datetime] = None,
    ) -> LogEntry:
        metadata = metadata or {}
        entry = LogEntry(
            timestamp=timestamp or datetime.now().astimezone(),
            level=level.upper(),
            message=message,
            metadata=metadata,
            evidence_id=metadata.get("evidence_id"),
            case_id=metadata.get("case_id"),
        )
        self._entries.append(entry)
        return entry

    def entries(self, limit: Optional[int] = None, level: Optional[str] = None) -> List[LogEntry]:
        """Most recent first, optionally filtered by level."""
        result = [
            e for e in reversed(self._entries)
            if level is None or e.level == level.upper()
        ]
        return result[:limit] if limit else result

    def by_evidence(self, evidence_id: str) -> List[LogEntry]:
        return [e for e in reversed(self._entries) if e.evidence_id == evidence_id]

    def by_case(self, case_id: str) -> List[LogEntry]:
        return [e for e in reversed(self._entries) if e.case_id == case_id]

    def errors(self) -> List[LogEntry]:
        return self.entries(level="ERROR")

    def clear(self) -> None:
        self._entries.clear()
