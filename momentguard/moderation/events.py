"""Moderation event log.

Every moderation outcome (and every failure) is appended as one JSON line to
a daily file under ``~/.momentguard/events/``. Payloads carry ids, verdicts
and categories, never the moderated text.
"""

from __future__ import annotations

import json
import threading
import uuid
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Any, Optional

from momentguard.moderation.errors import StorageError


class ModerationEventType(Enum):
    CONTENT_DETECTED = "content_detected"
    CONTENT_BLOCKED = "content_blocked"
    CONTENT_FLAGGED = "content_flagged"
    CONTENT_APPROVED = "content_approved"
    REVIEW_RESOLVED = "review_resolved"
    MODERATION_FAILED = "moderation_failed"


@dataclass
class ModerationEvent:
    """A single event log entry."""

    id: str
    timestamp: str
    event_type: str
    content_id: str
    record_id: str = ""
    data: dict[str, Any] = field(default_factory=dict)


class ModerationEventLog:
    """Newline-delimited JSON event log, one file per UTC day."""

    def __init__(self, base_dir: Optional[str | Path] = None) -> None:
        self._base_dir = Path(base_dir) if base_dir else Path.home() / ".momentguard" / "events"
        self._base_dir.mkdir(parents=True, exist_ok=True)
        self._lock = threading.Lock()

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _log_file_for_date(self, dt: datetime) -> Path:
        return self._base_dir / f"{dt.strftime('%Y-%m-%d')}.jsonl"

    def _read_all_events(self) -> list[ModerationEvent]:
        events: list[ModerationEvent] = []
        for path in sorted(self._base_dir.glob("*.jsonl")):
            try:
                lines = path.read_text(encoding="utf-8").splitlines()
            except OSError as exc:
                raise StorageError(f"Cannot read event log {path}: {exc}") from exc
            for line in lines:
                if line.strip():
                    events.append(ModerationEvent(**json.loads(line)))
        return events

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def log_event(
        self,
        event_type: ModerationEventType,
        content_id: str,
        record_id: str = "",
        data: Optional[dict[str, Any]] = None,
    ) -> ModerationEvent:
        """Append an event and return it."""
        now = datetime.now(timezone.utc)
        event = ModerationEvent(
            id=uuid.uuid4().hex[:16],
            timestamp=now.isoformat(),
            event_type=event_type.value,
            content_id=content_id,
            record_id=record_id,
            data=data or {},
        )
        path = self._log_file_for_date(now)
        with self._lock:
            try:
                with path.open("a", encoding="utf-8") as fh:
                    fh.write(json.dumps(asdict(event)) + "\n")
            except OSError as exc:
                raise StorageError(f"Cannot append to event log {path}: {exc}") from exc
        return event

    def get_events(
        self,
        *,
        event_type: Optional[ModerationEventType] = None,
        content_id: Optional[str] = None,
        limit: int = 200,
    ) -> list[ModerationEvent]:
        """Return filtered events, newest first."""
        events = self._read_all_events()
        if event_type:
            events = [e for e in events if e.event_type == event_type.value]
        if content_id:
            events = [e for e in events if e.content_id == content_id]
        events.sort(key=lambda e: e.timestamp, reverse=True)
        return events[:limit]
