"""In-memory reference implementations of the persistence ports.

Useful in tests and for dry-run moderation where nothing must be kept.
"""

from __future__ import annotations

import threading
from dataclasses import replace
from datetime import datetime, timezone
from typing import Any, Optional

from momentguard.moderation.errors import (
    DuplicateContentError,
    RepositoryError,
    ReviewTransitionError,
    StorageError,
)
from momentguard.moderation.models import ModerationRecord, ReviewStatus

MUTABLE_RECORD_FIELDS = ("review_status",)


def apply_record_update(
    record: ModerationRecord,
    changes: dict[str, Any],
    expected_review_status: Optional[ReviewStatus] = None,
) -> ModerationRecord:
    """Return *record* with *changes* applied, rejecting immutable fields.

    With *expected_review_status*, the update only applies if the record is
    still in that status; callers run this under the store lock so the check
    and the write happen together.
    """
    if expected_review_status is not None and record.review_status != expected_review_status:
        raise ReviewTransitionError(
            f"Record {record.id} is {record.review_status.value}, expected {expected_review_status.value}"
        )
    illegal = sorted(set(changes) - set(MUTABLE_RECORD_FIELDS))
    if illegal:
        raise RepositoryError(f"Moderation record fields {illegal} are immutable")
    updates: dict[str, Any] = {}
    if "review_status" in changes:
        try:
            updates["review_status"] = ReviewStatus(changes["review_status"])
        except ValueError as exc:
            raise RepositoryError(f"Unknown review status {changes['review_status']!r}") from exc
    updates["updated_at"] = datetime.now(timezone.utc).isoformat()
    return replace(record, **updates)


class InMemoryModerationRepository:
    """Dict-backed moderation repository."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._records: dict[str, ModerationRecord] = {}
        self._by_content: dict[str, str] = {}

    def save(self, record: ModerationRecord) -> ModerationRecord:
        with self._lock:
            if record.content_id in self._by_content:
                raise DuplicateContentError(record.content_id)
            self._records[record.id] = record
            self._by_content[record.content_id] = record.id
        return record

    def find_by_content_id(self, content_id: str) -> Optional[ModerationRecord]:
        with self._lock:
            record_id = self._by_content.get(content_id)
            return self._records.get(record_id) if record_id else None

    def find_by_id(self, record_id: str) -> Optional[ModerationRecord]:
        with self._lock:
            return self._records.get(record_id)

    def update(
        self,
        record_id: str,
        expected_review_status: Optional[ReviewStatus] = None,
        **changes: Any,
    ) -> ModerationRecord:
        with self._lock:
            record = self._records.get(record_id)
            if record is None:
                raise RepositoryError(f"Moderation record {record_id} not found")
            updated = apply_record_update(record, changes, expected_review_status)
            self._records[record_id] = updated
            return updated

    def delete(self, record_id: str) -> None:
        with self._lock:
            record = self._records.pop(record_id, None)
            if record is not None:
                self._by_content.pop(record.content_id, None)

    def list_records(self) -> list[ModerationRecord]:
        with self._lock:
            return sorted(self._records.values(), key=lambda r: r.created_at)


class InMemoryContentStorage:
    """Dict-backed, write-once content archive."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._content: dict[str, str] = {}

    def store(self, content_id: str, content: str) -> str:
        with self._lock:
            if content_id in self._content:
                raise StorageError(f"Content {content_id!r} is already archived")
            self._content[content_id] = content
        return f"memory://{content_id}"

    def retrieve(self, content_id: str) -> Optional[str]:
        with self._lock:
            return self._content.get(content_id)

    def delete(self, content_id: str) -> None:
        with self._lock:
            self._content.pop(content_id, None)


class NullContentStorage:
    """Storage that keeps nothing; for dry runs."""

    def store(self, content_id: str, content: str) -> str:
        return ""

    def retrieve(self, content_id: str) -> Optional[str]:
        return None

    def delete(self, content_id: str) -> None:
        return None
