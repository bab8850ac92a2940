"""Persistence ports used by the moderation engine.

Implementations must be safe for concurrent use. ``save`` is the only
uniqueness guard: of two concurrent saves for the same content id exactly
one wins and the other raises ``DuplicateContentError``.
"""

from __future__ import annotations

from typing import Any, Optional, Protocol

from momentguard.moderation.models import ModerationRecord, ReviewStatus


class ModerationRepository(Protocol):
    def save(self, record: ModerationRecord) -> ModerationRecord:
        """Persist a new record. Raises ``DuplicateContentError`` if the content id exists."""
        ...

    def find_by_content_id(self, content_id: str) -> Optional[ModerationRecord]: ...

    def find_by_id(self, record_id: str) -> Optional[ModerationRecord]: ...

    def update(
        self,
        record_id: str,
        expected_review_status: Optional[ReviewStatus] = None,
        **changes: Any,
    ) -> ModerationRecord:
        """Apply *changes* (only ``review_status``) and return the updated record.

        If *expected_review_status* is given, the record must still be in that
        status when the write happens, else ``ReviewTransitionError`` is raised.
        """
        ...

    def delete(self, record_id: str) -> None:
        """Erase a record. Reserved for legal/compliance erasure."""
        ...

    def list_records(self) -> list[ModerationRecord]: ...


class ContentStorage(Protocol):
    def store(self, content_id: str, content: str) -> str:
        """Archive *content* once and return a storage reference."""
        ...

    def retrieve(self, content_id: str) -> Optional[str]: ...

    def delete(self, content_id: str) -> None: ...
