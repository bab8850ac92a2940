"""Human review of flagged content.

The only lifecycle change after a decision is recorded:
``PENDING_HUMAN_REVIEW -> UPHELD | OVERTURNED``. Records are never deleted
or re-decided; the review status supersedes the original verdict for appeal.
"""

from __future__ import annotations

import logging
from typing import Optional

from momentguard.moderation.errors import RepositoryError, ReviewTransitionError
from momentguard.moderation.events import ModerationEventLog, ModerationEventType
from momentguard.moderation.models import ModerationRecord, ReviewStatus
from momentguard.storage.ports import ModerationRepository

logger = logging.getLogger(__name__)


def resolve_review(
    repository: ModerationRepository,
    content_id: str,
    upheld: bool,
    event_log: Optional[ModerationEventLog] = None,
) -> ModerationRecord:
    """Close the pending review for *content_id*.

    Args:
        repository: Where the moderation record lives.
        content_id: Content whose flagged decision is being reviewed.
        upheld: True if the reviewer agrees the content violates policy.
        event_log: Optional log to record the outcome in.

    Returns:
        The updated record.
    """
    record = repository.find_by_content_id(content_id)
    if record is None:
        raise RepositoryError(f"No moderation record for content {content_id!r}")
    if record.review_status != ReviewStatus.PENDING_HUMAN_REVIEW:
        raise ReviewTransitionError(
            f"Content {content_id!r} is not awaiting review (status: {record.review_status.value})"
        )

    status = ReviewStatus.UPHELD if upheld else ReviewStatus.OVERTURNED
    updated = repository.update(
        record.id,
        expected_review_status=ReviewStatus.PENDING_HUMAN_REVIEW,
        review_status=status,
    )
    logger.info("Review for content %s resolved: %s", content_id, status.value)

    if event_log is not None:
        event_log.log_event(
            ModerationEventType.REVIEW_RESOLVED,
            content_id,
            record_id=record.id,
            data={"review_status": status.value},
        )
    return updated
