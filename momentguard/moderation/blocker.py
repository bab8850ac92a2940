"""Turn a DetectionResult into an enforcement decision and persist it."""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Optional, Protocol

from momentguard.moderation.config import ModerationEngineConfig
from momentguard.moderation.models import (
    CategoryScore,
    DetectionResult,
    ModerationDecision,
    ModerationRecord,
    ModerationRequest,
    ReviewStatus,
    Verdict,
)
from momentguard.storage.ports import ModerationRepository


class ContentBlocker(Protocol):
    def decide(
        self,
        request: ModerationRequest,
        detection: DetectionResult,
        config: ModerationEngineConfig,
    ) -> ModerationDecision: ...

    def block(
        self,
        request: ModerationRequest,
        decision: ModerationDecision,
        detection: DetectionResult,
    ) -> ModerationRecord: ...


def _cite(hits: list[tuple[CategoryScore, float]]) -> tuple[CategoryScore, float]:
    # Highest score first, then the lexicographically smaller category name
    return min(hits, key=lambda hit: (-hit[0].score, hit[0].category))


class ThresholdBlocker:
    """Compares per-category scores with review/block thresholds.

    A category at or above its block threshold blocks the content; otherwise
    one at or above its review threshold flags it for human review. The
    decision is recorded exactly once per content id: a repeat ``block`` for
    the same content surfaces the repository's ``DuplicateContentError``.
    """

    def __init__(self, repository: ModerationRepository) -> None:
        self._repository = repository

    def decide(
        self,
        request: ModerationRequest,
        detection: DetectionResult,
        config: ModerationEngineConfig,
    ) -> ModerationDecision:
        blocking: list[tuple[CategoryScore, float]] = []
        reviewing: list[tuple[CategoryScore, float]] = []

        for entry in detection.categories:
            review_threshold, block_threshold = config.thresholds_for(entry.category)
            if entry.score >= block_threshold:
                blocking.append((entry, block_threshold))
            elif entry.score >= review_threshold:
                reviewing.append((entry, review_threshold))

        if blocking:
            cited, threshold = _cite(blocking)
            reason = f"{cited.category} score {cited.score:.2f} >= block threshold {threshold:.2f}"
            if config.auto_block:
                verdict = Verdict.BLOCKED
            else:
                verdict = Verdict.FLAGGED_FOR_REVIEW
                reason += " (auto-block disabled)"
        elif reviewing:
            cited, threshold = _cite(reviewing)
            verdict = Verdict.FLAGGED_FOR_REVIEW
            reason = f"{cited.category} score {cited.score:.2f} >= review threshold {threshold:.2f}"
        else:
            verdict = Verdict.ALLOWED
            reason = "none"

        return ModerationDecision(
            verdict=verdict,
            reason=reason,
            applied_policy_version=config.policy_version,
        )

    def block(
        self,
        request: ModerationRequest,
        decision: ModerationDecision,
        detection: DetectionResult,
        now: Optional[datetime] = None,
    ) -> ModerationRecord:
        timestamp = (now or datetime.now(timezone.utc)).isoformat()
        if decision.verdict == Verdict.FLAGGED_FOR_REVIEW:
            review_status = ReviewStatus.PENDING_HUMAN_REVIEW
        else:
            review_status = ReviewStatus.NONE

        record = ModerationRecord(
            id=uuid.uuid4().hex,
            content_id=request.content_id,
            content_type=request.content_type,
            author_id=request.author_id,
            decision=decision,
            detection=detection,
            review_status=review_status,
            created_at=timestamp,
            updated_at=timestamp,
        )
        return self._repository.save(record)
