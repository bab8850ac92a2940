"""Moderation engine: the single entry point for content-creation use cases.

``moderate`` runs detection, lets the blocker decide and persist the
decision, archives non-allowed content, and returns a verdict. Any failure
along the way propagates to the caller. The engine never fails open: a
caller that gets an exception must not persist the content.
"""

from __future__ import annotations

import logging
from typing import Iterable, Optional

from momentguard.moderation.blocker import ContentBlocker
from momentguard.moderation.config import ModerationEngineConfig
from momentguard.moderation.detector import ContentDetector
from momentguard.moderation.errors import (
    DetectionError,
    InvalidRequestError,
    ModerationError,
    StorageError,
)
from momentguard.moderation.events import ModerationEventLog, ModerationEventType
from momentguard.moderation.models import (
    BatchModerationResult,
    ContentType,
    DetectionResult,
    ModerationRecord,
    ModerationRequest,
    ModerationStats,
    ModerationVerdict,
    ReviewStatus,
    Verdict,
)
from momentguard.storage.ports import ContentStorage, ModerationRepository

logger = logging.getLogger(__name__)

_VERDICT_EVENTS = {
    Verdict.ALLOWED: ModerationEventType.CONTENT_APPROVED,
    Verdict.BLOCKED: ModerationEventType.CONTENT_BLOCKED,
    Verdict.FLAGGED_FOR_REVIEW: ModerationEventType.CONTENT_FLAGGED,
}


class ModerationEngine:
    """Composes detector, blocker, repository and storage behind ``moderate``."""

    def __init__(
        self,
        detector: ContentDetector,
        blocker: ContentBlocker,
        repository: ModerationRepository,
        storage: ContentStorage,
        config: ModerationEngineConfig,
        event_log: Optional[ModerationEventLog] = None,
    ) -> None:
        self.detector = detector
        self.blocker = blocker
        self.repository = repository
        self.storage = storage
        self.config = config
        self.event_log = event_log

    # -- moderation ----------------------------------------------------------

    def moderate(self, request: ModerationRequest) -> ModerationVerdict:
        """Moderate one piece of content. Raises ``ModerationError`` subclasses."""
        try:
            self._validate(request)
            detection = self._detect(request.text)
            self._emit(
                ModerationEventType.CONTENT_DETECTED,
                request.content_id,
                data={
                    "categories": [c.category for c in detection.categories],
                    "max_score": detection.max_score,
                    "detector_version": detection.detector_version,
                },
            )

            decision = self.blocker.decide(request, detection, self.config)
            record = self.blocker.block(request, decision, detection)

            if decision.verdict != Verdict.ALLOWED or self.config.archive_allowed:
                self.storage.store(request.content_id, request.text)

            logger.info(
                "Content %s moderated: %s (record %s)",
                request.content_id,
                decision.verdict.value,
                record.id,
            )
            self._emit(
                _VERDICT_EVENTS[decision.verdict],
                request.content_id,
                record_id=record.id,
                data={"verdict": decision.verdict.value, "policy_version": decision.applied_policy_version},
            )
        except ModerationError as exc:
            logger.warning(
                "Moderation failed for content %s: %s", request.content_id, type(exc).__name__
            )
            try:
                self._emit(
                    ModerationEventType.MODERATION_FAILED,
                    request.content_id,
                    data={"error": type(exc).__name__},
                )
            except StorageError as log_exc:
                # Report the moderation failure, not the audit write failure
                logger.error("Could not record failure for content %s: %s", request.content_id, log_exc)
            raise

        return ModerationVerdict(decision=decision, record_id=record.id)

    def moderate_batch(self, requests: Iterable[ModerationRequest]) -> BatchModerationResult:
        """Moderate several items; a failed item is reported, never allowed."""
        result = BatchModerationResult()
        for request in requests:
            result.total += 1
            try:
                result.results[request.content_id] = self.moderate(request)
            except ModerationError as exc:
                result.failed += 1
                result.errors[request.content_id] = exc.public_message
            else:
                result.processed += 1
        return result

    # -- lookups -------------------------------------------------------------

    def get_record(self, content_id: str) -> Optional[ModerationRecord]:
        return self.repository.find_by_content_id(content_id)

    def get_record_by_id(self, record_id: str) -> Optional[ModerationRecord]:
        return self.repository.find_by_id(record_id)

    def stats(self) -> ModerationStats:
        stats = ModerationStats()
        for record in self.repository.list_records():
            stats.total += 1
            verdict = record.decision.verdict
            if verdict == Verdict.ALLOWED:
                stats.allowed += 1
            elif verdict == Verdict.BLOCKED:
                stats.blocked += 1
            else:
                stats.flagged += 1
            if record.review_status == ReviewStatus.PENDING_HUMAN_REVIEW:
                stats.pending_review += 1
        return stats

    # -- internals -----------------------------------------------------------

    def _validate(self, request: ModerationRequest) -> None:
        if not request.content_id:
            raise InvalidRequestError("content_id is required")
        if not request.author_id:
            raise InvalidRequestError("author_id is required")
        if not isinstance(request.content_type, ContentType):
            raise InvalidRequestError(f"Unknown content type {request.content_type!r}")
        if not isinstance(request.text, str) or not request.text.strip():
            raise InvalidRequestError("text must not be empty")
        if len(request.text) > self.config.max_text_length:
            raise InvalidRequestError(
                f"text is {len(request.text)} characters, limit is {self.config.max_text_length}"
            )

    def _detect(self, text: str) -> DetectionResult:
        try:
            return self.detector.detect(text, self.config)
        except ModerationError:
            raise
        except Exception as exc:
            raise DetectionError(f"Detector {type(self.detector).__name__} crashed: {exc}") from exc

    def _emit(
        self,
        event_type: ModerationEventType,
        content_id: str,
        record_id: str = "",
        data: Optional[dict] = None,
    ) -> None:
        if self.event_log is not None:
            self.event_log.log_event(event_type, content_id, record_id=record_id, data=data)
