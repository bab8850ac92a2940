"""Data models for the content moderation engine."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional


class ContentType(Enum):
    """Kind of user-generated text being moderated."""

    COMMENT = "comment"
    MOMENT_DESCRIPTION = "moment_description"
    OTHER_TEXT = "other_text"


class Verdict(Enum):
    ALLOWED = "allowed"
    BLOCKED = "blocked"
    FLAGGED_FOR_REVIEW = "flagged_for_review"


class ReviewStatus(Enum):
    NONE = "none"
    PENDING_HUMAN_REVIEW = "pending_human_review"
    UPHELD = "upheld"
    OVERTURNED = "overturned"


@dataclass(frozen=True)
class ModerationRequest:
    """Input to ``ModerationEngine.moderate``. Never persisted as-is."""

    content_id: str
    content_type: ContentType
    text: str
    author_id: str
    metadata: dict[str, Any] = field(default_factory=dict)  # moment_id, parent_comment_id, locale


@dataclass(frozen=True)
class CategoryScore:
    """Score for one violation category."""

    category: str
    score: float
    matched_span: Optional[tuple[int, int]] = None  # offsets into the normalized text

    def to_dict(self) -> dict[str, Any]:
        return {
            "category": self.category,
            "score": self.score,
            "matched_span": list(self.matched_span) if self.matched_span else None,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> CategoryScore:
        span = data.get("matched_span")
        return cls(
            category=data["category"],
            score=float(data["score"]),
            matched_span=(int(span[0]), int(span[1])) if span else None,
        )


@dataclass(frozen=True)
class DetectionResult:
    """Detector output. Categories are sorted by name, one entry per category."""

    categories: tuple[CategoryScore, ...] = ()
    max_score: float = 0.0
    detector_version: str = ""

    def score_for(self, category: str) -> float:
        for entry in self.categories:
            if entry.category == category:
                return entry.score
        return 0.0

    def to_dict(self) -> dict[str, Any]:
        return {
            "categories": [c.to_dict() for c in self.categories],
            "max_score": self.max_score,
            "detector_version": self.detector_version,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> DetectionResult:
        return cls(
            categories=tuple(CategoryScore.from_dict(c) for c in data.get("categories", [])),
            max_score=float(data.get("max_score", 0.0)),
            detector_version=data.get("detector_version", ""),
        )


@dataclass(frozen=True)
class ModerationDecision:
    verdict: Verdict
    reason: str
    applied_policy_version: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "verdict": self.verdict.value,
            "reason": self.reason,
            "applied_policy_version": self.applied_policy_version,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ModerationDecision:
        return cls(
            verdict=Verdict(data["verdict"]),
            reason=data.get("reason", ""),
            applied_policy_version=data.get("applied_policy_version", ""),
        )


@dataclass(frozen=True)
class ModerationRecord:
    """The authoritative, persisted decision for one piece of content.

    ``review_status`` (with ``updated_at``) is the only field that changes
    after creation.
    """

    id: str
    content_id: str
    content_type: ContentType
    author_id: str
    decision: ModerationDecision
    detection: DetectionResult
    review_status: ReviewStatus
    created_at: str
    updated_at: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "content_id": self.content_id,
            "content_type": self.content_type.value,
            "author_id": self.author_id,
            "decision": self.decision.to_dict(),
            "detection": self.detection.to_dict(),
            "review_status": self.review_status.value,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ModerationRecord:
        return cls(
            id=data["id"],
            content_id=data["content_id"],
            content_type=ContentType(data["content_type"]),
            author_id=data["author_id"],
            decision=ModerationDecision.from_dict(data["decision"]),
            detection=DetectionResult.from_dict(data["detection"]),
            review_status=ReviewStatus(data["review_status"]),
            created_at=data["created_at"],
            updated_at=data["updated_at"],
        )


@dataclass(frozen=True)
class ModerationVerdict:
    """What ``moderate`` hands back to the calling use case."""

    decision: ModerationDecision
    record_id: str

    @property
    def allowed(self) -> bool:
        return self.decision.verdict == Verdict.ALLOWED


@dataclass
class BatchModerationResult:
    """Outcome of ``ModerationEngine.moderate_batch``."""

    total: int = 0
    processed: int = 0
    failed: int = 0
    results: dict[str, ModerationVerdict] = field(default_factory=dict)
    errors: dict[str, str] = field(default_factory=dict)  # content_id -> public message

    @property
    def success(self) -> bool:
        return self.failed == 0


@dataclass
class ModerationStats:
    total: int = 0
    allowed: int = 0
    blocked: int = 0
    flagged: int = 0
    pending_review: int = 0
