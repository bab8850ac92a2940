"""Tests for resolving human review of flagged content."""

import tempfile
import threading
from pathlib import Path

import pytest

from momentguard.moderation.config import CategoryConfig, ModerationEngineConfig, WeightedTerm
from momentguard.moderation.errors import RepositoryError, ReviewTransitionError
from momentguard.moderation.events import ModerationEventLog, ModerationEventType
from momentguard.moderation.factory import ModerationEngineFactory
from momentguard.moderation.models import ContentType, ModerationRequest, ReviewStatus, Verdict
from momentguard.moderation.review import resolve_review
from momentguard.storage.memory import InMemoryModerationRepository


def _engine(repository=None):
    config = ModerationEngineConfig(
        categories=(
            CategoryConfig(
                name="spam",
                keywords=(WeightedTerm("promo", 0.5), WeightedTerm("buy followers", 0.9)),
                review_threshold=0.3,
                block_threshold=0.7,
            ),
        ),
    )
    return ModerationEngineFactory.create(config, repository=repository)


def _moderate(engine, content_id, text):
    return engine.moderate(
        ModerationRequest(
            content_id=content_id,
            content_type=ContentType.COMMENT,
            text=text,
            author_id="u1",
        )
    )


def test_flagged_content_can_be_upheld():
    engine = _engine()
    _moderate(engine, "c1", "use my promo")
    before = engine.get_record("c1")

    record = resolve_review(engine.repository, "c1", upheld=True)

    assert record.review_status == ReviewStatus.UPHELD
    assert record.id == before.id
    assert record.created_at == before.created_at
    # The original decision stays on record for audit
    assert record.decision.verdict == Verdict.FLAGGED_FOR_REVIEW
    assert engine.stats().pending_review == 0


def test_flagged_content_can_be_overturned():
    engine = _engine()
    _moderate(engine, "c1", "use my promo")
    record = resolve_review(engine.repository, "c1", upheld=False)
    assert record.review_status == ReviewStatus.OVERTURNED


def test_review_can_only_be_resolved_once():
    engine = _engine()
    _moderate(engine, "c1", "use my promo")
    resolve_review(engine.repository, "c1", upheld=True)
    with pytest.raises(ReviewTransitionError):
        resolve_review(engine.repository, "c1", upheld=False)


def test_blocked_and_allowed_content_are_not_reviewable():
    engine = _engine()
    _moderate(engine, "c1", "buy followers here")
    _moderate(engine, "c2", "great video!")
    for content_id in ("c1", "c2"):
        with pytest.raises(ReviewTransitionError):
            resolve_review(engine.repository, content_id, upheld=True)


def test_unknown_content_is_a_repository_error():
    with pytest.raises(RepositoryError):
        resolve_review(_engine().repository, "missing", upheld=True)


def test_resolution_is_logged():
    engine = _engine()
    _moderate(engine, "c1", "use my promo")
    with tempfile.TemporaryDirectory() as tmpdir:
        log = ModerationEventLog(Path(tmpdir))
        resolve_review(engine.repository, "c1", upheld=False, event_log=log)
        events = log.get_events(event_type=ModerationEventType.REVIEW_RESOLVED, content_id="c1")
        assert len(events) == 1
        assert events[0].data == {"review_status": "overturned"}


class LookupBarrierRepository(InMemoryModerationRepository):
    """Holds reviewers together after their lookup so both see PENDING."""

    def __init__(self):
        super().__init__()
        self.barrier = None

    def find_by_content_id(self, content_id):
        record = super().find_by_content_id(content_id)
        if self.barrier is not None:
            self.barrier.wait(timeout=5)
        return record


def test_concurrent_reviews_have_one_winner():
    repo = LookupBarrierRepository()
    engine = _engine(repository=repo)
    _moderate(engine, "c1", "use my promo")
    repo.barrier = threading.Barrier(2)
    outcomes = []

    def reviewer(upheld):
        try:
            record = resolve_review(repo, "c1", upheld=upheld)
            outcomes.append(record.review_status)
        except ReviewTransitionError:
            outcomes.append("rejected")

    threads = [threading.Thread(target=reviewer, args=(upheld,)) for upheld in (True, False)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    repo.barrier = None

    assert outcomes.count("rejected") == 1
    winner = next(o for o in outcomes if o != "rejected")
    assert repo.find_by_content_id("c1").review_status == winner
