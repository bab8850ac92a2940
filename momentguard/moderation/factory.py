"""Engine wiring and configuration presets.

The bundled rule sets are deliberately small: they cover common spam
phrasing and leaked contact/payment details. Production word lists and
thresholds belong in a YAML config loaded with ``load_config``.
"""

from __future__ import annotations

from dataclasses import replace
from typing import Callable, Optional

from momentguard.moderation.blocker import ContentBlocker, ThresholdBlocker
from momentguard.moderation.config import CategoryConfig, ModerationEngineConfig, WeightedTerm
from momentguard.moderation.detector import ContentDetector, RuleBasedDetector
from momentguard.moderation.engine import ModerationEngine
from momentguard.moderation.events import ModerationEventLog
from momentguard.storage.memory import (
    InMemoryContentStorage,
    InMemoryModerationRepository,
    NullContentStorage,
)
from momentguard.storage.ports import ContentStorage, ModerationRepository

_SPAM_PATTERNS = (
    WeightedTerm(r"\b(buy|get)\s+(cheap\s+)?(real\s+)?(followers|likes|views|subscribers)\b", 0.9),
    WeightedTerm(r"\b(dm|message)\s+me\s+for\s+(promo|promotion|shoutout)s?\b", 0.6),
    WeightedTerm(r"\bcheck\s+(out\s+)?my\s+(profile|page|bio)\b", 0.35),
)

_PII_PATTERNS = (
    WeightedTerm(r"\b[\w.+-]+@[\w-]+\.[\w.-]+\b", 0.5),
    WeightedTerm(r"(?<!\d)(?:\+\d{1,3}[\s.-]?)?\(?\d{3}\)?[\s.-]?\d{3}[\s.-]?\d{4}(?!\d)", 0.5),
    WeightedTerm(r"\b(?:\d{4}[-\s]?){3}\d{4}\b", 0.9),
    WeightedTerm(r"\b\d{3}-\d{2}-\d{4}\b", 0.9),
)


def _categories(spam: tuple[float, float], pii: tuple[float, float]) -> tuple[CategoryConfig, ...]:
    return (
        CategoryConfig(
            name="pii",
            patterns=_PII_PATTERNS,
            review_threshold=pii[0],
            block_threshold=pii[1],
        ),
        CategoryConfig(
            name="spam",
            patterns=_SPAM_PATTERNS,
            heuristic="spam",
            review_threshold=spam[0],
            block_threshold=spam[1],
        ),
    )


class ModerationEngineFactory:
    """Builds engines and the stock configurations."""

    @staticmethod
    def create(
        config: Optional[ModerationEngineConfig] = None,
        repository: Optional[ModerationRepository] = None,
        storage: Optional[ContentStorage] = None,
        detector: Optional[ContentDetector] = None,
        blocker: Optional[ContentBlocker] = None,
        event_log: Optional[ModerationEventLog] = None,
    ) -> ModerationEngine:
        """Wire an engine, filling unspecified collaborators with in-memory defaults."""
        config = config or ModerationEngineFactory.create_default_config()
        repository = repository if repository is not None else InMemoryModerationRepository()
        storage = storage if storage is not None else InMemoryContentStorage()
        return ModerationEngine(
            detector=detector or RuleBasedDetector(),
            blocker=blocker or ThresholdBlocker(repository),
            repository=repository,
            storage=storage,
            config=config,
            event_log=event_log,
        )

    @staticmethod
    def create_dry_run(config: Optional[ModerationEngineConfig] = None) -> ModerationEngine:
        """Engine whose decisions and content are kept only in memory, then discarded."""
        return ModerationEngineFactory.create(
            config=config,
            repository=InMemoryModerationRepository(),
            storage=NullContentStorage(),
        )

    @staticmethod
    def create_default_config() -> ModerationEngineConfig:
        return ModerationEngineConfig(
            categories=_categories(spam=(0.3, 0.7), pii=(0.4, 0.8)),
            policy_version="default-1",
        )

    @staticmethod
    def create_strict_config() -> ModerationEngineConfig:
        return ModerationEngineConfig(
            categories=_categories(spam=(0.2, 0.5), pii=(0.3, 0.5)),
            default_review_threshold=0.2,
            default_block_threshold=0.5,
            archive_allowed=True,
            policy_version="strict-1",
        )

    @staticmethod
    def create_permissive_config() -> ModerationEngineConfig:
        # Nothing is blocked automatically; would-be blocks go to review
        return ModerationEngineConfig(
            categories=_categories(spam=(0.5, 0.9), pii=(0.5, 0.9)),
            default_review_threshold=0.5,
            default_block_threshold=0.9,
            auto_block=False,
            policy_version="permissive-1",
        )


PRESETS: dict[str, Callable[[], ModerationEngineConfig]] = {
    "default": ModerationEngineFactory.create_default_config,
    "strict": ModerationEngineFactory.create_strict_config,
    "permissive": ModerationEngineFactory.create_permissive_config,
}


def preset_config(name: str, **overrides: object) -> ModerationEngineConfig:
    """Return preset *name*, optionally with top-level fields replaced."""
    try:
        config = PRESETS[name]()
    except KeyError:
        raise ValueError(f"Unknown preset {name!r}; choose from {sorted(PRESETS)}") from None
    return replace(config, **overrides) if overrides else config
