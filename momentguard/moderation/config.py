"""Moderation engine configuration.

Configuration is immutable once built and safely shared by concurrent
``moderate`` calls. It can be constructed directly, taken from a preset in
``momentguard.moderation.factory``, or loaded from YAML::

    policy_version: "2026-10"
    detector_version: "rules-1"
    auto_block: true
    archive_allowed: false
    max_text_length: 2200
    default_thresholds: {review: 0.3, block: 0.7}
    categories:
      - name: spam
        heuristic: spam
        review_threshold: 0.3
        block_threshold: 0.6
        patterns:
          - {pattern: "buy (cheap )?followers", weight: 0.9}
        keywords:
          - "free money"
          - {term: "promo code", weight: 0.4}
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional

import yaml

from momentguard.moderation.errors import ConfigError

DEFAULT_REVIEW_THRESHOLD = 0.3
DEFAULT_BLOCK_THRESHOLD = 0.7
DEFAULT_MAX_TEXT_LENGTH = 2200


def _check_thresholds(owner: str, review: float, block: float) -> None:
    for label, value in (("review", review), ("block", block)):
        if not 0.0 <= value <= 1.0:
            raise ConfigError(f"{owner}: {label} threshold {value} is outside [0, 1]")
    if review >= block:
        raise ConfigError(
            f"{owner}: review threshold {review} must be below block threshold {block}"
        )


@dataclass(frozen=True)
class WeightedTerm:
    """A keyword or regular expression and the score it contributes."""

    value: str
    weight: float = 1.0

    def __post_init__(self) -> None:
        if not self.value.strip():
            raise ConfigError("Matcher terms must not be empty or blank")
        if not 0.0 < self.weight <= 1.0:
            raise ConfigError(f"Weight for {self.value!r} must be in (0, 1], got {self.weight}")


@dataclass(frozen=True)
class CategoryConfig:
    """One violation category and how it is matched and enforced."""

    name: str
    keywords: tuple[WeightedTerm, ...] = ()
    patterns: tuple[WeightedTerm, ...] = ()
    heuristic: Optional[str] = None
    review_threshold: Optional[float] = None  # None -> engine default
    block_threshold: Optional[float] = None
    enabled: bool = True

    def __post_init__(self) -> None:
        if not self.name:
            raise ConfigError("Category name must not be empty")
        for value in (self.review_threshold, self.block_threshold):
            if value is not None and not 0.0 <= value <= 1.0:
                raise ConfigError(f"category {self.name!r}: threshold {value} is outside [0, 1]")


@dataclass(frozen=True)
class ModerationEngineConfig:
    """Thresholds, matchers and enforcement policy for the engine."""

    categories: tuple[CategoryConfig, ...] = ()
    default_review_threshold: float = DEFAULT_REVIEW_THRESHOLD
    default_block_threshold: float = DEFAULT_BLOCK_THRESHOLD
    auto_block: bool = True  # False: every would-be block goes to human review instead
    archive_allowed: bool = False
    max_text_length: int = DEFAULT_MAX_TEXT_LENGTH
    policy_version: str = "default-1"
    detector_version: str = "rules-1"

    def __post_init__(self) -> None:
        _check_thresholds("defaults", self.default_review_threshold, self.default_block_threshold)
        if self.max_text_length <= 0:
            raise ConfigError("max_text_length must be positive")
        names = [c.name for c in self.categories]
        if len(names) != len(set(names)):
            raise ConfigError(f"Duplicate category names in {names}")
        for cat in self.categories:
            self.thresholds_for(cat.name)

    def category(self, name: str) -> Optional[CategoryConfig]:
        for cat in self.categories:
            if cat.name == name:
                return cat
        return None

    def enabled_categories(self) -> list[CategoryConfig]:
        return [c for c in self.categories if c.enabled]

    def thresholds_for(self, name: str) -> tuple[float, float]:
        """Return ``(review, block)`` thresholds for a category."""
        cat = self.category(name)
        review = self.default_review_threshold
        block = self.default_block_threshold
        if cat is not None:
            if cat.review_threshold is not None:
                review = cat.review_threshold
            if cat.block_threshold is not None:
                block = cat.block_threshold
        if review >= block:
            raise ConfigError(
                f"category {name!r}: review threshold {review} must be below block threshold {block}"
            )
        return review, block

    def to_dict(self) -> dict[str, Any]:
        """Serialize to the same shape ``config_from_dict`` accepts."""
        categories = []
        for cat in self.categories:
            entry: dict[str, Any] = {"name": cat.name, "enabled": cat.enabled}
            if cat.heuristic:
                entry["heuristic"] = cat.heuristic
            if cat.review_threshold is not None:
                entry["review_threshold"] = cat.review_threshold
            if cat.block_threshold is not None:
                entry["block_threshold"] = cat.block_threshold
            if cat.keywords:
                entry["keywords"] = [{"term": k.value, "weight": k.weight} for k in cat.keywords]
            if cat.patterns:
                entry["patterns"] = [{"pattern": p.value, "weight": p.weight} for p in cat.patterns]
            categories.append(entry)
        return {
            "policy_version": self.policy_version,
            "detector_version": self.detector_version,
            "auto_block": self.auto_block,
            "archive_allowed": self.archive_allowed,
            "max_text_length": self.max_text_length,
            "default_thresholds": {
                "review": self.default_review_threshold,
                "block": self.default_block_threshold,
            },
            "categories": categories,
        }


# ---------------------------------------------------------------------------
# Loading
# ---------------------------------------------------------------------------


def _parse_terms(raw: Any, key: str, category: str) -> tuple[WeightedTerm, ...]:
    if raw is None:
        return ()
    if not isinstance(raw, list):
        raise ConfigError(f"category {category!r}: {key} must be a list")
    terms = []
    for item in raw:
        if isinstance(item, str):
            terms.append(WeightedTerm(item))
        elif isinstance(item, dict):
            value = item.get("term") if key == "keywords" else item.get("pattern")
            if not isinstance(value, str):
                raise ConfigError(f"category {category!r}: malformed {key} entry {item!r}")
            terms.append(WeightedTerm(value, float(item.get("weight", 1.0))))
        else:
            raise ConfigError(f"category {category!r}: malformed {key} entry {item!r}")
    return tuple(terms)


def _parse_category(raw: Any) -> CategoryConfig:
    if not isinstance(raw, dict) or not raw.get("name"):
        raise ConfigError(f"Every category needs a name, got {raw!r}")
    name = str(raw["name"])
    review = raw.get("review_threshold")
    block = raw.get("block_threshold")
    return CategoryConfig(
        name=name,
        keywords=_parse_terms(raw.get("keywords"), "keywords", name),
        patterns=_parse_terms(raw.get("patterns"), "patterns", name),
        heuristic=raw.get("heuristic"),
        review_threshold=float(review) if review is not None else None,
        block_threshold=float(block) if block is not None else None,
        enabled=bool(raw.get("enabled", True)),
    )


def config_from_dict(data: dict[str, Any]) -> ModerationEngineConfig:
    """Build a config from a parsed YAML/JSON document."""
    if not isinstance(data, dict):
        raise ConfigError("Configuration document must be a mapping")

    defaults = data.get("default_thresholds") or {}
    if not isinstance(defaults, dict):
        raise ConfigError("default_thresholds must be a mapping with review and block keys")
    try:
        return ModerationEngineConfig(
            categories=tuple(_parse_category(c) for c in data.get("categories") or []),
            default_review_threshold=float(defaults.get("review", DEFAULT_REVIEW_THRESHOLD)),
            default_block_threshold=float(defaults.get("block", DEFAULT_BLOCK_THRESHOLD)),
            auto_block=bool(data.get("auto_block", True)),
            archive_allowed=bool(data.get("archive_allowed", False)),
            max_text_length=int(data.get("max_text_length", DEFAULT_MAX_TEXT_LENGTH)),
            policy_version=str(data.get("policy_version", "default-1")),
            detector_version=str(data.get("detector_version", "rules-1")),
        )
    except ConfigError:
        raise
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"Invalid configuration value: {exc}") from exc


def load_config(path: str | Path) -> ModerationEngineConfig:
    """Load an engine configuration from a YAML file."""
    try:
        with open(path) as f:
            data = yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as exc:
        raise ConfigError(f"Cannot read configuration {path}: {exc}") from exc
    return config_from_dict(data or {})
