"""Content detection: text + config -> DetectionResult.

The rule-based detector applies each enabled category's keywords, regular
expressions, and optional scoring heuristic to Unicode-normalized,
case-folded text. It performs no I/O and is deterministic for a given
config, so re-scanning the same text yields an identical result.
"""

from __future__ import annotations

import re
import unicodedata
from collections import Counter
from functools import lru_cache
from typing import Callable, Optional, Protocol

from momentguard.moderation.config import CategoryConfig, ModerationEngineConfig
from momentguard.moderation.errors import DetectionError
from momentguard.moderation.models import CategoryScore, DetectionResult

Span = Optional[tuple[int, int]]


class ContentDetector(Protocol):
    """Anything that can score text against the configured categories."""

    def detect(self, text: str, config: ModerationEngineConfig) -> DetectionResult: ...


def normalize_text(text: str) -> str:
    """NFKC-normalize and case-fold *text* before matching."""
    return unicodedata.normalize("NFKC", text).casefold()


# ---------------------------------------------------------------------------
# Spam heuristic
# ---------------------------------------------------------------------------

# Promotional phrasing (matched against normalized text)
_PROMO_PATTERNS: list[re.Pattern[str]] = [
    re.compile(p)
    for p in [
        r"\b(click here|buy now|limited time|act now|free money|make money|earn \$|guaranteed)\b",
        r"\b(viagra|cialis|casino|poker|lottery|winner|congratulations)\b",
        r"\b(follow me|subscribe|retweet|follow back|follow for follow|f4f)\b",
    ]
]

_SUSPICIOUS_WORDS = ("free", "money", "click", "buy", "now", "limited", "offer", "win", "prize", "cheap")
_SUSPICIOUS_RE = re.compile(r"\b(" + "|".join(_SUSPICIOUS_WORDS) + r")\b")

_SPECIAL_CHARS_RE = re.compile(r"[!@#$%^&*()_+\-=\[\]{};':\"\\|,.<>/?]")
_HASHTAG_RE = re.compile(r"#\w+")
_MENTION_RE = re.compile(r"@\w+")
_URL_RE = re.compile(r"https?://\S+")

_PATTERN_MATCH_WEIGHT = 0.20
_REPETITION_WEIGHT = 0.30
_SPECIAL_CHARS_WEIGHT = 0.15
_EXCESS_ELEMENTS_WEIGHT = 0.20
_SUSPICIOUS_WORD_WEIGHT = 0.05

_MAX_REPETITION_RATIO = 0.3
_MIN_WORDS_FOR_REPETITION = 5
_MAX_SPECIAL_CHAR_RATIO = 0.2


def spam_score(text: str) -> tuple[float, Span]:
    """Score promotional/spammy phrasing in already-normalized *text*."""
    score = 0.0
    span: Span = None

    for pattern in _PROMO_PATTERNS:
        matches = list(pattern.finditer(text))
        if matches:
            ratio = min(1.0, len(matches) / 5)
            score += _PATTERN_MATCH_WEIGHT * (0.5 + ratio * 0.5)
            if span is None:
                span = matches[0].span()

    words = [w for w in text.split() if len(w) > 2]
    if len(words) >= _MIN_WORDS_FOR_REPETITION:
        repetition = max(Counter(words).values()) / len(words)
        if repetition > _MAX_REPETITION_RATIO:
            score += _REPETITION_WEIGHT * repetition

    special_ratio = len(_SPECIAL_CHARS_RE.findall(text)) / len(text) if text else 0.0
    if special_ratio > _MAX_SPECIAL_CHAR_RATIO:
        score += _SPECIAL_CHARS_WEIGHT * special_ratio

    hashtags = len(_HASHTAG_RE.findall(text))
    mentions = len(_MENTION_RE.findall(text))
    urls = len(_URL_RE.findall(text))
    if hashtags > 10 or mentions > 20 or urls > 5:
        score += _EXCESS_ELEMENTS_WEIGHT

    suspicious = list(_SUSPICIOUS_RE.finditer(text))
    if len(suspicious) > 3:
        score += _SUSPICIOUS_WORD_WEIGHT * len(suspicious)
        if span is None:
            span = suspicious[0].span()

    return min(1.0, score), span


HEURISTICS: dict[str, Callable[[str], tuple[float, Span]]] = {
    "spam": spam_score,
}


# ---------------------------------------------------------------------------
# Rule-based detector
# ---------------------------------------------------------------------------


@lru_cache(maxsize=1024)
def _compile_pattern(pattern: str) -> re.Pattern[str]:
    return re.compile(pattern, re.IGNORECASE)


@lru_cache(maxsize=4096)
def _compile_keyword(keyword: str) -> re.Pattern[str]:
    # Whole words/phrases only; internal whitespace matches any run of spaces
    parts = [re.escape(p) for p in normalize_text(keyword).split()]
    return re.compile(r"(?<!\w)" + r"\s+".join(parts) + r"(?!\w)")


class RuleBasedDetector:
    """Lexical detector driven entirely by ``ModerationEngineConfig``."""

    def __init__(self, heuristics: Optional[dict[str, Callable[[str], tuple[float, Span]]]] = None) -> None:
        self._heuristics = dict(HEURISTICS)
        if heuristics:
            self._heuristics.update(heuristics)

    def detect(self, text: str, config: ModerationEngineConfig) -> DetectionResult:
        normalized = normalize_text(text)
        scores: dict[str, CategoryScore] = {}

        for category in config.enabled_categories():
            try:
                score, span = self._score_category(normalized, category)
            except DetectionError:
                raise
            except Exception as exc:
                raise DetectionError(
                    f"Matcher for category {category.name!r} failed: {exc}"
                ) from exc
            if score > 0.0:
                scores[category.name] = CategoryScore(
                    category=category.name, score=round(score, 4), matched_span=span
                )

        categories = tuple(scores[name] for name in sorted(scores))
        return DetectionResult(
            categories=categories,
            max_score=max((c.score for c in categories), default=0.0),
            detector_version=config.detector_version,
        )

    def _score_category(self, text: str, category: CategoryConfig) -> tuple[float, Span]:
        best = 0.0
        best_span: Span = None

        for term in category.keywords:
            match = _compile_keyword(term.value).search(text)
            if match and term.weight > best:
                best, best_span = term.weight, match.span()

        for term in category.patterns:
            try:
                pattern = _compile_pattern(term.value)
            except re.error as exc:
                raise DetectionError(
                    f"Category {category.name!r} has an invalid pattern {term.value!r}: {exc}"
                ) from exc
            match = pattern.search(text)
            if match and term.weight > best:
                best, best_span = term.weight, match.span()

        if category.heuristic:
            heuristic = self._heuristics.get(category.heuristic)
            if heuristic is None:
                raise DetectionError(
                    f"Category {category.name!r} uses unknown heuristic {category.heuristic!r}"
                )
            score, span = heuristic(text)
            if not 0.0 <= score <= 1.0:
                raise DetectionError(
                    f"Heuristic {category.heuristic!r} returned out-of-range score {score}"
                )
            if score > best:
                best, best_span = score, span

        return min(1.0, best), best_span
