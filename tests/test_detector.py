"""Tests for the rule-based content detector."""

import pytest

from momentguard.moderation.config import CategoryConfig, ModerationEngineConfig, WeightedTerm
from momentguard.moderation.detector import RuleBasedDetector, normalize_text, spam_score
from momentguard.moderation.errors import DetectionError


def _config(*categories: CategoryConfig, **kwargs) -> ModerationEngineConfig:
    return ModerationEngineConfig(categories=categories, **kwargs)


def _keywords(name: str, *terms: tuple[str, float]) -> CategoryConfig:
    return CategoryConfig(name=name, keywords=tuple(WeightedTerm(t, w) for t, w in terms))


def test_no_match_is_empty_result():
    config = _config(_keywords("profanity", ("darn", 1.0)), detector_version="rules-7")
    result = RuleBasedDetector().detect("great video!", config)
    assert result.categories == ()
    assert result.max_score == 0.0
    assert result.detector_version == "rules-7"


def test_keyword_match_is_case_insensitive_and_whole_word():
    config = _config(_keywords("profanity", ("darn", 0.9)))
    detector = RuleBasedDetector()

    hit = detector.detect("DARN it", config)
    assert hit.score_for("profanity") == 0.9
    assert hit.categories[0].matched_span == (0, 4)

    assert detector.detect("darnit all", config).categories == ()


def test_keyword_phrase_tolerates_extra_whitespace():
    config = _config(_keywords("spam", ("cheap followers", 0.8)))
    result = RuleBasedDetector().detect("get cheap   followers today", config)
    assert result.score_for("spam") == 0.8


def test_unicode_normalization_before_matching():
    config = _config(_keywords("profanity", ("darn", 1.0)))
    # Fullwidth letters fold to ASCII under NFKC
    result = RuleBasedDetector().detect("ｄａｒｎ", config)
    assert result.score_for("profanity") == 1.0
    assert normalize_text("ＡＢＣ") == "abc"


def test_all_matching_categories_reported_sorted_by_name():
    config = _config(
        _keywords("zeta", ("foo", 0.5)),
        _keywords("alpha", ("bar", 0.6)),
    )
    result = RuleBasedDetector().detect("foo bar", config)
    assert [c.category for c in result.categories] == ["alpha", "zeta"]
    assert result.max_score == 0.6


def test_highest_score_per_category_wins():
    config = _config(_keywords("spam", ("promo", 0.4), ("giveaway", 0.8)))
    result = RuleBasedDetector().detect("promo giveaway", config)
    assert len(result.categories) == 1
    assert result.categories[0].score == 0.8
    assert result.categories[0].matched_span == (6, 14)


def test_patterns_use_their_own_weight():
    config = _config(
        CategoryConfig(
            name="spam",
            patterns=(WeightedTerm(r"buy .* followers", 0.85),),
        )
    )
    result = RuleBasedDetector().detect("Buy cheap followers now!!!", config)
    assert result.score_for("spam") == 0.85


def test_detection_is_idempotent():
    config = _config(
        _keywords("spam", ("promo", 0.4)),
        CategoryConfig(name="noise", heuristic="spam"),
    )
    detector = RuleBasedDetector()
    text = "promo promo promo promo promo, click here, buy now"
    assert detector.detect(text, config) == detector.detect(text, config)


def test_disabled_category_is_skipped():
    config = _config(
        CategoryConfig(name="spam", keywords=(WeightedTerm("promo"),), enabled=False)
    )
    assert RuleBasedDetector().detect("promo", config).categories == ()


def test_invalid_pattern_raises_detection_error():
    config = _config(CategoryConfig(name="broken", patterns=(WeightedTerm("(unclosed", 0.5),)))
    with pytest.raises(DetectionError):
        RuleBasedDetector().detect("anything", config)


def test_unknown_heuristic_raises_detection_error():
    config = _config(CategoryConfig(name="x", heuristic="does-not-exist"))
    with pytest.raises(DetectionError):
        RuleBasedDetector().detect("anything", config)


def test_crashing_heuristic_raises_detection_error():
    def boom(text):
        raise RuntimeError("model unavailable")

    config = _config(CategoryConfig(name="x", heuristic="boom"))
    with pytest.raises(DetectionError, match="model unavailable"):
        RuleBasedDetector(heuristics={"boom": boom}).detect("anything", config)


def test_out_of_range_heuristic_score_is_rejected():
    config = _config(CategoryConfig(name="x", heuristic="loud"))
    detector = RuleBasedDetector(heuristics={"loud": lambda text: (1.5, None)})
    with pytest.raises(DetectionError):
        detector.detect("anything", config)


# --- Spam heuristic ---


def test_spam_score_clean_text():
    assert spam_score("great video!") == (0.0, None)


def test_spam_score_promotional_text():
    text = normalize_text("Click here to win! Buy now, limited time offer, free money")
    score, span = spam_score(text)
    assert 0.3 < score <= 1.0
    assert span is not None


def test_spam_score_repetition():
    score, _ = spam_score("wow wow wow wow wow")
    assert score == pytest.approx(0.3)


def test_spam_score_short_text_is_not_repetitive():
    assert spam_score("nice nice")[0] == 0.0
