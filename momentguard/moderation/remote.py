"""Detector backed by an external HTTP classification service.

The service receives ``{"text": ..., "categories": [...]}`` and answers with
``{"version": "...", "categories": [{"category": "spam", "score": 0.82}, ...]}``.
Any transport failure or malformed answer is a ``DetectionError``: an
unreachable classifier must never read as "no violation".
"""

from __future__ import annotations

import math
from typing import Optional

import httpx

from momentguard.moderation.config import ModerationEngineConfig
from momentguard.moderation.errors import DetectionError
from momentguard.moderation.models import CategoryScore, DetectionResult

DEFAULT_TIMEOUT = 5.0


class RemoteClassifierDetector:
    """Synchronous client for a text classification endpoint."""

    def __init__(
        self,
        endpoint: str,
        client: Optional[httpx.Client] = None,
        api_key: str = "",
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        self.endpoint = endpoint
        headers = {"Authorization": f"Bearer {api_key}"} if api_key else {}
        self._client = client or httpx.Client(timeout=timeout, headers=headers)

    def close(self) -> None:
        self._client.close()

    def detect(self, text: str, config: ModerationEngineConfig) -> DetectionResult:
        payload = {
            "text": text,
            "categories": [c.name for c in config.enabled_categories()],
        }
        try:
            response = self._client.post(self.endpoint, json=payload)
            response.raise_for_status()
            body = response.json()
        except httpx.HTTPError as exc:
            raise DetectionError(f"Classifier request to {self.endpoint} failed: {exc}") from exc
        except ValueError as exc:
            raise DetectionError(f"Classifier returned invalid JSON: {exc}") from exc

        return self._parse(body, config)

    @staticmethod
    def _parse(body: object, config: ModerationEngineConfig) -> DetectionResult:
        if not isinstance(body, dict) or not isinstance(body.get("categories"), list):
            raise DetectionError("Classifier response has no 'categories' list")

        scores: dict[str, float] = {}
        for item in body["categories"]:
            try:
                name = str(item["category"])
                score = float(item["score"])
            except (KeyError, TypeError, ValueError) as exc:
                raise DetectionError(f"Malformed classifier category entry {item!r}") from exc
            if not math.isfinite(score):
                raise DetectionError(f"Classifier returned non-finite score for {name!r}: {score}")
            score = round(min(1.0, max(0.0, score)), 4)
            if score > 0.0:
                scores[name] = max(score, scores.get(name, 0.0))

        categories = tuple(CategoryScore(category=n, score=scores[n]) for n in sorted(scores))
        version = body.get("version") or "unknown"
        return DetectionResult(
            categories=categories,
            max_score=max((c.score for c in categories), default=0.0),
            detector_version=f"remote:{version}/{config.detector_version}",
        )
