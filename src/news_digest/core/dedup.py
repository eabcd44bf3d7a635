"""Deduplication of fresh candidates against the previous digest."""

import json
import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

from news_digest.core.entities import ArticleCandidate, DigestHistory

logger = logging.getLogger(__name__)

DEDUPE_WINDOW = timedelta(hours=1)


class Deduplicator:
    """Drop candidates already sent in the last successful digest."""

    def __init__(self, window: timedelta = DEDUPE_WINDOW) -> None:
        self.window = window

    def should_apply(self, history: Optional[DigestHistory], now: Optional[datetime] = None) -> bool:
        """Apply only when the previous digest is at least one window old."""
        if history is None:
            return False
        now = now or datetime.now(timezone.utc)
        generated_at = history.generated_at
        if generated_at.tzinfo is None:
            generated_at = generated_at.replace(tzinfo=timezone.utc)
        return now - generated_at >= self.window

    @staticmethod
    def previous_urls(history: Optional[DigestHistory]) -> set[str]:
        if history is None:
            return set()
        try:
            payload = json.loads(history.articles_json)
            return {entry["url"] for entry in payload if isinstance(entry, dict) and "url" in entry}
        except (json.JSONDecodeError, TypeError):
            logger.warning("Failed to parse previous digest articles for deduplication")
            return set()

    def filter(
        self,
        candidates: list[ArticleCandidate],
        history: Optional[DigestHistory],
        now: Optional[datetime] = None,
    ) -> list[ArticleCandidate]:
        """Return candidates not present in ``history``.

        Falls back to the unfiltered list when nothing would remain.
        """
        if not self.should_apply(history, now):
            return candidates

        seen = self.previous_urls(history)
        fresh = [c for c in candidates if c.url not in seen]

        if not fresh:
            logger.info("Deduplication removed all candidates; falling back to full candidate list")
            return candidates

        logger.info(
            "Deduplication removed %d articles (threshold %d min)",
            len(candidates) - len(fresh),
            self.window.total_seconds() // 60,
        )
        return fresh
