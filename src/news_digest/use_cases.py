"""Business logic use cases."""

import asyncio
import logging
from typing import Optional

from news_digest.adapters.llm import Summarizer
from news_digest.adapters.sources import WebScraper, collect_candidates
from news_digest.core import (
    ArticleCandidate,
    Deduplicator,
    DeliveryError,
    Deliverer,
    RankedArticle,
    RecordStore,
    RunAction,
    SettingsMissingError,
    select_top,
)
from news_digest.core.validation import resolve_recipients

logger = logging.getLogger(__name__)


class DigestPipeline:
    """One digest run: scrape, dedupe, rank, summarize and optionally deliver.

    Persisting the outcome is left to the caller, which records history for
    failures as well.
    """

    def __init__(
        self,
        store: RecordStore,
        scraper: WebScraper,
        summarizer: Summarizer,
        deliverer: Optional[Deliverer] = None,
        deduplicator: Optional[Deduplicator] = None,
    ) -> None:
        self.store = store
        self.scraper = scraper
        self.summarizer = summarizer
        self.deliverer = deliverer
        self.deduplicator = deduplicator or Deduplicator()

    @property
    def run_calls(self) -> int:
        """Provider calls made by the current (or last) run."""
        return self.summarizer.run_calls

    @property
    def call_limit(self) -> int:
        return self.summarizer.max_calls_per_run

    async def run(self, action: RunAction) -> list[RankedArticle]:
        """Execute the pipeline.

        Raises:
            DigestError: On any run-level failure (settings, store, budget,
                provider, recipients, delivery).
        """
        logger.info("Digest run started: mode=%s", action.value)
        self.summarizer.reset_run_counter()

        settings = await self.store.get_settings()
        if settings is None:
            raise SettingsMissingError("Settings are missing")

        recipients: list[str] = []
        if action is RunAction.SEND:
            if self.deliverer is None:
                raise DeliveryError("No mail transport configured")
            recipients = resolve_recipients(settings.email, settings.recipients)

        sources, topics, allowed_domains = await asyncio.gather(
            self.store.list_sources(),
            self.store.list_topics(),
            self.store.list_active_allowed_domains(),
        )

        results = await self.scraper.scrape(sources, topics, settings, allowed_domains)
        candidates = collect_candidates(results)
        skipped = sum(1 for r in results if not r.ok)
        logger.info(
            "Scraper completed: candidates=%d sources=%d skipped=%d",
            len(candidates),
            len(results),
            skipped,
        )

        last_history = await self.store.get_last_successful_history()
        candidates = self.deduplicator.filter(candidates, last_history)

        selected = select_top(candidates, settings.top_stories_count, settings.stories_per_category)
        ranked = await self._summarize(selected)
        logger.info("Ranking completed: selected=%d provider_calls=%d", len(ranked), self.run_calls)

        if action is RunAction.SEND:
            await self.deliverer.deliver(recipients, ranked)

        return ranked

    async def _summarize(self, selected: list[tuple[ArticleCandidate, float]]) -> list[RankedArticle]:
        """Summarize sequentially, keeping rank order."""
        ranked = []
        for candidate, score in selected:
            summary = await self.summarizer.summarize(candidate)
            ranked.append(RankedArticle(
                candidate=candidate,
                score=score,
                summary=summary.summary,
                key_points=summary.key_points,
            ))
        return ranked
