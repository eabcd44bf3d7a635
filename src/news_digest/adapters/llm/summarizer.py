"""Article summarization with provider fallback, retry and a call budget."""

import asyncio
import json
import logging
import re
from dataclasses import dataclass
from typing import Any, Optional

from news_digest.core import (
    ArticleCandidate,
    BudgetExceededError,
    ErrorClass,
    ProviderConfigError,
    SummaryProvider,
    classify_error,
)

logger = logging.getLogger(__name__)

MAX_CALLS_PER_RUN = 50
OVERLOAD_RETRY_ATTEMPTS = 3
OVERLOAD_RETRY_BASE_DELAY = 1.0
RAW_SUMMARY_LENGTH = 500
MAX_KEY_POINTS = 3

PROMPT_TEMPLATE = (
    "Summarize this news item in 2-3 sentences and return JSON only with keys "
    "summary and keyPoints (array of 3 short bullet strings).\n"
    "Title: {title}\n"
    "Snippet: {snippet}\n"
    "URL: {url}"
)


@dataclass(frozen=True)
class Summary:
    """Generated summary and key points for one article."""

    summary: str
    key_points: list[str]


class Summarizer:
    """Summarize candidates through an ordered chain of providers.

    Results are cached for the lifetime of the instance by (URL, title).
    Uncached calls are counted against a per-run budget which the caller
    resets at the start of every run.
    """

    def __init__(
        self,
        providers: list[SummaryProvider],
        max_calls_per_run: int = MAX_CALLS_PER_RUN,
        retry_attempts: int = OVERLOAD_RETRY_ATTEMPTS,
        retry_base_delay: float = OVERLOAD_RETRY_BASE_DELAY,
    ) -> None:
        if not providers:
            raise ProviderConfigError("At least one AI provider is required")
        self.providers = providers
        self.max_calls_per_run = max_calls_per_run
        self.retry_attempts = retry_attempts
        self.retry_base_delay = retry_base_delay
        self._cache: dict[tuple[str, str], Summary] = {}
        self._run_calls = 0

    @property
    def run_calls(self) -> int:
        """Provider calls issued since the last reset."""
        return self._run_calls

    def reset_run_counter(self) -> None:
        self._run_calls = 0

    async def summarize(self, candidate: ArticleCandidate) -> Summary:
        """Return a summary for ``candidate``.

        Raises:
            BudgetExceededError: If the per-run call budget is spent.
            ProviderError: If every usable provider failed.
        """
        cache_key = (candidate.url, candidate.title)
        cached = self._cache.get(cache_key)
        if cached is not None:
            return cached

        if self._run_calls >= self.max_calls_per_run:
            raise BudgetExceededError("AI call limit reached for this run")
        self._run_calls += 1

        prompt = PROMPT_TEMPLATE.format(
            title=candidate.title,
            snippet=candidate.snippet,
            url=candidate.url,
        )
        output = await self._complete_with_fallback(prompt)

        result = self.parse_output(
            output,
            fallback_summary=candidate.snippet,
            fallback_points=candidate.matched_topics[:MAX_KEY_POINTS],
        )
        self._cache[cache_key] = result
        return result

    async def _complete_with_fallback(self, prompt: str) -> str:
        """Walk the provider chain; only rate-limit errors move to the next one."""
        last_index = len(self.providers) - 1

        for index, provider in enumerate(self.providers):
            try:
                return await self._with_overload_retry(provider, prompt)
            except Exception as e:
                if index < last_index and classify_error(e) is ErrorClass.RATE_LIMITED:
                    logger.warning(
                        "Provider %s rate limited, falling back to %s: %s",
                        provider.kind.value,
                        self.providers[index + 1].kind.value,
                        e,
                    )
                    continue
                raise

        raise RuntimeError("Provider chain exhausted")

    async def _with_overload_retry(self, provider: SummaryProvider, prompt: str) -> str:
        for attempt in range(1, self.retry_attempts + 1):
            try:
                return await provider.complete(prompt)
            except Exception as e:
                if attempt >= self.retry_attempts or classify_error(e) is not ErrorClass.OVERLOADED:
                    raise
                delay = self.retry_base_delay * attempt
                logger.warning(
                    "Provider %s overloaded, retrying after %.1fs (attempt %d/%d)",
                    provider.kind.value,
                    delay,
                    attempt,
                    self.retry_attempts,
                )
                await asyncio.sleep(delay)

        raise RuntimeError("Overload retry loop exited without a result")

    @staticmethod
    def _fix_json(text: str) -> str:
        """Remove trailing commas before } or ]."""
        return re.sub(r",(\s*[}\]])", r"\1", text)

    @staticmethod
    def _load_object(text: str) -> Optional[dict[str, Any]]:
        try:
            parsed = json.loads(text)
        except json.JSONDecodeError:
            return None
        return parsed if isinstance(parsed, dict) else None

    def parse_output(self, text: str, fallback_summary: str, fallback_points: list[str]) -> Summary:
        """Turn provider output into a Summary, never returning an empty one.

        Tries the whole text as JSON, then the first ``{...}`` substring, then
        the raw text truncated, then the fallbacks.
        """
        text = (text or "").strip()
        summary = fallback_summary
        key_points = list(fallback_points)

        parsed = self._load_object(text)
        if parsed is None:
            match = re.search(r"\{.*\}", text, re.DOTALL)
            if match:
                parsed = self._load_object(self._fix_json(match.group(0)))

        if parsed is not None:
            value = parsed.get("summary")
            if isinstance(value, str) and value.strip():
                summary = value.strip()
            points = parsed.get("keyPoints")
            if isinstance(points, list):
                key_points = [p.strip() for p in points if isinstance(p, str) and p.strip()][:MAX_KEY_POINTS]
        elif text:
            summary = text[:RAW_SUMMARY_LENGTH]

        if not key_points:
            key_points = list(fallback_points)

        return Summary(summary=summary, key_points=key_points)
