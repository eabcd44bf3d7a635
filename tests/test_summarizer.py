"""Tests for summarization fallback, retry and budget."""

from unittest.mock import AsyncMock

import pytest

from news_digest.adapters.llm import Summarizer
from news_digest.core import (
    ArticleCandidate,
    BudgetExceededError,
    Category,
    ProviderConfigError,
    ProviderError,
    ProviderKind,
)

GOOD_OUTPUT = '{"summary": "All good.", "keyPoints": ["one", "two"]}'


def _provider(kind: ProviderKind, *results) -> AsyncMock:
    provider = AsyncMock()
    provider.kind = kind
    provider.complete.side_effect = list(results)
    return provider


def _candidate(url: str = "https://example.com/a", title: str = "A long enough headline") -> ArticleCandidate:
    return ArticleCandidate(
        title=title,
        url=url,
        source="Example",
        category=Category.TECH,
        snippet="Snippet text",
        matched_topics=["AI"],
    )


def _quota_error() -> ProviderError:
    return ProviderError(ProviderKind.OPENAI, "You exceeded your current quota", status=429, code="insufficient_quota")


def _overload_error() -> ProviderError:
    return ProviderError(ProviderKind.ANTHROPIC, "Overloaded", status=529, code="overloaded_error")


def test_requires_provider() -> None:
    with pytest.raises(ProviderConfigError):
        Summarizer([])


@pytest.mark.asyncio
async def test_summarize_success() -> None:
    provider = _provider(ProviderKind.OPENAI, GOOD_OUTPUT)
    summarizer = Summarizer([provider])

    result = await summarizer.summarize(_candidate())

    assert result.summary == "All good."
    assert result.key_points == ["one", "two"]
    prompt = provider.complete.call_args.args[0]
    assert "Title: A long enough headline" in prompt
    assert "URL: https://example.com/a" in prompt


@pytest.mark.asyncio
async def test_cache_hit_makes_one_call() -> None:
    """Test the same URL and title summarized twice costs one call."""
    provider = _provider(ProviderKind.OPENAI, GOOD_OUTPUT)
    summarizer = Summarizer([provider])

    first = await summarizer.summarize(_candidate())
    second = await summarizer.summarize(_candidate())

    assert first == second
    assert provider.complete.call_count == 1
    assert summarizer.run_calls == 1


@pytest.mark.asyncio
async def test_cache_survives_counter_reset() -> None:
    provider = _provider(ProviderKind.OPENAI, GOOD_OUTPUT)
    summarizer = Summarizer([provider])

    await summarizer.summarize(_candidate())
    summarizer.reset_run_counter()
    await summarizer.summarize(_candidate())

    assert provider.complete.call_count == 1
    assert summarizer.run_calls == 0


@pytest.mark.asyncio
async def test_budget_exceeded() -> None:
    """Test the call after the budget is spent fails without calling out."""
    provider = _provider(ProviderKind.OPENAI, GOOD_OUTPUT, GOOD_OUTPUT, GOOD_OUTPUT)
    summarizer = Summarizer([provider], max_calls_per_run=2)

    await summarizer.summarize(_candidate("https://example.com/1"))
    await summarizer.summarize(_candidate("https://example.com/2"))

    with pytest.raises(BudgetExceededError, match="AI call limit reached"):
        await summarizer.summarize(_candidate("https://example.com/3"))

    assert provider.complete.call_count == 2
    assert summarizer.run_calls == 2


@pytest.mark.asyncio
async def test_quota_falls_back_to_next_provider() -> None:
    """Test a quota error on the first provider is served by the second."""
    primary = _provider(ProviderKind.OPENAI, _quota_error())
    secondary = _provider(ProviderKind.ANTHROPIC, GOOD_OUTPUT)
    summarizer = Summarizer([primary, secondary], retry_base_delay=0)

    result = await summarizer.summarize(_candidate())

    assert result.summary == "All good."
    assert primary.complete.call_count == 1
    assert secondary.complete.call_count == 1
    assert summarizer.run_calls == 1


@pytest.mark.asyncio
async def test_quota_on_last_provider_fails() -> None:
    provider = _provider(ProviderKind.OPENAI, _quota_error())
    summarizer = Summarizer([provider], retry_base_delay=0)

    with pytest.raises(ProviderError) as excinfo:
        await summarizer.summarize(_candidate())

    assert excinfo.value.code == "insufficient_quota"


@pytest.mark.asyncio
async def test_fatal_error_does_not_fall_back() -> None:
    primary = _provider(ProviderKind.OPENAI, ProviderError(ProviderKind.OPENAI, "bad key", status=401))
    secondary = _provider(ProviderKind.ANTHROPIC, GOOD_OUTPUT)
    summarizer = Summarizer([primary, secondary], retry_base_delay=0)

    with pytest.raises(ProviderError):
        await summarizer.summarize(_candidate())

    assert secondary.complete.call_count == 0


@pytest.mark.asyncio
async def test_overload_retries_then_succeeds() -> None:
    provider = _provider(ProviderKind.ANTHROPIC, _overload_error(), GOOD_OUTPUT)
    summarizer = Summarizer([provider], retry_base_delay=0)

    result = await summarizer.summarize(_candidate())

    assert result.summary == "All good."
    assert provider.complete.call_count == 2
    # Retries are one logical call
    assert summarizer.run_calls == 1


@pytest.mark.asyncio
async def test_overload_gives_up_after_three_attempts() -> None:
    """Test a persistently overloaded provider fails after 3 attempts."""
    provider = _provider(ProviderKind.ANTHROPIC, _overload_error(), _overload_error(), _overload_error())
    summarizer = Summarizer([provider], retry_base_delay=0)

    with pytest.raises(ProviderError) as excinfo:
        await summarizer.summarize(_candidate())

    assert provider.complete.call_count == 3
    assert excinfo.value.status == 529


@pytest.mark.asyncio
async def test_overload_does_not_fall_back() -> None:
    primary = _provider(ProviderKind.OPENAI, _overload_error(), _overload_error(), _overload_error())
    secondary = _provider(ProviderKind.ANTHROPIC, GOOD_OUTPUT)
    summarizer = Summarizer([primary, secondary], retry_base_delay=0)

    with pytest.raises(ProviderError):
        await summarizer.summarize(_candidate())

    assert secondary.complete.call_count == 0


@pytest.mark.asyncio
async def test_overload_backoff_is_linear(monkeypatch: pytest.MonkeyPatch) -> None:
    delays: list[float] = []

    async def fake_sleep(delay: float) -> None:
        delays.append(delay)

    monkeypatch.setattr("news_digest.adapters.llm.summarizer.asyncio.sleep", fake_sleep)
    provider = _provider(ProviderKind.ANTHROPIC, _overload_error(), _overload_error(), GOOD_OUTPUT)
    summarizer = Summarizer([provider], retry_base_delay=1.0)

    await summarizer.summarize(_candidate())

    assert delays == [1.0, 2.0]
