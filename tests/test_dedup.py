"""Tests for deduplication against the previous digest."""

import json
from datetime import datetime, timedelta, timezone

from news_digest.core import ArticleCandidate, Category, Deduplicator, DigestHistory


def _candidate(url: str) -> ArticleCandidate:
    return ArticleCandidate(
        title=f"Headline for {url}",
        url=url,
        source="Example",
        category=Category.TECH,
        snippet="",
        matched_topics=["top story"],
    )


def _history(urls: list[str], age: timedelta) -> DigestHistory:
    return DigestHistory(
        id=1,
        generated_at=datetime.now(timezone.utc) - age,
        articles_count=len(urls),
        categories_json='["tech"]',
        articles_json=json.dumps([{"url": u} for u in urls]),
        sent_successfully=True,
    )


A = "https://example.com/a"
B = "https://example.com/b"
C = "https://example.com/c"


def test_filters_previous_urls() -> None:
    """Test {A, B} sent earlier leaves only {C}."""
    history = _history([A, B], age=timedelta(hours=2))

    result = Deduplicator().filter([_candidate(A), _candidate(B), _candidate(C)], history)

    assert [c.url for c in result] == [C]


def test_falls_back_when_everything_was_sent() -> None:
    """Test fresh {A, B} is kept when filtering would empty it."""
    history = _history([A, B], age=timedelta(hours=2))
    candidates = [_candidate(A), _candidate(B)]

    result = Deduplicator().filter(candidates, history)

    assert [c.url for c in result] == [A, B]


def test_skips_recent_history() -> None:
    """Test a digest younger than the window does not filter."""
    history = _history([A, B], age=timedelta(minutes=10))
    candidates = [_candidate(A), _candidate(B), _candidate(C)]

    result = Deduplicator().filter(candidates, history)

    assert result == candidates


def test_no_history() -> None:
    candidates = [_candidate(A)]

    assert Deduplicator().filter(candidates, None) == candidates


def test_unparseable_history() -> None:
    """Test broken article JSON means nothing is filtered."""
    history = _history([A], age=timedelta(hours=2))
    history.articles_json = "not json"
    candidates = [_candidate(A), _candidate(B)]

    assert Deduplicator().filter(candidates, history) == candidates


def test_naive_timestamp_treated_as_utc() -> None:
    history = _history([A], age=timedelta(hours=2))
    history.generated_at = history.generated_at.replace(tzinfo=None)

    assert Deduplicator().should_apply(history)
