"""Tests for core entities."""

import pytest

from news_digest.core import (
    AllowedDomain,
    ArticleCandidate,
    Category,
    DigestSettings,
    RankedArticle,
    Source,
    SourceResult,
)


def test_candidate_creation() -> None:
    """Test creating a valid candidate."""
    candidate = ArticleCandidate(
        title="Chipmaker beats earnings expectations",
        url="https://example.com/a",
        source="Example",
        category=Category.BUSINESS,
        snippet="Quarterly results",
        matched_topics=["earnings"],
    )

    assert candidate.title == "Chipmaker beats earnings expectations"
    assert candidate.category == Category.BUSINESS
    assert candidate.matched_topics == ["earnings"]


def test_candidate_validation() -> None:
    """Test candidate validation."""
    with pytest.raises(ValueError, match="Title cannot be empty"):
        ArticleCandidate(
            title="",
            url="https://example.com/a",
            source="Example",
            category=Category.TECH,
            snippet="",
        )

    with pytest.raises(ValueError, match="URL cannot be empty"):
        ArticleCandidate(
            title="Test",
            url="",
            source="Example",
            category=Category.TECH,
            snippet="",
        )


def test_allowed_domain_is_normalized() -> None:
    """Test allowed domains are stored lowercase without www."""
    domain = AllowedDomain(domain="  WWW.Example.COM ")

    assert domain.domain == "example.com"


def test_settings_bounds() -> None:
    """Test settings reject out-of-range caps."""
    with pytest.raises(ValueError, match="top_stories_count"):
        DigestSettings(email="me@example.com", top_stories_count=0)

    with pytest.raises(ValueError, match="stories_per_category"):
        DigestSettings(email="me@example.com", stories_per_category=21)


def test_settings_list_fields_must_be_strings() -> None:
    """Test separated-list fields reject YAML lists."""
    with pytest.raises(ValueError, match="topic_free_categories must be a string, got list"):
        DigestSettings(email="me@example.com", topic_free_categories=["world", "local"])

    with pytest.raises(ValueError, match="recipients must be a string"):
        DigestSettings(email="me@example.com", recipients=["a@example.com"])


def test_ranked_article_to_dict() -> None:
    """Test history serialization shape."""
    candidate = ArticleCandidate(
        title="Rates held steady again",
        url="https://example.com/rates",
        source="FT",
        category=Category.FINANCE,
        snippet="Central bank",
        matched_topics=["Interest rates"],
    )
    article = RankedArticle(candidate=candidate, score=23.5, summary="Held.", key_points=["a", "b"])

    data = article.to_dict()

    assert data["url"] == "https://example.com/rates"
    assert data["category"] == "finance"
    assert data["matchedTopics"] == ["Interest rates"]
    assert data["keyPoints"] == ["a", "b"]
    assert data["score"] == 23.5


def test_source_result_skipped() -> None:
    """Test skipped source results carry a reason and no candidates."""
    source = Source(id=1, category=Category.TECH, url="https://example.com", name="Example")

    result = SourceResult.skipped(source, "timeout")

    assert not result.ok
    assert result.candidates == []
    assert result.skipped_reason == "timeout"
