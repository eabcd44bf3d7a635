"""Candidate scoring and selection."""

from news_digest.core.entities import ArticleCandidate

TOPIC_WEIGHT = 10
TITLE_WEIGHT_CAP = 8
BASE_WEIGHT = 5


def score_article(candidate: ArticleCandidate) -> float:
    """Score by matched topics, title length and a flat base weight."""
    topic_weight = len(candidate.matched_topics) * TOPIC_WEIGHT
    title_weight = min(len(candidate.title) / 10, TITLE_WEIGHT_CAP)
    return topic_weight + title_weight + BASE_WEIGHT


def select_top(
    candidates: list[ArticleCandidate],
    top_stories_count: int,
    stories_per_category: int,
) -> list[tuple[ArticleCandidate, float]]:
    """Pick the highest scored candidates under both caps.

    The per-category cap is applied first, walking candidates in descending
    score order (ties keep input order), then the list is cut to
    ``top_stories_count``.
    """
    scored = sorted(
        ((candidate, score_article(candidate)) for candidate in candidates),
        key=lambda pair: pair[1],
        reverse=True,
    )

    per_category: dict[str, int] = {}
    admitted = []
    for candidate, score in scored:
        count = per_category.get(candidate.category, 0)
        if count >= stories_per_category:
            continue
        per_category[candidate.category] = count + 1
        admitted.append((candidate, score))

    return admitted[:top_stories_count]
