"""Shared filtering utilities for sources."""

import html
import re
from typing import Optional
from urllib.parse import urljoin, urlparse

from news_digest.core import Topic

NON_ARTICLE_MARKERS = ("/live/", "/video/", "/newsletter", "/podcast")
PAYWALL_MARKERS = ("/subscribe", "/paywall", "/premium")


def match_topics(title: str, snippet: str, topics: list[Topic]) -> list[str]:
    """
    Return the topics found in the title or snippet.

    A topic matches when its full text occurs (case-insensitive), or when any
    of its words of four or more letters occurs on its own.

    Args:
        title: Title of the candidate
        snippet: Description of the candidate
        topics: Active topics of the candidate's category

    Returns:
        Matching topic keywords in topic order
    """
    haystack = f"{title} {snippet}".lower()
    matched = []

    for topic in topics:
        normalized = topic.topic.lower()
        if normalized in haystack:
            matched.append(topic.topic)
            continue
        tokens = [token for token in normalized.split() if len(token) >= 4]
        if any(token in haystack for token in tokens):
            matched.append(topic.topic)

    return matched


def normalize_link(base_url: str, href: str) -> Optional[str]:
    """Resolve ``href`` against ``base_url``; None unless the result is HTTPS."""
    try:
        resolved = urljoin(base_url, href.strip())
    except ValueError:
        return None
    parsed = urlparse(resolved)
    if parsed.scheme != "https" or not parsed.netloc:
        return None
    return resolved


def is_likely_article_url(url: str) -> bool:
    lower = url.lower()
    return not any(marker in lower for marker in NON_ARTICLE_MARKERS)


def is_likely_paywalled(url: str) -> bool:
    lower = url.lower()
    return any(marker in lower for marker in PAYWALL_MARKERS)


def clean_text(raw: str) -> str:
    """Decode entities, drop tags and collapse whitespace."""
    if not raw:
        return ""
    text = html.unescape(raw)
    text = re.sub(r"<[^>]+>", " ", text)
    return re.sub(r"\s+", " ", text).strip()
