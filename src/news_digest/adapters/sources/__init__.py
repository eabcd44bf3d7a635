"""Source adapters for fetching article candidates."""

from news_digest.adapters.sources.web_source import WebScraper, collect_candidates

__all__ = ["WebScraper", "collect_candidates"]
