"""Scraper for configured news sources (RSS/Atom feeds and HTML pages)."""

import asyncio
import logging
from dataclasses import dataclass
from typing import Optional
from xml.etree import ElementTree as ET

import httpx
from bs4 import BeautifulSoup

from news_digest.adapters.sources.filters import (
    clean_text,
    is_likely_article_url,
    is_likely_paywalled,
    match_topics,
    normalize_link,
)
from news_digest.core import (
    TOP_STORY,
    ArticleCandidate,
    DigestSettings,
    Source,
    SourceResult,
    Topic,
)
from news_digest.core.validation import is_url_allowed, parse_category_list

logger = logging.getLogger(__name__)

REQUEST_TIMEOUT = 10.0
MAX_RESPONSE_BYTES = 2_000_000
MAX_LINKS_PER_SOURCE = 220
MAX_RESULTS_PER_SOURCE = 40
MIN_TITLE_LENGTH = 12
SNIPPET_LENGTH = 280
USER_AGENT = "NewsDigestBot/1.0 (+local dashboard)"

HTML_LINK_SELECTOR = "article a[href], h2 a[href], h3 a[href], a[href]"


@dataclass
class _SourceFilter:
    """Per-source filtering rules."""

    allowed_domains: list[str]
    topics: list[Topic]
    skip_topic_filter: bool
    skip_paywalls: bool


def _local_name(tag: str) -> str:
    return tag.rsplit("}", 1)[-1] if isinstance(tag, str) else ""


def _children(element: ET.Element, name: str) -> list[ET.Element]:
    return [child for child in element if _local_name(child.tag) == name]


def _element_text(element: ET.Element) -> str:
    return "".join(element.itertext()).strip()


def _decode(raw: bytes, encoding: Optional[str]) -> str:
    """Decode with the declared charset, falling back to UTF-8."""
    try:
        return raw.decode(encoding or "utf-8", errors="replace")
    except LookupError:
        return raw.decode("utf-8", errors="replace")


def is_feed_response(content_type: str, body: str) -> bool:
    """Detect RSS/Atom by content type, then by the start of the body."""
    mime = (content_type or "").lower()
    if "xml" in mime or "rss" in mime or "atom" in mime:
        return True
    head = body.strip()[:200].lower()
    return head.startswith("<?xml") or "<rss" in head or "<feed" in head


class WebScraper:
    """Fetch active sources and turn their links into article candidates."""

    def __init__(
        self,
        timeout: float = REQUEST_TIMEOUT,
        max_bytes: int = MAX_RESPONSE_BYTES,
        max_links: int = MAX_LINKS_PER_SOURCE,
        max_results: int = MAX_RESULTS_PER_SOURCE,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.timeout = timeout
        self.max_bytes = max_bytes
        self.max_links = max_links
        self.max_results = max_results
        self.transport = transport

    async def scrape(
        self,
        sources: list[Source],
        topics: list[Topic],
        settings: DigestSettings,
        allowed_domains: list[str],
    ) -> list[SourceResult]:
        """Scrape every active source concurrently.

        Never raises for a single source: each failure becomes a skipped
        SourceResult.
        """
        active_sources = [s for s in sources if s.is_active]
        active_topics = [t for t in topics if t.is_active]
        free_categories = set(parse_category_list(settings.topic_free_categories))

        async with httpx.AsyncClient(
            timeout=self.timeout,
            follow_redirects=True,
            headers={"User-Agent": USER_AGENT},
            transport=self.transport,
        ) as client:
            tasks = []
            for source in active_sources:
                source_topics = [t for t in active_topics if t.category == source.category]
                rules = _SourceFilter(
                    allowed_domains=allowed_domains,
                    topics=source_topics,
                    skip_topic_filter=source.category.value in free_categories,
                    skip_paywalls=settings.skip_paywalls,
                )
                tasks.append(self._scrape_source(client, source, rules))

            return list(await asyncio.gather(*tasks))

    async def _scrape_source(
        self, client: httpx.AsyncClient, source: Source, rules: _SourceFilter
    ) -> SourceResult:
        if not is_url_allowed(source.url, rules.allowed_domains):
            return SourceResult.skipped(source, "source URL is not HTTPS or not allow-listed")

        try:
            content_type, encoding, raw = await asyncio.wait_for(
                self._fetch(client, source.url), timeout=self.timeout
            )
            text = _decode(raw, encoding)

            if is_feed_response(content_type, text):
                entries = self._parse_feed(raw)
            else:
                entries = self._parse_html(text)

            candidates = self._build_candidates(source, entries, rules)
        except asyncio.TimeoutError:
            logger.warning("Source %s timed out after %.0fs", source.name, self.timeout)
            return SourceResult.skipped(source, "timeout")
        except Exception as e:
            logger.warning("Source %s failed: %s", source.name, e)
            return SourceResult.skipped(source, f"{type(e).__name__}: {e}")

        logger.info("Source %s: %d candidates", source.name, len(candidates))
        return SourceResult(source=source, candidates=candidates)

    async def _fetch(
        self, client: httpx.AsyncClient, url: str
    ) -> tuple[str, Optional[str], bytes]:
        """GET ``url`` reading at most ``max_bytes`` of the body.

        Returns the content type, the declared charset (if any) and the body.
        """
        async with client.stream("GET", url) as response:
            response.raise_for_status()
            chunks: list[bytes] = []
            size = 0
            async for chunk in response.aiter_bytes():
                chunks.append(chunk)
                size += len(chunk)
                if size >= self.max_bytes:
                    break
            return (
                response.headers.get("content-type", ""),
                response.charset_encoding,
                b"".join(chunks)[: self.max_bytes],
            )

    def _parse_feed(self, raw: bytes) -> list[dict]:
        """Parse RSS items, or Atom entries when the document has no items.

        Elements closed before a parse error are kept, so a body cut at the
        byte ceiling still yields its complete items.
        """
        parser = ET.XMLPullParser(events=("end",))
        parser.feed(raw)
        error: Optional[ET.ParseError] = None
        try:
            parser.close()
        except ET.ParseError as e:
            error = e

        found: dict[str, list[ET.Element]] = {"item": [], "entry": []}
        try:
            for _, element in parser.read_events():
                name = _local_name(element.tag)
                if name in found:
                    found[name].append(element)
        except ET.ParseError as e:
            error = error or e

        if error is not None:
            if not found["item"] and not found["entry"]:
                raise error
            logger.debug("Feed ended early, keeping complete elements: %s", error)

        items = found["item"] or found["entry"]

        entries = []
        for item in items:
            titles = _children(item, "title")
            entries.append({
                "title": _element_text(titles[0]) if titles else "",
                "link": self._feed_link(item),
                "description": self._feed_description(item),
            })
        return entries

    @staticmethod
    def _feed_link(item: ET.Element) -> Optional[str]:
        for link in _children(item, "link"):
            href = (link.get("href") or "").strip()
            if href:
                return href
            text = _element_text(link)
            if text:
                return text
        for enclosure in _children(item, "enclosure"):
            url = (enclosure.get("url") or "").strip()
            if url:
                return url
        for guid in _children(item, "guid"):
            text = _element_text(guid)
            if text:
                return text
        return None

    @staticmethod
    def _feed_description(item: ET.Element) -> str:
        for name in ("description", "summary", "content"):
            for element in _children(item, name):
                text = _element_text(element)
                if text:
                    return text
        return ""

    def _parse_html(self, text: str) -> list[dict]:
        """Collect anchors, favouring article containers and headings."""
        soup = BeautifulSoup(text, "html.parser")
        entries = []
        for anchor in soup.select(HTML_LINK_SELECTOR)[: self.max_links]:
            title = (
                anchor.get_text(" ", strip=True)
                or anchor.get("title", "")
                or anchor.get("aria-label", "")
            )
            entries.append({"title": title, "link": anchor.get("href"), "description": ""})
        return entries

    def _build_candidates(
        self, source: Source, entries: list[dict], rules: _SourceFilter
    ) -> list[ArticleCandidate]:
        candidates: list[ArticleCandidate] = []
        seen_urls: set[str] = set()

        for entry in entries[: self.max_links]:
            if len(candidates) >= self.max_results:
                break

            title = clean_text(entry.get("title") or "")
            href = entry.get("link")
            if not href or len(title) < MIN_TITLE_LENGTH:
                continue

            url = normalize_link(source.url, href)
            if not url or url in seen_urls:
                continue
            if not is_likely_article_url(url):
                continue
            if not is_url_allowed(url, rules.allowed_domains):
                continue
            if rules.skip_paywalls and is_likely_paywalled(url):
                continue

            snippet = clean_text(entry.get("description") or title)[:SNIPPET_LENGTH]

            if rules.skip_topic_filter or not rules.topics:
                matched = [TOP_STORY]
            else:
                matched = match_topics(title, snippet, rules.topics)
                if not matched:
                    continue

            seen_urls.add(url)
            candidates.append(ArticleCandidate(
                title=title,
                url=url,
                source=source.name,
                category=source.category,
                snippet=snippet,
                matched_topics=matched,
            ))

        return candidates


def collect_candidates(results: list[SourceResult]) -> list[ArticleCandidate]:
    """Flatten source results in source order, dropping repeated URLs."""
    candidates: list[ArticleCandidate] = []
    seen_urls: set[str] = set()

    for result in results:
        if not result.ok:
            logger.info("Skipped source %s: %s", result.source.name, result.skipped_reason)
            continue
        for candidate in result.candidates:
            if candidate.url in seen_urls:
                continue
            seen_urls.add(candidate.url)
            candidates.append(candidate)

    return candidates
