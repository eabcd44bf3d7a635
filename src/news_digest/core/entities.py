"""Core domain entities."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional

from news_digest.core.validation import normalize_domain

TOP_STORY = "top story"


class Category(str, Enum):
    """Source and topic category."""

    BUSINESS = "business"
    TECH = "tech"
    FINANCE = "finance"
    AI = "ai"
    LIFESTYLE = "lifestyle"
    LOCAL = "local"
    FOOD = "food"
    WORLD = "world"
    POLITICS = "politics"


class RunAction(str, Enum):
    """Kind of digest run requested by a caller."""

    GENERATE = "generate"
    SEND = "send"


@dataclass
class Source:
    """Configured news source."""

    id: int
    category: Category
    url: str
    name: str
    is_active: bool = True


@dataclass
class Topic:
    """Keyword used to filter and score candidates of one category."""

    id: int
    category: Category
    topic: str
    is_active: bool = True


@dataclass
class AllowedDomain:
    """Hostname admitted for sources and articles."""

    domain: str
    is_active: bool = True
    id: Optional[int] = None

    def __post_init__(self) -> None:
        self.domain = normalize_domain(self.domain)
        if not self.domain:
            raise ValueError("Domain cannot be empty")


@dataclass
class DigestSettings:
    """Singleton digest settings record."""

    email: str
    recipients: str = ""
    schedule_time: str = "0 7 * * *"
    top_stories_count: int = 10
    stories_per_category: int = 5
    max_article_age_hours: int = 24
    skip_paywalls: bool = True
    topic_free_categories: str = ""

    def __post_init__(self) -> None:
        for name in ("email", "recipients", "schedule_time", "topic_free_categories"):
            value = getattr(self, name)
            if not isinstance(value, str):
                raise ValueError(f"{name} must be a string, got {type(value).__name__}")
        if not 1 <= self.top_stories_count <= 50:
            raise ValueError("top_stories_count must be between 1 and 50")
        if not 1 <= self.stories_per_category <= 20:
            raise ValueError("stories_per_category must be between 1 and 20")
        if not 1 <= self.max_article_age_hours <= 168:
            raise ValueError("max_article_age_hours must be between 1 and 168")


@dataclass
class ArticleCandidate:
    """Article discovered by the scraper, before ranking."""

    title: str
    url: str
    source: str
    category: Category
    snippet: str
    matched_topics: list[str] = field(default_factory=list)

    def __post_init__(self) -> None:
        if not self.title:
            raise ValueError("Title cannot be empty")
        if not self.url:
            raise ValueError("URL cannot be empty")


@dataclass
class RankedArticle:
    """Selected candidate with its score and generated summary."""

    candidate: ArticleCandidate
    score: float
    summary: str
    key_points: list[str]

    @property
    def url(self) -> str:
        return self.candidate.url

    @property
    def title(self) -> str:
        return self.candidate.title

    @property
    def category(self) -> Category:
        return self.candidate.category

    def to_dict(self) -> dict:
        """Serialize in the shape stored in history records."""
        return {
            "title": self.candidate.title,
            "url": self.candidate.url,
            "source": self.candidate.source,
            "category": self.candidate.category.value,
            "snippet": self.candidate.snippet,
            "matchedTopics": list(self.candidate.matched_topics),
            "score": self.score,
            "summary": self.summary,
            "keyPoints": list(self.key_points),
        }


@dataclass
class DigestHistory:
    """Persisted outcome of one run."""

    id: int
    generated_at: datetime
    articles_count: int
    categories_json: str
    articles_json: str
    sent_successfully: bool
    run_type: Optional[RunAction] = None
    error_message: Optional[str] = None


@dataclass
class SourceResult:
    """Outcome of scraping one source: candidates, or a skip reason."""

    source: Source
    candidates: list[ArticleCandidate] = field(default_factory=list)
    skipped_reason: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.skipped_reason is None

    @classmethod
    def skipped(cls, source: Source, reason: str) -> "SourceResult":
        return cls(source=source, skipped_reason=reason)


@dataclass
class RunState:
    """Mutable coordinator state. Owned by RunCoordinator only."""

    is_running: bool = False
    queued_action: Optional[RunAction] = None
    last_error: Optional[str] = None
    scheduler_running: bool = False
    next_run_at: Optional[str] = None
    today_provider_calls: int = 0


@dataclass(frozen=True)
class RunStatus:
    """Read-only snapshot of the run state."""

    is_running: bool
    queued: bool
    scheduler_running: bool
    next_run_at: Optional[str]
    today_provider_calls: int
    limit: int
    last_error: Optional[str]


class RunOutcome(str, Enum):
    """What the coordinator did with a request."""

    EXECUTED = "executed"
    QUEUED = "queued"
    REJECTED = "rejected"


@dataclass
class RunResult:
    """Answer to a generate/send request."""

    outcome: RunOutcome
    success: bool
    articles: list[RankedArticle] = field(default_factory=list)
    error: Optional[str] = None

    @property
    def articles_count(self) -> int:
        return len(self.articles)
