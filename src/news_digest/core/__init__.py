"""Core domain layer."""

from news_digest.core.dedup import Deduplicator
from news_digest.core.entities import (
    TOP_STORY,
    AllowedDomain,
    ArticleCandidate,
    Category,
    DigestHistory,
    DigestSettings,
    RankedArticle,
    RunAction,
    RunOutcome,
    RunResult,
    RunState,
    RunStatus,
    Source,
    SourceResult,
    Topic,
)
from news_digest.core.errors import (
    BudgetExceededError,
    DeliveryError,
    DigestError,
    ErrorClass,
    ProviderConfigError,
    ProviderError,
    ProviderKind,
    RecipientError,
    SettingsMissingError,
    StoreError,
    classify_error,
)
from news_digest.core.interfaces import Deliverer, RecordStore, SummaryProvider
from news_digest.core.ranking import score_article, select_top

__all__ = [
    "TOP_STORY",
    "AllowedDomain",
    "ArticleCandidate",
    "Category",
    "DigestHistory",
    "DigestSettings",
    "RankedArticle",
    "RunAction",
    "RunOutcome",
    "RunResult",
    "RunState",
    "RunStatus",
    "Source",
    "SourceResult",
    "Topic",
    "BudgetExceededError",
    "DeliveryError",
    "DigestError",
    "ErrorClass",
    "ProviderConfigError",
    "ProviderError",
    "ProviderKind",
    "RecipientError",
    "SettingsMissingError",
    "StoreError",
    "classify_error",
    "Deliverer",
    "RecordStore",
    "SummaryProvider",
    "Deduplicator",
    "score_article",
    "select_top",
]
