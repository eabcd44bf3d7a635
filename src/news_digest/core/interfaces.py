"""Core interfaces for adapters."""

from abc import ABC, abstractmethod
from typing import Optional

from news_digest.core.entities import (
    DigestHistory,
    DigestSettings,
    RankedArticle,
    RunAction,
    Source,
    Topic,
)
from news_digest.core.errors import ProviderKind


class RecordStore(ABC):
    """Interface for the sources/topics/settings/history record store."""

    @abstractmethod
    async def list_sources(self) -> list[Source]:
        """Return all sources, active or not."""
        pass

    @abstractmethod
    async def list_topics(self) -> list[Topic]:
        """Return all topics, active or not."""
        pass

    @abstractmethod
    async def get_settings(self) -> Optional[DigestSettings]:
        """Return the settings singleton, or None if absent."""
        pass

    @abstractmethod
    async def list_active_allowed_domains(self) -> list[str]:
        """Return normalized hostnames of active allowed domains."""
        pass

    @abstractmethod
    async def get_last_successful_history(self) -> Optional[DigestHistory]:
        """Return the most recent history record with sent_successfully set."""
        pass

    @abstractmethod
    async def create_history(
        self,
        articles: list[RankedArticle],
        sent_successfully: bool,
        run_type: RunAction,
        error_message: Optional[str] = None,
    ) -> DigestHistory:
        """Persist one run outcome."""
        pass

    @abstractmethod
    async def list_history(self, limit: int = 20) -> list[DigestHistory]:
        """Return recent history records, newest first."""
        pass


class SummaryProvider(ABC):
    """Interface for an AI text-completion provider."""

    kind: ProviderKind

    @abstractmethod
    async def complete(self, prompt: str) -> str:
        """Return the completion text for a single prompt.

        Raises:
            ProviderError: With status/code set when the provider reports them.
        """
        pass


class Deliverer(ABC):
    """Interface for sending a digest to recipients."""

    @abstractmethod
    async def deliver(self, recipients: list[str], articles: list[RankedArticle]) -> None:
        """Send the digest.

        Raises:
            DeliveryError: If the transport fails.
        """
        pass
