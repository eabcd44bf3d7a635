"""Error taxonomy and provider error classification."""

from enum import Enum
from typing import Optional

import httpx


class DigestError(Exception):
    """Base class for run-level errors."""


class SettingsMissingError(DigestError):
    """The settings record is absent."""


class StoreError(DigestError):
    """The record store could not be read or written."""


class BudgetExceededError(DigestError):
    """The per-run summarization call budget is spent."""


class ProviderConfigError(DigestError):
    """The AI provider selection or credentials are invalid."""


class RecipientError(DigestError):
    """The recipient list is empty, invalid, or too long."""


class DeliveryError(DigestError):
    """The mail transport failed to send the digest."""


class ProviderKind(str, Enum):
    """Supported AI text-generation providers."""

    OPENAI = "openai"
    ANTHROPIC = "anthropic"


class ErrorClass(str, Enum):
    """How the summarizer reacts to a provider failure."""

    OVERLOADED = "overloaded"
    RATE_LIMITED = "rate_limited"
    FATAL = "fatal"


class ProviderError(DigestError):
    """Failure reported by an AI provider."""

    def __init__(
        self,
        kind: ProviderKind,
        message: str,
        status: Optional[int] = None,
        code: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        self.kind = kind
        self.status = status
        self.code = code

    def __str__(self) -> str:
        status = f" (HTTP {self.status})" if self.status else ""
        return f"{self.kind.value}{status}: {self.args[0]}"


OVERLOAD_STATUSES = {503, 529}
OVERLOAD_CODES = {"overloaded_error"}
RATE_LIMIT_STATUSES = {429}
RATE_LIMIT_CODES = {"insufficient_quota", "rate_limit_exceeded", "rate_limit_error"}


def classify_error(error: BaseException) -> ErrorClass:
    """Map any exception raised by a provider call to an ErrorClass."""
    if isinstance(error, httpx.TimeoutException):
        return ErrorClass.FATAL

    status = getattr(error, "status", None)
    code = getattr(error, "code", None)
    message = str(error).lower()

    if status in OVERLOAD_STATUSES or code in OVERLOAD_CODES or "overloaded" in message:
        return ErrorClass.OVERLOADED
    if (
        status in RATE_LIMIT_STATUSES
        or code in RATE_LIMIT_CODES
        or "quota" in message
        or "rate limit" in message
    ):
        return ErrorClass.RATE_LIMITED
    return ErrorClass.FATAL
