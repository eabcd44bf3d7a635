"""OpenAI and Anthropic completion providers over the HTTP APIs."""

from typing import Any, Optional

import httpx

from news_digest.config import Settings
from news_digest.core import ProviderConfigError, ProviderError, ProviderKind, SummaryProvider


def _error_from_response(kind: ProviderKind, response: httpx.Response) -> ProviderError:
    """Build a ProviderError from an error response of either API."""
    code: Optional[str] = None
    message = f"HTTP {response.status_code}"

    try:
        payload: Any = response.json()
    except ValueError:
        payload = None

    if isinstance(payload, dict) and isinstance(payload.get("error"), dict):
        error = payload["error"]
        code = error.get("code") or error.get("type")
        message = error.get("message") or message

    return ProviderError(kind, message, status=response.status_code, code=code)


class _HTTPProvider(SummaryProvider):
    """Shared POST handling for JSON completion APIs."""

    def __init__(self, api_key: str, model: str, max_tokens: int, timeout: float) -> None:
        if not api_key:
            raise ProviderConfigError(f"{self.kind.value.upper()}_API_KEY is missing")
        self.api_key = api_key
        self.model = model
        self.max_tokens = max_tokens
        self.timeout = timeout

    async def _post(self, url: str, headers: dict, payload: dict) -> dict:
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.post(url, headers=headers, json=payload)
        except httpx.TimeoutException as e:
            raise ProviderError(self.kind, f"request timed out after {self.timeout:.0f}s") from e
        except httpx.RequestError as e:
            raise ProviderError(self.kind, f"network error: {e}") from e

        if response.status_code != 200:
            raise _error_from_response(self.kind, response)

        return response.json()


class OpenAIProvider(_HTTPProvider):
    """OpenAI Responses API."""

    kind = ProviderKind.OPENAI

    def __init__(
        self,
        api_key: str,
        model: str = "gpt-5.2",
        max_tokens: int = 220,
        timeout: float = 30.0,
        base_url: str = "https://api.openai.com/v1",
    ) -> None:
        super().__init__(api_key, model, max_tokens, timeout)
        self.base_url = base_url

    async def complete(self, prompt: str) -> str:
        data = await self._post(
            f"{self.base_url}/responses",
            headers={
                "authorization": f"Bearer {self.api_key}",
                "content-type": "application/json",
            },
            payload={
                "model": self.model,
                "input": prompt,
                "max_output_tokens": self.max_tokens,
            },
        )

        if isinstance(data.get("output_text"), str):
            return data["output_text"]

        texts = []
        for item in data.get("output", []):
            for block in item.get("content", []) or []:
                if block.get("type") == "output_text" and isinstance(block.get("text"), str):
                    texts.append(block["text"])
        return "".join(texts)


class AnthropicProvider(_HTTPProvider):
    """Anthropic Messages API."""

    kind = ProviderKind.ANTHROPIC

    def __init__(
        self,
        api_key: str,
        model: str = "claude-3-5-sonnet-latest",
        max_tokens: int = 220,
        timeout: float = 30.0,
        temperature: float = 0.2,
        base_url: str = "https://api.anthropic.com/v1",
    ) -> None:
        super().__init__(api_key, model, max_tokens, timeout)
        self.temperature = temperature
        self.base_url = base_url

    async def complete(self, prompt: str) -> str:
        data = await self._post(
            f"{self.base_url}/messages",
            headers={
                "x-api-key": self.api_key,
                "anthropic-version": "2023-06-01",
                "content-type": "application/json",
            },
            payload={
                "model": self.model,
                "max_tokens": self.max_tokens,
                "temperature": self.temperature,
                "messages": [{"role": "user", "content": prompt}],
            },
        )

        texts = [
            block["text"]
            for block in data.get("content", [])
            if block.get("type", "text") == "text" and isinstance(block.get("text"), str)
        ]
        return "\n".join(texts)


def provider_order(settings: Settings) -> list[ProviderKind]:
    """Resolve the configured provider selection into an ordered chain."""
    configured = (settings.provider.ai_provider or "openai").lower()

    if configured == "anthropic":
        return [ProviderKind.ANTHROPIC]
    if configured == "auto":
        order = []
        if settings.openai_api_key:
            order.append(ProviderKind.OPENAI)
        if settings.anthropic_api_key:
            order.append(ProviderKind.ANTHROPIC)
        if not order:
            raise ProviderConfigError("AI_PROVIDER=auto requires OPENAI_API_KEY or ANTHROPIC_API_KEY")
        return order
    if configured == "openai":
        return [ProviderKind.OPENAI]
    raise ProviderConfigError("AI_PROVIDER must be one of: openai, anthropic, auto")


def build_providers(settings: Settings) -> list[SummaryProvider]:
    """Instantiate the provider chain from settings."""
    cfg = settings.provider
    providers: list[SummaryProvider] = []

    for kind in provider_order(settings):
        if kind is ProviderKind.OPENAI:
            providers.append(OpenAIProvider(
                api_key=settings.openai_api_key,
                model=cfg.openai_model,
                max_tokens=cfg.max_output_tokens,
                timeout=cfg.timeout,
            ))
        else:
            providers.append(AnthropicProvider(
                api_key=settings.anthropic_api_key,
                model=cfg.anthropic_model,
                max_tokens=cfg.max_output_tokens,
                timeout=cfg.timeout,
                temperature=cfg.temperature,
            ))

    return providers
