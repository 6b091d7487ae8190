"""Remote text-generation suggester (Gemini, DeepSeek, OpenRouter).

Each provider is reached with a single JSON POST over ``httpx``. Calls are
retried with tenacity; when every attempt fails a
``SuggestionProviderError`` is raised for the service layer to handle.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

import httpx
import structlog
from tenacity import (
    RetryError,
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from code_evolution.config import AISettings, ProviderName
from code_evolution.engine.models import SourceFile, Suggestion
from code_evolution.exceptions import (
    ProviderConfigurationError,
    SuggestionProviderError,
)
from code_evolution.providers.prompt import build_prompt, parse_suggestion

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)

_BACKOFF_MIN_SECONDS = 1
_BACKOFF_MAX_SECONDS = 10

GEMINI_URL = "https://generativelanguage.googleapis.com/v1beta/models/{model}:generateContent"
DEEPSEEK_URL = "https://api.deepseek.com/v1/chat/completions"
OPENROUTER_URL = "https://openrouter.ai/api/v1/chat/completions"

_REMOTE_PROVIDERS = frozenset({"gemini", "deepseek", "openrouter"})


class LLMSuggester:
    """Ask a remote model for one suggestion and parse its reply.

    Args:
        provider: Remote backend to call.
        settings: AI settings carrying keys, model names and limits.
        client: Optional pre-built ``httpx.AsyncClient`` (tests inject a
            fake one). When omitted a client is created per request.

    Raises:
        ProviderConfigurationError: If ``provider`` is not a remote backend
            or has no API key configured.
    """

    def __init__(
        self,
        provider: ProviderName,
        settings: AISettings,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        if provider not in _REMOTE_PROVIDERS:
            raise ProviderConfigurationError(f"{provider!r} is not a remote provider")
        key = settings.api_key_for(provider)
        if key is None or not key.get_secret_value():
            raise ProviderConfigurationError(f"No API key configured for {provider}")

        self.name: str = provider
        self._settings = settings
        self._api_key = key.get_secret_value()
        self._client = client

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def suggest(
        self, files: Sequence[SourceFile], repo_context: str = ""
    ) -> Suggestion:
        """Generate a suggestion for ``files``.

        Raises:
            SuggestionProviderError: If the provider keeps failing or its
                reply cannot be parsed.
        """
        prompt = build_prompt(repo_context, files)
        try:
            text = await self._complete_with_retry(prompt)
        except RetryError as exc:
            last_err = exc.last_attempt.exception() if exc.last_attempt else exc
            logger.warning(
                "provider_retries_exhausted",
                provider=self.name,
                attempts=self._settings.retries,
                error=str(last_err),
            )
            raise SuggestionProviderError(
                f"{self.name} failed after {self._settings.retries} attempts: {last_err}"
            ) from exc

        suggestion = parse_suggestion(text)
        logger.info("provider_suggestion_parsed", provider=self.name, title=suggestion.title)
        return suggestion

    # ------------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------------

    async def _complete_with_retry(self, prompt: str) -> str:
        @retry(
            stop=stop_after_attempt(self._settings.retries),
            wait=wait_exponential(min=_BACKOFF_MIN_SECONDS, max=_BACKOFF_MAX_SECONDS),
            retry=retry_if_exception_type((httpx.HTTPError, SuggestionProviderError)),
            reraise=False,
        )
        async def _do_call() -> str:
            return await self._complete(prompt)

        return await _do_call()

    async def _complete(self, prompt: str) -> str:
        url, headers, params, body = self._build_request(prompt)
        if self._client is not None:
            response = await self._client.post(url, headers=headers, params=params, json=body)
        else:
            async with httpx.AsyncClient(timeout=self._settings.timeout) as client:
                response = await client.post(url, headers=headers, params=params, json=body)

        if response.status_code >= 400:
            raise SuggestionProviderError(
                f"{self.name} API error: HTTP {response.status_code}"
            )
        return self._extract_text(response.json())

    def _build_request(
        self, prompt: str
    ) -> tuple[str, dict[str, str], dict[str, str], dict[str, Any]]:
        headers = {"Content-Type": "application/json"}
        temperature = self._settings.temperature

        if self.name == "gemini":
            url = GEMINI_URL.format(model=self._settings.gemini_model)
            body: dict[str, Any] = {
                "contents": [{"parts": [{"text": prompt}]}],
                "generationConfig": {"temperature": temperature},
            }
            return url, headers, {"key": self._api_key}, body

        headers["Authorization"] = f"Bearer {self._api_key}"
        messages = [{"role": "user", "content": prompt}]
        if self.name == "deepseek":
            body = {
                "model": self._settings.deepseek_model,
                "messages": messages,
                "temperature": temperature,
            }
            return DEEPSEEK_URL, headers, {}, body

        headers["HTTP-Referer"] = self._settings.openrouter_referer
        headers["X-Title"] = "code-evolution"
        body = {
            "model": self._settings.openrouter_model,
            "messages": messages,
            "temperature": temperature,
        }
        return OPENROUTER_URL, headers, {}, body

    def _extract_text(self, data: dict[str, Any]) -> str:
        try:
            if self.name == "gemini":
                return str(data["candidates"][0]["content"]["parts"][0]["text"])
            return str(data["choices"][0]["message"]["content"])
        except (KeyError, IndexError, TypeError) as exc:
            raise SuggestionProviderError(
                f"Unexpected {self.name} response shape: {exc!r}"
            ) from exc
