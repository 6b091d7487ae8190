"""Suggestion service: the configured backend plus heuristic fallback.

The backend is resolved once from ``AISettings`` at construction time.
Callers only ever talk to ``SuggestionService.suggest``.
"""

from __future__ import annotations

from collections.abc import Sequence

import httpx
import structlog

from code_evolution.config import AISettings
from code_evolution.engine.models import SourceFile, Suggestion
from code_evolution.engine.pipeline import SuggestionEngine
from code_evolution.exceptions import SuggestionProviderError
from code_evolution.providers.llm import LLMSuggester

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)


class SuggestionService:
    """Produce one suggestion per request from the configured provider.

    Args:
        settings: AI settings; ``settings.resolve_provider()`` picks the
            backend.
        engine: Heuristic engine used directly or as the fallback.
        client: Optional ``httpx.AsyncClient`` handed to the remote
            suggester.

    Raises:
        ProviderConfigurationError: If a remote provider is named
            explicitly without an API key.
    """

    def __init__(
        self,
        settings: AISettings,
        engine: SuggestionEngine | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._settings = settings
        self._engine = engine or SuggestionEngine()
        provider = settings.resolve_provider()
        self._remote: LLMSuggester | None = None
        if provider != "heuristic":
            self._remote = LLMSuggester(provider, settings, client=client)
        self.provider: str = provider
        logger.info("suggestion_service_ready", provider=provider)

    async def suggest(
        self,
        files: Sequence[SourceFile],
        repo_context: str = "",
        known_paths: Sequence[str] = (),
    ) -> Suggestion:
        """Return a suggestion for ``files``.

        ``known_paths`` is forwarded to the heuristic engine so project
        files outside the fetched sample are not reported missing.

        Raises:
            SuggestionProviderError: If the remote provider fails and
                heuristic fallback is disabled.
        """
        if self._remote is None:
            return self._engine.suggest(files, known_paths)

        try:
            return await self._remote.suggest(files, repo_context)
        except SuggestionProviderError as exc:
            if not self._settings.fallback_to_heuristic:
                raise
            logger.warning(
                "provider_fallback_to_heuristic",
                provider=self.provider,
                error=str(exc),
            )
            return self._engine.suggest(files, known_paths)
