"""Unit tests for code_evolution.providers.llm using httpx.MockTransport."""

from __future__ import annotations

import json
from collections.abc import Callable

import httpx
import pytest
from pydantic import SecretStr

from code_evolution.config import AISettings
from code_evolution.engine.models import SourceFile, SuggestionType
from code_evolution.exceptions import (
    ProviderConfigurationError,
    SuggestionParseError,
    SuggestionProviderError,
)
from code_evolution.providers.llm import (
    DEEPSEEK_URL,
    OPENROUTER_URL,
    LLMSuggester,
)

_REPLY = json.dumps(
    {
        "type": "refactor",
        "title": "Split helpers",
        "description": "Move helpers into their own module",
        "reasoning": "The module mixes concerns",
        "files": [{"path": "src/helpers.ts", "action": "create", "content": "export {}"}],
    }
)

_FILES = [SourceFile(path="src/app.ts", content="export const app = 1")]


def _settings(**overrides: object) -> AISettings:
    values: dict[str, object] = {
        "gemini_api_key": SecretStr("g-key"),
        "deepseek_api_key": SecretStr("d-key"),
        "openrouter_api_key": SecretStr("o-key"),
        "retries": 1,
    }
    values.update(overrides)
    return AISettings(**values)


def _client(
    handler: Callable[[httpx.Request], httpx.Response],
) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


class TestConstruction:
    def test_rejects_local_provider(self) -> None:
        with pytest.raises(ProviderConfigurationError):
            LLMSuggester("heuristic", _settings())

    def test_requires_key(self) -> None:
        with pytest.raises(ProviderConfigurationError, match="gemini"):
            LLMSuggester("gemini", AISettings())


class TestRequests:
    @pytest.mark.asyncio
    async def test_gemini_request_and_reply(self) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(
                200,
                json={"candidates": [{"content": {"parts": [{"text": _REPLY}]}}]},
            )

        async with _client(handler) as client:
            suggester = LLMSuggester("gemini", _settings(gemini_model="gemini-pro"), client)
            suggestion = await suggester.suggest(_FILES, "Repository: octo/app")

        assert suggestion.type is SuggestionType.REFACTOR
        [request] = seen
        assert request.url.path == "/v1beta/models/gemini-pro:generateContent"
        assert request.url.params["key"] == "g-key"
        body = json.loads(request.content)
        prompt = body["contents"][0]["parts"][0]["text"]
        assert "--- src/app.ts ---" in prompt
        assert body["generationConfig"]["temperature"] == 0.7

    @pytest.mark.asyncio
    async def test_deepseek_uses_bearer_auth(self) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={"choices": [{"message": {"content": _REPLY}}]})

        async with _client(handler) as client:
            await LLMSuggester("deepseek", _settings(), client).suggest(_FILES)

        [request] = seen
        expected = httpx.URL(DEEPSEEK_URL)
        assert (request.url.host, request.url.path) == (expected.host, expected.path)
        assert request.headers["Authorization"] == "Bearer d-key"
        assert json.loads(request.content)["model"] == "deepseek-coder"

    @pytest.mark.asyncio
    async def test_openrouter_headers(self) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={"choices": [{"message": {"content": _REPLY}}]})

        async with _client(handler) as client:
            await LLMSuggester("openrouter", _settings(), client).suggest(_FILES)

        [request] = seen
        expected = httpx.URL(OPENROUTER_URL)
        assert (request.url.host, request.url.path) == (expected.host, expected.path)
        assert request.headers["Authorization"] == "Bearer o-key"
        assert request.headers["HTTP-Referer"] == "http://localhost:3000"
        assert request.headers["X-Title"] == "code-evolution"


class TestFailures:
    @pytest.mark.asyncio
    async def test_http_error_status(self) -> None:
        async with _client(lambda request: httpx.Response(503)) as client:
            suggester = LLMSuggester("deepseek", _settings(), client)
            with pytest.raises(SuggestionProviderError, match="failed after 1 attempts"):
                await suggester.suggest(_FILES)

    @pytest.mark.asyncio
    async def test_transport_error(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        async with _client(handler) as client:
            suggester = LLMSuggester("gemini", _settings(), client)
            with pytest.raises(SuggestionProviderError, match="connection refused"):
                await suggester.suggest(_FILES)

    @pytest.mark.asyncio
    async def test_unexpected_shape(self) -> None:
        async with _client(lambda request: httpx.Response(200, json={"choices": []})) as client:
            suggester = LLMSuggester("deepseek", _settings(), client)
            with pytest.raises(SuggestionProviderError):
                await suggester.suggest(_FILES)

    @pytest.mark.asyncio
    async def test_unparseable_reply(self) -> None:
        payload = {"choices": [{"message": {"content": "no json here"}}]}
        async with _client(lambda request: httpx.Response(200, json=payload)) as client:
            suggester = LLMSuggester("deepseek", _settings(), client)
            with pytest.raises(SuggestionParseError):
                await suggester.suggest(_FILES)

    @pytest.mark.asyncio
    async def test_retries_until_success(self) -> None:
        calls: list[int] = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(1)
            if len(calls) == 1:
                return httpx.Response(500)
            return httpx.Response(200, json={"choices": [{"message": {"content": _REPLY}}]})

        async with _client(handler) as client:
            suggester = LLMSuggester("deepseek", _settings(retries=2), client)
            suggestion = await suggester.suggest(_FILES)

        assert len(calls) == 2
        assert suggestion.title == "Split helpers"
