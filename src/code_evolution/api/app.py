"""FastAPI application: OAuth, suggestions, pull requests and the evolution log."""

from __future__ import annotations

from collections.abc import Awaitable, Callable

import httpx
import structlog
from fastapi import FastAPI, HTTPException, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response

from code_evolution import __version__
from code_evolution.api.models import (
    AnalyzeRequest,
    AuthConfigResponse,
    EvolutionLogListResponse,
    OAuthExchangeRequest,
    OAuthExchangeResponse,
    PullRequestCreateRequest,
    PullRequestCreateResponse,
    StatusUpdateRequest,
    StatusUpdateResponse,
    SuggestRequest,
    SuggestResponse,
)
from code_evolution.config import Settings
from code_evolution.engine.models import Suggestion
from code_evolution.engine.pipeline import SuggestionEngine
from code_evolution.exceptions import (
    CodeEvolutionError,
    EvolutionLogNotFoundError,
    GitHubAuthError,
    GitHubError,
    GitHubNotFoundError,
    GitHubRateLimitError,
    OAuthError,
    PublishError,
    SuggestionProviderError,
)
from code_evolution.github.client import GitHubClient
from code_evolution.github.fetcher import fetch_sources, select_files_to_analyze
from code_evolution.github.oauth import exchange_code
from code_evolution.github.publisher import PullRequestPublisher
from code_evolution.logging import REQUEST_ID_HEADER, bind_request_id
from code_evolution.providers.prompt import build_repo_context
from code_evolution.providers.service import SuggestionService
from code_evolution.store import EvolutionLog, EvolutionLogStore, EvolutionStatus

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)

GitHubFactory = Callable[[str], GitHubClient]

# Most specific first.
_ERROR_STATUS: tuple[tuple[type[CodeEvolutionError], int], ...] = (
    (GitHubNotFoundError, 404),
    (GitHubAuthError, 401),
    (GitHubRateLimitError, 429),
    (GitHubError, 502),
    (OAuthError, 400),
    (SuggestionProviderError, 502),
    (PublishError, 422),
    (EvolutionLogNotFoundError, 404),
)


def status_for(exc: CodeEvolutionError) -> int:
    for error_type, status in _ERROR_STATUS:
        if isinstance(exc, error_type):
            return status
    return 500


def create_app(
    settings: Settings | None = None,
    *,
    github_factory: GitHubFactory | None = None,
    store: EvolutionLogStore | None = None,
    service: SuggestionService | None = None,
    oauth_client: httpx.AsyncClient | None = None,
) -> FastAPI:
    """Create and configure the FastAPI server app.

    Collaborators default to the real implementations built from
    ``settings``; tests pass fakes instead.
    """
    app_settings = settings or Settings.load()

    app = FastAPI(title="code-evolution API", version=__version__)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=app_settings.api.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=[REQUEST_ID_HEADER],
    )

    def _default_github(token: str) -> GitHubClient:
        return GitHubClient(token, app_settings.github)

    make_github = github_factory or _default_github
    log_store = store or EvolutionLogStore(app_settings.store.path)
    suggestion_service = service or SuggestionService(app_settings.ai)
    engine = SuggestionEngine()

    app.state.settings = app_settings
    app.state.store = log_store
    app.state.service = suggestion_service

    @app.middleware("http")
    async def bind_request_context(
        request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        structlog.contextvars.clear_contextvars()
        request_id = bind_request_id(request.headers.get(REQUEST_ID_HEADER))
        structlog.contextvars.bind_contextvars(method=request.method, path=request.url.path)
        response = await call_next(request)
        response.headers[REQUEST_ID_HEADER] = request_id
        return response

    @app.exception_handler(CodeEvolutionError)
    async def handle_domain_error(request: Request, exc: CodeEvolutionError) -> JSONResponse:
        status = status_for(exc)
        logger.warning(
            "request_failed",
            path=request.url.path,
            error_type=type(exc).__name__,
            status=status,
            error=str(exc),
        )
        return JSONResponse(status_code=status, content={"detail": str(exc)})

    @app.get("/health")
    async def health() -> dict[str, str]:
        return {"status": "ok", "provider": suggestion_service.provider}

    # ------------------------------------------------------------------
    # Auth
    # ------------------------------------------------------------------

    @app.get("/api/auth/config", response_model=AuthConfigResponse)
    async def auth_config() -> AuthConfigResponse:
        return AuthConfigResponse(client_id=app_settings.github.client_id)

    @app.post("/api/auth/github", response_model=OAuthExchangeResponse)
    async def github_login(payload: OAuthExchangeRequest) -> OAuthExchangeResponse:
        token = await exchange_code(payload.code, app_settings.github, client=oauth_client)
        async with make_github(token) as github:
            user = await github.get_user()
        return OAuthExchangeResponse(user=user, access_token=token)

    # ------------------------------------------------------------------
    # Suggestions
    # ------------------------------------------------------------------

    @app.post("/api/suggestions/analyze", response_model=Suggestion)
    async def analyze_files(payload: AnalyzeRequest) -> Suggestion:
        return engine.suggest(payload.files, payload.known_paths)

    @app.post("/api/evolution/suggest", response_model=SuggestResponse)
    async def suggest(payload: SuggestRequest) -> SuggestResponse:
        repository = payload.repository
        owner = repository.owner.login
        async with make_github(payload.access_token) as github:
            tree = await github.list_tree(owner, repository.name, repository.default_branch)
            tree_paths = [entry.path for entry in tree]
            paths = list(payload.file_paths)
            if not paths:
                paths = select_files_to_analyze(
                    tree_paths,
                    max_files=app_settings.analysis.max_files,
                    fallback_max_files=app_settings.analysis.fallback_max_files,
                )
            if not paths:
                raise HTTPException(status_code=400, detail="No files available to analyze")

            sources = await fetch_sources(
                github,
                owner,
                repository.name,
                paths,
                placeholder=app_settings.analysis.failed_content_placeholder,
                max_concurrency=app_settings.github.max_concurrent_fetches,
            )

        repo_context = build_repo_context(
            repository.full_name, repository.description, repository.language
        )
        suggestion = await suggestion_service.suggest(sources, repo_context, tree_paths)
        record = log_store.create(
            repository_id=str(repository.id),
            suggestion_text=suggestion.description,
            diff_content=_diff_content(suggestion),
        )
        logger.info(
            "suggestion_logged",
            log_id=record.id,
            repository=repository.full_name,
            files=len(sources),
        )
        return SuggestResponse(
            log_id=record.id,
            provider=suggestion_service.provider,
            suggestion=suggestion,
        )

    # ------------------------------------------------------------------
    # Evolution lifecycle
    # ------------------------------------------------------------------

    @app.post(
        "/api/evolution/{log_id}/pull-request",
        response_model=PullRequestCreateResponse,
    )
    async def create_pull_request(
        log_id: str, payload: PullRequestCreateRequest
    ) -> PullRequestCreateResponse:
        log_store.get(log_id)
        repository = payload.repository
        async with make_github(payload.access_token) as github:
            publisher = PullRequestPublisher(github, app_settings.github)
            result = await publisher.publish(
                repository.owner.login, repository.name, payload.suggestion
            )
        log_store.update_status(
            log_id, EvolutionStatus.PR_CREATED, pr_url=result.pull_request.html_url
        )
        return PullRequestCreateResponse(
            pr_url=result.pull_request.html_url,
            branch=result.branch,
            written=result.written,
            failed=result.failed,
            skipped=result.skipped,
        )

    @app.post("/api/evolution/{log_id}/reject", response_model=EvolutionLog)
    async def reject(log_id: str) -> EvolutionLog:
        return log_store.update_status(log_id, EvolutionStatus.REJECTED)

    @app.post("/api/evolution/status", response_model=StatusUpdateResponse)
    async def update_status(payload: StatusUpdateRequest) -> StatusUpdateResponse:
        updated = log_store.update_status_by_pr_url(payload.pr_url, payload.status)
        return StatusUpdateResponse(updated=updated)

    @app.get("/api/evolution/logs", response_model=EvolutionLogListResponse)
    async def list_logs(
        repository_id: str | None = None, limit: int = Query(50, ge=1, le=500)
    ) -> EvolutionLogListResponse:
        logs = log_store.list_logs(repository_id=repository_id, limit=limit)
        return EvolutionLogListResponse(logs=logs, total=len(logs))

    return app


def _diff_content(suggestion: Suggestion) -> str:
    return "[" + ",".join(op.model_dump_json() for op in suggestion.files) + "]"
