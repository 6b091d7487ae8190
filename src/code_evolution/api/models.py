"""Request and response bodies for the HTTP API."""

from __future__ import annotations

from pydantic import BaseModel, Field

from code_evolution.engine.models import SourceFile, Suggestion
from code_evolution.github.models import GitHubUser, Repository
from code_evolution.store import EvolutionLog, EvolutionStatus


class AuthConfigResponse(BaseModel):
    client_id: str | None = None


class OAuthExchangeRequest(BaseModel):
    code: str = Field(min_length=1)


class OAuthExchangeResponse(BaseModel):
    user: GitHubUser
    access_token: str


class AnalyzeRequest(BaseModel):
    files: list[SourceFile] = Field(default_factory=list)
    known_paths: list[str] = Field(
        default_factory=list,
        description="Other repository paths, used only for the missing-file checklist.",
    )


class SuggestRequest(BaseModel):
    """Ask for a suggestion on ``repository``.

    When ``file_paths`` is empty, code files are chosen automatically from
    the repository tree.
    """

    repository: Repository
    access_token: str = Field(min_length=1)
    file_paths: list[str] = Field(default_factory=list)


class SuggestResponse(BaseModel):
    success: bool = True
    log_id: str
    provider: str
    suggestion: Suggestion


class PullRequestCreateRequest(BaseModel):
    repository: Repository
    access_token: str = Field(min_length=1)
    suggestion: Suggestion


class PullRequestCreateResponse(BaseModel):
    pr_url: str
    branch: str
    written: list[str] = Field(default_factory=list)
    failed: list[str] = Field(default_factory=list)
    skipped: list[str] = Field(default_factory=list)


class StatusUpdateRequest(BaseModel):
    pr_url: str = Field(min_length=1)
    status: EvolutionStatus


class StatusUpdateResponse(BaseModel):
    success: bool = True
    updated: int


class EvolutionLogListResponse(BaseModel):
    logs: list[EvolutionLog]
    total: int
