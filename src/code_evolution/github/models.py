"""GitHub REST payloads used by the application (only the fields it reads)."""

from __future__ import annotations

from pydantic import BaseModel, Field


class GitHubUser(BaseModel):
    login: str
    id: int
    name: str | None = None
    avatar_url: str | None = None
    html_url: str | None = None


class RepositoryOwner(BaseModel):
    login: str


class Repository(BaseModel):
    """A repository as returned by ``/user/repos`` or ``/repos/{owner}/{repo}``."""

    id: int
    name: str
    full_name: str
    owner: RepositoryOwner
    description: str | None = None
    language: str | None = None
    default_branch: str = "main"
    private: bool = False
    html_url: str | None = None


class RepoEntry(BaseModel):
    """One item of a directory listing or recursive tree."""

    path: str
    name: str = ""
    type: str = Field(default="file", description="file, dir, symlink or submodule")
    size: int = 0
    sha: str = ""


class FileContent(BaseModel):
    """Decoded file content plus the blob sha needed to update it."""

    path: str
    content: str
    sha: str


class PullRequest(BaseModel):
    number: int
    html_url: str
    title: str = ""
