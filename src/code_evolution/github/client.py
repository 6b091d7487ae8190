"""Async GitHub REST v3 client.

Covers exactly the calls the suggestion flow needs: the authenticated
user, repositories, directory listings, file contents, and the write path
(branch, file create-or-update, pull request).
"""

from __future__ import annotations

import base64
from types import TracebackType
from typing import Any
from urllib.parse import quote

import httpx
import structlog

from code_evolution.config import GitHubSettings
from code_evolution.exceptions import (
    GitHubAuthError,
    GitHubError,
    GitHubNotFoundError,
    GitHubRateLimitError,
)
from code_evolution.github.models import (
    FileContent,
    GitHubUser,
    PullRequest,
    RepoEntry,
    Repository,
)

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)

_API_VERSION = "2022-11-28"


def _repo_path(owner: str, repo: str, *parts: str) -> str:
    suffix = "/".join(quote(part, safe="/") for part in parts if part)
    base = f"/repos/{quote(owner, safe='')}/{quote(repo, safe='')}"
    return f"{base}/{suffix}" if suffix else base


class GitHubClient:
    """Thin async wrapper over the GitHub REST API.

    Args:
        token: OAuth or personal access token.
        settings: GitHub settings (API base URL, timeout).
        client: Optional pre-built ``httpx.AsyncClient``; tests inject one
            backed by ``httpx.MockTransport``. The client is closed by
            ``aclose`` only when it was created here.
    """

    def __init__(
        self,
        token: str,
        settings: GitHubSettings | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._settings = settings or GitHubSettings()
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            base_url=self._settings.api_url,
            timeout=float(self._settings.timeout),
        )
        self._headers = {
            "Authorization": f"Bearer {token}",
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": _API_VERSION,
        }

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> GitHubClient:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    # ------------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------------

    async def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        try:
            response = await self._client.request(
                method, path, headers=self._headers, **kwargs
            )
        except httpx.HTTPError as exc:
            logger.warning("github_transport_error", method=method, path=path, error=str(exc))
            raise GitHubError(f"GitHub request failed: {exc}") from exc

        self._raise_for_status(method, path, response)
        if not response.content:
            return None
        return response.json()

    @staticmethod
    def _raise_for_status(method: str, path: str, response: httpx.Response) -> None:
        status = response.status_code
        if status < 400:
            return

        try:
            detail = str(response.json().get("message", ""))
        except (ValueError, AttributeError):
            detail = response.text[:200]
        message = f"GitHub {method} {path} returned {status}: {detail}".rstrip(": ")
        logger.warning("github_request_failed", method=method, path=path, status=status)

        if status == 401:
            raise GitHubAuthError(message, status_code=status)
        if status == 429 or (
            status == 403 and response.headers.get("x-ratelimit-remaining") == "0"
        ):
            raise GitHubRateLimitError(message, status_code=status)
        if status == 403:
            raise GitHubAuthError(message, status_code=status)
        if status == 404:
            raise GitHubNotFoundError(message, status_code=status)
        raise GitHubError(message, status_code=status)

    # ------------------------------------------------------------------
    # Read API
    # ------------------------------------------------------------------

    async def get_user(self) -> GitHubUser:
        return GitHubUser.model_validate(await self._request("GET", "/user"))

    async def list_repositories(self) -> list[Repository]:
        payload = await self._request(
            "GET", "/user/repos", params={"sort": "updated", "per_page": 100}
        )
        return [Repository.model_validate(item) for item in payload or []]

    async def get_repository(self, owner: str, repo: str) -> Repository:
        return Repository.model_validate(
            await self._request("GET", _repo_path(owner, repo))
        )

    async def get_default_branch(self, owner: str, repo: str) -> str:
        return (await self.get_repository(owner, repo)).default_branch

    async def list_contents(self, owner: str, repo: str, path: str = "") -> list[RepoEntry]:
        """List a directory; a file path yields a single-entry list."""
        payload = await self._request("GET", _repo_path(owner, repo, "contents", path))
        items = payload if isinstance(payload, list) else [payload]
        return [RepoEntry.model_validate(item) for item in items if isinstance(item, dict)]

    async def list_tree(self, owner: str, repo: str, ref: str) -> list[RepoEntry]:
        """Every file (blob) reachable from ``ref``, recursively."""
        payload = await self._request(
            "GET",
            _repo_path(owner, repo, "git", "trees", ref),
            params={"recursive": "1"},
        )
        if payload.get("truncated"):
            logger.warning("github_tree_truncated", owner=owner, repo=repo, ref=ref)
        return [
            RepoEntry(
                path=item["path"],
                name=item["path"].rsplit("/", 1)[-1],
                type="file",
                size=int(item.get("size", 0) or 0),
                sha=item.get("sha", ""),
            )
            for item in payload.get("tree", [])
            if item.get("type") == "blob"
        ]

    async def get_file_content(self, owner: str, repo: str, path: str) -> FileContent:
        """Fetch and decode one file.

        Raises:
            GitHubError: If ``path`` names a directory or non-file entry.
        """
        payload = await self._request("GET", _repo_path(owner, repo, "contents", path))
        if not isinstance(payload, dict) or payload.get("type") != "file":
            raise GitHubError(f"Path does not point to a file: {path}")
        raw = base64.b64decode(payload.get("content", ""))
        return FileContent(
            path=path,
            content=raw.decode("utf-8", errors="replace"),
            sha=payload.get("sha", ""),
        )

    async def get_latest_commit_sha(
        self, owner: str, repo: str, branch: str | None = None
    ) -> str:
        params: dict[str, Any] = {"per_page": 1}
        if branch:
            params["sha"] = branch
        payload = await self._request(
            "GET", _repo_path(owner, repo, "commits"), params=params
        )
        if not payload:
            raise GitHubNotFoundError(f"No commits found on {branch or 'default branch'}")
        return str(payload[0]["sha"])

    # ------------------------------------------------------------------
    # Write API
    # ------------------------------------------------------------------

    async def create_branch(
        self, owner: str, repo: str, branch: str, base_sha: str
    ) -> None:
        await self._request(
            "POST",
            _repo_path(owner, repo, "git", "refs"),
            json={"ref": f"refs/heads/{branch}", "sha": base_sha},
        )
        logger.info("github_branch_created", owner=owner, repo=repo, branch=branch)

    async def put_file(
        self,
        owner: str,
        repo: str,
        path: str,
        content: str,
        message: str,
        branch: str,
        sha: str | None = None,
    ) -> None:
        """Create or update ``path`` on ``branch``; ``sha`` is required to update."""
        body: dict[str, Any] = {
            "message": message,
            "content": base64.b64encode(content.encode("utf-8")).decode("ascii"),
            "branch": branch,
        }
        if sha:
            body["sha"] = sha
        await self._request("PUT", _repo_path(owner, repo, "contents", path), json=body)

    async def create_pull_request(
        self,
        owner: str,
        repo: str,
        title: str,
        body: str,
        head: str,
        base: str = "main",
    ) -> PullRequest:
        payload = await self._request(
            "POST",
            _repo_path(owner, repo, "pulls"),
            json={"title": title, "body": body, "head": head, "base": base},
        )
        return PullRequest.model_validate(payload)
