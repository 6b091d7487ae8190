"""Pull-request write path: branch, commit each file op, open the PR."""

from __future__ import annotations

import time
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime

import structlog

from code_evolution.config import GitHubSettings
from code_evolution.engine.models import FileAction, Suggestion
from code_evolution.exceptions import GitHubError, GitHubNotFoundError, PublishError
from code_evolution.github.client import GitHubClient
from code_evolution.github.models import PullRequest

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)

_README_PATH = "README.md"


@dataclass(slots=True)
class PublishResult:
    """Outcome of publishing one suggestion."""

    branch: str
    pull_request: PullRequest
    written: list[str] = field(default_factory=list)
    failed: list[str] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)


def render_pull_request_body(suggestion: Suggestion) -> str:
    return (
        "## Automated Code Evolution\n\n"
        f"**Type:** {suggestion.type}\n\n"
        f"**Description:**\n{suggestion.description}\n\n"
        f"**Reasoning:**\n{suggestion.reasoning}\n\n"
        "---\n"
        "*This pull request was generated automatically by code-evolution.*"
    )


def _readme_note(suggestion: Suggestion, today: str) -> str:
    return (
        "\n\n## Code Evolution\n\n"
        f"This repository was improved automatically on {today}.\n\n"
        f"**Latest change:** {suggestion.title}\n{suggestion.description}\n"
    )


class PullRequestPublisher:
    """Turn an accepted suggestion into a pull request.

    Args:
        client: Authenticated GitHub client.
        settings: GitHub settings (branch prefix, README annotation).
        clock: Returns the current time in seconds; drives branch names.
    """

    def __init__(
        self,
        client: GitHubClient,
        settings: GitHubSettings | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._client = client
        self._settings = settings or GitHubSettings()
        self._clock = clock

    def branch_name(self) -> str:
        return f"{self._settings.branch_prefix}-{int(self._clock() * 1000)}"

    async def publish(self, owner: str, repo: str, suggestion: Suggestion) -> PublishResult:
        """Create a branch from the default branch head, commit, and open a PR.

        File operations are written one by one. A failure on one file is
        logged and reported in the result, not raised. ``delete``
        operations are skipped.

        Raises:
            PublishError: If the suggestion has no file operations or none
                of them could be written.
            GitHubError: If the branch or the pull request cannot be created.
        """
        if suggestion.is_empty:
            raise PublishError("Suggestion has no file changes to publish")

        log = logger.bind(owner=owner, repo=repo)
        default_branch = await self._client.get_default_branch(owner, repo)
        base_sha = await self._client.get_latest_commit_sha(owner, repo, default_branch)
        branch = self.branch_name()
        await self._client.create_branch(owner, repo, branch, base_sha)

        message = f"Code evolution: {suggestion.title}"
        written: list[str] = []
        failed: list[str] = []
        skipped: list[str] = []
        for op in suggestion.files:
            if op.action is FileAction.DELETE:
                log.warning("delete_operation_skipped", path=op.path)
                skipped.append(op.path)
                continue
            try:
                sha = await self._existing_sha(owner, repo, op.path, op.action)
                await self._client.put_file(
                    owner, repo, op.path, op.content, message, branch, sha=sha
                )
            except GitHubError as exc:
                log.warning("file_write_failed", path=op.path, error=str(exc))
                failed.append(op.path)
                continue
            written.append(op.path)

        if not written:
            raise PublishError(
                f"None of the suggested files could be written to branch {branch}"
            )

        if self._settings.annotate_readme:
            await self._annotate_readme(owner, repo, branch, suggestion)

        pull_request = await self._client.create_pull_request(
            owner,
            repo,
            title=suggestion.title,
            body=render_pull_request_body(suggestion),
            head=branch,
            base=default_branch,
        )
        log.info(
            "pull_request_created",
            branch=branch,
            url=pull_request.html_url,
            written=len(written),
            failed=len(failed),
        )
        return PublishResult(
            branch=branch,
            pull_request=pull_request,
            written=written,
            failed=failed,
            skipped=skipped,
        )

    async def _existing_sha(
        self, owner: str, repo: str, path: str, action: FileAction
    ) -> str | None:
        if action is not FileAction.MODIFY:
            return None
        try:
            return (await self._client.get_file_content(owner, repo, path)).sha
        except GitHubNotFoundError:
            logger.info("modify_target_missing", path=path)
            return None

    async def _annotate_readme(
        self, owner: str, repo: str, branch: str, suggestion: Suggestion
    ) -> None:
        try:
            readme = await self._client.get_file_content(owner, repo, _README_PATH)
            today = datetime.fromtimestamp(self._clock(), tz=UTC).date().isoformat()
            await self._client.put_file(
                owner,
                repo,
                _README_PATH,
                readme.content + _readme_note(suggestion, today),
                "Code evolution: note the change in README",
                branch,
                sha=readme.sha,
            )
        except GitHubError as exc:
            logger.warning("readme_annotation_failed", error=str(exc))
