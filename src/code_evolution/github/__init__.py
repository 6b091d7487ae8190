"""GitHub integration: REST client, OAuth, file fetching and the PR write path."""

from code_evolution.github.client import GitHubClient
from code_evolution.github.fetcher import fetch_sources, select_files_to_analyze
from code_evolution.github.oauth import exchange_code
from code_evolution.github.publisher import (
    PublishResult,
    PullRequestPublisher,
    render_pull_request_body,
)

__all__ = [
    "GitHubClient",
    "PublishResult",
    "PullRequestPublisher",
    "exchange_code",
    "fetch_sources",
    "render_pull_request_body",
    "select_files_to_analyze",
]
