"""Centralized exception hierarchy for the code-evolution package.

All domain-specific exceptions inherit from ``CodeEvolutionError`` so
callers can catch the entire family with a single ``except`` clause.

The suggestion engine itself never raises for bad input: an empty or
unusable file set produces the "no code files found" suggestion instead.
"""

from __future__ import annotations


class CodeEvolutionError(Exception):
    """Base exception for all code-evolution errors."""


# ---------------------------------------------------------------------------
# GitHub errors
# ---------------------------------------------------------------------------


class GitHubError(CodeEvolutionError):
    """Raised when a GitHub REST call fails."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        self.status_code = status_code
        super().__init__(message)


class GitHubNotFoundError(GitHubError):
    """Raised when a repository, path or ref does not exist."""


class GitHubAuthError(GitHubError):
    """Raised when the access token is missing, invalid or lacks scope."""


class GitHubRateLimitError(GitHubError):
    """Raised when the GitHub API rate limit is exhausted."""


class OAuthError(CodeEvolutionError):
    """Raised when the OAuth authorization code cannot be exchanged."""


# ---------------------------------------------------------------------------
# Suggestion provider errors
# ---------------------------------------------------------------------------


class SuggestionProviderError(CodeEvolutionError):
    """Raised when a remote text-generation provider call fails."""


class ProviderConfigurationError(SuggestionProviderError):
    """Raised when a provider is selected without the credentials it needs."""


class SuggestionParseError(SuggestionProviderError):
    """Raised when a provider reply does not contain a valid suggestion."""


# ---------------------------------------------------------------------------
# Write path and persistence errors
# ---------------------------------------------------------------------------


class PublishError(CodeEvolutionError):
    """Raised when a suggestion cannot be turned into a pull request."""


class EvolutionLogNotFoundError(CodeEvolutionError):
    """Raised when an evolution log id is unknown."""
