"""Unit tests for code_evolution.exceptions - centralized exception hierarchy."""

from __future__ import annotations

import pytest

from code_evolution.exceptions import (
    CodeEvolutionError,
    EvolutionLogNotFoundError,
    GitHubAuthError,
    GitHubError,
    GitHubNotFoundError,
    GitHubRateLimitError,
    OAuthError,
    ProviderConfigurationError,
    PublishError,
    SuggestionParseError,
    SuggestionProviderError,
)


class TestCodeEvolutionError:
    """Base exception class tests."""

    def test_inherits_from_exception(self) -> None:
        assert issubclass(CodeEvolutionError, Exception)

    @pytest.mark.parametrize(
        "error",
        [
            GitHubError,
            GitHubNotFoundError,
            GitHubAuthError,
            GitHubRateLimitError,
            OAuthError,
            SuggestionProviderError,
            ProviderConfigurationError,
            SuggestionParseError,
            PublishError,
            EvolutionLogNotFoundError,
        ],
    )
    def test_catches_all_subclasses(self, error: type[Exception]) -> None:
        with pytest.raises(CodeEvolutionError, match="sub error"):
            raise error("sub error")


class TestGitHubErrors:
    def test_status_code_kept(self) -> None:
        err = GitHubNotFoundError("missing", status_code=404)
        assert err.status_code == 404
        assert str(err) == "missing"

    def test_status_code_optional(self) -> None:
        assert GitHubError("transport").status_code is None

    @pytest.mark.parametrize("error", [GitHubNotFoundError, GitHubAuthError, GitHubRateLimitError])
    def test_specific_errors_are_github_errors(self, error: type[GitHubError]) -> None:
        assert issubclass(error, GitHubError)

    def test_oauth_error_is_not_a_github_error(self) -> None:
        assert not issubclass(OAuthError, GitHubError)


class TestProviderErrors:
    def test_configuration_and_parse_errors_are_provider_errors(self) -> None:
        assert issubclass(ProviderConfigurationError, SuggestionProviderError)
        assert issubclass(SuggestionParseError, SuggestionProviderError)
