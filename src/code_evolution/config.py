"""Settings for the CLI, the API server and the suggestion backends.

Values resolve from, highest priority first: explicit keyword arguments
(CLI flags), ``CODE_EVOLUTION_*`` environment variables (``__`` separates
nested fields), a ``.env`` file, the unprefixed provider and OAuth
variables in ``WELL_KNOWN_ENV_VARS``, a YAML file, and field defaults.

The text-generation backend is chosen here, once, and handed to the
suggestion service at construction time. Nothing below the service reads
the environment.
"""

from __future__ import annotations

import os
from contextvars import ContextVar
from pathlib import Path
from typing import Any, Literal

import structlog
from pydantic import BaseModel, Field, SecretStr, ValidationError
from pydantic.fields import FieldInfo
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
    YamlConfigSettingsSource,
)

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)

ProviderName = Literal["heuristic", "gemini", "deepseek", "openrouter"]

# Order in which "auto" looks for a configured key.
_AUTO_PROVIDER_ORDER: tuple[ProviderName, ...] = ("gemini", "deepseek", "openrouter")


# ---------------------------------------------------------------------------
# Sub-models
# ---------------------------------------------------------------------------


class AISettings(BaseModel):
    """Suggestion backend configuration."""

    provider: Literal["auto", "heuristic", "gemini", "deepseek", "openrouter"] = (
        "auto"
    )
    gemini_api_key: SecretStr | None = None
    deepseek_api_key: SecretStr | None = None
    openrouter_api_key: SecretStr | None = None
    gemini_model: str = "gemini-pro"
    deepseek_model: str = "deepseek-coder"
    openrouter_model: str = "meta-llama/llama-3.1-8b-instruct:free"
    openrouter_referer: str = "http://localhost:3000"
    temperature: float = Field(default=0.7, ge=0.0, le=2.0)
    timeout: int = Field(default=60, gt=0, description="Request timeout in seconds.")
    retries: int = Field(default=3, ge=1, le=10)
    fallback_to_heuristic: bool = Field(
        default=True,
        description="Use the local heuristic engine when the remote provider fails.",
    )

    def api_key_for(self, provider: str) -> SecretStr | None:
        """Return the configured key for ``provider`` (``None`` if unset)."""
        return {
            "gemini": self.gemini_api_key,
            "deepseek": self.deepseek_api_key,
            "openrouter": self.openrouter_api_key,
        }.get(provider)

    def resolve_provider(self) -> ProviderName:
        """Resolve ``auto`` to a concrete provider name.

        ``auto`` picks the first provider with a configured key, in the
        order gemini, deepseek, openrouter, and falls back to the local
        heuristic engine when none is configured.
        """
        if self.provider != "auto":
            return self.provider
        for name in _AUTO_PROVIDER_ORDER:
            key = self.api_key_for(name)
            if key is not None and key.get_secret_value():
                return name
        return "heuristic"


class GitHubSettings(BaseModel):
    """GitHub REST and OAuth configuration."""

    api_url: str = "https://api.github.com"
    oauth_url: str = "https://github.com/login/oauth/access_token"
    client_id: str | None = None
    client_secret: SecretStr | None = None
    timeout: int = Field(default=15, gt=0, description="Request timeout in seconds.")
    max_concurrent_fetches: int = Field(default=8, gt=0)
    branch_prefix: str = Field(default="code-evolution", min_length=1)
    annotate_readme: bool = Field(
        default=False,
        description="Append an evolution note to README.md on the PR branch.",
    )


class AnalysisSettings(BaseModel):
    """Automatic file selection for repository analysis."""

    max_files: int = Field(default=5, gt=0)
    fallback_max_files: int = Field(default=3, gt=0)
    failed_content_placeholder: str = "// Failed to load content"
    max_local_file_bytes: int = Field(
        default=200_000,
        gt=0,
        description="Skip local files larger than this when scanning a directory.",
    )


class StoreSettings(BaseModel):
    """Evolution log persistence."""

    path: Path = Path("./data/evolution_logs.json")


class APISettings(BaseModel):
    """FastAPI server settings."""

    host: str = "0.0.0.0"
    port: int = Field(default=8000, ge=1, le=65535)
    cors_origins: list[str] = Field(default_factory=lambda: ["*"])


class LoggingSettings(BaseModel):
    """Logging / observability configuration."""

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    format: Literal["console", "json"] = "console"
    file: Path | None = None


# ---------------------------------------------------------------------------
# Sources
# ---------------------------------------------------------------------------

CONFIG_PATH_ENV = "CODE_EVOLUTION_CONFIG"
DEFAULT_CONFIG_FILE = Path("config.yaml")

# Variable name -> (section, field).
WELL_KNOWN_ENV_VARS: dict[str, tuple[str, str]] = {
    "GEMINI_API_KEY": ("ai", "gemini_api_key"),
    "DEEPSEEK_API_KEY": ("ai", "deepseek_api_key"),
    "OPENROUTER_API_KEY": ("ai", "openrouter_api_key"),
    "GITHUB_CLIENT_ID": ("github", "client_id"),
    "GITHUB_CLIENT_SECRET": ("github", "client_secret"),
}

_yaml_file: ContextVar[Path] = ContextVar("code_evolution_yaml_file", default=DEFAULT_CONFIG_FILE)


class WellKnownEnvSource(PydanticBaseSettingsSource):
    """Provider keys and OAuth credentials under their customary names.

    Lets an environment that already exports ``GEMINI_API_KEY`` or
    ``GITHUB_CLIENT_SECRET`` for other tools work without duplicating
    them under the ``CODE_EVOLUTION_`` prefix. Blank values are ignored.
    """

    def get_field_value(self, field: FieldInfo, field_name: str) -> tuple[Any, str, bool]:
        return None, field_name, False

    def __call__(self) -> dict[str, Any]:
        values: dict[str, dict[str, str]] = {}
        for variable, (section, name) in WELL_KNOWN_ENV_VARS.items():
            value = os.environ.get(variable, "").strip()
            if value:
                values.setdefault(section, {})[name] = value
        return values


# ---------------------------------------------------------------------------
# Settings
# ---------------------------------------------------------------------------


class Settings(BaseSettings):
    """Top-level application settings; build with ``Settings.load``."""

    model_config = SettingsConfigDict(
        env_prefix="CODE_EVOLUTION_",
        env_nested_delimiter="__",
        env_file=".env",
        env_file_encoding="utf-8",
        yaml_file_encoding="utf-8",
        extra="ignore",
    )

    ai: AISettings = Field(default_factory=AISettings)
    github: GitHubSettings = Field(default_factory=GitHubSettings)
    analysis: AnalysisSettings = Field(default_factory=AnalysisSettings)
    store: StoreSettings = Field(default_factory=StoreSettings)
    api: APISettings = Field(default_factory=APISettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        return (
            init_settings,
            env_settings,
            dotenv_settings,
            WellKnownEnvSource(settings_cls),
            YamlConfigSettingsSource(settings_cls, yaml_file=_yaml_file.get()),
        )

    @classmethod
    def load(cls, config_path: Path | None = None, **overrides: Any) -> Settings:
        """Resolve settings from every source.

        The YAML file is ``config_path`` if given, else the path in
        ``$CODE_EVOLUTION_CONFIG``, else ``./config.yaml``. A missing
        default file is ignored; an explicitly named one must exist.

        Raises:
            FileNotFoundError: If the named config file does not exist.
            ValidationError: If any resolved value is invalid.
        """
        explicit = config_path or os.environ.get(CONFIG_PATH_ENV)
        path = Path(explicit) if explicit else DEFAULT_CONFIG_FILE
        if explicit and not path.is_file():
            msg = f"Config file not found: {path}"
            raise FileNotFoundError(msg)

        token = _yaml_file.set(path)
        try:
            settings = cls(**overrides)
        finally:
            _yaml_file.reset(token)
        logger.debug("settings_loaded", config_file=str(path), provider=settings.ai.provider)
        return settings


# Fields whose input must never be echoed back.
_SECRET_FIELD_SUFFIXES = ("_api_key", "_secret")


def format_validation_error(exc: ValidationError) -> str:
    """Describe each invalid setting on its own line.

    Errors on a top-level section also name the environment variable that
    sets the field. Rejected input is shown except for secrets.
    """
    lines = ["Configuration error:"]
    for error in exc.errors():
        parts = [str(part) for part in error["loc"]]
        line = f"  {'.'.join(parts)}: {error['msg']}"

        rejected = error.get("input")
        secret = bool(parts) and parts[-1].endswith(_SECRET_FIELD_SUFFIXES)
        if rejected is not None and not secret and not isinstance(rejected, dict):
            line += f" (got {rejected!r})"

        if len(parts) > 1 and parts[0] in Settings.model_fields:
            line += f" [env: CODE_EVOLUTION_{'__'.join(parts).upper()}]"
        lines.append(line)
    return "\n".join(lines)
