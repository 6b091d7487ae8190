"""Typer CLI entry point for code-evolution."""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Annotated, Any

import structlog
import typer
from pydantic import ValidationError
from rich.console import Console
from rich.panel import Panel
from rich.syntax import Syntax
from rich.table import Table

from code_evolution import __version__
from code_evolution.api.server import run_server
from code_evolution.config import Settings, format_validation_error
from code_evolution.engine.models import SourceFile, Suggestion
from code_evolution.exceptions import CodeEvolutionError
from code_evolution.github.client import GitHubClient
from code_evolution.github.fetcher import fetch_sources, select_files_to_analyze
from code_evolution.local import collect_sources
from code_evolution.logging import bind_request_id, configure_logging
from code_evolution.providers.prompt import build_repo_context
from code_evolution.providers.service import SuggestionService

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)

console = Console()
err_console = Console(stderr=True)

app = typer.Typer(
    name="code-evolution",
    help="Propose one concrete improvement for a codebase.",
    no_args_is_help=True,
)

ConfigOption = Annotated[
    Path | None,
    typer.Option("--config", "-c", help="Path to config YAML file."),
]


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _load_settings(
    config_path: Path | None = None,
    **overrides: Any,
) -> Settings:
    """Load settings with error handling and user-friendly messages."""
    try:
        settings = Settings.load(config_path=config_path, **overrides)
    except FileNotFoundError as exc:
        err_console.print(f"[red]Error:[/red] {exc}")
        raise typer.Exit(code=1) from exc
    except ValidationError as exc:
        err_console.print(
            Panel(
                format_validation_error(exc),
                title="Configuration Error",
                border_style="red",
            )
        )
        raise typer.Exit(code=1) from exc

    configure_logging(settings.logging)
    bind_request_id()
    return settings


def _build_service(settings: Settings) -> SuggestionService:
    try:
        return SuggestionService(settings.ai)
    except CodeEvolutionError as exc:
        err_console.print(f"[red]Error:[/red] {exc}")
        raise typer.Exit(code=1) from exc


def _display_suggestion(suggestion: Suggestion, show_content: bool) -> None:
    if suggestion.is_empty:
        console.print(
            Panel(suggestion.description, title=suggestion.title, border_style="yellow")
        )
        return

    body = f"[bold]{suggestion.type}[/bold]\n\n{suggestion.description}"
    if suggestion.reasoning:
        body += f"\n\n[dim]{suggestion.reasoning}[/dim]"
    console.print(Panel(body, title=suggestion.title, border_style="green"))

    table = Table(title="File changes")
    table.add_column("Action", style="cyan")
    table.add_column("Path")
    table.add_column("Lines", justify="right")
    for op in suggestion.files:
        table.add_row(str(op.action), op.path, str(len(op.content.split("\n"))))
    console.print(table)

    if show_content:
        for op in suggestion.files:
            lexer = Syntax.guess_lexer(op.path, code=op.content)
            console.print(Panel(Syntax(op.content, lexer), title=op.path))


def _emit(suggestion: Suggestion, as_json: bool, show_content: bool) -> None:
    if as_json:
        console.print_json(suggestion.model_dump_json())
    else:
        _display_suggestion(suggestion, show_content)


def _version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"[bold]code-evolution[/bold] {__version__}")
        raise typer.Exit


@app.callback()
def common(
    version: Annotated[
        bool | None,
        typer.Option(
            "--version",
            "-V",
            help="Show version and exit.",
            callback=_version_callback,
            is_eager=True,
        ),
    ] = None,
) -> None:
    """code-evolution global options."""


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


@app.command()
def suggest(
    path: Annotated[
        Path,
        typer.Argument(help="Project directory to analyze.", exists=True, file_okay=False),
    ] = Path("."),
    config: ConfigOption = None,
    provider: Annotated[
        str | None,
        typer.Option(
            "--provider",
            "-p",
            help="Suggestion backend: auto, heuristic, gemini, deepseek or openrouter.",
        ),
    ] = None,
    as_json: Annotated[
        bool, typer.Option("--json", help="Print the suggestion as JSON.")
    ] = False,
    show_content: Annotated[
        bool, typer.Option("--show-content", help="Print the proposed file content.")
    ] = False,
) -> None:
    """Suggest one improvement for a local project."""
    overrides: dict[str, Any] = {}
    if provider is not None:
        overrides["ai"] = {"provider": provider}
    settings = _load_settings(config, **overrides)

    sources = collect_sources(path, settings.analysis.max_local_file_bytes)
    if not sources:
        err_console.print(f"[yellow]No readable files found under {path}[/yellow]")
        raise typer.Exit(code=1)

    service = _build_service(settings)
    try:
        suggestion = asyncio.run(
            service.suggest(sources, build_repo_context(path.resolve().name))
        )
    except CodeEvolutionError as exc:
        err_console.print(f"[red]Error:[/red] {exc}")
        raise typer.Exit(code=1) from exc

    _emit(suggestion, as_json, show_content)


async def _remote_sources(
    settings: Settings,
    token: str,
    owner: str,
    name: str,
    paths: list[str],
) -> tuple[list[SourceFile], str, list[str]]:
    async with GitHubClient(token, settings.github) as github:
        repository = await github.get_repository(owner, name)
        tree = await github.list_tree(owner, name, repository.default_branch)
        tree_paths = [entry.path for entry in tree]
        if not paths:
            paths = select_files_to_analyze(
                tree_paths,
                max_files=settings.analysis.max_files,
                fallback_max_files=settings.analysis.fallback_max_files,
            )
        sources = await fetch_sources(
            github,
            owner,
            name,
            paths,
            placeholder=settings.analysis.failed_content_placeholder,
            max_concurrency=settings.github.max_concurrent_fetches,
        )
    context = build_repo_context(
        repository.full_name, repository.description, repository.language
    )
    return sources, context, tree_paths


@app.command()
def remote(
    repository: Annotated[
        str, typer.Argument(help="GitHub repository as OWNER/NAME.")
    ],
    token: Annotated[
        str,
        typer.Option(
            "--token",
            "-t",
            envvar="GITHUB_TOKEN",
            help="GitHub access token (defaults to $GITHUB_TOKEN).",
        ),
    ],
    files: Annotated[
        list[str] | None,
        typer.Option("--file", "-f", help="File to analyze (repeatable)."),
    ] = None,
    config: ConfigOption = None,
    as_json: Annotated[
        bool, typer.Option("--json", help="Print the suggestion as JSON.")
    ] = False,
    show_content: Annotated[
        bool, typer.Option("--show-content", help="Print the proposed file content.")
    ] = False,
) -> None:
    """Suggest one improvement for a GitHub repository."""
    owner, _, name = repository.partition("/")
    if not owner or not name or "/" in name:
        err_console.print("[red]Repository must be given as OWNER/NAME[/red]")
        raise typer.Exit(code=2)

    settings = _load_settings(config)
    service = _build_service(settings)

    async def _run() -> Suggestion:
        sources, context, tree_paths = await _remote_sources(
            settings, token, owner, name, list(files or [])
        )
        if not sources:
            raise CodeEvolutionError("No files available to analyze")
        return await service.suggest(sources, context, tree_paths)

    try:
        suggestion = asyncio.run(_run())
    except CodeEvolutionError as exc:
        err_console.print(f"[red]Error:[/red] {exc}")
        raise typer.Exit(code=1) from exc

    _emit(suggestion, as_json, show_content)


@app.command()
def serve(
    port: Annotated[
        int,
        typer.Option("--port", help="Port to bind the FastAPI server."),
    ] = 8000,
    host: Annotated[
        str,
        typer.Option("--host", help="Host/interface to bind the FastAPI server."),
    ] = "0.0.0.0",
    config: ConfigOption = None,
) -> None:
    """Run the code-evolution FastAPI server."""
    settings = _load_settings(config, api={"port": port, "host": host})
    run_server(settings)


def main() -> None:
    """Main entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
