"""Shared pytest fixtures for the code-evolution test suite."""

from __future__ import annotations

import os
from pathlib import Path

import pytest

from code_evolution.config import WELL_KNOWN_ENV_VARS, AISettings, Settings
from code_evolution.engine.models import SourceFile

# ---------------------------------------------------------------------------
# Environment isolation
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _isolated_environment(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    """Keep developer env vars, .env and config.yaml out of every test."""

    for name in list(os.environ):
        if name.startswith("CODE_EVOLUTION_"):
            monkeypatch.delenv(name, raising=False)
    for name in ("GITHUB_TOKEN", *WELL_KNOWN_ENV_VARS):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)


# ---------------------------------------------------------------------------
# Settings
# ---------------------------------------------------------------------------


@pytest.fixture()
def heuristic_settings(tmp_path: Path) -> Settings:
    """Settings wired to the local engine and a temporary log store."""
    settings = Settings(ai=AISettings(provider="heuristic"))
    settings.store.path = tmp_path / "data" / "evolution_logs.json"
    return settings


# ---------------------------------------------------------------------------
# Source files
# ---------------------------------------------------------------------------


@pytest.fixture()
def console_file() -> SourceFile:
    return SourceFile(path="a.ts", content="console.log('x')\nconst y=1")


@pytest.fixture()
def clean_file() -> SourceFile:
    return SourceFile(path="index.ts", content="export const x=1")


@pytest.fixture()
def react_component() -> SourceFile:
    return SourceFile(
        path="src/components/Widget.tsx",
        content=(
            "import React from 'react'\n"
            "\n"
            "export default function Widget() {\n"
            "  return <div>widget</div>\n"
            "}\n"
        ),
    )
