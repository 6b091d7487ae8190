"""Unit tests for code_evolution.github.fetcher."""

from __future__ import annotations

import asyncio

import pytest

from code_evolution.exceptions import GitHubNotFoundError
from code_evolution.github.fetcher import fetch_sources, select_files_to_analyze
from code_evolution.github.models import FileContent


class _FakeGitHub:
    """Serves file contents from a dict; unknown paths raise NotFound."""

    def __init__(self, files: dict[str, str]) -> None:
        self.files = files
        self.active = 0
        self.peak = 0

    async def get_file_content(self, owner: str, repo: str, path: str) -> FileContent:
        self.active += 1
        self.peak = max(self.peak, self.active)
        try:
            await asyncio.sleep(0)
            if path not in self.files:
                raise GitHubNotFoundError(f"missing {path}", status_code=404)
            return FileContent(path=path, content=self.files[path], sha="s")
        finally:
            self.active -= 1


class TestSelectFiles:
    def test_code_files_first(self) -> None:
        paths = ["README.md", "package.json", "src/a.ts", "src/b.py", "docs/x.md"]
        assert select_files_to_analyze(paths) == ["src/a.ts", "src/b.py"]

    def test_limit(self) -> None:
        paths = [f"src/m{i}.js" for i in range(8)]
        assert select_files_to_analyze(paths, max_files=5) == paths[:5]

    def test_fallback_to_config_scripts(self) -> None:
        paths = ["README.md", "next.config.js", "jest.config.js", "eslint.config.js", "x.ts.md"]
        assert select_files_to_analyze(paths, fallback_max_files=2) == [
            "next.config.js",
            "jest.config.js",
        ]

    def test_nothing_usable(self) -> None:
        assert select_files_to_analyze(["README.md", "LICENSE"]) == []


class TestFetchSources:
    @pytest.mark.asyncio
    async def test_order_and_placeholder(self) -> None:
        github = _FakeGitHub({"a.ts": "A", "c.ts": "C"})
        sources = await fetch_sources(
            github, "octo", "app", ["c.ts", "b.ts", "a.ts"], placeholder="// missing"
        )
        assert [(s.path, s.content) for s in sources] == [
            ("c.ts", "C"),
            ("b.ts", "// missing"),
            ("a.ts", "A"),
        ]

    @pytest.mark.asyncio
    async def test_concurrency_bounded(self) -> None:
        paths = [f"f{i}.ts" for i in range(10)]
        github = _FakeGitHub({path: "x" for path in paths})
        await fetch_sources(github, "octo", "app", paths, max_concurrency=3)
        assert 1 <= github.peak <= 3

    @pytest.mark.asyncio
    async def test_empty(self) -> None:
        assert await fetch_sources(_FakeGitHub({}), "octo", "app", []) == []
