"""Collect ``SourceFile`` inputs from a local checkout."""

from __future__ import annotations

import fnmatch
from pathlib import Path

import structlog

from code_evolution.engine.models import SourceFile

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)

_SKIPPED_DIRS = {
    ".git",
    ".hg",
    ".venv",
    "venv",
    "node_modules",
    "dist",
    "build",
    "coverage",
    ".next",
    "__pycache__",
    ".pytest_cache",
    ".mypy_cache",
}


def load_gitignore_patterns(project_path: Path) -> list[str]:
    """Load non-comment patterns from .gitignore if present."""
    gitignore = project_path / ".gitignore"
    if not gitignore.exists():
        return []
    patterns: list[str] = []
    for line in gitignore.read_text(encoding="utf-8", errors="ignore").splitlines():
        stripped = line.strip()
        if not stripped or stripped.startswith(("#", "!")):
            continue
        patterns.append(stripped.lstrip("/"))
    return patterns


def _is_ignored(rel_path: str, patterns: list[str]) -> bool:
    for pattern in patterns:
        if pattern.endswith("/"):
            if rel_path.startswith(pattern) or f"/{pattern}" in f"/{rel_path}":
                return True
            continue
        if fnmatch.fnmatch(rel_path, pattern):
            return True
        if fnmatch.fnmatch(rel_path.rsplit("/", 1)[-1], pattern):
            return True
    return False


def collect_sources(project_path: Path, max_file_bytes: int = 200_000) -> list[SourceFile]:
    """Read every text file under ``project_path`` in sorted path order.

    VCS, dependency and build directories are skipped, as are paths
    matched by the project's ``.gitignore``, binary files and files larger
    than ``max_file_bytes``. Paths are relative and use ``/``.
    """
    patterns = load_gitignore_patterns(project_path)
    sources: list[SourceFile] = []
    for path in sorted(project_path.rglob("*")):
        if not path.is_file():
            continue
        rel_path = path.relative_to(project_path)
        if any(part in _SKIPPED_DIRS for part in rel_path.parts):
            continue
        rel = rel_path.as_posix()
        if _is_ignored(rel, patterns):
            continue
        if path.stat().st_size > max_file_bytes:
            logger.debug("local_file_too_large", path=rel)
            continue

        raw = path.read_bytes()
        if b"\x00" in raw:
            continue
        sources.append(SourceFile(path=rel, content=raw.decode("utf-8", errors="replace")))

    logger.debug("local_sources_collected", root=str(project_path), files=len(sources))
    return sources
