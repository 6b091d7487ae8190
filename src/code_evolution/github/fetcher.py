"""Choose which repository files to analyse and fetch them concurrently."""

from __future__ import annotations

import asyncio
from collections.abc import Sequence

import structlog

from code_evolution.engine.languages import (
    FIXABLE_EXTENSIONS,
    file_extension,
    is_code_file,
)
from code_evolution.engine.models import SourceFile
from code_evolution.github.client import GitHubClient

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)

DEFAULT_PLACEHOLDER = "// Failed to load content"


def select_files_to_analyze(
    paths: Sequence[str],
    max_files: int = 5,
    fallback_max_files: int = 3,
) -> list[str]:
    """Pick code files for analysis when the caller selected none.

    Source files that are neither documentation nor configuration come
    first (up to ``max_files``). When there are none, any JavaScript or
    TypeScript file is accepted (up to ``fallback_max_files``).
    """
    code_files = [path for path in paths if is_code_file(path)]
    if code_files:
        return code_files[:max_files]

    fallback = [path for path in paths if file_extension(path) in FIXABLE_EXTENSIONS]
    return fallback[:fallback_max_files]


async def fetch_sources(
    client: GitHubClient,
    owner: str,
    repo: str,
    paths: Sequence[str],
    *,
    placeholder: str = DEFAULT_PLACEHOLDER,
    max_concurrency: int = 8,
) -> list[SourceFile]:
    """Fetch every path concurrently, keeping input order.

    A failed fetch never aborts the batch: its content is replaced by
    ``placeholder``.
    """
    semaphore = asyncio.Semaphore(max_concurrency)

    async def _fetch_one(path: str) -> SourceFile:
        async with semaphore:
            try:
                fetched = await client.get_file_content(owner, repo, path)
            except Exception as exc:
                logger.warning("file_fetch_failed", path=path, error=str(exc))
                return SourceFile(path=path, content=placeholder)
        return SourceFile(path=path, content=fetched.content)

    sources = await asyncio.gather(*(_fetch_one(path) for path in paths))
    logger.debug("files_fetched", owner=owner, repo=repo, count=len(sources))
    return list(sources)
