"""Single-pass suggestion pipeline: analyze, select, transform, package.

``SuggestionEngine`` holds no per-request state; one instance can serve
concurrent requests.
"""

from __future__ import annotations

from collections.abc import Sequence

import structlog

from code_evolution.engine.analyzer import QUALITY_RULES, QualityRule, analyze
from code_evolution.engine.models import SourceFile, Suggestion
from code_evolution.engine.packager import empty_suggestion, package
from code_evolution.engine.selector import select
from code_evolution.engine.transformer import render
from code_evolution.logging import pipeline_stage

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)


class SuggestionEngine:
    """Heuristic engine producing exactly one suggestion per file set."""

    name = "heuristic"

    def __init__(self, rules: Sequence[QualityRule] = QUALITY_RULES) -> None:
        self._rules = tuple(rules)

    def suggest(
        self, files: Sequence[SourceFile], known_paths: Sequence[str] = ()
    ) -> Suggestion:
        """Run the full pipeline over ``files``.

        ``known_paths`` lists the rest of the repository when ``files`` is
        only a sample of it. Never raises for odd input: a set without any
        code file yields the empty suggestion.
        """
        with pipeline_stage("analyze", files=len(files)):
            report = analyze(files, self._rules, known_paths)

        with pipeline_stage("select"):
            selection = select(report, files)

        if selection is None:
            logger.info("empty_suggestion", files=len(files))
            return empty_suggestion()

        with pipeline_stage("transform", target=selection.target):
            path, content = render(selection, report)

        with pipeline_stage("package"):
            suggestion = package(
                selection, path, content, main_language=report.main_language
            )

        logger.info(
            "suggestion_ready",
            type=str(suggestion.type),
            title=suggestion.title,
            path=path,
        )
        return suggestion
