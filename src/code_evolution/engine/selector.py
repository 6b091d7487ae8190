"""Suggestion selector: pick exactly one target from an analysis report.

Priority, first match wins:

1. a quality issue on a real JavaScript/TypeScript source file (bugfix);
2. quality issues that only touch non-code files are ignored;
3. the first expected project file that is missing (feature);
4. no tests anywhere: add tests for the largest non-test code file (feature);
5. otherwise refactor the largest code file (refactor).

When the input holds no code file at all the selector returns ``None``
and the caller emits the empty suggestion.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from enum import StrEnum

import structlog

from code_evolution.engine.languages import (
    is_code_file,
    is_fixable_code_file,
    is_test_path,
)
from code_evolution.engine.models import (
    AnalysisReport,
    QualityIssue,
    SourceFile,
    SuggestionType,
)

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)


class SelectionKind(StrEnum):
    """What the transformer must do with the selected target."""

    FIX_ISSUES = "fix_issues"
    CREATE_MISSING = "create_missing"
    ADD_TESTS = "add_tests"
    REFACTOR = "refactor"


@dataclass(frozen=True, slots=True)
class Selection:
    """The single target chosen for a suggestion.

    Attributes:
        kind: Which transformation path applies.
        category: Suggestion type reported to the caller.
        target: Path of the existing file, or the filename to create.
        reason: Human-readable reason the target was chosen.
        source: The existing file, when the target is one.
        issues: Every quality finding recorded for ``source``.
    """

    kind: SelectionKind
    category: SuggestionType
    target: str
    reason: str
    source: SourceFile | None = None
    issues: tuple[QualityIssue, ...] = field(default_factory=tuple)

    @property
    def creates_file(self) -> bool:
        return self.kind in (SelectionKind.CREATE_MISSING, SelectionKind.ADD_TESTS)


def _largest(files: Sequence[SourceFile]) -> SourceFile | None:
    """Longest file by content length; earlier files win ties."""
    best: SourceFile | None = None
    for source in files:
        if best is None or len(source.content) > len(best.content):
            best = source
    return best


def select(report: AnalysisReport, files: Sequence[SourceFile]) -> Selection | None:
    """Choose the one improvement to propose.

    Args:
        report: Facts produced by ``analyze`` for ``files``.
        files: The same files, in scan order.

    Returns:
        The chosen ``Selection``, or ``None`` when no code file exists.
    """
    by_path = {source.path: source for source in files}

    for issue in report.quality_issues:
        if not is_fixable_code_file(issue.file_path):
            continue
        source = by_path.get(issue.file_path)
        if source is None:
            continue
        logger.debug("selected_quality_issue", path=issue.file_path, rule=issue.rule)
        return Selection(
            kind=SelectionKind.FIX_ISSUES,
            category=SuggestionType.BUGFIX,
            target=issue.file_path,
            reason=issue.message,
            source=source,
            issues=tuple(report.issues_for(issue.file_path)),
        )

    if report.missing_files:
        filename = report.missing_files[0]
        logger.debug("selected_missing_file", filename=filename)
        return Selection(
            kind=SelectionKind.CREATE_MISSING,
            category=SuggestionType.FEATURE,
            target=filename,
            reason=(
                f"{filename} is expected in a {report.main_language} project "
                "but was not found"
            ),
        )

    code_files = [source for source in files if is_code_file(source.path)]

    if not report.has_tests:
        candidate = _largest([f for f in code_files if not is_test_path(f.path)])
        if candidate is not None:
            logger.debug("selected_test_target", path=candidate.path)
            return Selection(
                kind=SelectionKind.ADD_TESTS,
                category=SuggestionType.FEATURE,
                target=candidate.path,
                reason=f"No tests were found; {candidate.path} is the largest untested module",
                source=candidate,
            )

    candidate = _largest(code_files)
    if candidate is None:
        logger.info("no_code_files", files=len(files))
        return None

    logger.debug("selected_refactor_target", path=candidate.path)
    return Selection(
        kind=SelectionKind.REFACTOR,
        category=SuggestionType.REFACTOR,
        target=candidate.path,
        reason=f"{candidate.path} is the largest module and the best refactoring candidate",
        source=candidate,
        issues=tuple(report.issues_for(candidate.path)),
    )
