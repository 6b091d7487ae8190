"""Text analyzer: turns a list of source files into an ``AnalysisReport``.

Every check is a plain function of one file's text. The battery is a
table of independent named rules; each rule yields at most one finding
per file and no rule looks at another rule's result. Documentation files
(README, Markdown, LICENSE, CHANGELOG) are never checked.
"""

from __future__ import annotations

import re
from collections.abc import Callable, Sequence
from dataclasses import dataclass

import structlog

from code_evolution.engine.imports import unused_named_imports
from code_evolution.engine.languages import (
    COMPONENT_EXTENSIONS,
    FRAMEWORK_MARKERS,
    TYPESCRIPT_EXTENSIONS,
    expected_files_for,
    file_extension,
    is_code_file,
    is_documentation_path,
    is_test_path,
    language_for_path,
)
from code_evolution.engine.models import AnalysisReport, QualityIssue, SourceFile

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)

# ---------------------------------------------------------------------------
# Patterns
# ---------------------------------------------------------------------------

_FETCH_RE = re.compile(r"(?<![\w$.])fetch\s*\(")
_ERROR_HANDLING_RE = re.compile(r"\btry\b|\.catch\s*\(")
CONSOLE_CALL_RE = re.compile(r"\bconsole\.\w+\s*\(")
_FUNCTION_RE = re.compile(
    r"\bfunction\b|=>|\bdef\s+\w+|\bfunc\s+\w+|\bfn\s+\w+"
    r"|\b(?:public|private|protected|static)\s+[\w<>\[\],\s]+?\s+\w+\s*\("
)
LOOSE_TYPE_RE = re.compile(r":\s*any\b|\bas\s+any\b|<any>|\bany\[\]")
_COMMENT_RE = re.compile(
    r"^\s*(?://|/\*|\*|#(?!!)|<!--|--\s)|\s//|\"\"\"|'''",
    re.MULTILINE,
)
_URL_RE = re.compile(r"https?://", re.IGNORECASE)
_DEFAULT_EXPORT_RE = re.compile(r"\bexport\s+default\b")
_ERROR_BOUNDARY_MARKERS: tuple[str, ...] = (
    "errorboundary",
    "componentdidcatch",
    "getderivedstatefromerror",
)
_TEST_CONTENT_RE = re.compile(r"\bdescribe\(|\bit\(|\bpytest\b|\bunittest\b")

LONG_FILE_LINES = 50
UNCOMMENTED_FILE_LINES = 30


# ---------------------------------------------------------------------------
# Rule table
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class FileFacts:
    """Pre-computed views of one file shared by every rule."""

    path: str
    content: str
    extension: str
    line_count: int

    @classmethod
    def of(cls, source: SourceFile) -> FileFacts:
        return cls(
            path=source.path,
            content=source.content,
            extension=file_extension(source.path),
            line_count=len(source.content.split("\n")),
        )


@dataclass(frozen=True, slots=True)
class QualityRule:
    """A named heuristic check. ``check`` returns a description or ``None``."""

    name: str
    check: Callable[[FileFacts], str | None]


def _check_fetch_error_handling(facts: FileFacts) -> str | None:
    if _FETCH_RE.search(facts.content) and not _ERROR_HANDLING_RE.search(facts.content):
        return "missing error handling for fetch calls"
    return None


def _check_console_statements(facts: FileFacts) -> str | None:
    if is_test_path(facts.path):
        return None
    count = len(CONSOLE_CALL_RE.findall(facts.content))
    if count > 0:
        return f"contains {count} console statements"
    return None


def _check_long_functions(facts: FileFacts) -> str | None:
    if facts.line_count > LONG_FILE_LINES and _FUNCTION_RE.search(facts.content):
        return "contains potentially long functions"
    return None


def _check_loose_types(facts: FileFacts) -> str | None:
    if facts.extension in TYPESCRIPT_EXTENSIONS and LOOSE_TYPE_RE.search(facts.content):
        return "contains loosely-typed annotations"
    return None


def _check_missing_comments(facts: FileFacts) -> str | None:
    if facts.line_count > UNCOMMENTED_FILE_LINES and not _COMMENT_RE.search(
        facts.content
    ):
        return "lacks code comments"
    return None


def _check_unused_imports(facts: FileFacts) -> str | None:
    unused = [
        item.local
        for _statement, items in unused_named_imports(facts.content)
        for item in items
    ]
    if unused:
        return f"potentially unused imports: {', '.join(unused)}"
    return None


def _check_hardcoded_urls(facts: FileFacts) -> str | None:
    if "config" in facts.path.lower():
        return None
    if _URL_RE.search(facts.content):
        return "contains hardcoded URLs"
    return None


def _check_error_boundary(facts: FileFacts) -> str | None:
    if facts.extension not in COMPONENT_EXTENSIONS:
        return None
    if not _DEFAULT_EXPORT_RE.search(facts.content):
        return None
    lowered = facts.content.lower()
    if any(marker in lowered for marker in _ERROR_BOUNDARY_MARKERS):
        return None
    return "React component missing error boundary"


RULE_FETCH_ERROR_HANDLING = "fetch-error-handling"
RULE_CONSOLE_STATEMENTS = "console-statements"
RULE_LONG_FUNCTIONS = "long-functions"
RULE_LOOSE_TYPES = "loose-types"
RULE_MISSING_COMMENTS = "missing-comments"
RULE_UNUSED_IMPORTS = "unused-imports"
RULE_HARDCODED_URLS = "hardcoded-urls"
RULE_ERROR_BOUNDARY = "error-boundary"

QUALITY_RULES: tuple[QualityRule, ...] = (
    QualityRule(RULE_FETCH_ERROR_HANDLING, _check_fetch_error_handling),
    QualityRule(RULE_CONSOLE_STATEMENTS, _check_console_statements),
    QualityRule(RULE_LONG_FUNCTIONS, _check_long_functions),
    QualityRule(RULE_LOOSE_TYPES, _check_loose_types),
    QualityRule(RULE_MISSING_COMMENTS, _check_missing_comments),
    QualityRule(RULE_UNUSED_IMPORTS, _check_unused_imports),
    QualityRule(RULE_HARDCODED_URLS, _check_hardcoded_urls),
    QualityRule(RULE_ERROR_BOUNDARY, _check_error_boundary),
)


# ---------------------------------------------------------------------------
# Analysis
# ---------------------------------------------------------------------------


def check_file(
    source: SourceFile,
    rules: Sequence[QualityRule] = QUALITY_RULES,
) -> list[QualityIssue]:
    """Run the rule battery against one file.

    Documentation files yield no findings. A rule that trips over odd
    input (binary-looking text, unterminated strings) is logged and
    treated as having found nothing.
    """
    if is_documentation_path(source.path):
        return []

    facts = FileFacts.of(source)
    issues: list[QualityIssue] = []
    for rule in rules:
        try:
            description = rule.check(facts)
        except (re.error, RecursionError, ValueError) as exc:
            logger.warning(
                "quality_rule_failed", rule=rule.name, path=source.path, error=str(exc)
            )
            continue
        if description:
            issues.append(
                QualityIssue(file_path=source.path, rule=rule.name, description=description)
            )
    return issues


def detect_frameworks(content: str) -> list[str]:
    lowered = content.lower()
    return [
        name
        for name, markers in FRAMEWORK_MARKERS
        if any(marker in lowered for marker in markers)
    ]


def looks_like_test(source: SourceFile) -> bool:
    return is_test_path(source.path) or bool(_TEST_CONTENT_RE.search(source.content))


def find_missing_files(main_language: str, paths: Sequence[str]) -> list[str]:
    """Expected project files for ``main_language`` that no path mentions."""
    lowered_paths = [path.lower() for path in paths]
    missing: list[str] = []
    for expected in expected_files_for(main_language):
        present = any(
            marker in path for marker in expected.markers for path in lowered_paths
        )
        if not present and expected.filename not in missing:
            missing.append(expected.filename)
    return missing


def analyze(
    files: Sequence[SourceFile],
    rules: Sequence[QualityRule] = QUALITY_RULES,
    known_paths: Sequence[str] = (),
) -> AnalysisReport:
    """Build the fact sheet for a set of files.

    Pure and deterministic: the same files in the same order always give
    an identical report.

    Args:
        files: Files to analyze, in scan order.
        rules: Quality rule battery (defaults to ``QUALITY_RULES``).
        known_paths: Every path in the repository when ``files`` is only
            a sample of it. They count toward the missing-file checklist
            and test detection but are never read.

    Returns:
        The aggregated ``AnalysisReport``.
    """
    line_counts: dict[str, int] = {}
    frameworks: list[str] = []
    issues: list[QualityIssue] = []
    has_tests = False

    for source in files:
        language = language_for_path(source.path)
        if language:
            line_counts[language] = line_counts.get(language, 0) + len(
                source.content.split("\n")
            )

        for framework in detect_frameworks(source.content):
            if framework not in frameworks:
                frameworks.append(framework)

        issues.extend(check_file(source, rules))

        if not has_tests and looks_like_test(source):
            has_tests = True

    if not has_tests:
        has_tests = any(
            is_code_file(path) and is_test_path(path) for path in known_paths
        )

    report = AnalysisReport(
        language_line_counts=line_counts,
        frameworks_detected=frameworks,
        quality_issues=issues,
        has_tests=has_tests,
    )
    report.missing_files = find_missing_files(
        report.main_language, [*(source.path for source in files), *known_paths]
    )

    logger.debug(
        "analysis_complete",
        files=len(files),
        main_language=report.main_language,
        issues=len(report.quality_issues),
        missing_files=report.missing_files,
        has_tests=report.has_tests,
    )
    return report
