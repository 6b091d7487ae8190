"""Content transformer: rewrite an existing file to address its findings.

The sub-transforms run in a fixed order and only when relevant to the
findings being fixed:

1. strip whole-line ``console.*(...)`` statements;
2. guard unprotected ``await fetch(...)`` statements with try/catch;
3. TypeScript only: replace ``any`` annotations with ``unknown``;
4. regroup the leading import block (framework, third-party, local);
5. drop named imports that are never referenced;
6. normalise whitespace (always).

Each sub-transform is idempotent, so re-running a transform on its own
output changes nothing.
"""

from __future__ import annotations

import itertools
import re
from collections.abc import Callable, Iterable

import structlog

from code_evolution.engine.analyzer import (
    RULE_CONSOLE_STATEMENTS,
    RULE_FETCH_ERROR_HANDLING,
    RULE_LOOSE_TYPES,
    RULE_UNUSED_IMPORTS,
)
from code_evolution.engine.imports import (
    ImportStatement,
    find_imports,
    group_rank,
    unused_named_imports,
)
from code_evolution.engine.languages import TYPESCRIPT_EXTENSIONS, file_extension
from code_evolution.engine.models import AnalysisReport, SourceFile
from code_evolution.engine.selector import Selection, SelectionKind
from code_evolution.engine.templates import generate, generate_test

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)

# Pseudo-rule requested by refactor selections.
ORGANIZE_IMPORTS = "organize-imports"

_CONSOLE_START_RE = re.compile(r"^[ \t]*console\.\w+\s*\(")
_QUOTES = frozenset("'\"`")
_TRY_RE = re.compile(r"\btry\b")
_DECLARATION_START_RE = re.compile(r"^(?:export\b|(?:const|let|var)\b)")
_DECLARATION_RE = re.compile(
    r"^(?P<export>export\s+)?(?:const|let|var)\s+(?P<name>[\w$]+)"
    r"(?P<annotation>\s*:\s*[^=]+?)?\s*=\s*"
    r"(?P<expr>await\s+fetch\(.*)$"
)
_LOOSE_TYPE_SUBSTITUTIONS: tuple[tuple[re.Pattern[str], str], ...] = (
    (re.compile(r":(\s*)any\b"), r":\1unknown"),
    (re.compile(r"\bas(\s+)any\b"), r"as\1unknown"),
    (re.compile(r"<any>"), "<unknown>"),
    (re.compile(r"\bany\[\]"), "unknown[]"),
)
_HEADER_LINE_RE = re.compile(
    r"""^\s*(?:$|//|/\*|\*|#|['"]use [\w ]+['"];?\s*$)"""
)


# ---------------------------------------------------------------------------
# Sub-transforms
# ---------------------------------------------------------------------------


def _closing_paren(text: str, start: int) -> int | None:
    """Index of the ``)`` closing a call whose arguments begin at ``start``.

    Parentheses inside quoted strings do not count.
    """
    depth = 1
    quote: str | None = None
    i = start
    while i < len(text):
        char = text[i]
        if quote is not None:
            if char == "\\":
                i += 2
                continue
            if char == quote:
                quote = None
        elif char in _QUOTES:
            quote = char
        elif char == "(":
            depth += 1
        elif char == ")":
            depth -= 1
            if depth == 0:
                return i
        i += 1
    return None


def _is_console_line(line: str) -> bool:
    match = _CONSOLE_START_RE.match(line)
    if match is None:
        return False
    end = _closing_paren(line, match.end())
    return end is not None and line[end + 1 :].strip() in ("", ";")


def strip_console_statements(content: str) -> str:
    """Remove every line that consists solely of a ``console.*(...)`` call."""
    lines = content.splitlines(keepends=True)
    return "".join(line for line in lines if not _is_console_line(line))


def _guard_fetch_line(line: str) -> list[str]:
    indent = line[: len(line) - len(line.lstrip())]
    inner = indent + "  "
    statement = line.strip()
    semi = ";" if statement.endswith(";") else ""

    declaration = _DECLARATION_RE.match(statement)
    head: list[str] = []
    if declaration:
        annotation = (declaration.group("annotation") or "").rstrip()
        export = "export " if declaration.group("export") else ""
        head.append(f"{indent}{export}let {declaration.group('name')}{annotation}{semi}")
        body = f"{inner}{declaration.group('name')} = {declaration.group('expr')}"
    elif _DECLARATION_START_RE.match(statement):
        # Destructuring and other export forms cannot be split safely.
        return [line]
    else:
        body = f"{inner}{statement}"

    return [
        *head,
        f"{indent}try {{",
        body,
        f"{indent}}} catch (error) {{",
        f"{inner}throw new Error(`Network request failed: ${{error instanceof Error "
        f"? error.message : String(error)}}`){semi}",
        f"{indent}}}",
    ]


def guard_fetch_calls(content: str) -> str:
    """Wrap single-line ``await fetch(...)`` statements in try/catch.

    Files that already contain a ``try`` block are considered guarded and
    left untouched. Calls spanning several lines are skipped.
    """
    if _TRY_RE.search(content) or "await fetch(" not in content:
        return content

    lines: list[str] = []
    for line in content.split("\n"):
        if "await fetch(" in line and line.count("(") == line.count(")"):
            lines.extend(_guard_fetch_line(line))
        else:
            lines.append(line)
    return "\n".join(lines)


def tighten_loose_types(content: str) -> str:
    """Replace ``any`` annotations and assertions with ``unknown``."""
    for pattern, replacement in _LOOSE_TYPE_SUBSTITUTIONS:
        content = pattern.sub(replacement, content)
    return content


def _is_header(text: str) -> bool:
    stripped = text.strip()
    if stripped.startswith(('"""', "'''")) and stripped.endswith(('"""', "'''")):
        return True
    return all(_HEADER_LINE_RE.match(line) for line in text.split("\n"))


def _ordering_rank(statement: ImportStatement) -> int:
    if statement.module == "__future__":
        return -1
    return group_rank(statement)


def organize_imports(content: str) -> str:
    """Regroup the leading import block: framework, third-party, then local.

    Order within a group is preserved and groups are separated by one
    blank line. Only a contiguous block at the top of the file (after
    comments, directives or a module docstring) is touched.
    """
    statements = find_imports(content)
    if len(statements) < 2:
        return content

    header = content[: statements[0].start]
    if not _is_header(header):
        return content

    block = [statements[0]]
    for previous, current in itertools.pairwise(statements):
        if content[previous.end : current.start].strip():
            break
        block.append(current)
    if len(block) < 2:
        return content

    ordered = sorted(block, key=_ordering_rank)
    groups = [
        "\n".join(statement.text.strip() for statement in members)
        for _rank, members in itertools.groupby(ordered, key=_ordering_rank)
    ]

    rest = content[block[-1].end :].lstrip("\n")
    body = "\n\n".join(groups)
    if rest:
        return f"{header}{body}\n\n{rest}"
    return f"{header}{body}\n"


def drop_unused_imports(content: str) -> str:
    """Remove named imports never referenced outside their import statement."""
    findings = unused_named_imports(content)
    for statement, unused in reversed(findings):
        replacement = statement.without({item.local for item in unused})
        if replacement is None:
            end = statement.end
            if content[end : end + 1] == "\n":
                end += 1
            content = content[: statement.start] + content[end:]
        else:
            content = content[: statement.start] + replacement + content[statement.end :]
    return content


def normalize_whitespace(content: str) -> str:
    """Strip trailing whitespace and collapse runs of 3+ blank lines to one."""
    result: list[str] = []
    blank_run = 0
    for line in content.split("\n"):
        line = line.rstrip()
        if not line:
            blank_run += 1
            continue
        if blank_run:
            result.extend([""] * (1 if blank_run >= 3 else blank_run))
            blank_run = 0
        result.append(line)
    if blank_run:
        result.extend([""] * (1 if blank_run >= 3 else blank_run))
    return "\n".join(result)


# ---------------------------------------------------------------------------
# Orchestration
# ---------------------------------------------------------------------------

_SubTransform = Callable[[str], str]

# (rules that enable the step, step) in application order
_PIPELINE: tuple[tuple[frozenset[str], _SubTransform], ...] = (
    (frozenset({RULE_CONSOLE_STATEMENTS}), strip_console_statements),
    (frozenset({RULE_FETCH_ERROR_HANDLING}), guard_fetch_calls),
    (frozenset({RULE_LOOSE_TYPES}), tighten_loose_types),
    (frozenset({ORGANIZE_IMPORTS}), organize_imports),
    (frozenset({RULE_UNUSED_IMPORTS, ORGANIZE_IMPORTS}), drop_unused_imports),
)


def transform(source: SourceFile, rules: Iterable[str]) -> str:
    """Rewrite ``source`` to address the findings named by ``rules``.

    Args:
        source: The existing file.
        rules: Rule names (see ``analyzer.QUALITY_RULES``) plus optionally
            ``ORGANIZE_IMPORTS``.

    Returns:
        The complete new file content.
    """
    enabled = set(rules)
    typescript = file_extension(source.path) in TYPESCRIPT_EXTENSIONS
    content = source.content
    for triggers, step in _PIPELINE:
        if not enabled & triggers:
            continue
        if step is tighten_loose_types and not typescript:
            continue
        content = step(content)
    return normalize_whitespace(content)


def render(selection: Selection, report: AnalysisReport) -> tuple[str, str]:
    """Produce ``(path, content)`` for the file operation of ``selection``."""
    if selection.kind is SelectionKind.CREATE_MISSING:
        return selection.target, generate(selection.target, report)

    if selection.source is None:
        msg = f"Selection of kind {selection.kind} requires a source file"
        raise ValueError(msg)

    if selection.kind is SelectionKind.ADD_TESTS:
        return generate_test(selection.source, report)

    rules = {issue.rule for issue in selection.issues}
    if selection.kind is SelectionKind.REFACTOR:
        rules.add(ORGANIZE_IMPORTS)
    content = transform(selection.source, rules)
    if content == selection.source.content:
        logger.info("transform_noop", path=selection.source.path, rules=sorted(rules))
    return selection.source.path, content
