"""Suggestion packager: wrap the transformer output into a ``Suggestion``.

Pure assembly, no I/O. Exactly one file operation is emitted per
suggestion; deletions are never proposed.
"""

from __future__ import annotations

from code_evolution.engine.models import (
    FileAction,
    Suggestion,
    SuggestionFileOp,
    SuggestionType,
)
from code_evolution.engine.selector import Selection, SelectionKind

NO_CODE_FILES_TITLE = "No code files found"
NO_CODE_FILES_DESCRIPTION = (
    "None of the provided files is source code, so there is nothing to improve. "
    "Documentation and configuration files are never used as suggestion targets."
)

_TITLES: dict[SelectionKind, str] = {
    SelectionKind.FIX_ISSUES: "Fix code issues in {target}",
    SelectionKind.CREATE_MISSING: "Add missing {target}",
    SelectionKind.ADD_TESTS: "Add tests for {target}",
    SelectionKind.REFACTOR: "Refactor {target}",
}

_REASONING: dict[SuggestionType, str] = {
    SuggestionType.BUGFIX: (
        "Quality issues are concrete, verifiable defects, so fixing them takes "
        "precedence over speculative additions."
    ),
    SuggestionType.FEATURE: (
        "The project is missing something a typical {language} project provides; "
        "adding it improves maintainability."
    ),
    SuggestionType.REFACTOR: (
        "No defects or missing files were found, so the largest module is the "
        "most likely place for structural cleanup."
    ),
    SuggestionType.OPTIMIZATION: "The change reduces unnecessary work.",
}


def _describe(selection: Selection) -> str:
    if selection.kind is SelectionKind.FIX_ISSUES and len(selection.issues) > 1:
        details = "; ".join(issue.description for issue in selection.issues)
        return f"{selection.target}: {details}"
    return selection.reason


def package(
    selection: Selection,
    path: str,
    content: str,
    *,
    main_language: str = "",
) -> Suggestion:
    """Build the final suggestion for one selected target.

    Args:
        selection: What was chosen and why.
        path: Path of the file operation (differs from the target when a
            new test file is created for an existing module).
        content: Complete new content for ``path``.
        main_language: Main language of the analysed project, used in the
            reasoning for new-file suggestions.

    Returns:
        A ``Suggestion`` with exactly one ``create`` or ``modify`` operation.
    """
    action = FileAction.CREATE if selection.creates_file else FileAction.MODIFY
    reasoning = _REASONING[selection.category].format(
        language=main_language or "software"
    )
    return Suggestion(
        type=selection.category,
        title=_TITLES[selection.kind].format(target=selection.target),
        description=_describe(selection),
        reasoning=f"{selection.reason}. {reasoning}",
        files=[SuggestionFileOp(path=path, action=action, content=content)],
    )


def empty_suggestion() -> Suggestion:
    """The "nothing to do" result for inputs without any code file."""
    return Suggestion(
        type=SuggestionType.REFACTOR,
        title=NO_CODE_FILES_TITLE,
        description=NO_CODE_FILES_DESCRIPTION,
        reasoning="",
        files=[],
    )
