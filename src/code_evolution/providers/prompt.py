"""Prompt construction and reply parsing for text-generation providers."""

from __future__ import annotations

import json
import re
from collections.abc import Sequence

import structlog
from pydantic import ValidationError

from code_evolution.engine.models import SourceFile, Suggestion
from code_evolution.exceptions import SuggestionParseError

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)

_JSON_OBJECT_RE = re.compile(r"\{[\s\S]*\}")

_PROMPT_TEMPLATE = """\
You are a code evolution assistant. Analyze this codebase and suggest ONE meaningful improvement.

Repository Context:
{repo_context}

Current Files:
{file_contents}

Analyze the ACTUAL files provided above. Look at the existing code structure and
suggest improvements to EXISTING files, or create files that make sense for this
specific codebase.

Suggest ONE of the following types of improvements:
1. NEW FEATURE: add a useful new feature based on existing code
2. BUG FIX: fix a potential bug or issue in the provided files
3. REFACTOR: improve code structure or readability of existing files
4. OPTIMIZATION: improve performance or efficiency of existing code

Respond in this EXACT JSON format:
{{
  "type": "feature|bugfix|refactor|optimization",
  "title": "Brief title of the improvement",
  "description": "Detailed description of what this improvement does",
  "reasoning": "Why this improvement is beneficial for THIS specific codebase",
  "files": [
    {{
      "path": "path/to/actual/file/from/analysis",
      "action": "create|modify|delete",
      "content": "complete file content after changes"
    }}
  ]
}}

Rules:
- Analyze the PROVIDED files, not generic assumptions
- Provide complete file content, not diffs
- Ensure all code is syntactically correct
- Keep changes focused and atomic
"""


def build_repo_context(
    full_name: str,
    description: str | None = None,
    language: str | None = None,
) -> str:
    return (
        f"Repository: {full_name}\n"
        f"Description: {description or 'No description'}\n"
        f"Language: {language or 'Unknown'}"
    )


def build_prompt(repo_context: str, files: Sequence[SourceFile]) -> str:
    """Render the single-suggestion prompt for ``files``."""
    file_contents = "\n".join(
        f"\n--- {source.path} ---\n{source.content}" for source in files
    )
    return _PROMPT_TEMPLATE.format(
        repo_context=repo_context or "Unknown repository",
        file_contents=file_contents,
    )


def parse_suggestion(text: str) -> Suggestion:
    """Extract and validate the JSON suggestion embedded in a provider reply.

    The reply may wrap the object in prose or a Markdown fence; the span
    from the first ``{`` to the last ``}`` is parsed.

    Raises:
        SuggestionParseError: If no JSON object is found or it does not
            describe a valid suggestion.
    """
    match = _JSON_OBJECT_RE.search(text)
    if match is None:
        raise SuggestionParseError("No JSON object found in provider reply")

    try:
        payload = json.loads(match.group(0))
    except json.JSONDecodeError as exc:
        raise SuggestionParseError(f"Provider reply is not valid JSON: {exc}") from exc

    try:
        suggestion = Suggestion.model_validate(payload)
    except ValidationError as exc:
        logger.warning("suggestion_invalid", errors=exc.error_count())
        raise SuggestionParseError(f"Provider reply is not a valid suggestion: {exc}") from exc

    if not suggestion.files:
        raise SuggestionParseError("Provider suggestion contains no file operations")
    return suggestion
