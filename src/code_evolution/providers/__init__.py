"""Suggestion providers: the local heuristic engine and remote text-generation backends."""

from code_evolution.providers.llm import LLMSuggester
from code_evolution.providers.prompt import build_prompt, build_repo_context, parse_suggestion
from code_evolution.providers.service import SuggestionService

__all__ = [
    "LLMSuggester",
    "SuggestionService",
    "build_prompt",
    "build_repo_context",
    "parse_suggestion",
]
