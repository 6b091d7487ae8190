"""Heuristic suggestion engine."""

from code_evolution.engine.analyzer import QUALITY_RULES, analyze
from code_evolution.engine.models import (
    AnalysisReport,
    FileAction,
    QualityIssue,
    SourceFile,
    Suggestion,
    SuggestionFileOp,
    SuggestionType,
)
from code_evolution.engine.packager import empty_suggestion, package
from code_evolution.engine.pipeline import SuggestionEngine
from code_evolution.engine.selector import Selection, SelectionKind, select
from code_evolution.engine.templates import generate, generate_test
from code_evolution.engine.transformer import render, transform

__all__ = [
    "QUALITY_RULES",
    "AnalysisReport",
    "FileAction",
    "QualityIssue",
    "Selection",
    "SelectionKind",
    "SourceFile",
    "Suggestion",
    "SuggestionEngine",
    "SuggestionFileOp",
    "SuggestionType",
    "analyze",
    "empty_suggestion",
    "generate",
    "generate_test",
    "package",
    "render",
    "select",
    "transform",
]
