"""Data models exchanged by the suggestion engine and its callers."""

from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field


class SuggestionType(StrEnum):
    """Kind of change a suggestion proposes."""

    FEATURE = "feature"
    BUGFIX = "bugfix"
    REFACTOR = "refactor"
    OPTIMIZATION = "optimization"


class FileAction(StrEnum):
    """Mutation applied to a single file."""

    CREATE = "create"
    MODIFY = "modify"
    DELETE = "delete"


class SourceFile(BaseModel):
    """One repository file under analysis."""

    model_config = ConfigDict(frozen=True)

    path: str
    content: str = ""


class QualityIssue(BaseModel):
    """A heuristic finding about a specific file."""

    model_config = ConfigDict(frozen=True)

    file_path: str
    rule: str
    description: str

    @property
    def message(self) -> str:
        return f"{self.file_path}: {self.description}"


class AnalysisReport(BaseModel):
    """Aggregate facts computed once per suggestion request."""

    language_line_counts: dict[str, int] = Field(default_factory=dict)
    frameworks_detected: list[str] = Field(default_factory=list)
    quality_issues: list[QualityIssue] = Field(default_factory=list)
    missing_files: list[str] = Field(default_factory=list)
    has_tests: bool = False

    @property
    def main_language(self) -> str:
        """Language with the most lines; ties go to the first one seen."""
        best = ""
        best_count = -1
        for language, count in self.language_line_counts.items():
            if count > best_count:
                best, best_count = language, count
        return best

    def issues_for(self, path: str) -> list[QualityIssue]:
        return [issue for issue in self.quality_issues if issue.file_path == path]


class SuggestionFileOp(BaseModel):
    """One file mutation carried by a suggestion."""

    path: str = Field(min_length=1)
    action: FileAction
    content: str = ""


class Suggestion(BaseModel):
    """The engine's single proposed code change."""

    type: SuggestionType
    title: str = Field(min_length=1)
    description: str
    reasoning: str = ""
    files: list[SuggestionFileOp] = Field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.files
