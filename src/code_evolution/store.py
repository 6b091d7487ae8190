"""File-backed evolution log: one record per produced suggestion."""

from __future__ import annotations

import json
import uuid
from datetime import UTC, datetime
from enum import StrEnum
from typing import TYPE_CHECKING, cast

import structlog
from pydantic import BaseModel, Field

from code_evolution.exceptions import EvolutionLogNotFoundError

if TYPE_CHECKING:
    from pathlib import Path

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)


def _now() -> datetime:
    return datetime.now(tz=UTC)


class EvolutionStatus(StrEnum):
    """Lifecycle of a suggestion once it has been shown to the user."""

    PENDING = "pending"
    PR_CREATED = "pr_created"
    TESTS_PASSED = "tests_passed"
    TESTS_FAILED = "tests_failed"
    MERGED = "merged"
    REJECTED = "rejected"


class EvolutionLog(BaseModel):
    id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    repository_id: str
    suggestion_text: str
    status: EvolutionStatus = EvolutionStatus.PENDING
    pr_url: str | None = None
    diff_content: str = ""
    created_at: datetime = Field(default_factory=_now)
    updated_at: datetime = Field(default_factory=_now)


class EvolutionLogStore:
    """JSON-file storage with create/get/list/update operations."""

    def __init__(self, path: Path) -> None:
        self._path = path
        self._path.parent.mkdir(parents=True, exist_ok=True)
        if not self._path.exists():
            self._save([])

    def _load(self) -> list[EvolutionLog]:
        raw = json.loads(self._path.read_text(encoding="utf-8"))
        payload = cast("list[dict[str, object]]", raw)
        return [EvolutionLog.model_validate(item) for item in payload]

    def _save(self, records: list[EvolutionLog]) -> None:
        self._path.write_text(
            json.dumps([record.model_dump(mode="json") for record in records], indent=2),
            encoding="utf-8",
        )

    def create(
        self, repository_id: str, suggestion_text: str, diff_content: str = ""
    ) -> EvolutionLog:
        records = self._load()
        record = EvolutionLog(
            repository_id=repository_id,
            suggestion_text=suggestion_text,
            diff_content=diff_content,
        )
        records.append(record)
        self._save(records)
        logger.info("evolution_log_created", log_id=record.id, repository_id=repository_id)
        return record

    def get(self, log_id: str) -> EvolutionLog:
        for record in self._load():
            if record.id == log_id:
                return record
        raise EvolutionLogNotFoundError(f"Evolution log {log_id} not found")

    def list_logs(
        self, repository_id: str | None = None, limit: int | None = None
    ) -> list[EvolutionLog]:
        """Newest first, optionally filtered by repository."""
        records = [
            record
            for record in self._load()
            if repository_id is None or record.repository_id == repository_id
        ]
        # Later inserts first when timestamps tie.
        records.reverse()
        records.sort(key=lambda record: record.created_at, reverse=True)
        return records[:limit] if limit is not None else records

    def update_status(
        self,
        log_id: str,
        status: EvolutionStatus,
        pr_url: str | None = None,
    ) -> EvolutionLog:
        """Raises ``EvolutionLogNotFoundError`` for an unknown id."""
        records = self._load()
        for record in records:
            if record.id == log_id:
                record.status = status
                if pr_url is not None:
                    record.pr_url = pr_url
                record.updated_at = _now()
                self._save(records)
                logger.info("evolution_log_updated", log_id=log_id, status=str(status))
                return record
        raise EvolutionLogNotFoundError(f"Evolution log {log_id} not found")

    def update_status_by_pr_url(self, pr_url: str, status: EvolutionStatus) -> int:
        """Set ``status`` on every log for ``pr_url``; returns how many changed."""
        records = self._load()
        updated = 0
        for record in records:
            if record.pr_url == pr_url:
                record.status = status
                record.updated_at = _now()
                updated += 1
        if updated:
            self._save(records)
        return updated
