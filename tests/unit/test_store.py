"""Unit tests for code_evolution.store - JSON-file evolution log."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING

import pytest

from code_evolution.exceptions import EvolutionLogNotFoundError
from code_evolution.store import EvolutionLogStore, EvolutionStatus

if TYPE_CHECKING:
    from pathlib import Path


@pytest.fixture()
def store(tmp_path: Path) -> EvolutionLogStore:
    return EvolutionLogStore(tmp_path / "nested" / "logs.json")


class TestCreate:
    def test_creates_file_on_init(self, tmp_path: Path) -> None:
        path = tmp_path / "a" / "b" / "logs.json"
        EvolutionLogStore(path)
        assert json.loads(path.read_text(encoding="utf-8")) == []

    def test_new_record_is_pending(self, store: EvolutionLogStore) -> None:
        record = store.create("7", "Remove console statements", diff_content="[]")
        assert record.status is EvolutionStatus.PENDING
        assert record.pr_url is None
        assert store.get(record.id) == record

    def test_persists_across_instances(self, tmp_path: Path) -> None:
        path = tmp_path / "logs.json"
        record = EvolutionLogStore(path).create("7", "text")
        assert EvolutionLogStore(path).get(record.id).suggestion_text == "text"


class TestQueries:
    def test_unknown_id(self, store: EvolutionLogStore) -> None:
        with pytest.raises(EvolutionLogNotFoundError):
            store.get("nope")

    def test_list_newest_first(self, store: EvolutionLogStore) -> None:
        first = store.create("7", "one")
        second = store.create("7", "two")
        assert [r.id for r in store.list_logs()] == [second.id, first.id]

    def test_filter_and_limit(self, store: EvolutionLogStore) -> None:
        store.create("7", "one")
        store.create("8", "other repo")
        store.create("7", "two")
        assert [r.suggestion_text for r in store.list_logs(repository_id="7")] == ["two", "one"]
        assert len(store.list_logs(limit=1)) == 1


class TestStatusUpdates:
    def test_update_status_with_pr_url(self, store: EvolutionLogStore) -> None:
        record = store.create("7", "one")
        updated = store.update_status(
            record.id, EvolutionStatus.PR_CREATED, pr_url="https://github.com/o/r/pull/1"
        )
        assert updated.status is EvolutionStatus.PR_CREATED
        assert updated.updated_at >= record.updated_at
        assert store.get(record.id).pr_url == "https://github.com/o/r/pull/1"

    def test_update_unknown(self, store: EvolutionLogStore) -> None:
        with pytest.raises(EvolutionLogNotFoundError):
            store.update_status("nope", EvolutionStatus.REJECTED)

    def test_update_by_pr_url(self, store: EvolutionLogStore) -> None:
        url = "https://github.com/o/r/pull/1"
        record = store.create("7", "one")
        store.create("7", "two")
        store.update_status(record.id, EvolutionStatus.PR_CREATED, pr_url=url)

        assert store.update_status_by_pr_url(url, EvolutionStatus.MERGED) == 1
        assert store.get(record.id).status is EvolutionStatus.MERGED
        assert store.update_status_by_pr_url("https://other", EvolutionStatus.MERGED) == 0
