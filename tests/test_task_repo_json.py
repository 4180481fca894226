# tests/test_task_repo_json.py

from __future__ import annotations

import json
import os
import stat
from datetime import datetime, timezone

import pytest

from tasklist.domain.errors import StorageError
from tasklist.domain.task_models import TaskFilter, TaskPriority
from tasklist.infra.db.task_repo_json import TASKS_FILENAME, JsonTaskRepo


@pytest.mark.asyncio
async def test_fresh_store_does_not_create_anything(json_repo: JsonTaskRepo) -> None:
    assert await json_repo.list(TaskFilter()) == []
    assert (await json_repo.stats()).total == 0
    assert not json_repo.data_dir.exists()


@pytest.mark.asyncio
async def test_document_layout(json_repo: JsonTaskRepo, make_task) -> None:
    dated = make_task("dated", priority=TaskPriority.high, due_date=datetime(2024, 1, 1, tzinfo=timezone.utc))
    undated = make_task("undated")
    await json_repo.create(dated)
    await json_repo.create(undated)

    text = (json_repo.data_dir / TASKS_FILENAME).read_text(encoding="utf-8")
    doc = json.loads(text)

    assert text.startswith("[\n  {")  # pretty-printed
    assert [d["id"] for d in doc] == [dated.id, undated.id]  # appended in creation order
    assert set(doc[0]) == {"id", "title", "done", "created_at", "priority", "due_date"}
    assert doc[0]["priority"] == 2
    assert "due_date" not in doc[1]


@pytest.mark.asyncio
async def test_state_survives_a_new_repo_instance(tmp_path, make_task) -> None:
    task = make_task("persisted")
    await JsonTaskRepo(tmp_path).create(task)

    reopened = JsonTaskRepo(tmp_path)

    assert (await reopened.get(task.id)).title == "persisted"


@pytest.mark.asyncio
async def test_corrupt_document_raises_storage_error(json_repo: JsonTaskRepo) -> None:
    json_repo.data_dir.mkdir(parents=True)
    json_repo.path.write_text("{not json", encoding="utf-8")

    with pytest.raises(StorageError):
        await json_repo.list(TaskFilter())


@pytest.mark.asyncio
async def test_failed_save_keeps_previous_document(json_repo: JsonTaskRepo, make_task, monkeypatch) -> None:
    first = make_task("first")
    await json_repo.create(first)
    before = json_repo.path.read_bytes()

    def boom(src, dst):
        raise OSError("disk full")

    monkeypatch.setattr("tasklist.infra.db.task_repo_json.os.replace", boom)

    with pytest.raises(StorageError):
        await json_repo.create(make_task("second"))

    assert json_repo.path.read_bytes() == before
    assert [p.name for p in json_repo.data_dir.iterdir()] == [TASKS_FILENAME]


@pytest.mark.asyncio
@pytest.mark.skipif(os.name == "nt", reason="POSIX permission bits")
async def test_saved_document_is_world_readable(json_repo: JsonTaskRepo, make_task) -> None:
    await json_repo.create(make_task())

    assert stat.S_IMODE(json_repo.path.stat().st_mode) == 0o644


@pytest.mark.asyncio
async def test_failed_cleanup_still_raises_storage_error(json_repo: JsonTaskRepo, make_task, monkeypatch) -> None:
    def fail(*args, **kwargs):
        raise OSError("read-only filesystem")

    monkeypatch.setattr("tasklist.infra.db.task_repo_json.os.replace", fail)
    monkeypatch.setattr("tasklist.infra.db.task_repo_json.os.unlink", fail)

    with pytest.raises(StorageError) as err:
        await json_repo.create(make_task())

    assert isinstance(err.value.__cause__, OSError)
