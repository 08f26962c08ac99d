# tests/test_persistence.py

from __future__ import annotations

import json
import sqlite3
from pathlib import Path

import pytest

from taskboard.board.models import Lane, Task
from taskboard.board.serialization import (
    TAGS_KEY,
    TODOS_KEY,
    dump_tags,
    dump_tasks,
    load_board,
    parse_tags,
    parse_tasks,
)
from taskboard.board.task_store import TaskStore
from taskboard.core.errors import PersistenceParseError
from taskboard.storage.kv_store import InMemoryKeyValueStore, SqliteKeyValueStore

from .fakes import sequential_ids, task


def test_persisted_layout_matches_wire_format() -> None:
    tasks = (Task(id="1", text="Buy milk", lane=Lane.DOING, tags=("home",)),)

    assert json.loads(dump_tasks(tasks)) == [
        {"id": "1", "text": "Buy milk", "status": "doing", "tags": ["home"]}
    ]
    assert json.loads(dump_tags(["home", "work"])) == ["home", "work"]


def test_round_trip_is_value_equal() -> None:
    tasks = (
        task("A", "todo", "x"),
        task("B", "done"),
        Task(id="C", text="naïve café", lane=Lane.DOING, tags=("x", "y")),
    )
    tags = ("x", "y")

    assert parse_tasks(dump_tasks(tasks)) == tasks
    assert parse_tags(dump_tags(tags)) == tags


def test_missing_keys_load_as_empty() -> None:
    assert load_board(InMemoryKeyValueStore()) == ((), ())


def test_original_app_payload_loads() -> None:
    kv = InMemoryKeyValueStore(
        {
            TODOS_KEY: '[{"id":"6f1c","text":"Ship it","status":"done","tags":["release"]}]',
            TAGS_KEY: '["release"]',
        }
    )

    store = TaskStore.load(kv)

    assert store.tasks == (Task(id="6f1c", text="Ship it", lane=Lane.DONE, tags=("release",)),)
    assert store.tags == ("release",)


@pytest.mark.parametrize(
    ("key", "raw"),
    [
        (TODOS_KEY, "{not json"),
        (TODOS_KEY, '{"id": "1"}'),
        (TODOS_KEY, '[{"id": "1", "text": "x", "status": "later", "tags": []}]'),
        (TODOS_KEY, '[{"text": "x", "status": "todo", "tags": []}]'),
        (TODOS_KEY, '[{"id": "1", "text": "x", "status": "todo", "tags": [1]}]'),
        (TODOS_KEY, '[{"id": "1", "text": "a", "status": "todo"}, {"id": "1", "text": "b", "status": "todo"}]'),
        (TAGS_KEY, "[1, 2]"),
        (TAGS_KEY, "nope"),
    ],
)
def test_malformed_data_is_fatal(key: str, raw: str) -> None:
    kv = InMemoryKeyValueStore({key: raw})

    with pytest.raises(PersistenceParseError) as exc_info:
        TaskStore.load(kv)

    assert exc_info.value.key == key
    # Nothing was overwritten.
    assert kv.get(key) == raw


def test_missing_tags_field_defaults_to_empty() -> None:
    assert parse_tasks('[{"id": "1", "text": "x", "status": "todo"}]')[0].tags == ()


def test_sqlite_kv_get_set_delete(tmp_path: Path) -> None:
    kv = SqliteKeyValueStore(tmp_path / "nested" / "board.sqlite3")

    assert kv.get("todos") is None
    kv.set("todos", "[]")
    kv.set("todos", '["x"]')
    assert kv.get("todos") == '["x"]'
    assert kv.count_keys() == 1

    kv.delete("todos")
    assert kv.get("todos") is None
    kv.delete("todos")


def test_board_survives_restart_on_sqlite(tmp_path: Path) -> None:
    db = tmp_path / "board.sqlite3"

    first = TaskStore.load(SqliteKeyValueStore(db), id_factory=sequential_ids())
    first.add_tag("urgent")
    first.toggle_tag_selection("urgent")
    first.add_task("one")
    first.add_task("two")
    first.move_task("t2", "doing", 0)
    first.rename_tag("urgent", "blocked")

    second = TaskStore.load(SqliteKeyValueStore(db))

    assert second.tasks == first.tasks
    assert second.tags == ("blocked",)
    assert second.get_task("t1").tags == ("blocked",)
    assert second.selected_tags == ()


def test_sqlite_write_failure_propagates(tmp_path: Path) -> None:
    db = tmp_path / "board.sqlite3"
    kv = SqliteKeyValueStore(db)
    conn = sqlite3.connect(str(db))
    try:
        conn.execute("DROP TABLE kv")
        conn.commit()
    finally:
        conn.close()

    with pytest.raises(sqlite3.Error):
        kv.set("todos", "[]")


def test_sqlite_set_many_writes_all_keys(tmp_path: Path) -> None:
    kv = SqliteKeyValueStore(tmp_path / "board.sqlite3")

    kv.set_many({TODOS_KEY: "[]", TAGS_KEY: '["x"]'})
    kv.set_many({})

    assert kv.get(TODOS_KEY) == "[]"
    assert kv.get(TAGS_KEY) == '["x"]'
    assert kv.count_keys() == 2


def test_sqlite_set_many_failure_writes_nothing(tmp_path: Path) -> None:
    db = tmp_path / "board.sqlite3"
    kv = SqliteKeyValueStore(db)
    kv.set(TODOS_KEY, "[]")
    conn = sqlite3.connect(str(db))
    try:
        conn.execute(
            """
            CREATE TRIGGER reject_tags BEFORE INSERT ON kv
            WHEN NEW.key = 'tags'
            BEGIN SELECT RAISE(ABORT, 'tags rejected'); END
            """
        )
        conn.commit()
    finally:
        conn.close()

    with pytest.raises(sqlite3.Error):
        kv.set_many({TODOS_KEY: '[{"id": "1", "text": "x", "status": "todo"}]', TAGS_KEY: "[]"})

    assert kv.get(TODOS_KEY) == "[]"
    assert kv.get(TAGS_KEY) is None


def test_in_memory_kv_get_set_many_delete() -> None:
    kv = InMemoryKeyValueStore({TODOS_KEY: "[]"})

    kv.set_many({TODOS_KEY: '["x"]', TAGS_KEY: "[]"})
    kv.delete(TAGS_KEY)
    kv.delete(TAGS_KEY)

    assert kv.get(TODOS_KEY) == '["x"]'
    assert kv.get(TAGS_KEY) is None
