# src/taskboard/board/serialization.py

"""
Persisted layout.

Two keys in the key-value store:
- "todos": JSON array of {"id", "text", "status", "tags"} in flat-sequence order
- "tags":  JSON array of tag names in registry order

A missing key means "empty". Anything that does not decode into that shape
raises PersistenceParseError: dropping it would be silent data loss.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Iterable
from typing import Any

from ..core.errors import PersistenceParseError
from ..core.ports import KeyValueStore
from .models import Lane, Task

logger = logging.getLogger(__name__)

TODOS_KEY = "todos"
TAGS_KEY = "tags"


def task_to_dict(task: Task) -> dict[str, Any]:
    return {
        "id": task.id,
        "text": task.text,
        "status": task.lane.value,
        "tags": list(task.tags),
    }


def dump_tasks(tasks: Iterable[Task]) -> str:
    return json.dumps([task_to_dict(t) for t in tasks], ensure_ascii=False)


def dump_tags(tags: Iterable[str]) -> str:
    return json.dumps(list(tags), ensure_ascii=False)


def _decode(key: str, raw: str) -> Any:
    try:
        return json.loads(raw)
    except json.JSONDecodeError as e:
        raise PersistenceParseError(key, f"invalid JSON ({e.msg} at pos {e.pos})") from e


def _task_from_dict(raw: Any, position: int) -> Task:
    if not isinstance(raw, dict):
        raise PersistenceParseError(TODOS_KEY, f"item {position} is not an object")

    task_id = raw.get("id")
    text = raw.get("text")
    status = raw.get("status")
    tags = raw.get("tags", [])

    if not isinstance(task_id, str) or not task_id:
        raise PersistenceParseError(TODOS_KEY, f"item {position} has no string id")
    if not isinstance(text, str):
        raise PersistenceParseError(TODOS_KEY, f"item {position} has no string text")
    try:
        lane = Lane(status)
    except ValueError:
        raise PersistenceParseError(TODOS_KEY, f"item {position} has unknown status {status!r}") from None
    if not isinstance(tags, list) or not all(isinstance(t, str) for t in tags):
        raise PersistenceParseError(TODOS_KEY, f"item {position} has non-string tags")

    return Task(id=task_id, text=text, lane=lane, tags=tuple(dict.fromkeys(tags)))


def parse_tasks(raw: str | None) -> tuple[Task, ...]:
    if raw is None:
        return ()
    data = _decode(TODOS_KEY, raw)
    if not isinstance(data, list):
        raise PersistenceParseError(TODOS_KEY, "top-level value is not an array")

    tasks = tuple(_task_from_dict(item, i) for i, item in enumerate(data))
    ids = [t.id for t in tasks]
    if len(set(ids)) != len(ids):
        raise PersistenceParseError(TODOS_KEY, "duplicate task ids")
    return tasks


def parse_tags(raw: str | None) -> tuple[str, ...]:
    if raw is None:
        return ()
    data = _decode(TAGS_KEY, raw)
    if not isinstance(data, list) or not all(isinstance(t, str) for t in data):
        raise PersistenceParseError(TAGS_KEY, "expected an array of strings")
    return tuple(dict.fromkeys(data))


def load_board(kv: KeyValueStore) -> tuple[tuple[Task, ...], tuple[str, ...]]:
    """Read (tasks, tags) from the store. Raises PersistenceParseError."""
    tasks = parse_tasks(kv.get(TODOS_KEY))
    tags = parse_tags(kv.get(TAGS_KEY))
    logger.debug("Loaded board state tasks=%d tags=%d", len(tasks), len(tags))
    return tasks, tags
