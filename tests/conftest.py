# tests/conftest.py

from __future__ import annotations

import pytest

from taskboard.board.task_store import TaskStore

from .fakes import RecordingKeyValueStore, RecordingObserver, sequential_ids


@pytest.fixture()
def kv() -> RecordingKeyValueStore:
    return RecordingKeyValueStore()


@pytest.fixture()
def observer() -> RecordingObserver:
    return RecordingObserver()


@pytest.fixture()
def store(kv: RecordingKeyValueStore, observer: RecordingObserver) -> TaskStore:
    """
    Empty TaskStore with deterministic ids (t1, t2, ...).

    Uses the recording in-memory store; SQLite has its own tests.
    """
    s = TaskStore(kv, id_factory=sequential_ids())
    s.subscribe(observer)
    return s
