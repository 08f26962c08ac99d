# src/taskboard/bootstrap.py

"""
Composition root.

- loads settings once,
- configures logging,
- ensures local (gitignored) directories exist,
- wires the durable key-value store into a TaskStore.
"""

from __future__ import annotations

import logging

from .board.task_store import TaskStore
from .config import Settings, get_settings
from .logging_setup import setup_logging
from .storage.kv_store import SqliteKeyValueStore

logger = logging.getLogger(__name__)


def _ensure_local_dirs(settings: Settings) -> None:
    settings.data_dir.mkdir(parents=True, exist_ok=True)
    settings.db_path.parent.mkdir(parents=True, exist_ok=True)
    if settings.log_to_file:
        settings.log_dir.mkdir(parents=True, exist_ok=True)


def create_task_store(*, settings: Settings | None = None, configure_logging: bool = True) -> TaskStore:
    """
    Build a TaskStore backed by SQLite at settings.db_path.

    Keeping settings injectable makes the app easier to test and avoids hidden global config reads.
    If settings is None, falls back to get_settings(). A corrupt database surfaces as
    PersistenceParseError; it is not reset.
    """
    if settings is None:
        settings = get_settings()

    _ensure_local_dirs(settings)

    if configure_logging:
        setup_logging(
            log_dir=settings.log_dir if settings.log_to_file else None,
            console_level=settings.console_log_level,
        )

    kv = SqliteKeyValueStore(settings.db_path)
    store = TaskStore.load(kv)
    logger.info("%s ready db=%s", settings.app_name, settings.db_path)
    return store
