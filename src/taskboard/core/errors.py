# src/taskboard/core/errors.py

from __future__ import annotations

"""
Error taxonomy for the board core.

Recovery policy (see TaskStore):
- ValidationError / NotFoundError are raised internally and turned into no-ops.
- DuplicateTagError is surfaced to the caller; the rename does not happen.
- PersistenceParseError is fatal at load time for that collection.
"""


class TaskBoardError(Exception):
    """Base class for all board errors."""


class ValidationError(TaskBoardError):
    """Empty text/name or an unknown lane."""


class NotFoundError(TaskBoardError):
    """A task id or tag name that is not (or no longer) present."""


class DuplicateTagError(TaskBoardError):
    def __init__(self, name: str) -> None:
        super().__init__(f"Tag already exists: {name!r}")
        self.name = name


class PersistenceParseError(TaskBoardError):
    """Durable store holds data that cannot be decoded."""

    def __init__(self, key: str, reason: str) -> None:
        super().__init__(f"Cannot parse persisted {key!r}: {reason}")
        self.key = key
        self.reason = reason
