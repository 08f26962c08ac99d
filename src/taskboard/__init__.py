"""
Client-side task board core.

Three ordered lanes (todo/doing/done) over ONE flat task sequence, free-form
tags with cascading rename/delete, and drag-and-drop reordering.
"""

from .board.models import LANES, BoardSnapshot, Lane, MoveRequest, Task
from .board.move_resolver import resolve
from .board.task_store import TaskStore
from .core.errors import (
    DuplicateTagError,
    NotFoundError,
    PersistenceParseError,
    TaskBoardError,
    ValidationError,
)

__all__ = [
    "LANES",
    "BoardSnapshot",
    "DuplicateTagError",
    "Lane",
    "MoveRequest",
    "NotFoundError",
    "PersistenceParseError",
    "Task",
    "TaskBoardError",
    "TaskStore",
    "ValidationError",
    "resolve",
]
