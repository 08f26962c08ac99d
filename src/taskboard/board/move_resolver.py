# src/taskboard/board/move_resolver.py

"""
Drag-and-drop reconciliation for the flat task sequence.

The board keeps ONE ordered sequence of tasks. A lane's display order is that
sequence filtered by lane, so a move only has to find the right flat slot.

Index contract (shared with the UI):
- `target_index` is a drop slot in the target lane as the UI rendered it,
  i.e. "insert so that exactly `target_index` lane tasks precede it".
- For a same-lane move the UI still shows the source task, so any slot after
  the source is one too high once the source is removed. The resolver takes
  the source's pre-removal rank and decrements such indices itself.
- Slots `rank` and `rank + 1` (the gaps around the task) are a no-op and the
  input sequence is returned unchanged.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import replace

from ..core.errors import NotFoundError
from .models import Lane, MoveRequest, Task

logger = logging.getLogger(__name__)


def lane_view(tasks: Sequence[Task], lane: Lane | str) -> list[Task]:
    """Tasks of one lane, in flat-sequence order."""
    lane = Lane.parse(lane)
    return [t for t in tasks if t.lane == lane]


def rank_in_lane(tasks: Sequence[Task], task_id: str) -> int:
    """Zero-based position of `task_id` among the tasks of its own lane."""
    seen: dict[Lane, int] = {}
    for t in tasks:
        if t.id == task_id:
            return seen.get(t.lane, 0)
        seen[t.lane] = seen.get(t.lane, 0) + 1
    raise NotFoundError(f"Task not found: {task_id!r}")


def _adjusted_index(tasks: Sequence[Task], source: Task, target_lane: Lane, target_index: int) -> int:
    target_index = max(0, int(target_index))
    if source.lane != target_lane:
        return target_index
    original_rank = rank_in_lane(tasks, source.id)
    if target_index > original_rank:
        target_index -= 1
    return target_index


def _lands_in_place(tasks: Sequence[Task], source: Task, target_lane: Lane, index: int) -> bool:
    # `index` is already adjusted for the removal of the source.
    return source.lane == target_lane and index == rank_in_lane(tasks, source.id)


def is_noop_move(tasks: Sequence[Task], task_id: str, target_lane: Lane | str, target_index: int) -> bool:
    """True if dropping `task_id` at this slot would not change the sequence."""
    target_lane = Lane.parse(target_lane)
    source = _find(tasks, task_id)
    index = _adjusted_index(tasks, source, target_lane, target_index)
    return _lands_in_place(tasks, source, target_lane, index)


def resolve(
    tasks: Sequence[Task],
    source_task_id: str,
    target_lane: Lane | str,
    target_index: int,
) -> tuple[Task, ...]:
    """
    Return the flat sequence after moving `source_task_id` to
    (`target_lane`, `target_index`).

    The input is never mutated. On a no-op the result is a tuple equal to the
    input: the same object when `tasks` is already a tuple, a copy otherwise.
    Raises NotFoundError for an unknown source and ValidationError for an
    unknown lane.
    """
    target_lane = Lane.parse(target_lane)
    source = _find(tasks, source_task_id)

    index = _adjusted_index(tasks, source, target_lane, target_index)
    if _lands_in_place(tasks, source, target_lane, index):
        logger.debug("Move of %s to %s@%s is a no-op", source.id, target_lane, target_index)
        return tuple(tasks)

    remaining = [t for t in tasks if t.id != source.id]
    moved = replace(source, lane=target_lane)

    lane_positions = [i for i, t in enumerate(remaining) if t.lane == target_lane]

    if index == 0:
        # Empty lane: nothing to anchor against, append.
        pos = lane_positions[0] if lane_positions else len(remaining)
    elif index < len(lane_positions):
        pos = lane_positions[index - 1] + 1
    else:
        pos = len(remaining)

    remaining.insert(pos, moved)
    logger.debug(
        "Moved %s from %s to %s@%s (flat position %s)",
        source.id,
        source.lane,
        target_lane,
        index,
        pos,
    )
    return tuple(remaining)


def apply_move(tasks: Sequence[Task], request: MoveRequest) -> tuple[Task, ...]:
    return resolve(tasks, request.task_id, request.lane, request.index)


def _find(tasks: Sequence[Task], task_id: str) -> Task:
    for t in tasks:
        if t.id == task_id:
            return t
    raise NotFoundError(f"Task not found: {task_id!r}")
