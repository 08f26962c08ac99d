# src/taskboard/board/models.py

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum

from ..core.errors import ValidationError


class Lane(StrEnum):
    """
    Board lane.

    Values double as the persisted "status" field, so they must stay stable.
    """

    TODO = "todo"
    DOING = "doing"
    DONE = "done"

    @classmethod
    def parse(cls, raw: Lane | str) -> Lane:
        if isinstance(raw, cls):
            return raw
        try:
            return cls(str(raw).strip().lower())
        except ValueError:
            raise ValidationError(f"Unknown lane: {raw!r}") from None


LANES: tuple[Lane, ...] = (Lane.TODO, Lane.DOING, Lane.DONE)


@dataclass(frozen=True, slots=True)
class Task:
    id: str
    text: str
    lane: Lane = Lane.TODO
    tags: tuple[str, ...] = ()

    def has_tag(self, name: str) -> bool:
        return name in self.tags


@dataclass(frozen=True, slots=True)
class MoveRequest:
    """A completed drag gesture: put `task_id` so that `index` lane tasks precede it."""

    task_id: str
    lane: Lane
    index: int


@dataclass(frozen=True, slots=True)
class BoardSnapshot:
    """
    Complete, immutable board state.

    TaskStore publishes a new snapshot per committed change; observers never
    see a partially applied cascade because nothing is shared between snapshots.
    """

    tasks: tuple[Task, ...] = ()
    tags: tuple[str, ...] = ()
    selected_tags: tuple[str, ...] = ()
    active_task_id: str | None = None

    # Cached lookups are not part of equality.
    _ids: frozenset[str] = field(default=frozenset(), init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "_ids", frozenset(t.id for t in self.tasks))

    def has_task(self, task_id: str) -> bool:
        return task_id in self._ids

    def get_task(self, task_id: str) -> Task | None:
        for t in self.tasks:
            if t.id == task_id:
                return t
        return None

    def by_lane(self) -> dict[Lane, tuple[Task, ...]]:
        return {lane: tuple(t for t in self.tasks if t.lane == lane) for lane in LANES}
