# src/taskboard/board/task_store.py

from __future__ import annotations

import logging
import uuid
from collections.abc import Callable, Iterable
from dataclasses import replace

from ..core.errors import DuplicateTagError, NotFoundError, ValidationError
from ..core.ports import BoardObserver, KeyValueStore
from .models import BoardSnapshot, Lane, Task
from .move_resolver import resolve
from .serialization import TAGS_KEY, TODOS_KEY, dump_tags, dump_tasks, load_board

logger = logging.getLogger(__name__)

_MAX_ID_ATTEMPTS = 100


def _new_id() -> str:
    return str(uuid.uuid4())


def _clean_text(text: str | None, what: str) -> str:
    cleaned = (text or "").strip()
    if not cleaned:
        raise ValidationError(f"{what} is empty")
    return cleaned


def _require_task(snap: BoardSnapshot, task_id: str) -> Task:
    task = snap.get_task(task_id)
    if task is None:
        raise NotFoundError(f"Task not found: {task_id!r}")
    return task


def _swap_task(snap: BoardSnapshot, updated: Task) -> tuple[Task, ...]:
    return tuple(updated if t.id == updated.id else t for t in snap.tasks)


def _rename_in(names: Iterable[str], old: str, new: str) -> tuple[str, ...]:
    return tuple(dict.fromkeys(new if n == old else n for n in names))


def _without(names: Iterable[str], name: str) -> tuple[str, ...]:
    return tuple(n for n in names if n != name)


class TaskStore:
    """
    Owner of the board state.

    State lives in one immutable BoardSnapshot. Every mutation builds the
    complete next snapshot first and then swaps it in (`_commit`), so tag
    cascades are never observable half-done.

    After a swap:
    - tasks/tags changes are written through to the key-value store
    - observers are notified with the new snapshot
    No-ops (invalid input, unknown ids, unchanged values) trigger neither.

    Selection and drag state are transient: observers see them, the durable
    store does not.
    """

    def __init__(
        self,
        kv: KeyValueStore | None = None,
        *,
        tasks: Iterable[Task] = (),
        tags: Iterable[str] = (),
        id_factory: Callable[[], str] | None = None,
    ) -> None:
        self._kv = kv
        self._snapshot = BoardSnapshot(tasks=tuple(tasks), tags=tuple(dict.fromkeys(tags)))
        self._observers: list[BoardObserver] = []
        self._id_factory = id_factory or _new_id
        self._issued_ids: set[str] = {t.id for t in self._snapshot.tasks}

    @classmethod
    def load(
        cls,
        kv: KeyValueStore,
        *,
        id_factory: Callable[[], str] | None = None,
    ) -> TaskStore:
        """Build a store from persisted state. Raises PersistenceParseError."""
        tasks, tags = load_board(kv)
        store = cls(kv, tasks=tasks, tags=tags, id_factory=id_factory)
        logger.info("TaskStore loaded tasks=%d tags=%d", len(tasks), len(tags))
        return store

    # ---- read views ----

    @property
    def snapshot(self) -> BoardSnapshot:
        return self._snapshot

    @property
    def tasks(self) -> tuple[Task, ...]:
        return self._snapshot.tasks

    @property
    def tags(self) -> tuple[str, ...]:
        return self._snapshot.tags

    @property
    def selected_tags(self) -> tuple[str, ...]:
        return self._snapshot.selected_tags

    @property
    def active_task_id(self) -> str | None:
        return self._snapshot.active_task_id

    def get_task(self, task_id: str) -> Task | None:
        return self._snapshot.get_task(task_id)

    def derived_by_lane(self) -> dict[Lane, tuple[Task, ...]]:
        """Per-lane views of the flat sequence. Recomputed on every call."""
        return self._snapshot.by_lane()

    # ---- observers ----

    def subscribe(self, observer: BoardObserver) -> Callable[[], None]:
        """Register an observer; returns a callable that unregisters it."""
        self._observers.append(observer)

        def unsubscribe() -> None:
            self._observers = [o for o in self._observers if o is not observer]

        return unsubscribe

    def _notify(self, snap: BoardSnapshot) -> None:
        for observer in list(self._observers):
            try:
                observer(snap)
            except Exception:
                logger.exception("Board observer %r failed", observer)

    # ---- commit ----

    def _commit(self, new: BoardSnapshot) -> bool:
        old = self._snapshot
        if new == old:
            return False
        self._snapshot = new
        try:
            self._persist(old, new)
        finally:
            self._notify(new)
        return True

    def _persist(self, old: BoardSnapshot, new: BoardSnapshot) -> None:
        if self._kv is None:
            return
        # One write per commit, so a cascade is never stored half-applied.
        changed: dict[str, str] = {}
        if new.tasks != old.tasks:
            changed[TODOS_KEY] = dump_tasks(new.tasks)
        if new.tags != old.tags:
            changed[TAGS_KEY] = dump_tags(new.tags)
        if changed:
            self._kv.set_many(changed)

    def _apply(self, op: str, build: Callable[[BoardSnapshot], BoardSnapshot]) -> bool:
        try:
            new = build(self._snapshot)
        except (ValidationError, NotFoundError) as e:
            logger.debug("%s ignored: %s", op, e)
            return False
        changed = self._commit(new)
        if changed:
            logger.debug("%s committed", op)
        return changed

    def _fresh_id(self, snap: BoardSnapshot) -> str:
        for _ in range(_MAX_ID_ATTEMPTS):
            candidate = self._id_factory()
            if candidate not in self._issued_ids and not snap.has_task(candidate):
                self._issued_ids.add(candidate)
                return candidate
        raise RuntimeError("id_factory keeps returning ids that are already taken")

    # ---- tasks ----

    def add_task(self, text: str, tags: Iterable[str] | None = None) -> Task | None:
        """
        Append a new task to the todo lane.

        `tags=None` takes the current tag selection. Names that are not in the
        registry are dropped. The selection is cleared afterwards.
        Returns the created task, or None if `text` is blank.
        """
        snap = self._snapshot
        try:
            text = _clean_text(text, "Task text")
        except ValidationError as e:
            logger.debug("add_task ignored: %s", e)
            return None

        known = set(snap.tags)
        chosen = snap.selected_tags if tags is None else tags
        task = Task(
            id=self._fresh_id(snap),
            text=text,
            lane=Lane.TODO,
            tags=tuple(t for t in dict.fromkeys(chosen) if t in known),
        )
        self._commit(replace(snap, tasks=snap.tasks + (task,), selected_tags=()))
        logger.debug("Task added id=%s tags=%s", task.id, task.tags)
        return task

    def rename_task(self, task_id: str, text: str) -> bool:
        def build(snap: BoardSnapshot) -> BoardSnapshot:
            task = _require_task(snap, task_id)
            new_text = _clean_text(text, "Task text")
            return replace(snap, tasks=_swap_task(snap, replace(task, text=new_text)))

        return self._apply(f"rename_task({task_id})", build)

    def delete_task(self, task_id: str) -> bool:
        def build(snap: BoardSnapshot) -> BoardSnapshot:
            _require_task(snap, task_id)
            active = None if snap.active_task_id == task_id else snap.active_task_id
            return replace(
                snap,
                tasks=tuple(t for t in snap.tasks if t.id != task_id),
                active_task_id=active,
            )

        return self._apply(f"delete_task({task_id})", build)

    def toggle_task_tag(self, task_id: str, tag: str) -> bool:
        def build(snap: BoardSnapshot) -> BoardSnapshot:
            task = _require_task(snap, task_id)
            if task.has_tag(tag):
                updated = replace(task, tags=_without(task.tags, tag))
            elif tag in snap.tags:
                updated = replace(task, tags=task.tags + (tag,))
            else:
                raise NotFoundError(f"Tag not found: {tag!r}")
            return replace(snap, tasks=_swap_task(snap, updated))

        return self._apply(f"toggle_task_tag({task_id}, {tag})", build)

    def move_task(self, task_id: str, lane: Lane | str, index: int) -> bool:
        """
        Move a task to slot `index` of `lane` (drop-slot convention, see
        move_resolver). Returns False for no-op drops.
        """

        def build(snap: BoardSnapshot) -> BoardSnapshot:
            return replace(snap, tasks=resolve(snap.tasks, task_id, lane, index))

        return self._apply(f"move_task({task_id}, {lane}, {index})", build)

    # ---- tags ----

    def add_tag(self, name: str) -> bool:
        def build(snap: BoardSnapshot) -> BoardSnapshot:
            clean = _clean_text(name, "Tag name")
            if clean in snap.tags:
                return snap
            return replace(snap, tags=snap.tags + (clean,))

        return self._apply(f"add_tag({name})", build)

    def rename_tag(self, old: str, new: str) -> bool:
        """
        Rename a tag everywhere in one step.

        Raises DuplicateTagError if `new` is already a different tag; the
        board is left untouched in that case.
        """

        def build(snap: BoardSnapshot) -> BoardSnapshot:
            if old not in snap.tags:
                raise NotFoundError(f"Tag not found: {old!r}")
            target = _clean_text(new, "Tag name")
            if target == old:
                return snap
            if target in snap.tags:
                raise DuplicateTagError(target)
            tasks = tuple(
                replace(t, tags=_rename_in(t.tags, old, target)) if t.has_tag(old) else t
                for t in snap.tasks
            )
            return replace(
                snap,
                tasks=tasks,
                tags=_rename_in(snap.tags, old, target),
                selected_tags=_rename_in(snap.selected_tags, old, target),
            )

        return self._apply(f"rename_tag({old} -> {new})", build)

    def delete_tag(self, name: str) -> bool:
        def build(snap: BoardSnapshot) -> BoardSnapshot:
            in_use = any(t.has_tag(name) for t in snap.tasks)
            if name not in snap.tags and name not in snap.selected_tags and not in_use:
                raise NotFoundError(f"Tag not found: {name!r}")
            tasks = tuple(
                replace(t, tags=_without(t.tags, name)) if t.has_tag(name) else t
                for t in snap.tasks
            )
            return replace(
                snap,
                tasks=tasks,
                tags=_without(snap.tags, name),
                selected_tags=_without(snap.selected_tags, name),
            )

        return self._apply(f"delete_tag({name})", build)

    def toggle_tag_selection(self, name: str) -> bool:
        """Select/deselect a tag for the next add_task() call."""

        def build(snap: BoardSnapshot) -> BoardSnapshot:
            if name in snap.selected_tags:
                return replace(snap, selected_tags=_without(snap.selected_tags, name))
            if name not in snap.tags:
                raise NotFoundError(f"Tag not found: {name!r}")
            return replace(snap, selected_tags=snap.selected_tags + (name,))

        return self._apply(f"toggle_tag_selection({name})", build)

    # ---- drag and drop ----

    def drag_start(self, task_id: str) -> bool:
        def build(snap: BoardSnapshot) -> BoardSnapshot:
            _require_task(snap, task_id)
            return replace(snap, active_task_id=task_id)

        return self._apply(f"drag_start({task_id})", build)

    def drag_end(self) -> bool:
        """Cancel/finish a drag. Never touches the task sequence."""
        return self._apply("drag_end", lambda snap: replace(snap, active_task_id=None))

    def drop(self, lane: Lane | str, index: int) -> bool:
        """
        Complete the active drag at (`lane`, `index`).

        The drag state is cleared in the same snapshot as the move. Returns
        True only if the task sequence changed.
        """
        snap = self._snapshot
        task_id = snap.active_task_id
        if task_id is None:
            logger.debug("drop ignored: no active drag")
            return False

        try:
            tasks = resolve(snap.tasks, task_id, lane, index)
        except (ValidationError, NotFoundError) as e:
            logger.debug("drop of %s ignored: %s", task_id, e)
            tasks = snap.tasks

        self._commit(replace(snap, tasks=tasks, active_task_id=None))
        return tasks != snap.tasks
