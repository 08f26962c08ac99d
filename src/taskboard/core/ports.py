# src/taskboard/core/ports.py

from __future__ import annotations

"""
Ports (interfaces) used by the board core.

The core depends on Protocols instead of concrete implementations.
This keeps the durable store and the UI side swappable and makes testing easier.
"""

from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from ..board.models import BoardSnapshot


class KeyValueStore(Protocol):
    """
    Durable string -> string store (think browser localStorage).

    get() returns None for a missing key. set_many() is atomic: after a
    failure none of the given keys has changed.
    """

    def get(self, key: str) -> str | None: ...
    def set(self, key: str, value: str) -> None: ...
    def set_many(self, items: dict[str, str]) -> None: ...
    def delete(self, key: str) -> None: ...


class BoardObserver(Protocol):
    """Called once per committed change with the new snapshot."""

    def __call__(self, snapshot: BoardSnapshot) -> None: ...
