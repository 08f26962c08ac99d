"""
Board subsystem.

Components:
- models.py: value types (Lane, Task, MoveRequest, BoardSnapshot)
- move_resolver.py: pure drag-and-drop reconciliation over the flat sequence
- task_store.py: state owner (mutations, drag state, observers, write-through)
- serialization.py: persisted JSON layout ("todos" / "tags" keys)
"""
