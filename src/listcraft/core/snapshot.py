"""Original-versus-current attribute views and per-entity list bookkeeping.

A scope change has to be handled against two versions of the same row: the
one still in the database (to close the gap it leaves) and the pending one
(to place it in its new list). ``AttributeSnapshot`` exposes both versions
as read-only views so a scope builder can be evaluated against either one
without mutating the instance.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from sqlalchemy import inspect
from sqlalchemy.exc import NoInspectionAvailable

_STATE_ATTRIBUTE = "_listcraft_state"


def original_value(item: Any, key: str) -> Any:
    """Return the persisted value of attribute *key*.

    Falls back to the current value when the attribute has no history
    (transient items, unmapped attributes, values never loaded).
    """
    try:
        state = inspect(item)
    except NoInspectionAvailable:
        return getattr(item, key)

    if key not in state.attrs:
        return getattr(item, key)

    history = state.attrs[key].history
    if history.deleted:
        return history.deleted[0]
    if history.unchanged:
        return history.unchanged[0]
    return getattr(item, key)


class _View:
    __slots__ = ("_item", "_original")

    def __init__(self, item: Any, original: bool):
        object.__setattr__(self, "_item", item)
        object.__setattr__(self, "_original", original)

    def __getattr__(self, name: str) -> Any:
        if self._original:
            return original_value(self._item, name)
        return getattr(self._item, name)

    def __setattr__(self, name: str, value: Any) -> None:
        raise AttributeError("attribute snapshots are read-only")

    def __repr__(self) -> str:
        kind = "original" if self._original else "current"
        return f"<{kind} view of {self._item!r}>"


class AttributeSnapshot:
    """Dual read-only view of a mapped instance.

    >>> snap = AttributeSnapshot(item)
    >>> snap.original.company   # value in the database
    >>> snap.current.company    # pending value
    """

    def __init__(self, item: Any):
        self.item = item
        self.original = _View(item, original=True)
        self.current = _View(item, original=False)

    def changed(self, key: str) -> bool:
        return original_value(self.item, key) != getattr(self.item, key)


@dataclass
class ListState:
    """Per-entity bookkeeping kept directly on the instance."""

    # Cached ResolvedScope the persisted row belongs to
    baseline: Any = None
    # Per-instance ListConfiguration overrides
    overrides: dict[str, Any] = field(default_factory=dict)
    # Set in before_update when the caller wrote the position column
    reconcile: bool = False
    previous_position: int | None = None
    # Set in before_update when the scope changed; the item enters its new list in after_update
    admit: bool = False
    # Captured in before_delete, consumed in after_delete
    deleted_position: int | None = None
    deleted_scope: Any = None


def state_of(item: Any) -> ListState:
    """Return the ``ListState`` of *item*, creating it on first access."""
    state = item.__dict__.get(_STATE_ATTRIBUTE)
    if state is None:
        state = ListState()
        item.__dict__[_STATE_ATTRIBUTE] = state
    return state


__all__ = [
    "AttributeSnapshot",
    "ListState",
    "original_value",
    "state_of",
]
