"""
Protocols and value types shared by the position engine and its stores.

The engine never talks to SQLAlchemy directly for reads and writes; it
issues shift directives through a ``PositionStore`` and is driven by a host
through ``LifecycleHooks``.

Architecture:
    ::

        protocols.py
        ├── Direction        ASC / DESC ordering for ordered selects
        ├── Span             store-neutral filter over positions
        ├── PositionRow      (identity, position) row
        ├── PositionStore    counts, ordered selects, bulk ±1, transactions
        └── LifecycleHooks   callbacks the host invokes around flushes

    Implementations:
        PositionStore  → listcraft.orm.store.SQLAlchemyPositionStore
        LifecycleHooks → listcraft.core.manager.PositionManager

Guardrails:
    ❌ DON'T: Add SQL rendering to protocol classes
    ✅ DO: Keep protocols pure contracts; implementations live in orm/

Tags:
    protocol, store, lifecycle, listcraft, contracts
"""

from __future__ import annotations

from collections.abc import Iterable
from contextlib import AbstractContextManager
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any, NamedTuple, Protocol, runtime_checkable

if TYPE_CHECKING:
    from listcraft.core.scope import ResolvedScope


class Direction(str, Enum):
    """Ordering of an ordered select over positions."""

    ASC = "asc"
    DESC = "desc"


@dataclass(frozen=True, slots=True)
class Span:
    """A filter over in-list positions of one scope.

    Every field is optional; set fields are combined with AND. An empty
    ``Span()`` matches every in-list row of the scope.

    ``above``/``below`` are exclusive bounds, ``at_least``/``at_most``
    inclusive ones. ``exclude`` skips one identity, ``only`` restricts the
    filter to one identity.
    """

    above: int | None = None
    at_least: int | None = None
    below: int | None = None
    at_most: int | None = None
    equal: int | None = None
    exclude: Any = None
    only: Any = None

    def matches(self, identity: Any, position: int | None) -> bool:
        """Evaluate the span in Python (used by in-memory stores)."""
        if position is None:
            return False
        if self.above is not None and not position > self.above:
            return False
        if self.at_least is not None and not position >= self.at_least:
            return False
        if self.below is not None and not position < self.below:
            return False
        if self.at_most is not None and not position <= self.at_most:
            return False
        if self.equal is not None and position != self.equal:
            return False
        if self.exclude is not None and identity == self.exclude:
            return False
        if self.only is not None and identity != self.only:
            return False
        return True


class PositionRow(NamedTuple):
    """One in-list row: primary-key identity and position."""

    identity: Any
    position: int


@runtime_checkable
class PositionStore(Protocol):
    """
    Reads and writes positions for one mapped model.

    All bulk operations are restricted to in-list rows (position not null)
    of the given scope. Writes outside ``transaction()`` are allowed only
    when the store is already joined to an enclosing transaction.
    """

    def count(self, scope: ResolvedScope, span: Span | None = None) -> int:
        """Number of in-list rows in *scope* matching *span*."""
        ...

    def select_ordered(
        self,
        scope: ResolvedScope,
        direction: Direction,
        limit: int | None = None,
        span: Span | None = None,
    ) -> list[PositionRow]:
        """In-list rows of *scope* ordered by position."""
        ...

    def increment_where(self, scope: ResolvedScope, span: Span) -> int:
        """Add one to every matching position; returns affected row count."""
        ...

    def decrement_where(self, scope: ResolvedScope, span: Span) -> int:
        """Subtract one from every matching position; returns affected row count."""
        ...

    def identity_of(self, item: Any) -> Any:
        """Primary-key identity of *item* (``None`` before insert)."""
        ...

    def get_position(self, item: Any) -> int | None:
        """Current (possibly pending) position of *item*."""
        ...

    def original_position(self, item: Any) -> int | None:
        """Position *item* has in the database, ignoring pending changes."""
        ...

    def stored_position(self, item: Any) -> int | None:
        """Position the row of *item* holds right now, read from the database.

        Differs from ``original_position`` once other rows were shifted in
        the same flush; ``None`` for items without a row.
        """
        ...

    def set_position(self, item: Any, value: int | None) -> None:
        """Assign *value* to *item* and persist it.

        Inside a flush the value is left pending, to be written by the
        UPDATE or INSERT of *item* itself.
        """
        ...

    def write_position(self, item: Any, value: int | None) -> None:
        """Write *value* to the row of *item* immediately."""
        ...

    def transaction(self) -> AbstractContextManager[Any]:
        """Scoped transaction with commit/rollback on every exit path."""
        ...


@runtime_checkable
class LifecycleHooks(Protocol):
    """Callbacks a host invokes at its create/update/delete boundaries."""

    def before_create(self, item: Any) -> None: ...

    def after_create(self, item: Any) -> None: ...

    def before_update(self, item: Any) -> None: ...

    def after_update(self, item: Any) -> None: ...

    def before_delete(self, item: Any) -> None: ...

    def after_delete(self, item: Any, pending: Iterable[Any] = ()) -> None: ...


__all__ = [
    "Direction",
    "Span",
    "PositionRow",
    "PositionStore",
    "LifecycleHooks",
]
