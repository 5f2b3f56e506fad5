"""
Position manager: the shift/renumber engine behind every list operation.

The manager keeps the positions of one scope contiguous: at rest the in-list
items of a scope hold exactly ``top_of_list .. top_of_list + n - 1``. Every
operation is expressed as bulk ±1 shifts over a ``Span`` of positions plus a
single write of the item's own position, and runs inside one transaction
supplied by the ``PositionStore``.

Architecture:
    ::

        host flush / explicit call
                │
                ▼
        PositionManager ──► ScopeEvaluator  (resolve, has_scope_changed)
                │
                ▼
        PositionStore      (count, select_ordered, increment/decrement_where,
                            set_position, write_position,
                            stored_position, transaction)

Shift rules (old position ``p``, target ``t``):

* ``p < t``  decrement ``(p, t]``   e.g. moving 2 → 5 turns [3, 4, 5] into [2, 3, 4]
* ``p > t``  increment ``[t, p)``   e.g. moving 5 → 2 turns [2, 3, 4] into [3, 4, 5]
* not in list: increment ``[t, ∞)`` to open a slot

Guardrails:
    ❌ DON'T: Write positions of other rows one by one
    ✅ DO: Shift them with one bulk update per directive

    ❌ DON'T: Call the standalone increment/decrement expecting a reorder
    ✅ DO: Use insert_at / move_* ; the standalone ones may duplicate positions

Tags:
    ordering, positions, acts-as-list, listcraft, core
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any

from listcraft.core.config import ListConfiguration, PlacementPolicy
from listcraft.core.logging import get_logger
from listcraft.core.protocols import Direction, PositionRow, PositionStore, Span
from listcraft.core.scope import ResolvedScope, ScopeEvaluator
from listcraft.core.snapshot import state_of

logger = get_logger(__name__)


class PositionManager:
    """Implements list operations and lifecycle hooks for one configuration.

    Args:
        config: The list configuration (already merged with per-instance overrides)
        store: Where positions are read and written
        evaluator: Scope resolver for the model the store serves
    """

    def __init__(
        self,
        config: ListConfiguration,
        store: PositionStore,
        evaluator: ScopeEvaluator,
    ):
        self.config = config
        self.store = store
        self.evaluator = evaluator

    # =========================================================================
    # Queries
    # =========================================================================

    @property
    def top(self) -> int:
        return self.config.top_of_list

    def scope_for(self, item: Any) -> ResolvedScope:
        return self.evaluator.resolve(self.config.scope, item)

    def position_of(self, item: Any) -> int | None:
        return self.store.get_position(item)

    def in_list(self, item: Any) -> bool:
        return self.position_of(item) is not None

    def not_in_list(self, item: Any) -> bool:
        return self.position_of(item) is None

    def bottom_position(self, item: Any, *, exclude_self: bool = False) -> int:
        """Position of the last in-list item of *item*'s scope (``top - 1`` if empty)."""
        span = Span(exclude=self.store.identity_of(item)) if exclude_self else None
        rows = self.store.select_ordered(self.scope_for(item), Direction.DESC, limit=1, span=span)
        if rows:
            return rows[0].position
        return self.top - 1

    def is_first(self, item: Any) -> bool:
        return self.in_list(item) and self.position_of(item) == self.top

    def is_last(self, item: Any) -> bool:
        return self.in_list(item) and self.position_of(item) == self.bottom_position(item)

    def higher_row(self, item: Any) -> PositionRow | None:
        """The adjacent item above *item*, if any."""
        position = self.position_of(item)
        if position is None:
            return None
        rows = self.store.select_ordered(
            self.scope_for(item), Direction.DESC, limit=1, span=Span(below=position)
        )
        return rows[0] if rows else None

    def lower_row(self, item: Any) -> PositionRow | None:
        """The adjacent item below *item*, if any."""
        position = self.position_of(item)
        if position is None:
            return None
        rows = self.store.select_ordered(
            self.scope_for(item), Direction.ASC, limit=1, span=Span(above=position)
        )
        return rows[0] if rows else None

    def higher_rows(self, item: Any, limit: int | None = None) -> list[PositionRow]:
        """Up to *limit* items directly above *item*, top first (all by default)."""
        position = self.position_of(item)
        if position is None:
            return []
        span = Span(below=position)
        if limit is not None:
            span = Span(below=position, at_least=position - limit)
        return self.store.select_ordered(self.scope_for(item), Direction.ASC, limit=limit, span=span)

    def lower_rows(self, item: Any, limit: int | None = None) -> list[PositionRow]:
        """Up to *limit* items directly below *item*, nearest first (all by default)."""
        position = self.position_of(item)
        if position is None:
            return []
        span = Span(above=position)
        if limit is not None:
            span = Span(above=position, at_most=position + limit)
        return self.store.select_ordered(self.scope_for(item), Direction.ASC, limit=limit, span=span)

    # =========================================================================
    # Operations
    # =========================================================================

    def insert_at(self, item: Any, position: int | None = None) -> None:
        """Place *item* at *position* (default: top of list), shifting the others."""
        target = self.top if position is None else position
        with self.store.transaction():
            scope = self.scope_for(item)
            current = self.position_of(item)
            if current is not None:
                if current == target:
                    return
                self._shuffle(scope, current, target)
            else:
                self._shift(scope, +1, Span(at_least=target))
            self.store.set_position(item, target)
        logger.debug("item_inserted", scope=scope.canonical, old=current, new=target)

    def move_lower(self, item: Any) -> None:
        """Swap places with the next lower item."""
        with self.store.transaction():
            neighbour = self.lower_row(item)
            if neighbour is None:
                return
            scope = self.scope_for(item)
            self.store.decrement_where(scope, Span(only=neighbour.identity))
            self.store.set_position(item, self.position_of(item) + 1)

    def move_higher(self, item: Any) -> None:
        """Swap places with the next higher item."""
        with self.store.transaction():
            neighbour = self.higher_row(item)
            if neighbour is None:
                return
            scope = self.scope_for(item)
            self.store.increment_where(scope, Span(only=neighbour.identity))
            self.store.set_position(item, self.position_of(item) - 1)

    def move_to_bottom(self, item: Any) -> None:
        """Move to the bottom of the list, closing the gap left behind."""
        if self.not_in_list(item):
            return
        with self.store.transaction():
            scope = self.scope_for(item)
            self._shift(scope, -1, Span(above=self.position_of(item)))
            self.store.set_position(item, self.bottom_position(item, exclude_self=True) + 1)

    def move_to_top(self, item: Any) -> None:
        """Move to the top of the list, pushing the items above it down."""
        if self.not_in_list(item):
            return
        with self.store.transaction():
            scope = self.scope_for(item)
            self._shift(scope, +1, Span(below=self.position_of(item)))
            self.store.set_position(item, self.top)

    def remove_from_list(self, item: Any) -> None:
        """Take *item* out of the list and close the gap."""
        if self.not_in_list(item):
            return
        with self.store.transaction():
            scope = self.scope_for(item)
            self._shift(scope, -1, Span(above=self.position_of(item)))
            self.store.set_position(item, None)

    def increment_position(self, item: Any) -> None:
        """Add one to *item*'s own position without touching any other item."""
        self._adjust_standalone(item, +1)

    def decrement_position(self, item: Any) -> None:
        """Subtract one from *item*'s own position without touching any other item."""
        self._adjust_standalone(item, -1)

    def _adjust_standalone(self, item: Any, delta: int) -> None:
        position = self.position_of(item)
        if position is None:
            return
        # May leave two items on one position until the list is reordered.
        logger.warning("standalone_position_adjusted", old=position, new=position + delta)
        with self.store.transaction():
            self.store.set_position(item, position + delta)

    # =========================================================================
    # Lifecycle hooks
    # =========================================================================
    #
    # A flush runs the before_* hook of every item in a batch before the
    # first statement and the after_* hooks once all rows are written. Items
    # therefore enter a list only in the after_* hooks, and positions are
    # read back from the database, so each hook sees what its siblings
    # already shifted.

    def before_create(self, item: Any) -> None:
        """Resolve the scope of a new item so a bad scope fails the INSERT."""
        if self.in_list(item) or self.config.placement is not PlacementPolicy.NONE:
            self.scope_for(item)

    def after_create(self, item: Any) -> None:
        """Admit the inserted row according to the placement policy.

        A row created with an explicit position keeps it and the items
        already holding that position move down one.
        """
        if self.in_list(item):
            scope = self.scope_for(item)
            position = self.store.stored_position(item)
            if self.store.count(scope, Span(equal=position)) > 1:
                self._shift(scope, +1, Span(at_least=position, exclude=self.store.identity_of(item)))
            if position != self.position_of(item):
                self.store.write_position(item, position)
        else:
            self._place(item)
        if self.in_list(item):
            self.evaluator.remember(self.config.scope, item)

    def before_update(self, item: Any) -> None:
        """Detect a scope change or a caller-written position before the UPDATE."""
        state = state_of(item)
        state.reconcile = state.admit = False
        previous = self.store.original_position(item)
        current = self.position_of(item)

        if previous is not None or self.config.placement is not PlacementPolicy.NONE:
            if self.evaluator.has_scope_changed(self.config.scope, item):
                self.on_scope_changed(item)
                return

        if current != previous:
            state.reconcile = True
            state.previous_position = self.store.stored_position(item)

    def after_update(self, item: Any) -> None:
        state = state_of(item)
        if state.admit:
            state.admit = False
            self._place(item)
            logger.info("scope_entered", scope=self.scope_for(item).canonical, position=self.position_of(item))
        elif state.reconcile:
            state.reconcile = False
            self.on_position_updated(item, state.previous_position)
        if self.in_list(item):
            self.evaluator.remember(self.config.scope, item)

    def before_delete(self, item: Any) -> None:
        """Snapshot the stored position and the scope the gap will be closed in."""
        state = state_of(item)
        state.deleted_position = self.store.stored_position(item)
        state.deleted_scope = None
        if state.deleted_position is not None:
            state.deleted_scope = self.evaluator.previous(self.config.scope, item)

    def after_delete(self, item: Any, pending: Iterable[Any] = ()) -> None:
        """Close the gap left by *item*.

        *pending* holds the other items deleted in the same flush. Their
        snapshots were taken before any row moved, so those below the closed
        gap are moved up one to follow the rows they were taken from.
        """
        state = state_of(item)
        position, scope = state.deleted_position, state.deleted_scope
        state.deleted_position = state.deleted_scope = None
        if position is None or scope is None:
            return
        shifted = self._shift(scope, -1, Span(above=position))
        for other in pending:
            if other is item:
                continue
            other_state = state_of(other)
            if (
                other_state.deleted_position is not None
                and other_state.deleted_position > position
                and scope.same_as(other_state.deleted_scope)
            ):
                other_state.deleted_position -= 1
        logger.info("deleted_item_gap_closed", scope=scope.canonical, position=position, shifted=shifted)

    # =========================================================================
    # Reconciliation
    # =========================================================================

    def on_scope_changed(self, item: Any) -> None:
        """Leave the old list and close its gap.

        The item enters its new list in ``after_update``, once its row carries
        the new scope.
        """
        old_scope = self.evaluator.previous(self.config.scope, item)
        previous = self.store.stored_position(item)
        if previous is not None and old_scope is not None:
            self._shift(
                old_scope, -1, Span(above=previous, exclude=self.store.identity_of(item))
            )
        self.store.set_position(item, None)
        state_of(item).admit = self.config.placement is not PlacementPolicy.NONE
        logger.info(
            "scope_changed",
            old_scope=old_scope.canonical if old_scope is not None else None,
            old_position=previous,
        )

    def on_position_updated(self, item: Any, previous: int | None) -> None:
        """Reconcile after the caller wrote the position column directly."""
        scope = self.scope_for(item)
        identity = self.store.identity_of(item)
        current = self.position_of(item)

        if current is None:
            if previous is not None:
                self._shift(scope, -1, Span(above=previous, exclude=identity))
            return

        if self.store.count(scope, Span(equal=current)) <= 1:
            return

        if previous is None:
            self._shift(scope, +1, Span(at_least=current, exclude=identity))
        else:
            self._shuffle(scope, previous, current, exclude=identity)

    # =========================================================================
    # Internals
    # =========================================================================

    def _place(self, item: Any) -> None:
        """Write the position the placement policy gives a row just saved."""
        placement = self.config.placement
        if placement is PlacementPolicy.TOP:
            self._shift(self.scope_for(item), +1, Span(exclude=self.store.identity_of(item)))
            self.store.write_position(item, self.top)
        elif placement is PlacementPolicy.BOTTOM:
            self.store.write_position(item, self.bottom_position(item, exclude_self=True) + 1)

    def _shuffle(self, scope: ResolvedScope, old: int, new: int, exclude: Any = None) -> int:
        """Shift the items between *old* and *new* to make room at *new*."""
        if old == new:
            return 0
        if old < new:
            return self._shift(scope, -1, Span(above=old, at_most=new, exclude=exclude))
        return self._shift(scope, +1, Span(at_least=new, below=old, exclude=exclude))

    def _shift(self, scope: ResolvedScope, delta: int, span: Span) -> int:
        if delta > 0:
            affected = self.store.increment_where(scope, span)
        else:
            affected = self.store.decrement_where(scope, span)
        logger.debug("positions_shifted", scope=scope.canonical, delta=delta, span=span, affected=affected)
        return affected


__all__ = ["PositionManager"]
