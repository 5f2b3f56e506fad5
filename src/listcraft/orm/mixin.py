"""
``Listcraft`` model mixin and the mapper events that drive it.

Mixing ``Listcraft`` into a declarative model gives it list behaviour:
positions are assigned on INSERT, reconciled on UPDATE and gaps are closed
on DELETE, all inside the flush that writes the row. Explicit operations
(``insert_at``, ``move_to_top`` ...) run through the instance's session.

Examples:
    >>> class TodoItem(Listcraft, Base):
    ...     __tablename__ = "todo_items"
    ...     __listcraft__ = ListConfiguration(scope=ForeignKeyEquality("todo_list_id"))
    ...     id: Mapped[int] = mapped_column(primary_key=True)
    ...     todo_list_id: Mapped[int | None]
    ...     position: Mapped[int | None]
    >>> session.add(TodoItem(todo_list_id=1)); session.commit()
    >>> item.move_to_top()

Event wiring (LifecycleAdapter)::

    before_insert ─► PositionManager.before_create   (resolve scope)
    after_insert  ─► PositionManager.after_create    (place the new row)
    before_update ─► PositionManager.before_update   (scope change / caller write)
    after_update  ─► PositionManager.after_update    (enter new scope / reconcile)
    before_delete ─► PositionManager.before_delete   (snapshot position + scope)
    after_delete  ─► PositionManager.after_delete    (close the gap, adjust batch)

Tags:
    orm, mixin, sqlalchemy, events, listcraft
"""

from __future__ import annotations

from typing import Any, ClassVar

from sqlalchemy import event, inspect, select
from sqlalchemy.engine import Connection
from sqlalchemy.orm import Mapper, object_session
from sqlalchemy.orm.attributes import flag_dirty

from listcraft.core.config import ListConfiguration
from listcraft.core.errors import DetachedItemError
from listcraft.core.manager import PositionManager
from listcraft.core.scope import ScopeEvaluator
from listcraft.core.snapshot import state_of
from listcraft.orm.store import SQLAlchemyPositionStore


def _manager(item: Any, bind: Any) -> PositionManager:
    config = item.listcraft_config
    model = type(item)
    store = SQLAlchemyPositionStore(bind, model, config.position_column)
    return PositionManager(config, store, ScopeEvaluator(model))


class Listcraft:
    """Gives a mapped model list behaviour (ordering within a scope)."""

    # Class-level configuration; per-instance overrides via set_listcraft_config()
    __listcraft__: ClassVar[ListConfiguration] = ListConfiguration()

    # ── configuration ────────────────────────────────────────────

    @property
    def listcraft_config(self) -> ListConfiguration:
        """The class configuration merged with this instance's overrides."""
        return type(self).__listcraft__.with_overrides(**state_of(self).overrides)

    def set_listcraft_config(self, **overrides: Any) -> None:
        """Override configuration fields for this instance only."""
        state = state_of(self)
        merged = {**state.overrides, **overrides}
        type(self).__listcraft__.with_overrides(**merged)

        if not inspect(self).persistent:
            state.overrides = merged
            return
        # Pin the scope the stored row belongs to, then let the next flush
        # see the item even when no column changed.
        ScopeEvaluator(type(self)).previous(self.listcraft_config.scope, self)
        state.overrides = merged
        flag_dirty(self)

    # ── position access ──────────────────────────────────────────

    @property
    def listcraft_position(self) -> int | None:
        return getattr(self, self._position_key())

    def _position_key(self) -> str:
        mapper = inspect(type(self))
        column = mapper.local_table.c[self.listcraft_config.position_column]
        return mapper.get_property_by_column(column).key

    def default_position(self) -> int | None:
        return None

    def is_default_position(self) -> bool:
        return self.default_position() == self.listcraft_position

    def is_in_list(self) -> bool:
        return self.listcraft_position is not None

    def is_not_in_list(self) -> bool:
        return self.listcraft_position is None

    # ── explicit operations ──────────────────────────────────────

    def _session_manager(self) -> PositionManager:
        session = object_session(self)
        if session is None:
            raise DetachedItemError(
                f"{type(self).__name__} must be added to a session before it can be moved"
            ).with_context(model=type(self).__name__)
        if self in session.new or self in session.dirty:
            session.flush()
        if inspect(self).persistent:
            # Other rows may have been shifted by flush-time hooks since load.
            session.expire(self, [self._position_key()])
        return _manager(self, session)

    def insert_at(self, position: int | None = None) -> None:
        """Insert at *position* (defaults to the top of the list)."""
        self._session_manager().insert_at(self, position)

    def move_lower(self) -> None:
        self._session_manager().move_lower(self)

    def move_higher(self) -> None:
        self._session_manager().move_higher(self)

    def move_to_bottom(self) -> None:
        self._session_manager().move_to_bottom(self)

    def move_to_top(self) -> None:
        self._session_manager().move_to_top(self)

    def remove_from_list(self) -> None:
        self._session_manager().remove_from_list(self)

    def increment_position(self) -> None:
        """Add one to this item's position only; other items are not shifted."""
        self._session_manager().increment_position(self)

    def decrement_position(self) -> None:
        """Subtract one from this item's position only; other items are not shifted."""
        self._session_manager().decrement_position(self)

    def set_list_position(self, position: int | None) -> None:
        """Write the position directly and flush; the list is reconciled after the update."""
        session = object_session(self)
        if session is None:
            raise DetachedItemError(
                f"{type(self).__name__} must be added to a session before it can be moved"
            ).with_context(model=type(self).__name__)
        setattr(self, self._position_key(), position)
        session.flush()

    # ── neighbours ───────────────────────────────────────────────

    def is_first(self) -> bool:
        return self._session_manager().is_first(self)

    def is_last(self) -> bool:
        return self._session_manager().is_last(self)

    def _load(self, rows: list[Any]) -> list[Any]:
        session = object_session(self)
        return [session.get(type(self), row.identity) for row in rows]

    def higher_item(self) -> Any:
        row = self._session_manager().higher_row(self)
        return self._load([row])[0] if row is not None else None

    def lower_item(self) -> Any:
        row = self._session_manager().lower_row(self)
        return self._load([row])[0] if row is not None else None

    def higher_items(self, limit: int | None = None) -> list[Any]:
        return self._load(self._session_manager().higher_rows(self, limit))

    def lower_items(self, limit: int | None = None) -> list[Any]:
        return self._load(self._session_manager().lower_rows(self, limit))

    def list_query(self) -> Any:
        """Select of the in-list items sharing this item's scope, in order."""
        config = self.listcraft_config
        model = type(self)
        scope = ScopeEvaluator(model).resolve(config.scope, self)
        column = getattr(model, self._position_key())
        return select(model).where(scope.clause, column.is_not(None)).order_by(column.asc())


# =============================================================================
# Mapper events (propagate to every mapped subclass of the mixin)
# =============================================================================


@event.listens_for(Listcraft, "before_insert", propagate=True)
def _before_insert(mapper: Mapper, connection: Connection, target: Any) -> None:
    _manager(target, connection).before_create(target)


@event.listens_for(Listcraft, "after_insert", propagate=True)
def _after_insert(mapper: Mapper, connection: Connection, target: Any) -> None:
    _manager(target, connection).after_create(target)


@event.listens_for(Listcraft, "before_update", propagate=True)
def _before_update(mapper: Mapper, connection: Connection, target: Any) -> None:
    _manager(target, connection).before_update(target)


@event.listens_for(Listcraft, "after_update", propagate=True)
def _after_update(mapper: Mapper, connection: Connection, target: Any) -> None:
    _manager(target, connection).after_update(target)


@event.listens_for(Listcraft, "before_delete", propagate=True)
def _before_delete(mapper: Mapper, connection: Connection, target: Any) -> None:
    _manager(target, connection).before_delete(target)


@event.listens_for(Listcraft, "after_delete", propagate=True)
def _after_delete(mapper: Mapper, connection: Connection, target: Any) -> None:
    session = object_session(target)
    pending = [obj for obj in session.deleted if isinstance(obj, Listcraft)] if session is not None else []
    _manager(target, connection).after_delete(target, pending)


__all__ = ["Listcraft"]
