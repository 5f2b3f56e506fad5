"""SQLAlchemy implementation of the ``PositionStore`` protocol.

One store serves one mapped model and one position column. It runs in one
of two modes:

* **session mode** (``bind`` is a ``Session``): used by explicit list
  operations. Bulk shifts are ORM-enabled UPDATEs with
  ``synchronize_session="fetch"`` so instances already loaded in the session
  see their new positions; ``transaction()`` opens ``Session.begin()`` or a
  SAVEPOINT when a transaction is already running.
* **flush mode** (``bind`` is a ``Connection``): used from mapper events
  during a flush. Statements go straight to the flush connection, the item's
  own position is written as a pending attribute, and ``transaction()``
  joins the flush transaction.

Architecture::

    ┌───────────────────────────────────────────────────────────────┐
    │                  SQLAlchemyPositionStore                      │
    │                                                               │
    │   bind: Session | Connection                                  │
    │   table / position column / primary key  ← from the mapper    │
    │                                                               │
    │   count(scope, span)              → SELECT count(*)           │
    │   select_ordered(scope, dir, n)   → SELECT pk, position       │
    │   increment_where / decrement_where → UPDATE position ± 1     │
    │   set_position(item, value)       → UPDATE one row / pending  │
    │   write_position(item, value)     → UPDATE one row now        │
    │   stored_position(item)           → SELECT position by pk     │
    │   transaction()                   → begin / SAVEPOINT / join  │
    └───────────────────────────────────────────────────────────────┘

Tags:
    store, sqlalchemy, positions, listcraft
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

from sqlalchemy import and_, func, inspect, select, update
from sqlalchemy.engine import Connection
from sqlalchemy.orm import Session
from sqlalchemy.orm.attributes import set_committed_value

from listcraft.core.errors import InvalidConfigError, UnsupportedModelError
from listcraft.core.protocols import Direction, PositionRow, Span
from listcraft.core.scope import ResolvedScope


class SQLAlchemyPositionStore:
    """Position reads and writes for one mapped model.

    Parameters:
        bind: A ``Session`` (explicit operations) or the flush ``Connection``
              handed to mapper events.
        model: The mapped class.
        position_column: Name of the integer column holding positions.
    """

    def __init__(self, bind: Session | Connection, model: Any, position_column: str = "position"):
        self.bind = bind
        self._mapper = inspect(model)
        self.model = self._mapper.class_
        self._table = self._mapper.local_table

        primary_key = self._mapper.primary_key
        if len(primary_key) != 1:
            raise UnsupportedModelError(
                f"{self.model.__name__} must have a single-column primary key to be ordered"
            ).with_context(model=self.model.__name__)
        self._pk = primary_key[0]
        self._pk_key = self._mapper.get_property_by_column(self._pk).key

        if position_column not in self._table.c:
            raise InvalidConfigError(
                f"{self._table.name} has no position column {position_column!r}"
            ).with_context(model=self.model.__name__, position_column=position_column)
        self._column = self._table.c[position_column]
        self._key = self._mapper.get_property_by_column(self._column).key

    @property
    def joined(self) -> bool:
        """True when running inside a flush (bound to its connection)."""
        return isinstance(self.bind, Connection)

    # ── statement helpers ────────────────────────────────────────

    def _where(self, scope: ResolvedScope, span: Span | None) -> Any:
        column = self._column
        conditions = [scope.clause, column.is_not(None)]
        if span is not None:
            if span.above is not None:
                conditions.append(column > span.above)
            if span.at_least is not None:
                conditions.append(column >= span.at_least)
            if span.below is not None:
                conditions.append(column < span.below)
            if span.at_most is not None:
                conditions.append(column <= span.at_most)
            if span.equal is not None:
                conditions.append(column == span.equal)
            if span.exclude is not None:
                conditions.append(self._pk != span.exclude)
            if span.only is not None:
                conditions.append(self._pk == span.only)
        return and_(*conditions)

    def _execute(self, statement: Any, **kwargs: Any) -> Any:
        if self.joined:
            return self.bind.execute(statement)
        with self.bind.no_autoflush:
            return self.bind.execute(statement, **kwargs)

    # ── reads ────────────────────────────────────────────────────

    def count(self, scope: ResolvedScope, span: Span | None = None) -> int:
        statement = select(func.count()).select_from(self._table).where(self._where(scope, span))
        return int(self._execute(statement).scalar_one())

    def select_ordered(
        self,
        scope: ResolvedScope,
        direction: Direction,
        limit: int | None = None,
        span: Span | None = None,
    ) -> list[PositionRow]:
        order = self._column.asc() if direction is Direction.ASC else self._column.desc()
        statement = (
            select(self._pk, self._column)
            .select_from(self._table)
            .where(self._where(scope, span))
            .order_by(order)
        )
        if limit is not None:
            statement = statement.limit(limit)
        return [PositionRow(identity, position) for identity, position in self._execute(statement)]

    # ── bulk writes ──────────────────────────────────────────────

    def _shift(self, scope: ResolvedScope, span: Span, delta: int) -> int:
        where = self._where(scope, span)
        if self.joined:
            statement = update(self._table).where(where).values({self._column: self._column + delta})
            return self._execute(statement).rowcount
        attribute = getattr(self.model, self._key)
        statement = (
            update(self.model)
            .where(where)
            .values({attribute: attribute + delta})
            .execution_options(synchronize_session="fetch")
        )
        return self._execute(statement).rowcount

    def increment_where(self, scope: ResolvedScope, span: Span) -> int:
        return self._shift(scope, span, +1)

    def decrement_where(self, scope: ResolvedScope, span: Span) -> int:
        return self._shift(scope, span, -1)

    # ── single item ──────────────────────────────────────────────

    def identity_of(self, item: Any) -> Any:
        return getattr(item, self._pk_key)

    def get_position(self, item: Any) -> int | None:
        return getattr(item, self._key)

    def original_position(self, item: Any) -> int | None:
        """Position stored in the database, ignoring pending attribute changes."""
        state = inspect(item)
        history = state.attrs[self._key].history
        if history.deleted:
            return history.deleted[0]
        if history.unchanged:
            return history.unchanged[0]
        if state.key is None:
            return None
        if not history.added:
            return getattr(item, self._key)

        # Changed without the old value loaded; ask the database.
        statement = select(self._column).where(self._pk == state.key[1][0])
        return self._execute(statement).scalar_one_or_none()

    def stored_position(self, item: Any) -> int | None:
        identity = self.identity_of(item)
        if identity is None:
            return None
        statement = select(self._column).where(self._pk == identity)
        return self._execute(statement).scalar_one_or_none()

    def set_position(self, item: Any, value: int | None) -> None:
        """Assign *value* to *item*.

        Inside a flush, and for items without a row, the value becomes a
        pending attribute change. Persistent items outside a flush are
        written straight away (see ``write_position``).
        """
        state = inspect(item)
        if self.joined or not state.persistent:
            setattr(item, self._key, value)
            return
        self.write_position(item, value)

    def write_position(self, item: Any, value: int | None) -> None:
        """Write *value* with a single-row UPDATE.

        The value is recorded as committed state, so it does not surface as
        a caller change in the next flush.
        """
        statement = (
            update(self._table)
            .where(self._pk == self.identity_of(item))
            .values({self._column: value})
        )
        self._execute(statement)
        set_committed_value(item, self._key, value)

    # ── transactions ─────────────────────────────────────────────

    @contextmanager
    def transaction(self) -> Iterator[SQLAlchemyPositionStore]:
        """Run a block atomically.

        Inside a flush the flush transaction already provides atomicity. With
        a session, a SAVEPOINT is used when a transaction is in progress so
        a failure only rolls back this block.
        """
        if self.joined:
            yield self
            return
        session = self.bind
        if session.in_transaction():
            with session.begin_nested():
                yield self
        else:
            with session.begin():
                yield self


__all__ = ["SQLAlchemyPositionStore"]
