"""
Scope definitions, resolution and change detection.

A scope is the predicate that carves one ordered list out of a table. Three
kinds are supported, modelled as a tagged union and matched exhaustively:

* ``RawPredicate``      : a SQL string, or a callable ``item -> str``
* ``ForeignKeyEquality``: ``column = <item's value of column>``
* ``DerivedPredicate``  : a callable ``item -> Select | clause``; the WHERE
  clause of the select becomes the predicate

Resolution yields a ``ResolvedScope``: the SQLAlchemy clause the store
filters with, and a canonical predicate string used to detect scope changes.

Examples:
    >>> scope = ForeignKeyEquality("todo_list_id")
    >>> evaluator = ScopeEvaluator(TodoItem)
    >>> evaluator.resolve(scope, item).canonical
    'todo_items.todo_list_id = 4'

    >>> company = DerivedPredicate(lambda item: select(Foo).where(Foo.company == item.company))
    >>> evaluator.resolve(company, item).canonical
    "foos.company = 'ACME'"

Guardrails:
    ❌ DON'T: Compare clauses with ``==`` (that builds SQL, it does not compare)
    ✅ DO: Compare ``ResolvedScope.canonical`` strings

    ❌ DON'T: Render predicates with a live engine's dialect
    ✅ DO: Use ``render_predicate`` so the same filter always renders the same

Tags:
    scope, predicate, change-detection, canonicalization, listcraft
"""

from __future__ import annotations

import re
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, Union

from sqlalchemy import Select, inspect, text
from sqlalchemy.engine.default import DefaultDialect
from sqlalchemy.exc import NoInspectionAvailable
from sqlalchemy.sql.elements import ColumnElement

from listcraft.core.errors import (
    InvalidConfigError,
    InvalidQueryError,
    InvalidScopeError,
    NullForeignKeyError,
    NullScopeError,
)
from listcraft.core.snapshot import AttributeSnapshot, state_of


@dataclass(frozen=True)
class RawPredicate:
    """A literal WHERE fragment, or a callable building one from the item."""

    sql: str | Callable[[Any], str]

    def render(self, item: Any) -> str:
        return self.sql(item) if callable(self.sql) else self.sql


@dataclass(frozen=True)
class ForeignKeyEquality:
    """Items sharing the same value of ``column`` form one list."""

    column: str


@dataclass(frozen=True)
class DerivedPredicate:
    """A host-supplied filter; ``build(item)`` returns a select or a clause."""

    build: Callable[[Any], Any]


Scope = Union[RawPredicate, ForeignKeyEquality, DerivedPredicate]

# Default scope: the whole table is one list
WHOLE_TABLE = RawPredicate("1 = 1")


@dataclass(frozen=True, eq=False)
class ResolvedScope:
    """A scope bound to concrete values."""

    clause: ColumnElement[bool]
    canonical: str

    def same_as(self, other: ResolvedScope | None) -> bool:
        return other is not None and self.canonical == other.canonical

    def __repr__(self) -> str:
        return f"ResolvedScope({self.canonical!r})"


# =============================================================================
# Canonical rendering
# =============================================================================

_RENDER_DIALECT = DefaultDialect()
_PLACEHOLDER = re.compile(r"__\[POSTCOMPILE_(\w+)\]|(?<![:\w]):(\w+)")


def _literal(value: Any) -> str:
    if value is None:
        return "NULL"
    if isinstance(value, str):
        return "'" + value.replace("'", "''") + "'"
    return str(value)


def render_predicate(clause: ColumnElement[Any]) -> str:
    """Render *clause* to SQL with bound values written inline.

    Compiles against a fixed default dialect, then substitutes every
    placeholder with the textual form of its value: strings are quoted,
    ``None`` becomes ``NULL``, other scalars are written as ``str(value)``.
    Expanding ``IN`` parameters render as a comma separated list.
    """
    compiled = clause.compile(dialect=_RENDER_DIALECT)
    params = compiled.params

    def substitute(match: re.Match[str]) -> str:
        expanding, name = match.group(1), match.group(2)
        key = expanding or name
        if key not in params:
            return match.group(0)
        value = params[key]
        if expanding is not None:
            return ", ".join(_literal(v) for v in value)
        return _literal(value)

    return _PLACEHOLDER.sub(substitute, str(compiled))


# =============================================================================
# Evaluator
# =============================================================================


class ScopeEvaluator:
    """Resolves scopes for one mapped model and detects scope changes.

    The evaluator itself holds no per-item state; the baseline used for
    change detection is cached on each entity's ``ListState``.
    """

    def __init__(self, model: Any):
        try:
            self._mapper = inspect(model)
        except NoInspectionAvailable as exc:
            raise InvalidConfigError(f"{model!r} is not a mapped class", cause=exc) from exc
        self._table = self._mapper.local_table
        self.model = self._mapper.class_

    # ── resolution ───────────────────────────────────────────────

    def column(self, name: str) -> Any:
        """Return the table column for a column name or attribute key."""
        if name in self._table.c:
            return self._table.c[name]
        prop = self._mapper.attrs.get(name)
        columns = getattr(prop, "columns", None)
        if columns:
            return columns[0]
        raise InvalidScopeError(
            f"{self.model.__name__} has no column {name!r} to scope on"
        ).with_context(model=self.model.__name__, scope=name)

    def attribute_key(self, column: Any) -> str:
        return self._mapper.get_property_by_column(column).key

    def resolve(self, scope: Scope | None, item: Any) -> ResolvedScope:
        """Bind *scope* to the attribute values of *item* (or a view of it)."""
        match scope:
            case None:
                raise NullScopeError(
                    "A list scope cannot be None; use WHOLE_TABLE for an unscoped list"
                ).with_context(model=self.model.__name__)
            case RawPredicate():
                sql = scope.render(item)
                if not isinstance(sql, str) or not sql.strip():
                    raise InvalidScopeError(
                        f"Raw scope must render to a non-empty SQL string, got {sql!r}"
                    ).with_context(model=self.model.__name__)
                return ResolvedScope(text(sql), sql)
            case ForeignKeyEquality(column=name):
                column = self.column(name)
                value = getattr(item, self.attribute_key(column))
                if value is None:
                    raise NullForeignKeyError(
                        f"The list scope is the foreign key {column.name!r}, but it is None"
                    ).with_context(model=self.model.__name__, scope=column.name)
                clause = column == value
                return ResolvedScope(clause, render_predicate(clause))
            case DerivedPredicate():
                return self._resolve_derived(scope, item)
            case _:
                raise InvalidScopeError(
                    "A list scope must be a RawPredicate, a ForeignKeyEquality "
                    f"or a DerivedPredicate, got {type(scope).__name__}"
                ).with_context(model=self.model.__name__)

    def _resolve_derived(self, scope: DerivedPredicate, item: Any) -> ResolvedScope:
        built = scope.build(item)
        if isinstance(built, Select):
            clause = built.whereclause
            if clause is None:
                raise InvalidQueryError(
                    "The derived scope is a select without a WHERE clause, "
                    "so it cannot delimit a list"
                ).with_context(model=self.model.__name__)
        elif isinstance(built, ColumnElement):
            clause = built
        else:
            raise InvalidScopeError(
                f"A derived scope must build a Select or a SQL expression, got {type(built).__name__}"
            ).with_context(model=self.model.__name__)
        return ResolvedScope(clause, render_predicate(clause))

    # ── change detection ─────────────────────────────────────────

    def _foreign_key(self, scope: ForeignKeyEquality) -> tuple[Any, str]:
        column = self.column(scope.column)
        return column, self.attribute_key(column)

    def has_scope_changed(self, scope: Scope | None, item: Any) -> bool:
        """Whether the pending version of *item* belongs to another list."""
        match scope:
            case ForeignKeyEquality():
                _, key = self._foreign_key(scope)
                return AttributeSnapshot(item).changed(key)
            case _:
                baseline = self.previous(scope, item)
                return not self.resolve(scope, item).same_as(baseline)

    def previous(self, scope: Scope | None, item: Any) -> ResolvedScope | None:
        """The resolved scope of the row as persisted, ``None`` if it had none."""
        match scope:
            case ForeignKeyEquality():
                column, key = self._foreign_key(scope)
                value = getattr(AttributeSnapshot(item).original, key)
                if value is None:
                    return None
                clause = column == value
                return ResolvedScope(clause, render_predicate(clause))
            case _:
                state = state_of(item)
                if state.baseline is None:
                    state.baseline = self.resolve(scope, AttributeSnapshot(item).original)
                return state.baseline

    def remember(self, scope: Scope | None, item: Any) -> None:
        """Record the current scope of *item* as its baseline."""
        if isinstance(scope, ForeignKeyEquality):
            return
        state_of(item).baseline = self.resolve(scope, item)


__all__ = [
    "Scope",
    "RawPredicate",
    "ForeignKeyEquality",
    "DerivedPredicate",
    "WHOLE_TABLE",
    "ResolvedScope",
    "ScopeEvaluator",
    "render_predicate",
]
