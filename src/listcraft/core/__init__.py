"""Listcraft Core -- the position engine, independent of any ORM.

Manifesto:
    Keeping a list contiguous is a handful of ±1 shifts over position
    ranges. The engine expresses every operation as such shifts against a
    ``PositionStore`` protocol, so it can be driven by SQLAlchemy mapper
    events, by explicit calls, or by an in-memory store in tests.

Architecture::

    Layer 1 -- Errors, Logging & Settings
        errors.py          Structured error hierarchy (ListcraftError)
        logging.py         structlog configuration helpers
        settings.py        ListcraftSettings (pydantic-settings)

    Layer 2 -- Model
        protocols.py       PositionStore / LifecycleHooks, Span, Direction
        snapshot.py        Original/current attribute views, ListState
        scope.py           Scope union, ScopeEvaluator, render_predicate
        config.py          ListConfiguration, PlacementPolicy

    Layer 3 -- Engine
        manager.py         PositionManager (operations + lifecycle hooks)
        integrity.py       Sequence audit (check_sequence, audit_table)

Tags:
    listcraft, core, positions, ordering

Doc-Types:
    package-overview, module-index
"""

from listcraft.core.config import ListConfiguration, PlacementPolicy
from listcraft.core.errors import (
    ConfigError,
    DetachedItemError,
    ErrorCategory,
    ErrorContext,
    InvalidConfigError,
    InvalidQueryError,
    InvalidScopeError,
    ListcraftError,
    NullForeignKeyError,
    NullScopeError,
    ScopeError,
    StorageError,
    UnsupportedModelError,
)
from listcraft.core.integrity import SequenceReport, audit_table, check_sequence
from listcraft.core.logging import configure_logging, get_logger
from listcraft.core.manager import PositionManager
from listcraft.core.protocols import Direction, LifecycleHooks, PositionRow, PositionStore, Span
from listcraft.core.scope import (
    WHOLE_TABLE,
    DerivedPredicate,
    ForeignKeyEquality,
    RawPredicate,
    ResolvedScope,
    Scope,
    ScopeEvaluator,
    render_predicate,
)
from listcraft.core.settings import ListcraftSettings

__all__ = [
    # config
    "ListConfiguration",
    "PlacementPolicy",
    "ListcraftSettings",
    # scope
    "Scope",
    "RawPredicate",
    "ForeignKeyEquality",
    "DerivedPredicate",
    "WHOLE_TABLE",
    "ResolvedScope",
    "ScopeEvaluator",
    "render_predicate",
    # engine
    "PositionManager",
    "PositionStore",
    "LifecycleHooks",
    "PositionRow",
    "Direction",
    "Span",
    # integrity
    "SequenceReport",
    "check_sequence",
    "audit_table",
    # logging
    "configure_logging",
    "get_logger",
    # errors
    "ListcraftError",
    "ErrorCategory",
    "ErrorContext",
    "ConfigError",
    "InvalidConfigError",
    "ScopeError",
    "NullScopeError",
    "NullForeignKeyError",
    "InvalidScopeError",
    "InvalidQueryError",
    "StorageError",
    "DetachedItemError",
    "UnsupportedModelError",
]
