"""SQLAlchemy engine factory and pre-configured session.

Manifesto:
    Explicit list operations nest their shifts in a SAVEPOINT when the
    caller already has a transaction open, so a failed move rolls back only
    the move. The stock pysqlite driver manages transactions itself and
    breaks SAVEPOINT semantics; ``create_listcraft_engine`` installs the
    event hooks that hand transaction control back to SQLAlchemy.

This module provides:

* ``create_listcraft_engine``  -- Create a SA engine from a URL.
* ``ListcraftSession``         -- A ``Session`` subclass with ``expire_on_commit=False``.
* ``listcraft_session_factory`` -- ``sessionmaker`` producing ``ListcraftSession``.

Tags:
    listcraft, orm, sqlalchemy, session, engine, savepoint

Doc-Types:
    api-reference
"""

from __future__ import annotations

from typing import Any

from sqlalchemy import create_engine as _sa_create_engine
from sqlalchemy import event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker


def create_listcraft_engine(
    url: str = "sqlite:///listcraft.db",
    *,
    echo: bool = False,
    pool_size: int | None = None,
    max_overflow: int | None = None,
    **kwargs: Any,
) -> Engine:
    """Create a SQLAlchemy engine with sane defaults.

    Parameters
    ----------
    url:
        Database URL (``sqlite:///…``, ``postgresql://…``, etc.)
    echo:
        If ``True``, log all SQL to stdout.
    pool_size, max_overflow:
        Connection pool parameters (ignored for SQLite).
    **kwargs:
        Extra arguments forwarded to ``sqlalchemy.create_engine``.
    """
    if url.startswith("sqlite"):
        kwargs.setdefault("connect_args", {"check_same_thread": False})
        engine = _sa_create_engine(url, echo=echo, **kwargs)

        @event.listens_for(engine, "connect")
        def _set_sqlite_pragma(dbapi_connection: Any, _rec: Any) -> None:
            # Let SQLAlchemy emit BEGIN itself (needed for SAVEPOINT)
            dbapi_connection.isolation_level = None
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA journal_mode=WAL")
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

        @event.listens_for(engine, "begin")
        def _do_begin(conn: Any) -> None:
            conn.exec_driver_sql("BEGIN")

        return engine

    pool_kwargs: dict[str, Any] = {}
    if pool_size is not None:
        pool_kwargs["pool_size"] = pool_size
    if max_overflow is not None:
        pool_kwargs["max_overflow"] = max_overflow

    return _sa_create_engine(url, echo=echo, **pool_kwargs, **kwargs)


class ListcraftSession(Session):
    """Pre-configured session with ``expire_on_commit=False``.

    Instances keep their positions readable after commit. Positions of
    other loaded rows shifted by flush-time hooks are not refreshed; use
    ``Session.refresh`` or ``Session.expire_all`` to reload them.
    """

    def __init__(self, bind: Engine | None = None, **kwargs: Any) -> None:
        kwargs.setdefault("expire_on_commit", False)
        super().__init__(bind=bind, **kwargs)


def listcraft_session_factory(engine: Engine) -> sessionmaker[ListcraftSession]:
    """Return a ``sessionmaker`` bound to *engine* that produces ``ListcraftSession`` instances."""
    return sessionmaker(bind=engine, class_=ListcraftSession)


__all__ = [
    "create_listcraft_engine",
    "ListcraftSession",
    "listcraft_session_factory",
]
