"""SQLAlchemy 2.0 integration for listcraft.

Modules
-------
base        ListcraftBase (declarative base)
session     Engine factory, ListcraftSession
store       SQLAlchemyPositionStore (PositionStore over a Session or flush Connection)
mixin       Listcraft mixin + mapper events

Tags:
    listcraft, orm, sqlalchemy, declarative

Doc-Types:
    package-overview, module-index
"""

from __future__ import annotations

from listcraft.orm.base import ListcraftBase
from listcraft.orm.mixin import Listcraft
from listcraft.orm.session import (
    ListcraftSession,
    create_listcraft_engine,
    listcraft_session_factory,
)
from listcraft.orm.store import SQLAlchemyPositionStore

__all__ = [
    "Listcraft",
    "ListcraftBase",
    "ListcraftSession",
    "SQLAlchemyPositionStore",
    "create_listcraft_engine",
    "listcraft_session_factory",
]
