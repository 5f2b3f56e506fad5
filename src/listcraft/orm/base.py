"""Declarative base and type-map for listcraft models.

Uses SQLAlchemy 2.0 ``DeclarativeBase`` with a ``type_annotation_map``
that maps Python built-in types to portable SA column types. Models may
use any declarative base; this one is provided for convenience.
"""

from __future__ import annotations

import datetime

from sqlalchemy import DateTime, Integer, Text
from sqlalchemy.orm import DeclarativeBase


class ListcraftBase(DeclarativeBase):
    """Declarative base with portable column types.

    * ``str``   → ``Text``
    * ``int``   → ``Integer``  (positions, foreign keys)
    * ``datetime.datetime`` → ``DateTime``
    """

    type_annotation_map = {
        str: Text,
        int: Integer,
        datetime.datetime: DateTime,
    }


__all__ = ["ListcraftBase"]
