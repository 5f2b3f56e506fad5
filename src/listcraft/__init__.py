"""
listcraft - ordered lists for SQLAlchemy models.

Mix ``Listcraft`` into a mapped class and its rows keep a contiguous
position within their scope through inserts, updates, scope changes and
deletes.
"""

__version__ = "0.1.0"

from listcraft.core import *  # noqa
from listcraft.orm import *  # noqa
