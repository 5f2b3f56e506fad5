"""Sequence integrity audit.

At rest the in-list rows of every scope hold exactly
``top_of_list .. top_of_list + n - 1``. This module checks that for a bare
list of positions and for a whole table grouped by its scope columns.

Examples:
    >>> check_sequence([1, 2, 2, 4], top_of_list=1)
    ['duplicate position 2', 'missing position 3']
    >>> reports = audit_table(conn, "todo_items", "position", group_by=["todo_list_id"])
    >>> [r.group for r in reports if not r.ok]
    [(7,)]
"""

from __future__ import annotations

from collections import Counter
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from typing import Any

from sqlalchemy import column, select, table
from sqlalchemy.engine import Connection

from listcraft.core.logging import get_logger

logger = get_logger(__name__)


@dataclass
class SequenceReport:
    """Audit result for one scope group."""

    group: tuple[Any, ...]
    positions: list[int] = field(default_factory=list)
    problems: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.problems

    def to_dict(self) -> dict[str, Any]:
        return {
            "group": list(self.group),
            "count": len(self.positions),
            "ok": self.ok,
            "problems": list(self.problems),
        }


def check_sequence(positions: Iterable[int], top_of_list: int = 1) -> list[str]:
    """Return the problems that keep *positions* from being contiguous from *top_of_list*."""
    values = sorted(positions)
    problems: list[str] = []
    counts = Counter(values)

    for value in sorted(counts):
        if counts[value] > 1:
            problems.append(f"duplicate position {value}")

    expected = range(top_of_list, top_of_list + len(values))
    for value in sorted(set(values)):
        if value < top_of_list or value >= expected.stop:
            problems.append(f"position {value} out of range {expected.start}..{expected.stop - 1}")

    present = set(values)
    for value in expected:
        if value not in present:
            problems.append(f"missing position {value}")
    return problems


def audit_table(
    connection: Connection,
    table_name: str,
    position_column: str = "position",
    group_by: Sequence[str] = (),
    top_of_list: int = 1,
) -> list[SequenceReport]:
    """Audit every scope group of *table_name*.

    Rows with a NULL position are not in any list and are ignored. Groups
    are returned in ascending order of their key (``()`` when ungrouped).
    """
    position = column(position_column)
    keys = [column(name) for name in group_by]
    statement = (
        select(*keys, position)
        .select_from(table(table_name))
        .where(position.is_not(None))
        .order_by(*keys, position)
    )

    groups: dict[tuple[Any, ...], list[int]] = {}
    for row in connection.execute(statement):
        *group, value = tuple(row)
        groups.setdefault(tuple(group), []).append(value)

    reports = []
    for group, values in groups.items():
        report = SequenceReport(group, values, check_sequence(values, top_of_list))
        if not report.ok:
            logger.warning(
                "sequence_invalid",
                table=table_name,
                group=list(group),
                problems=report.problems,
            )
        reports.append(report)
    return reports


__all__ = [
    "SequenceReport",
    "check_sequence",
    "audit_table",
]
