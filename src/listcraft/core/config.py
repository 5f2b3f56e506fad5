"""List configuration: which column holds positions, how the list is scoped,
where the first position is and where new items land.

Examples:
    >>> config = ListConfiguration(scope=ForeignKeyEquality("todo_list_id"))
    >>> config.placement
    <PlacementPolicy.BOTTOM: 'bottom'>
    >>> config.with_overrides(placement="top").placement
    <PlacementPolicy.TOP: 'top'>
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any

from listcraft.core.errors import InvalidConfigError
from listcraft.core.scope import WHOLE_TABLE, Scope

if TYPE_CHECKING:
    from listcraft.core.settings import ListcraftSettings


class PlacementPolicy(str, Enum):
    """Where a newly created item enters its list."""

    TOP = "top"
    BOTTOM = "bottom"
    NONE = "none"

    @classmethod
    def coerce(cls, value: Any) -> PlacementPolicy:
        """Accept a policy, its string value (any case) or ``None``."""
        if isinstance(value, cls):
            return value
        if value is None:
            return cls.NONE
        if isinstance(value, str):
            try:
                return cls(value.strip().lower())
            except ValueError:
                pass
        raise InvalidConfigError(
            f"placement must be 'top', 'bottom' or None, got {value!r}"
        )


@dataclass(frozen=True)
class ListConfiguration:
    """Immutable configuration of one ordered list.

    ``scope`` is validated lazily, when it is first resolved against an
    item, so a bad scope surfaces as a scope error from the operation that
    needed it.
    """

    position_column: str = "position"
    scope: Scope | None = WHOLE_TABLE
    top_of_list: int = 1
    placement: PlacementPolicy = PlacementPolicy.BOTTOM

    def __post_init__(self) -> None:
        if not isinstance(self.position_column, str) or not self.position_column:
            raise InvalidConfigError(
                f"position_column must be a non-empty string, got {self.position_column!r}"
            )
        if isinstance(self.top_of_list, bool) or not isinstance(self.top_of_list, int):
            raise InvalidConfigError(f"top_of_list must be an integer, got {self.top_of_list!r}")
        object.__setattr__(self, "placement", PlacementPolicy.coerce(self.placement))

    def with_overrides(self, **overrides: Any) -> ListConfiguration:
        """Return a copy with some fields replaced (per-instance configuration)."""
        if not overrides:
            return self
        unknown = set(overrides) - {f.name for f in dataclasses.fields(self)}
        if unknown:
            raise InvalidConfigError(f"Unknown list configuration keys: {sorted(unknown)}")
        return dataclasses.replace(self, **overrides)

    @classmethod
    def from_settings(
        cls, settings: ListcraftSettings | None = None, **overrides: Any
    ) -> ListConfiguration:
        """Build a configuration whose defaults come from ``ListcraftSettings``."""
        from listcraft.core.settings import ListcraftSettings

        settings = settings or ListcraftSettings()
        config = cls(
            position_column=settings.position_column,
            top_of_list=settings.top_of_list,
            placement=settings.add_new_at,
        )
        return config.with_overrides(**overrides)


__all__ = [
    "PlacementPolicy",
    "ListConfiguration",
]
