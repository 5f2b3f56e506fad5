"""Environment-driven settings for listcraft.

``ListcraftSettings`` supplies the defaults that ``ListConfiguration`` and the
command-line tool fall back to when nothing is passed explicitly.

Examples:
    >>> from listcraft.core.settings import ListcraftSettings
    >>> ListcraftSettings().position_column
    'position'

Environment variables use the ``LISTCRAFT_`` prefix (``LISTCRAFT_TOP_OF_LIST=0``)
and may live in a ``.env`` file.

Tags:
    settings, configuration, pydantic, environment, listcraft
"""

from __future__ import annotations

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class ListcraftSettings(BaseSettings):
    """Defaults for list configuration, logging and the CLI database.

    Fields
    ──────
    position_column : Column holding the position integer
    top_of_list     : Integer used for the first position
    add_new_at      : "top", "bottom" or "none"
    database_url    : SQLAlchemy URL used by the CLI
    log_level       : Structlog log level
    json_logs       : Force JSON log rendering (None = auto-detect)
    """

    model_config = SettingsConfigDict(
        env_prefix="LISTCRAFT_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ── List defaults ────────────────────────────────────────────
    position_column: str = "position"
    top_of_list: int = 1
    add_new_at: str = "bottom"

    # ── Storage ──────────────────────────────────────────────────
    database_url: str = Field(
        default="sqlite:///listcraft.db",
        description="SQLAlchemy URL used by the command-line tool",
    )

    # ── Observability ────────────────────────────────────────────
    log_level: str = "INFO"
    json_logs: bool | None = None

    @field_validator("add_new_at")
    @classmethod
    def _normalise_add_new_at(cls, value: str) -> str:
        value = value.strip().lower()
        if value not in ("top", "bottom", "none"):
            raise ValueError("add_new_at must be 'top', 'bottom' or 'none'")
        return value
