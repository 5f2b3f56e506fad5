"""
CLI utility helpers: output formatting, engine creation and DDL rendering.
"""

from __future__ import annotations

import json
from collections.abc import Sequence
from typing import Any

import typer
from rich.console import Console
from rich.table import Table
from sqlalchemy import Column, Index, Integer, MetaData
from sqlalchemy import Table as SATable
from sqlalchemy.engine import Dialect, Engine
from sqlalchemy.engine.url import make_url
from sqlalchemy.exc import ArgumentError, NoSuchModuleError
from sqlalchemy.schema import CreateColumn, CreateIndex

from listcraft.core.integrity import SequenceReport
from listcraft.core.settings import ListcraftSettings
from listcraft.orm.session import create_listcraft_engine

console = Console()
err_console = Console(stderr=True)


# ── Engine helpers ───────────────────────────────────────────────────────


def get_engine(database: str | None = None) -> Engine:
    """Create an engine for *database*, defaulting to ``LISTCRAFT_DATABASE_URL``."""
    return create_listcraft_engine(database or ListcraftSettings().database_url)


def dialect_for(name: str) -> Dialect:
    """Instantiate the SQLAlchemy dialect called *name* without a DBAPI."""
    try:
        dialect_cls = make_url(f"{name}://").get_dialect()
    except (ArgumentError, NoSuchModuleError) as exc:
        raise typer.BadParameter(f"Unknown SQL dialect {name!r}", param_hint="--dialect") from exc
    return dialect_cls()


# ── DDL ──────────────────────────────────────────────────────────────────


def attach_statements(table_name: str, column_name: str, dialect: Dialect) -> list[str]:
    """DDL adding a nullable integer position column and its index to *table_name*."""
    table = SATable(table_name, MetaData(), Column(column_name, Integer, nullable=True))
    column = table.c[column_name]
    index = Index(f"ix_{table_name}_{column_name}", column)

    preparer = dialect.identifier_preparer
    column_ddl = str(CreateColumn(column).compile(dialect=dialect)).strip()
    return [
        f"ALTER TABLE {preparer.format_table(table)} ADD COLUMN {column_ddl}",
        str(CreateIndex(index).compile(dialect=dialect)).strip(),
    ]


# ── Output helpers ───────────────────────────────────────────────────────


def fail(message: str) -> None:
    """Print an error and exit with code 1."""
    err_console.print(f"[bold red]Error[/bold red]: {message}")
    raise typer.Exit(code=1)


def render_reports(
    reports: Sequence[SequenceReport],
    *,
    table_name: str,
    group_by: Sequence[str],
    as_json: bool = False,
) -> None:
    """Render audit reports as a rich table or JSON."""
    if as_json:
        payload: dict[str, Any] = {
            "table": table_name,
            "group_by": list(group_by),
            "ok": all(r.ok for r in reports),
            "groups": [r.to_dict() for r in reports],
        }
        console.print_json(json.dumps(payload, default=str))
        return

    if not reports:
        console.print(f"[dim]{table_name}: no rows in any list[/dim]")
        return

    table = Table(title=f"{table_name} sequences", show_header=True, header_style="bold cyan")
    table.add_column(", ".join(group_by) or "scope")
    table.add_column("Items", justify="right")
    table.add_column("Status")
    for report in reports:
        group = ", ".join(str(v) for v in report.group) or "(whole table)"
        status = "[green]ok[/green]" if report.ok else "[red]" + "; ".join(report.problems) + "[/red]"
        table.add_row(group, str(len(report.positions)), status)
    console.print(table)
