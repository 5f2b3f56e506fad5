"""
Root Typer application for the listcraft CLI.

Commands
--------
* ``attach``  -- render (and optionally apply) the DDL that adds a position column
* ``verify``  -- audit the position sequences of a table
"""

from __future__ import annotations

import typer
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from listcraft.cli.utils import attach_statements, console, dialect_for, fail, get_engine, render_reports
from listcraft.core.integrity import audit_table
from listcraft.core.logging import configure_logging, get_logger
from listcraft.core.settings import ListcraftSettings

app = typer.Typer(
    name="listcraft",
    help="listcraft: ordered lists for SQLAlchemy models.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

logger = get_logger(__name__)


# ── Version callback ─────────────────────────────────────────────────────


def _version_callback(value: bool) -> None:
    if value:
        from importlib.metadata import PackageNotFoundError
        from importlib.metadata import version as pkg_version

        try:
            v = pkg_version("listcraft")
        except PackageNotFoundError:
            v = "0.1.0"
        typer.echo(f"listcraft {v}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool | None = typer.Option(  # noqa: UP007
        None,
        "--version",
        "-V",
        help="Show version and exit.",
        callback=_version_callback,
        is_eager=True,
    ),
) -> None:
    """listcraft CLI: make tables list-capable and audit their positions."""
    settings = ListcraftSettings()
    configure_logging(settings.log_level, json_format=settings.json_logs, cache_loggers=False)


# ── Commands ─────────────────────────────────────────────────────────────


@app.command()
def attach(
    table: str = typer.Argument(..., help="Table to make list-capable"),
    column: str | None = typer.Option(None, "--column", "-c", help="Position column name"),
    dialect: str = typer.Option("sqlite", "--dialect", help="SQL dialect to render for"),
    database: str | None = typer.Option(None, "--database", "-d", help="Database URL"),
    apply: bool = typer.Option(False, "--apply", help="Execute the DDL against the database"),
) -> None:
    """Add a nullable position column and its index to TABLE."""
    column = column or ListcraftSettings().position_column

    if not apply:
        for statement in attach_statements(table, column, dialect_for(dialect)):
            console.print(f"{statement};", highlight=False)
        return

    engine = get_engine(database)
    statements = attach_statements(table, column, engine.dialect)
    try:
        with engine.begin() as conn:
            for statement in statements:
                conn.execute(text(statement))
    except SQLAlchemyError as exc:
        fail(f"could not attach {column!r} to {table!r}: {getattr(exc, 'orig', None) or exc}")
    finally:
        engine.dispose()

    logger.info("table_attached", table=table, column=column)
    console.print(f"[green]✓[/green] {table}.{column} is ready for ordering")


@app.command()
def verify(
    table: str = typer.Argument(..., help="Table to audit"),
    column: str | None = typer.Option(None, "--column", "-c", help="Position column name"),
    group_by: list[str] | None = typer.Option(  # noqa: UP007
        None, "--group-by", "-g", help="Scope column (repeatable)"
    ),
    top: int | None = typer.Option(None, "--top", help="First position of every list"),
    database: str | None = typer.Option(None, "--database", "-d", help="Database URL"),
    json_out: bool = typer.Option(False, "--json", help="JSON output"),
) -> None:
    """Check that every list in TABLE holds contiguous positions."""
    settings = ListcraftSettings()
    column = column or settings.position_column
    top_of_list = settings.top_of_list if top is None else top
    group_by = group_by or []

    engine = get_engine(database)
    try:
        with engine.connect() as conn:
            reports = audit_table(conn, table, column, group_by, top_of_list)
    except SQLAlchemyError as exc:
        fail(f"could not audit {table!r}: {getattr(exc, 'orig', None) or exc}")
    finally:
        engine.dispose()

    render_reports(reports, table_name=table, group_by=group_by, as_json=json_out)
    if not all(report.ok for report in reports):
        raise typer.Exit(code=1)
