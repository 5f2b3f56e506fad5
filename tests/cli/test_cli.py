"""Tests for listcraft.cli: attach and verify via CliRunner.

Every command gets an explicit ``--database`` pointing at a throwaway
SQLite file, so nothing depends on ``LISTCRAFT_DATABASE_URL``.
"""

from __future__ import annotations

import json

import pytest
from sqlalchemy import inspect, insert, text
from typer.testing import CliRunner

from listcraft.cli.app import app
from listcraft.orm import ListcraftBase, create_listcraft_engine
from tests._support.models import Foo

runner = CliRunner()


@pytest.fixture
def database(tmp_path):
    return f"sqlite:///{tmp_path / 'cli.db'}"


@pytest.fixture
def widgets(database):
    engine = create_listcraft_engine(database)
    with engine.begin() as conn:
        conn.execute(text("CREATE TABLE widgets (id INTEGER PRIMARY KEY, name TEXT)"))
    engine.dispose()
    return database


@pytest.fixture
def foos(database):
    """A ``foos`` table with a clean ACME list and a broken OTHER list."""
    engine = create_listcraft_engine(database)
    ListcraftBase.metadata.create_all(engine)
    with engine.begin() as conn:
        conn.execute(
            insert(Foo.__table__),
            [
                {"name": "a1", "company": "ACME", "position": 1},
                {"name": "a2", "company": "ACME", "position": 2},
                {"name": "o1", "company": "OTHER", "position": 1},
                {"name": "o2", "company": "OTHER", "position": 3},
            ],
        )
    engine.dispose()
    return database


# ─── Root ────────────────────────────────────────────────────────────────


class TestRoot:
    def test_help(self):
        result = runner.invoke(app, ["--help"])
        assert result.exit_code == 0
        assert "attach" in result.output
        assert "verify" in result.output

    def test_version(self):
        result = runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert result.output.startswith("listcraft ")


# ─── attach ──────────────────────────────────────────────────────────────


class TestAttach:
    def test_renders_sqlite_ddl(self):
        result = runner.invoke(app, ["attach", "widgets"])
        assert result.exit_code == 0
        assert "ALTER TABLE widgets ADD COLUMN position INTEGER;" in result.output
        assert "CREATE INDEX ix_widgets_position ON widgets (position);" in result.output

    def test_renders_postgresql_ddl_with_quoting(self):
        result = runner.invoke(app, ["attach", "user", "--column", "rank", "--dialect", "postgresql"])
        assert result.exit_code == 0
        assert 'ALTER TABLE "user" ADD COLUMN rank INTEGER;' in result.output
        assert 'CREATE INDEX ix_user_rank ON "user" (rank);' in result.output

    def test_column_defaults_to_settings(self, monkeypatch):
        monkeypatch.setenv("LISTCRAFT_POSITION_COLUMN", "sort_order")
        result = runner.invoke(app, ["attach", "widgets"])
        assert "ADD COLUMN sort_order INTEGER" in result.output

    def test_unknown_dialect(self):
        result = runner.invoke(app, ["attach", "widgets", "--dialect", "nosuchdb"])
        assert result.exit_code == 2

    def test_apply(self, widgets):
        result = runner.invoke(app, ["attach", "widgets", "-c", "rank", "--database", widgets, "--apply"])
        assert result.exit_code == 0
        assert "widgets.rank is ready for ordering" in result.output

        engine = create_listcraft_engine(widgets)
        inspector = inspect(engine)
        assert "rank" in [c["name"] for c in inspector.get_columns("widgets")]
        assert "ix_widgets_rank" in [ix["name"] for ix in inspector.get_indexes("widgets")]
        engine.dispose()

    def test_apply_twice_fails(self, widgets):
        args = ["attach", "widgets", "--database", widgets, "--apply"]
        assert runner.invoke(app, args).exit_code == 0

        result = runner.invoke(app, args)
        assert result.exit_code == 1
        assert "could not attach" in result.output


# ─── verify ──────────────────────────────────────────────────────────────


class TestVerify:
    def test_clean_list_as_json(self, foos):
        engine = create_listcraft_engine(foos)
        with engine.begin() as conn:
            conn.execute(text("UPDATE foos SET position = 2 WHERE name = 'o2'"))
        engine.dispose()

        result = runner.invoke(app, ["verify", "foos", "-g", "company", "--database", foos, "--json"])
        assert result.exit_code == 0

        payload = json.loads(result.stdout)
        assert payload["table"] == "foos"
        assert payload["group_by"] == ["company"]
        assert payload["ok"] is True
        assert [g["group"] for g in payload["groups"]] == [["ACME"], ["OTHER"]]

    def test_violations_exit_non_zero(self, foos):
        result = runner.invoke(app, ["verify", "foos", "--group-by", "company", "--database", foos, "--json"])
        assert result.exit_code == 1
        assert "missing position 2" in result.stdout

    def test_table_output(self, foos):
        result = runner.invoke(app, ["verify", "foos", "--database", foos, "--top", "1"])
        assert result.exit_code == 1
        assert "foos sequences" in result.output

    def test_empty_table(self, database):
        engine = create_listcraft_engine(database)
        ListcraftBase.metadata.create_all(engine)
        engine.dispose()

        result = runner.invoke(app, ["verify", "foos", "--database", database])
        assert result.exit_code == 0
        assert "no rows in any list" in result.output

    def test_missing_table(self, database):
        result = runner.invoke(app, ["verify", "nope", "--database", database])
        assert result.exit_code == 1
        assert "could not audit" in result.output
