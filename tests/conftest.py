"""
Shared pytest fixtures and configuration for listcraft tests.

This module provides:
- In-memory SQLite engines with every test table created
- A ListcraftSession bound to that engine
- ``reload`` for re-reading rows after flush-time hooks shifted them

Usage:
    Fixtures are auto-discovered by pytest. Simply use them as function
    arguments (pytest injects them automatically).

    def test_something(session):
        ...
"""

import sys
from pathlib import Path

import pytest
import structlog

# Ensure listcraft package is importable
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from listcraft.orm import ListcraftBase, ListcraftSession, create_listcraft_engine

# Registers the test models on ListcraftBase.metadata
from tests._support import models  # noqa: F401


@pytest.fixture
def engine():
    """In-memory SQLite engine with all tables created."""
    eng = create_listcraft_engine("sqlite:///:memory:")
    ListcraftBase.metadata.create_all(eng)
    yield eng
    eng.dispose()


@pytest.fixture
def session(engine):
    """ListcraftSession bound to the in-memory engine."""
    with ListcraftSession(bind=engine) as sess:
        yield sess


@pytest.fixture(autouse=True)
def _reset_structlog():
    """Undo any ``configure_logging`` call made by a test."""
    yield
    structlog.reset_defaults()
