"""Tests for engine initialization and SQLite connection setup."""

import pytest
from sqlalchemy import text

from ledger_kernel.db.engine import get_engine, get_session_factory, reset_engine


def test_uninitialized_engine_raises():
    reset_engine()

    with pytest.raises(RuntimeError, match="not initialized"):
        get_engine()
    with pytest.raises(RuntimeError, match="not initialized"):
        get_session_factory()


def test_sqlite_enforces_foreign_keys(db_engine):
    if db_engine.dialect.name != "sqlite":
        pytest.skip("SQLite connection setup only")

    with db_engine.connect() as conn:
        assert conn.execute(text("PRAGMA foreign_keys")).scalar() == 1
        assert conn.execute(text("PRAGMA busy_timeout")).scalar() == 10000
