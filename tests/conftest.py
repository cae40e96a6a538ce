"""Pytest configuration and shared fixtures."""

from collections.abc import AsyncIterator

import pytest

from src.core import db_client


@pytest.fixture
async def sqlite_db(tmp_path, monkeypatch) -> AsyncIterator[str]:
    """Fresh SQLite database file with the full schema, closed after the test."""
    db_path = str(tmp_path / "taskquest.db")
    monkeypatch.setattr("src.core.db_client.settings.sqlite_db_path", db_path)

    await db_client.init_db()
    yield db_path
    await db_client.close_connection()
