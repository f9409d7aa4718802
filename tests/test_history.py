from __future__ import annotations

import asyncio
import sqlite3
from unittest.mock import MagicMock

from drawprompt.history import fetch_recent, init_db, store


def _faulty_db() -> MagicMock:
    db = MagicMock()
    db.execute.side_effect = sqlite3.OperationalError("database is locked")
    return db


def test_fetch_recent_returns_newest_first() -> None:
    async def scenario() -> list[str]:
        db = await init_db(":memory:")
        try:
            await store(db, "brave", "run", "cat")
            await store(db, "smart", "jump", "dog")
            await store(db, "shy", "knit", "scarf")
            return await fetch_recent(db, 2)
        finally:
            await db.close()

    assert asyncio.run(scenario()) == ["shy, knit, scarf", "smart, jump, dog"]


def test_fetch_recent_on_empty_table() -> None:
    async def scenario() -> list[str]:
        db = await init_db(":memory:")
        try:
            return await fetch_recent(db)
        finally:
            await db.close()

    assert asyncio.run(scenario()) == []


def test_fetch_recent_logs_and_returns_empty_on_storage_fault() -> None:
    logger = MagicMock()

    result = asyncio.run(fetch_recent(_faulty_db(), 5, logger=logger))

    assert result == []
    assert logger.error.call_count == 1
    assert "Error fetching recent prompts" in logger.error.call_args.args[0]


def test_store_writes_one_row() -> None:
    async def scenario() -> list[tuple]:
        db = await init_db(":memory:")
        try:
            await store(db, "happy", "sing", "bird")
            async with db.execute("SELECT id, adjective, verb, noun FROM history") as cursor:
                return list(await cursor.fetchall())
        finally:
            await db.close()

    assert asyncio.run(scenario()) == [(1, "happy", "sing", "bird")]


def test_store_logs_and_swallows_storage_fault() -> None:
    logger = MagicMock()

    asyncio.run(store(_faulty_db(), "sad", "cry", "wolf", logger=logger))

    assert logger.error.call_count == 1
    assert "Error storing prompt" in logger.error.call_args.args[0]


def test_init_db_creates_parent_directories(tmp_path) -> None:
    path = tmp_path / "nested" / "history.db"

    async def scenario() -> None:
        db = await init_db(str(path))
        await db.close()
        # Reopening keeps the existing table.
        db = await init_db(str(path))
        await db.close()

    asyncio.run(scenario())
    assert path.exists()
