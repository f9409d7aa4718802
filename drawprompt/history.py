import logging
from pathlib import Path

import aiosqlite

log = logging.getLogger(__name__)

SCHEMA = """
CREATE TABLE IF NOT EXISTS history (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    adjective TEXT NOT NULL,
    verb TEXT NOT NULL,
    noun TEXT NOT NULL
)
"""


async def init_db(path: str) -> aiosqlite.Connection:
    """Open the history database, creating the file and table if needed."""
    if path != ":memory:":
        Path(path).expanduser().parent.mkdir(parents=True, exist_ok=True)
    db = await aiosqlite.connect(path)
    await db.execute(SCHEMA)
    await db.commit()
    return db


async def fetch_recent(db: aiosqlite.Connection, limit: int = 100, *, logger: logging.Logger = log) -> list[str]:
    """Return the latest `limit` triples as "adjective, verb, noun" strings, newest first.

    History only steers the model away from repeats, so a storage failure is
    logged and yields an empty list.
    """
    try:
        async with db.execute(
            "SELECT adjective, verb, noun FROM history ORDER BY id DESC LIMIT ?",
            (limit,),
        ) as cursor:
            rows = await cursor.fetchall()
        return [f"{adjective}, {verb}, {noun}" for adjective, verb, noun in rows]
    except Exception as e:
        logger.error(f"Error fetching recent prompts: {e}")
        return []


async def store(db: aiosqlite.Connection, adjective: str, verb: str, noun: str, *, logger: logging.Logger = log):
    try:
        await db.execute(
            "INSERT INTO history (adjective, verb, noun) VALUES (?, ?, ?)",
            (adjective, verb, noun),
        )
        await db.commit()
    except Exception as e:
        logger.error(f"Error storing prompt: {e}")
