"""Idempotent database schema creation."""

from __future__ import annotations

import aiosqlite

CACHE_ITEMS_TABLE = """
CREATE TABLE IF NOT EXISTS cache_items (
    item_key TEXT PRIMARY KEY,
    item_value TEXT NOT NULL
)
"""


async def initialize_cache_db(db_path: str) -> None:
    async with aiosqlite.connect(db_path) as db:
        await db.execute(CACHE_ITEMS_TABLE)
        await db.commit()
