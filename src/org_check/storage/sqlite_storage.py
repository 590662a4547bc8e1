"""SQLite-backed key/value storage for the data cache."""

from __future__ import annotations

import aiosqlite

from org_check.storage.migrations import initialize_cache_db


class SQLiteStorage:
    def __init__(self, db_path: str) -> None:
        self._db_path = db_path

    async def initialize(self) -> None:
        await initialize_cache_db(self._db_path)

    async def get_item(self, key: str) -> str | None:
        async with aiosqlite.connect(self._db_path) as db:
            async with db.execute(
                "SELECT item_value FROM cache_items WHERE item_key = ?", (key,)
            ) as cursor:
                row = await cursor.fetchone()
                if row is None:
                    return None
                return row[0]

    async def set_item(self, key: str, value: str) -> None:
        async with aiosqlite.connect(self._db_path) as db:
            await db.execute(
                "INSERT OR REPLACE INTO cache_items (item_key, item_value) VALUES (?, ?)",
                (key, value),
            )
            await db.commit()

    async def remove_item(self, key: str) -> None:
        async with aiosqlite.connect(self._db_path) as db:
            await db.execute("DELETE FROM cache_items WHERE item_key = ?", (key,))
            await db.commit()

    async def keys(self) -> list[str]:
        async with aiosqlite.connect(self._db_path) as db:
            async with db.execute("SELECT item_key FROM cache_items ORDER BY item_key") as cursor:
                rows = await cursor.fetchall()
                return [row[0] for row in rows]

    async def key_exists(self, key: str) -> bool:
        async with aiosqlite.connect(self._db_path) as db:
            async with db.execute(
                "SELECT 1 FROM cache_items WHERE item_key = ?", (key,)
            ) as cursor:
                return await cursor.fetchone() is not None
