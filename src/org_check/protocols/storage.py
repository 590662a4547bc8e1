"""Protocol for the key/value storage behind the data cache."""

from __future__ import annotations

from typing import Protocol


class Storage(Protocol):
    async def get_item(self, key: str) -> str | None: ...

    async def set_item(self, key: str, value: str) -> None: ...

    async def remove_item(self, key: str) -> None: ...

    async def keys(self) -> list[str]: ...

    async def key_exists(self, key: str) -> bool: ...
