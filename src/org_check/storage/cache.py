"""Compressed, TTL-bounded data cache on top of a key/value storage.

Each logical key is stored as two records: a small metadata record
(`OrgCheck_<key>`: type, length, created) and the data record
(`OrgCheck.<key>`: content, created). Both are JSON, UTF-8 encoded, zlib
compressed and hex encoded. The two records are written and removed together;
any inconsistency found on read is repaired by removing what is left.
"""

from __future__ import annotations

import json
import time
import zlib
from collections.abc import Callable
from typing import Any

from org_check.models.domain import CacheItemDetails
from org_check.models.serialization import from_payload, is_reference_name, to_payload
from org_check.observability.logger import get_logger
from org_check.protocols.storage import Storage

logger = get_logger("data_cache")

CACHE_PREFIX = "OrgCheck"
DATA_CACHE_PREFIX = f"{CACHE_PREFIX}."
METADATA_CACHE_PREFIX = f"{CACHE_PREFIX}_"

ONE_DAY_SECONDS = 24 * 60 * 60


def data_key(key: str) -> str:
    return key if key.startswith(DATA_CACHE_PREFIX) else DATA_CACHE_PREFIX + key


def metadata_key(key: str) -> str:
    return key if key.startswith(METADATA_CACHE_PREFIX) else METADATA_CACHE_PREFIX + key


def logical_key(key: str) -> str:
    if key.startswith(METADATA_CACHE_PREFIX):
        return key[len(METADATA_CACHE_PREFIX):]
    if key.startswith(DATA_CACHE_PREFIX):
        return key[len(DATA_CACHE_PREFIX):]
    return key


def encode_entry(entry: dict) -> str:
    return zlib.compress(json.dumps(entry).encode("utf-8"), level=9).hex()


def decode_entry(value: str) -> Any:
    return json.loads(zlib.decompress(bytes.fromhex(value)).decode("utf-8"))


def _content_length(content: Any) -> int:
    return len(content) if isinstance(content, list) else 1


class DataCacheManager:
    def __init__(
        self,
        storage: Storage,
        ttl_seconds: float = ONE_DAY_SECONDS,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._storage = storage
        self._ttl_ms = ttl_seconds * 1000
        self._clock = clock

    def _now_ms(self) -> int:
        return int(self._clock() * 1000)

    async def has(self, key: str) -> bool:
        meta_key, value_key = metadata_key(key), data_key(key)
        metadata = await self._get_entry(meta_key)
        if metadata is None:
            await self._remove_both(meta_key, value_key)
            return False
        if not await self._storage.key_exists(value_key):
            await self._storage.remove_item(meta_key)
            return False
        return True

    async def get(self, key: str) -> Any | None:
        meta_key, value_key = metadata_key(key), data_key(key)
        metadata = await self._get_entry(meta_key)
        if metadata is None:
            await self._remove_both(meta_key, value_key)
            return None
        data = await self._get_entry(value_key)
        if data is None:
            await self._remove_both(meta_key, value_key)
            return None

        content = data.get("content")
        metadata["length"] = _content_length(content)
        try:
            await self._set_entry(meta_key, metadata)
            if metadata.get("type") == "map":
                return {k: from_payload(v) for k, v in content}
            return from_payload(content)
        except Exception as e:
            logger.warning("cache_entry_corrupted", key=key, error=str(e))
            await self._remove_both(meta_key, value_key)
            return None

    async def set(self, key: str, value: Any) -> None:
        """Store `value`; None removes the entry. Never raises."""
        meta_key, value_key = metadata_key(key), data_key(key)
        if value is None:
            await self._remove_both(meta_key, value_key)
            return
        now = self._now_ms()
        try:
            if isinstance(value, dict):
                content = [
                    [k, to_payload(v)] for k, v in value.items() if not is_reference_name(str(k))
                ]
                metadata = {"type": "map", "length": len(value), "created": now}
            else:
                content = to_payload(value)
                metadata = {"type": "array", "length": _content_length(content), "created": now}
            # Data first: it is the write most likely to fail
            await self._set_entry(value_key, {"content": content, "created": now})
            await self._set_entry(meta_key, metadata)
        except Exception as e:
            logger.warning("cache_write_failed", key=key, error=str(e))
            await self._remove_both(meta_key, value_key)

    async def details(self) -> list[CacheItemDetails]:
        items: list[CacheItemDetails] = []
        for key in await self._storage.keys():
            if not key.startswith(METADATA_CACHE_PREFIX):
                continue
            entry = await self._get_entry(key)
            name = logical_key(key)
            if entry:
                length = entry.get("length", 0)
                items.append(
                    CacheItemDetails(
                        name=name,
                        is_empty=length == 0,
                        is_map=entry.get("type") == "map",
                        length=length,
                        created=entry.get("created", 0),
                    )
                )
            else:
                items.append(CacheItemDetails(name=name, is_empty=True, is_map=False, length=0, created=0))
        return items

    async def remove(self, key: str) -> None:
        await self._remove_both(metadata_key(key), data_key(key))

    async def clear(self) -> None:
        keys = [k for k in await self._storage.keys() if k.startswith(CACHE_PREFIX)]
        for key in keys:
            await self._storage.remove_item(key)
        logger.info("cache_cleared", removed=len(keys))

    async def _remove_both(self, meta_key: str, value_key: str) -> None:
        await self._storage.remove_item(meta_key)
        await self._storage.remove_item(value_key)

    async def _set_entry(self, physical_key: str, entry: dict) -> None:
        await self._storage.set_item(physical_key, encode_entry(entry))

    async def _get_entry(self, physical_key: str) -> dict | None:
        """Decoded entry, or None when missing, unreadable or older than the TTL."""
        raw = await self._storage.get_item(physical_key)
        if not raw:
            return None
        try:
            entry = decode_entry(raw)
        except (ValueError, zlib.error) as e:
            logger.warning("cache_entry_unreadable", key=physical_key, error=str(e))
            return None
        if not isinstance(entry, dict):
            return None
        created = entry.get("created")
        if created and self._now_ms() - created > self._ttl_ms:
            logger.debug("cache_entry_expired", key=physical_key)
            return None
        return entry
