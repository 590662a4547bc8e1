"""Tests for the compressed two-record data cache."""

from __future__ import annotations

import pytest

from org_check.models.domain import DataDependencies, DependencyItem
from org_check.models.entities import Field, ObjectType, UserRole
from org_check.storage.cache import (
    DataCacheManager,
    data_key,
    decode_entry,
    encode_entry,
    metadata_key,
)


class InMemoryStorage:
    def __init__(self) -> None:
        self.items: dict[str, str] = {}
        self.fail_writes = False

    async def get_item(self, key: str) -> str | None:
        return self.items.get(key)

    async def set_item(self, key: str, value: str) -> None:
        if self.fail_writes:
            raise OSError("disk full")
        self.items[key] = value

    async def remove_item(self, key: str) -> None:
        self.items.pop(key, None)

    async def keys(self) -> list[str]:
        return sorted(self.items)

    async def key_exists(self, key: str) -> bool:
        return key in self.items


class FakeClock:
    def __init__(self) -> None:
        self.now = 1_700_000_000.0

    def __call__(self) -> float:
        return self.now


@pytest.fixture
def memory_storage():
    return InMemoryStorage()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def memory_cache(memory_storage, clock):
    return DataCacheManager(memory_storage, clock=clock)


def test_physical_keys():
    assert data_key("user-roles") == "OrgCheck.user-roles"
    assert metadata_key("user-roles") == "OrgCheck_user-roles"
    assert metadata_key("OrgCheck_user-roles") == "OrgCheck_user-roles"


def test_entry_encoding_is_hex_of_zlib_json():
    encoded = encode_entry({"content": [1, 2], "created": 5})
    assert all(c in "0123456789abcdef" for c in encoded)
    assert decode_entry(encoded) == {"content": [1, 2], "created": 5}


async def test_map_round_trip_keeps_record_classes(memory_cache):
    field = Field(
        id="00N000000000001",
        name="Amount__c",
        is_custom=True,
        dependencies=DataDependencies(
            using=[DependencyItem(id="01p", name="MyClass", type="ApexClass", url="/01p")]
        ),
        object_type_ref=ObjectType(id="CustomObject", label="Custom Object"),
    )
    field.score = 1
    field.bad_fields.append("description")
    field.bad_reason_ids.append(7)

    await memory_cache.set("custom-fields", {field.id: field})
    result = await memory_cache.get("custom-fields")

    restored = result["00N000000000001"]
    assert isinstance(restored, Field)
    assert restored.name == "Amount__c"
    assert restored.bad_reason_ids == [7]
    assert restored.dependencies.using[0].name == "MyClass"
    assert restored.object_type_ref is None


async def test_array_round_trip(memory_cache):
    await memory_cache.set("object-types", [ObjectType(id="CustomObject", label="Custom Object")])
    result = await memory_cache.get("object-types")
    assert result == [ObjectType(id="CustomObject", label="Custom Object")]


async def test_set_none_removes_both_records(memory_cache, memory_storage):
    await memory_cache.set("user-roles", {"1": UserRole(id="1")})
    assert len(memory_storage.items) == 2
    await memory_cache.set("user-roles", None)
    assert memory_storage.items == {}
    assert await memory_cache.get("user-roles") is None


async def test_expired_entry_is_removed(memory_cache, memory_storage, clock):
    await memory_cache.set("user-roles", {"1": UserRole(id="1")})
    clock.now += 24 * 60 * 60 + 1
    assert await memory_cache.has("user-roles") is False
    assert memory_storage.items == {}


async def test_get_within_ttl(memory_cache, clock):
    await memory_cache.set("user-roles", {"1": UserRole(id="1")})
    clock.now += 60 * 60
    assert await memory_cache.has("user-roles") is True
    assert "1" in await memory_cache.get("user-roles")


async def test_orphan_metadata_is_repaired(memory_cache, memory_storage):
    await memory_cache.set("user-roles", {"1": UserRole(id="1")})
    del memory_storage.items["OrgCheck.user-roles"]
    assert await memory_cache.has("user-roles") is False
    assert memory_storage.items == {}


async def test_unreadable_data_is_removed(memory_cache, memory_storage):
    await memory_cache.set("user-roles", {"1": UserRole(id="1")})
    memory_storage.items["OrgCheck.user-roles"] = "not-hex"
    assert await memory_cache.get("user-roles") is None
    assert memory_storage.items == {}


async def test_write_failure_is_swallowed(memory_cache, memory_storage):
    memory_storage.fail_writes = True
    await memory_cache.set("user-roles", {"1": UserRole(id="1")})
    assert memory_storage.items == {}


async def test_details_lists_metadata_records(memory_cache):
    await memory_cache.set("user-roles", {"1": UserRole(id="1"), "2": UserRole(id="2")})
    await memory_cache.set("object-types", [])
    details = {d.name: d for d in await memory_cache.details()}
    assert set(details) == {"user-roles", "object-types"}
    assert details["user-roles"].is_map is True
    assert details["user-roles"].length == 2
    assert details["object-types"].is_empty is True


async def test_clear_only_touches_prefixed_keys(memory_cache, memory_storage):
    memory_storage.items["other"] = "x"
    await memory_cache.set("user-roles", {"1": UserRole(id="1")})
    await memory_cache.clear()
    assert memory_storage.items == {"other": "x"}


async def test_get_rewrites_the_length_from_the_data(memory_cache, memory_storage):
    await memory_cache.set("user-roles", {"1": UserRole(id="1"), "2": UserRole(id="2")})
    metadata = decode_entry(memory_storage.items["OrgCheck_user-roles"])
    memory_storage.items["OrgCheck_user-roles"] = encode_entry({**metadata, "length": 99})

    assert len(await memory_cache.get("user-roles")) == 2
    details = {d.name: d for d in await memory_cache.details()}
    assert details["user-roles"].length == 2
    assert decode_entry(memory_storage.items["OrgCheck_user-roles"])["length"] == 2
