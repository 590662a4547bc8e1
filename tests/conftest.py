"""Shared test fixtures."""

from __future__ import annotations

import tempfile
from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest

from org_check.config.settings import Settings
from org_check.factory.data_factory import DataFactory
from org_check.salesforce.manager import SalesforceManager
from org_check.storage.cache import DataCacheManager
from org_check.storage.sqlite_storage import SQLiteStorage


class FakeTransport:
    """Fake Salesforce transport that records every call.

    Each platform operation delegates to an overridable handler; the defaults
    answer with empty results.
    """

    def __init__(self) -> None:
        self.calls: list[tuple[str, Any]] = []
        self.usage: tuple[int, int] | None = (10, 1000)
        self.query_handler: Callable[[str, bool, int | None], dict] = (
            lambda soql, tooling, batch_size: {"records": [], "done": True}
        )
        self.query_more_handler: Callable[[str, bool], dict] = (
            lambda locator, tooling: {"records": [], "done": True}
        )
        self.composite_handler: Callable[[dict, bool], dict] = _empty_composite
        self.list_metadata_handler: Callable[[str, int], list[dict]] = lambda t, v: []
        self.read_metadata_handler: Callable[[str, list[str], int], list[dict]] = (
            lambda t, members, v: []
        )
        self.describe_global_handler: Callable[[], dict] = lambda: {"sobjects": []}
        self.describe_handler: Callable[[str], dict] = lambda name: {"name": name}
        self.request_handler: Callable[[str, str, Any], Any] = lambda m, url, body: {}

    @property
    def api_usage(self) -> tuple[int, int] | None:
        return self.usage

    def count(self, name: str) -> int:
        return sum(1 for call, _ in self.calls if call == name)

    async def query(self, soql: str, tooling: bool = False, batch_size: int | None = None) -> dict:
        self.calls.append(("query", soql))
        return self.query_handler(soql, tooling, batch_size)

    async def query_more(self, locator: str, tooling: bool = False) -> dict:
        self.calls.append(("query_more", locator))
        return self.query_more_handler(locator, tooling)

    async def composite(self, body: dict, tooling: bool = True) -> dict:
        self.calls.append(("composite", body))
        return self.composite_handler(body, tooling)

    async def list_metadata(self, metadata_type: str, api_version: int) -> list[dict]:
        self.calls.append(("list_metadata", metadata_type))
        return self.list_metadata_handler(metadata_type, api_version)

    async def read_metadata(
        self, metadata_type: str, members: list[str], api_version: int
    ) -> list[dict]:
        self.calls.append(("read_metadata", (metadata_type, list(members))))
        return self.read_metadata_handler(metadata_type, members, api_version)

    async def describe_global(self) -> dict:
        self.calls.append(("describe_global", None))
        return self.describe_global_handler()

    async def describe(self, sobject: str) -> dict:
        self.calls.append(("describe", sobject))
        return self.describe_handler(sobject)

    async def request(self, method: str, url: str, body: Any = None) -> Any:
        self.calls.append(("request", (method, url)))
        return self.request_handler(method, url, body)


def _empty_composite(body: dict, tooling: bool) -> dict:
    return {
        "compositeResponse": [
            {"httpStatusCode": 200, "referenceId": sub["referenceId"], "body": {"records": []}}
            for sub in body["compositeRequest"]
        ]
    }


@pytest.fixture
def tmp_dir():
    """Create a temporary directory."""
    return tempfile.mkdtemp()


@pytest.fixture
def settings(tmp_dir):
    """Test settings with temp paths."""
    return Settings(
        instance_url="https://example.my.salesforce.com",
        access_token="test-token",
        api_version=60,
        cache_db_path=str(Path(tmp_dir) / "test_cache.db"),
    )


@pytest.fixture
def fake_transport():
    return FakeTransport()


@pytest.fixture
def sfdc_manager(fake_transport, settings):
    return SalesforceManager(fake_transport, settings)


@pytest.fixture
def data_factory():
    return DataFactory()


@pytest.fixture
async def storage(settings):
    store = SQLiteStorage(settings.cache_db_path)
    await store.initialize()
    return store


@pytest.fixture
async def cache(storage):
    return DataCacheManager(storage)
