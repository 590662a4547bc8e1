"""Protocol for the raw Salesforce API transport."""

from __future__ import annotations

from typing import Any, Protocol


class SalesforceTransport(Protocol):
    async def query(self, soql: str, tooling: bool = False, batch_size: int | None = None) -> dict:
        """Returns the raw page: {records, done, nextRecordsUrl}."""
        ...

    async def query_more(self, locator: str, tooling: bool = False) -> dict: ...

    async def composite(self, body: dict, tooling: bool = True) -> dict:
        """Returns {compositeResponse: [{httpStatusCode, body, referenceId}]}."""
        ...

    async def list_metadata(self, metadata_type: str, api_version: int) -> list[dict]: ...

    async def read_metadata(
        self, metadata_type: str, members: list[str], api_version: int
    ) -> list[dict]: ...

    async def describe_global(self) -> dict: ...

    async def describe(self, sobject: str) -> dict: ...

    async def request(self, method: str, url: str, body: Any = None) -> Any: ...

    @property
    def api_usage(self) -> tuple[int, int] | None:
        """(used, max) daily API requests from the last response, if reported."""
        ...
