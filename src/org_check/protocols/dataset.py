"""Protocols for extraction units and recipes."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol

from structlog.typing import FilteringBoundLogger

from org_check.models.domain import DatasetRunInformation

if TYPE_CHECKING:
    from org_check.factory.data_factory import DataFactory
    from org_check.salesforce.manager import SalesforceManager


class Dataset(Protocol):
    async def run(
        self,
        sfdc_manager: SalesforceManager,
        data_factory: DataFactory,
        logger: FilteringBoundLogger,
        parameters: dict[str, Any],
    ) -> Any: ...


class Recipe(Protocol):
    def extract(self, parameters: dict[str, Any]) -> list[str | DatasetRunInformation]:
        """Which datasets this recipe needs for the given parameters."""
        ...

    async def transform(
        self,
        data: dict[str, Any],
        logger: FilteringBoundLogger,
        parameters: dict[str, Any],
    ) -> Any: ...
