"""Apex triggers filtered by namespace."""

from __future__ import annotations

from typing import Any

from structlog.typing import FilteringBoundLogger

from org_check.datasets import aliases as datasets
from org_check.datasets.parameters import get_package_name, matches
from org_check.exceptions import RecipeError
from org_check.models.domain import DatasetRunInformation
from org_check.models.entities import ApexTrigger


class ApexTriggersRecipe:
    def extract(self, parameters: dict[str, Any]) -> list[str | DatasetRunInformation]:
        return [datasets.APEX_TRIGGERS]

    async def transform(
        self,
        data: dict[str, Any],
        logger: FilteringBoundLogger,
        parameters: dict[str, Any],
    ) -> list[ApexTrigger]:
        apex_triggers = data.get(datasets.APEX_TRIGGERS)
        if apex_triggers is None:
            raise RecipeError(f"Data from dataset '{datasets.APEX_TRIGGERS}' was undefined.")
        namespace = get_package_name(parameters)
        return [t for t in apex_triggers.values() if matches(t.package, namespace)]
