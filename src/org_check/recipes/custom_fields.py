"""Custom fields joined with their object type and filtered by the global parameters."""

from __future__ import annotations

from typing import Any

from structlog.typing import FilteringBoundLogger

from org_check.datasets import aliases as datasets
from org_check.datasets.parameters import (
    SOBJECT_NAME,
    get_package_name,
    get_sobject_name,
    get_sobject_type_name,
    matches,
)
from org_check.exceptions import RecipeError
from org_check.models.domain import DatasetRunInformation
from org_check.models.entities import Field


class CustomFieldsRecipe:
    def extract(self, parameters: dict[str, Any]) -> list[str | DatasetRunInformation]:
        object_name = get_sobject_name(parameters)
        return [
            DatasetRunInformation(
                alias=datasets.CUSTOM_FIELDS,
                cache_key=f"{datasets.CUSTOM_FIELDS}_{object_name}",
                parameters={SOBJECT_NAME: object_name},
            ),
            datasets.OBJECT_TYPES,
        ]

    async def transform(
        self,
        data: dict[str, Any],
        logger: FilteringBoundLogger,
        parameters: dict[str, Any],
    ) -> list[Field]:
        custom_fields = data.get(datasets.CUSTOM_FIELDS)
        object_types = data.get(datasets.OBJECT_TYPES)
        if custom_fields is None:
            raise RecipeError(f"Data from dataset '{datasets.CUSTOM_FIELDS}' was undefined.")
        if object_types is None:
            raise RecipeError(f"Data from dataset '{datasets.OBJECT_TYPES}' was undefined.")

        namespace = get_package_name(parameters)
        object_type = get_sobject_type_name(parameters)
        object_name = get_sobject_name(parameters)

        selected: list[Field] = []
        for custom_field in custom_fields.values():
            custom_field.object_type_ref = object_types.get(custom_field.object_type_id)
            if not matches(custom_field.package, namespace):
                continue
            if not matches(custom_field.object_type_id, object_type):
                continue
            if not matches(custom_field.object_id, object_name):
                continue
            selected.append(custom_field)
        logger.info("custom_fields_selected", total=len(custom_fields), selected=len(selected))
        return selected
