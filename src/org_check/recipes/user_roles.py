"""Role hierarchy with each role linked to its parent."""

from __future__ import annotations

from typing import Any

from structlog.typing import FilteringBoundLogger

from org_check.datasets import aliases as datasets
from org_check.exceptions import RecipeError
from org_check.models.domain import DatasetRunInformation
from org_check.models.entities import UserRole

INCLUDE_EXTERNAL_ROLES = "includeexternalroles"


def _include_external_roles(parameters: dict[str, Any]) -> bool:
    value = (parameters or {}).get(INCLUDE_EXTERNAL_ROLES, True)
    if isinstance(value, str):
        return value.lower() not in ("false", "0", "no")
    return bool(value)


class UserRolesRecipe:
    def extract(self, parameters: dict[str, Any]) -> list[str | DatasetRunInformation]:
        return [datasets.USER_ROLES]

    async def transform(
        self,
        data: dict[str, Any],
        logger: FilteringBoundLogger,
        parameters: dict[str, Any],
    ) -> list[UserRole]:
        roles = data.get(datasets.USER_ROLES)
        if roles is None:
            raise RecipeError(f"Data from dataset '{datasets.USER_ROLES}' was undefined.")
        include_external = _include_external_roles(parameters)

        selected: list[UserRole] = []
        for role in roles.values():
            if role.has_parent:
                role.parent_ref = roles.get(role.parent_id)
            if include_external or role.is_external is not True:
                selected.append(role)
        return selected
