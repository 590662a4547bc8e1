"""Password policies of every existing profile."""

from __future__ import annotations

from typing import Any

from structlog.typing import FilteringBoundLogger

from org_check.datasets import aliases as datasets
from org_check.exceptions import RecipeError
from org_check.models.domain import DatasetRunInformation
from org_check.models.entities import ProfilePasswordPolicy


class ProfilePasswordPoliciesRecipe:
    def extract(self, parameters: dict[str, Any]) -> list[str | DatasetRunInformation]:
        return [datasets.PROFILE_PASSWORD_POLICIES]

    async def transform(
        self,
        data: dict[str, Any],
        logger: FilteringBoundLogger,
        parameters: dict[str, Any],
    ) -> list[ProfilePasswordPolicy]:
        policies = data.get(datasets.PROFILE_PASSWORD_POLICIES)
        if policies is None:
            raise RecipeError(
                f"Data from dataset '{datasets.PROFILE_PASSWORD_POLICIES}' was undefined."
            )
        return list(policies.values())
