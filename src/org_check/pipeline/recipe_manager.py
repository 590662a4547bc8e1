"""Recipe orchestration: extract the datasets a recipe needs, then transform them."""

from __future__ import annotations

import time
from typing import Any

from org_check.exceptions import DatasetRunError, InvalidParameterError, RecipeError
from org_check.models.domain import DatasetRunInformation
from org_check.observability.logger import get_logger
from org_check.observability.metrics import log_recipe_run
from org_check.pipeline.dataset_manager import DatasetManager
from org_check.protocols.dataset import Recipe
from org_check.recipes import aliases
from org_check.recipes.apex_triggers import ApexTriggersRecipe
from org_check.recipes.custom_fields import CustomFieldsRecipe
from org_check.recipes.profile_password_policies import ProfilePasswordPoliciesRecipe
from org_check.recipes.user_roles import UserRolesRecipe

logger = get_logger("recipe_manager")


def create_default_recipes() -> dict[str, Recipe]:
    return {
        aliases.CUSTOM_FIELDS: CustomFieldsRecipe(),
        aliases.APEX_TRIGGERS: ApexTriggersRecipe(),
        aliases.PROFILE_PASSWORD_POLICIES: ProfilePasswordPoliciesRecipe(),
        aliases.USER_ROLES: UserRolesRecipe(),
    }


class RecipeManager:
    def __init__(
        self,
        dataset_manager: DatasetManager,
        recipes: dict[str, Recipe] | None = None,
    ) -> None:
        self._dataset_manager = dataset_manager
        self._recipes = recipes if recipes is not None else create_default_recipes()

    @property
    def aliases(self) -> list[str]:
        return sorted(self._recipes)

    def _get_recipe(self, alias: str) -> Recipe:
        recipe = self._recipes.get(alias)
        if recipe is None:
            raise RecipeError(f"The given alias ({alias}) does not correspond to a registered recipe.")
        return recipe

    def _extract(self, alias: str, recipe: Recipe, parameters: dict[str, Any]) -> list[str | DatasetRunInformation]:
        try:
            return recipe.extract(parameters)
        except InvalidParameterError:
            raise
        except Exception as e:
            raise RecipeError(f"Recipe '{alias}' failed while extracting: {e}") from e

    async def run(self, alias: str, parameters: dict[str, Any] | None = None) -> Any:
        """Extract the datasets of the recipe, then transform them.

        DatasetRunError from the extraction propagates as is.
        """
        parameters = parameters or {}
        recipe = self._get_recipe(alias)
        start = time.monotonic()
        datasets = self._extract(alias, recipe, parameters)

        data = await self._dataset_manager.run(datasets)

        bound = logger.bind(recipe=alias)
        try:
            result = await recipe.transform(data, bound, parameters)
        except (RecipeError, DatasetRunError, InvalidParameterError):
            raise
        except Exception as e:
            raise RecipeError(f"Recipe '{alias}' failed while transforming: {e}") from e

        log_recipe_run(alias, len(datasets), (time.monotonic() - start) * 1000)
        return result

    async def clean(self, alias: str, parameters: dict[str, Any] | None = None) -> None:
        parameters = parameters or {}
        recipe = self._get_recipe(alias)
        datasets = self._extract(alias, recipe, parameters)
        await self._dataset_manager.clean(datasets)
        logger.info("recipe_cleaned", alias=alias, datasets=len(datasets))
