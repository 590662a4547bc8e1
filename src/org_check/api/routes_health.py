"""Health check endpoint."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from org_check.api.dependencies import get_dataset_manager, get_recipe_manager, get_sfdc_manager
from org_check.models.schemas import HealthResponse
from org_check.pipeline.dataset_manager import DatasetManager
from org_check.pipeline.recipe_manager import RecipeManager
from org_check.salesforce.manager import SalesforceManager

router = APIRouter()


@router.get("/health", response_model=HealthResponse)
async def health(
    sfdc_manager: SalesforceManager = Depends(get_sfdc_manager),
    dataset_manager: DatasetManager = Depends(get_dataset_manager),
    recipe_manager: RecipeManager = Depends(get_recipe_manager),
) -> HealthResponse:
    return HealthResponse(
        status="ok",
        api_version=sfdc_manager.api_version,
        datasets=dataset_manager.aliases,
        recipes=recipe_manager.aliases,
    )
