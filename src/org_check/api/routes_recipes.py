"""Recipe execution endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Request

from org_check.api.dependencies import get_recipe_manager
from org_check.exceptions import (
    DatasetRunError,
    InvalidParameterError,
    QuotaExceededError,
    RecipeError,
)
from org_check.models.schemas import RecipeResponse
from org_check.models.serialization import to_payload
from org_check.pipeline.recipe_manager import RecipeManager

router = APIRouter()


@router.get("/recipes/{alias}", response_model=RecipeResponse)
async def run_recipe(
    alias: str,
    request: Request,
    manager: RecipeManager = Depends(get_recipe_manager),
) -> RecipeResponse:
    """Query string parameters are passed to the recipe as global parameters."""
    parameters = dict(request.query_params)
    if alias not in manager.aliases:
        raise HTTPException(status_code=404, detail=f"Unknown recipe: {alias}")
    try:
        result = await manager.run(alias, parameters)
    except InvalidParameterError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except DatasetRunError as e:
        status = 429 if isinstance(e.cause, QuotaExceededError) else 502
        raise HTTPException(status_code=status, detail=str(e))
    except RecipeError as e:
        raise HTTPException(status_code=500, detail=str(e))

    records = result if isinstance(result, list) else [result]
    return RecipeResponse(
        alias=alias,
        parameters=parameters,
        count=len(records),
        records=to_payload(records),
    )


@router.delete("/recipes/{alias}", status_code=204)
async def clean_recipe(
    alias: str,
    request: Request,
    manager: RecipeManager = Depends(get_recipe_manager),
) -> None:
    if alias not in manager.aliases:
        raise HTTPException(status_code=404, detail=f"Unknown recipe: {alias}")
    try:
        await manager.clean(alias, dict(request.query_params))
    except InvalidParameterError as e:
        raise HTTPException(status_code=400, detail=str(e))
