"""Cache inspection and wipe endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from org_check.api.dependencies import get_cache
from org_check.models.schemas import CacheItemResponse
from org_check.storage.cache import DataCacheManager

router = APIRouter()


@router.get("/cache", response_model=list[CacheItemResponse])
async def list_cache(cache: DataCacheManager = Depends(get_cache)) -> list[CacheItemResponse]:
    return [
        CacheItemResponse(
            name=item.name,
            is_empty=item.is_empty,
            is_map=item.is_map,
            length=item.length,
            created=item.created,
        )
        for item in await cache.details()
    ]


@router.delete("/cache", status_code=204)
async def clear_cache(cache: DataCacheManager = Depends(get_cache)) -> None:
    await cache.clear()
