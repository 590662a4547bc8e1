"""FastAPI dependency injection helpers."""

from __future__ import annotations

from fastapi import Request

from org_check.pipeline.dataset_manager import DatasetManager
from org_check.pipeline.recipe_manager import RecipeManager
from org_check.salesforce.manager import SalesforceManager
from org_check.scoring.engine import ScoringEngine
from org_check.storage.cache import DataCacheManager


def get_sfdc_manager(request: Request) -> SalesforceManager:
    return request.app.state.sfdc_manager


def get_cache(request: Request) -> DataCacheManager:
    return request.app.state.cache


def get_scoring_engine(request: Request) -> ScoringEngine:
    return request.app.state.scoring_engine


def get_dataset_manager(request: Request) -> DatasetManager:
    return request.app.state.dataset_manager


def get_recipe_manager(request: Request) -> RecipeManager:
    return request.app.state.recipe_manager
