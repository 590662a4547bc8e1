"""FastAPI application factory with lifespan management."""

from __future__ import annotations

from contextlib import asynccontextmanager
from datetime import date
from pathlib import Path

from fastapi import FastAPI

from org_check.api.middleware import RequestTimingMiddleware
from org_check.api.routes_cache import router as cache_router
from org_check.api.routes_health import router as health_router
from org_check.api.routes_recipes import router as recipes_router
from org_check.api.routes_rules import router as rules_router
from org_check.api.routes_usage import router as usage_router
from org_check.config.settings import Settings
from org_check.exceptions import ConfigurationError
from org_check.factory.data_factory import DataFactory
from org_check.observability.logger import get_logger, setup_logging
from org_check.pipeline.dataset_manager import DatasetManager
from org_check.pipeline.recipe_manager import RecipeManager
from org_check.salesforce.manager import SalesforceManager
from org_check.salesforce.transport import HttpxSalesforceTransport
from org_check.scoring.engine import ScoringEngine
from org_check.scoring.rules import current_api_version
from org_check.storage.cache import DataCacheManager
from org_check.storage.sqlite_storage import SQLiteStorage

logger = get_logger("app")


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = Settings()
    setup_logging(settings.log_level, settings.json_logs)
    if not settings.instance_url or not settings.access_token:
        raise ConfigurationError("ORGCHECK_INSTANCE_URL and ORGCHECK_ACCESS_TOKEN are required")

    # Ensure the cache directory exists
    Path(settings.cache_db_path).parent.mkdir(parents=True, exist_ok=True)

    # Storage and cache
    storage = SQLiteStorage(settings.cache_db_path)
    await storage.initialize()
    cache = DataCacheManager(storage, ttl_seconds=settings.cache_ttl_seconds)

    # Salesforce access
    api_version = settings.api_version or current_api_version(date.today())
    transport = HttpxSalesforceTransport(
        instance_url=settings.instance_url,
        access_token=settings.access_token,
        api_version=api_version,
        timeout=settings.http_timeout_seconds,
    )
    sfdc_manager = SalesforceManager(transport, settings)

    # Scoring and orchestration
    scoring_engine = ScoringEngine()
    data_factory = DataFactory(scoring_engine)
    dataset_manager = DatasetManager(sfdc_manager, cache, data_factory)
    recipe_manager = RecipeManager(dataset_manager)

    # Attach to app state
    app.state.settings = settings
    app.state.sfdc_manager = sfdc_manager
    app.state.cache = cache
    app.state.scoring_engine = scoring_engine
    app.state.dataset_manager = dataset_manager
    app.state.recipe_manager = recipe_manager

    logger.info(
        "startup_complete",
        api_version=api_version,
        cached_items=len(await cache.details()),
    )

    yield

    await transport.close()
    logger.info("shutdown_complete")


def create_app() -> FastAPI:
    app = FastAPI(
        title="Org Check",
        version="1.0.0",
        description="Extract, cache and score Salesforce org metadata",
        lifespan=lifespan,
    )
    app.add_middleware(RequestTimingMiddleware)
    app.include_router(health_router, tags=["health"])
    app.include_router(usage_router, tags=["usage"])
    app.include_router(cache_router, tags=["cache"])
    app.include_router(rules_router, tags=["rules"])
    app.include_router(recipes_router, tags=["recipes"])
    return app
