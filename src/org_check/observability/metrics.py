"""Metric recording helpers for dataset runs and API consumption."""

from __future__ import annotations

from org_check.observability.logger import get_logger
from org_check.salesforce.watchdog import SalesforceUsageInformation

logger = get_logger("metrics")


def log_dataset_run(
    alias: str,
    cache_key: str,
    source: str,
    duration_ms: float,
    items: int | None,
) -> None:
    logger.info(
        "dataset_run",
        alias=alias,
        cache_key=cache_key,
        source=source,
        duration_ms=round(duration_ms, 2),
        items=items,
    )


def log_api_usage(usage: SalesforceUsageInformation) -> None:
    logger.info(
        "api_usage",
        usage_percentage=usage.current_usage_percentage,
        zone=usage.zone,
    )


def log_recipe_run(alias: str, datasets: int, duration_ms: float) -> None:
    logger.info(
        "recipe_run",
        alias=alias,
        datasets=datasets,
        duration_ms=round(duration_ms, 2),
    )
