"""Dataset orchestrator: runs extraction units once per cache key, behind the cache."""

from __future__ import annotations

import asyncio
import time
from collections.abc import Iterable
from typing import Any

from org_check.datasets import aliases
from org_check.datasets.apex_triggers import ApexTriggersDataset
from org_check.datasets.custom_fields import CustomFieldsDataset
from org_check.datasets.object_types import ObjectTypesDataset
from org_check.datasets.profile_password_policies import ProfilePasswordPoliciesDataset
from org_check.datasets.user_roles import UserRolesDataset
from org_check.exceptions import DatasetRunError
from org_check.factory.data_factory import DataFactory
from org_check.models.domain import DatasetRunInformation
from org_check.observability.logger import get_logger
from org_check.observability.metrics import log_api_usage, log_dataset_run
from org_check.protocols.dataset import Dataset
from org_check.salesforce.manager import SalesforceManager
from org_check.storage.cache import DataCacheManager

logger = get_logger("dataset_manager")

DatasetIdentity = str | DatasetRunInformation


def create_default_datasets() -> dict[str, Dataset]:
    return {
        aliases.CUSTOM_FIELDS: CustomFieldsDataset(),
        aliases.APEX_TRIGGERS: ApexTriggersDataset(),
        aliases.PROFILE_PASSWORD_POLICIES: ProfilePasswordPoliciesDataset(),
        aliases.USER_ROLES: UserRolesDataset(),
        aliases.OBJECT_TYPES: ObjectTypesDataset(),
    }


def to_run_information(dataset: DatasetIdentity) -> DatasetRunInformation:
    if isinstance(dataset, DatasetRunInformation):
        return dataset
    return DatasetRunInformation(alias=dataset, cache_key=dataset)


def _size(result: Any) -> int | None:
    return len(result) if hasattr(result, "__len__") else None


class DatasetManager:
    """Runs datasets concurrently, each cache key fetched at most once.

    The in-flight table keeps one task per cache key. Callers wait on it
    through `asyncio.shield`, so a cancelled caller never cancels the fetch
    that other callers share. A failed task is evicted so the next run
    fetches again.
    """

    def __init__(
        self,
        sfdc_manager: SalesforceManager,
        cache: DataCacheManager,
        data_factory: DataFactory,
        datasets: dict[str, Dataset] | None = None,
    ) -> None:
        self._sfdc_manager = sfdc_manager
        self._cache = cache
        self._data_factory = data_factory
        self._datasets = datasets if datasets is not None else create_default_datasets()
        self._in_flight: dict[str, asyncio.Task] = {}

    @property
    def aliases(self) -> list[str]:
        return sorted(self._datasets)

    async def run(self, datasets: Iterable[DatasetIdentity]) -> dict[str, Any]:
        """Results keyed by alias; the first failing dataset raises DatasetRunError."""
        infos = [to_run_information(d) for d in datasets]
        results = await asyncio.gather(
            *(asyncio.shield(self._get_or_create_task(info)) for info in infos),
            return_exceptions=True,
        )
        output: dict[str, Any] = {}
        for info, result in zip(infos, results):
            if isinstance(result, BaseException):
                raise result
            output[info.alias] = result
        return output

    async def clean(self, datasets: Iterable[DatasetIdentity]) -> None:
        for dataset in datasets:
            info = to_run_information(dataset)
            self._in_flight.pop(info.cache_key, None)
            try:
                await self._cache.remove(info.cache_key)
            except Exception as e:
                logger.warning("dataset_clean_failed", cache_key=info.cache_key, error=str(e))
        logger.info("datasets_cleaned")

    def _get_or_create_task(self, info: DatasetRunInformation) -> asyncio.Task:
        task = self._in_flight.get(info.cache_key)
        if task is None:
            task = asyncio.create_task(self._fetch(info))
            self._in_flight[info.cache_key] = task
        return task

    async def _fetch(self, info: DatasetRunInformation) -> Any:
        start = time.monotonic()
        try:
            cached = await self._cache.get(info.cache_key)
            if cached is not None:
                log_dataset_run(
                    info.alias, info.cache_key, "cache", (time.monotonic() - start) * 1000, _size(cached)
                )
                return cached

            dataset = self._datasets.get(info.alias)
            if dataset is None:
                raise KeyError(f"No dataset registered with alias '{info.alias}'")

            bound = logger.bind(dataset=info.alias, cache_key=info.cache_key)
            bound.info("dataset_extraction_start", parameters=info.parameters)
            result = await dataset.run(
                self._sfdc_manager, self._data_factory, bound, dict(info.parameters)
            )
            await self._cache.set(info.cache_key, result)
            log_dataset_run(
                info.alias, info.cache_key, "extraction", (time.monotonic() - start) * 1000, _size(result)
            )
            log_api_usage(self._sfdc_manager.daily_api_request_limit_information)
            return result
        except Exception as e:
            if self._in_flight.get(info.cache_key) is asyncio.current_task():
                del self._in_flight[info.cache_key]
            logger.error("dataset_run_failed", alias=info.alias, cache_key=info.cache_key, error=str(e))
            raise DatasetRunError(info.alias, e) from e
