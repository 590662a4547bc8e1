"""Salesforce API access layer: pagination, composite batching and dependencies.

Every platform call is bracketed by the watchdog: `before_request()` refuses
the call once the org is in the red zone, `after_request()` refreshes the
usage from the response headers (and raises if that response pushed usage into
the red zone).
"""

from __future__ import annotations

import asyncio
from datetime import date
from typing import Any

from structlog.typing import FilteringBoundLogger

from org_check.config.settings import Settings
from org_check.exceptions import QuotaExceededError, SalesforceError
from org_check.models.domain import (
    DependencyData,
    DependencyRecord,
    MetadataRequest,
    SOQLQueryRequest,
)
from org_check.observability.logger import get_logger
from org_check.protocols.salesforce import SalesforceTransport
from org_check.salesforce import urls
from org_check.salesforce.watchdog import SalesforceUsageInformation, SalesforceWatchDog
from org_check.scoring.rules import current_api_version

logger = get_logger("salesforce_manager")

ACTIVITY_OBJECT = {
    "name": "Activity",
    "label": "Activity",
    "labelPlural": "Activities",
    "customSetting": False,
    "custom": False,
    "keyPrefix": "00T",
}

STARTING_ID = "000000000000000000"

DEPENDENCY_FIELDS = (
    "MetadataComponentId, MetadataComponentName, MetadataComponentType, "
    "RefMetadataComponentId, RefMetadataComponentName, RefMetadataComponentType"
)


def _entity_name(query: str) -> str:
    start = query.rfind("FROM ") + 5
    end = query.find(" ", start)
    return query[start:] if end == -1 else query[start:end]


class SalesforceManager:
    def __init__(
        self,
        transport: SalesforceTransport,
        settings: Settings,
        watchdog: SalesforceWatchDog | None = None,
    ) -> None:
        self._transport = transport
        self._logger = logger
        self._settings = settings
        self._api_version = settings.api_version or current_api_version(date.today())
        # Composite waves share one HTTP connection pool
        self._composite_slots = asyncio.Semaphore(settings.max_concurrent_requests)
        self._watchdog = watchdog or SalesforceWatchDog(
            api_limit_extractor=lambda: transport.api_usage,
            warning_threshold=settings.watchdog_warning_threshold,
            fatal_threshold=settings.watchdog_fatal_threshold,
            freshness_seconds=settings.watchdog_freshness_seconds,
        )

    @property
    def api_version(self) -> int:
        return self._api_version

    @property
    def daily_api_request_limit_information(self) -> SalesforceUsageInformation:
        return self._watchdog.daily_api_request_limit_information

    # ── Helpers ───────────────────────────────────────────────────────────

    @staticmethod
    def case_safe_id(sfdc_id: str | None) -> str | None:
        return urls.case_safe_id(sfdc_id)

    @staticmethod
    def setup_url(
        sfdc_id: str | None,
        metadata_type: str | None,
        parent_id: str | None = None,
        parent_type: str | None = None,
    ) -> str:
        return urls.setup_url(sfdc_id, metadata_type, parent_id, parent_type)

    @staticmethod
    def get_object_type(api_name: str, is_custom_setting: bool = False) -> str:
        return urls.get_object_type(api_name, is_custom_setting)

    # ── SOQL ──────────────────────────────────────────────────────────────

    async def soql_query(
        self,
        queries: list[SOQLQueryRequest],
        logger: FilteringBoundLogger | None = None,
    ) -> list[list[dict]]:
        """Run all queries concurrently; results are in the order of `queries`.

        If several queries fail, the first failure (in query order) is raised
        once every query has settled.
        """
        log = logger or self._logger
        log.info("soql_query_start", count=len(queries))
        results = await asyncio.gather(
            *(self._run_query(q, log) for q in queries), return_exceptions=True
        )
        errors = [r for r in results if isinstance(r, BaseException)]
        if errors:
            log.error("soql_query_failed", errors=len(errors), error=str(errors[0]))
            raise errors[0]
        log.info("soql_query_done", records=sum(len(r) for r in results))
        return results

    async def _run_query(self, request: SOQLQueryRequest, log: FilteringBoundLogger) -> list[dict]:
        entity = _entity_name(request.string)
        if request.query_more_field:
            records = await self._custom_query(request)
        else:
            records = await self._standard_query(request)
        log.debug("soql_entity_done", entity=entity, records=len(records))
        return records

    async def _standard_query(self, request: SOQLQueryRequest) -> list[dict]:
        records: list[dict] = []
        try:
            self._watchdog.before_request()
            page = await self._transport.query(
                request.string,
                tooling=request.tooling,
                batch_size=self._settings.standard_query_batch_size,
            )
            self._watchdog.after_request()
            records.extend(page.get("records") or [])
            while page.get("done") is False:
                self._watchdog.before_request()
                page = await self._transport.query_more(
                    page["nextRecordsUrl"], tooling=request.tooling
                )
                self._watchdog.after_request()
                records.extend(page.get("records") or [])
        except QuotaExceededError:
            raise
        except SalesforceError as e:
            if e.error_code in request.by_passes:
                logger.info("soql_query_bypassed", error_code=e.error_code)
                return []
            raise e.with_context(
                "While running a SOQL query with the standard queryMore", request.string
            )
        return records

    async def _custom_query(self, request: SOQLQueryRequest) -> list[dict]:
        query = request.string
        field = request.query_more_field
        batch_size = self._settings.no_query_more_batch_size
        from_index = query.find(" FROM ")
        group_by_index = query.find(" GROUP BY ")
        keyword = "AND" if " WHERE " in query else "WHERE"
        is_aggregate = group_by_index != -1

        records: list[dict] = []
        starting_value: Any = None
        try:
            while True:
                if not is_aggregate:
                    start = starting_value or STARTING_ID
                    real_query = (
                        f"{query} {keyword} {field} > '{start}' "
                        f"ORDER BY {field} LIMIT {batch_size}"
                    )
                else:
                    real_query = (
                        f"{query[:from_index]}, MAX({field}) qmField "
                        f"{query[from_index:group_by_index]} "
                        + (f"{keyword} {field} > {starting_value} " if starting_value else "")
                        + f"{query[group_by_index:]} "
                        f"ORDER BY MAX({field}) LIMIT {batch_size}"
                    )
                self._watchdog.before_request()
                page = await self._transport.query(
                    real_query, tooling=request.tooling, batch_size=batch_size
                )
                self._watchdog.after_request()
                page_records = page.get("records") or []
                records.extend(page_records)
                if len(page_records) < batch_size:
                    break
                starting_value = page_records[-1]["qmField" if is_aggregate else field]
        except QuotaExceededError:
            raise
        except SalesforceError as e:
            raise e.with_context("While running a SOQL query with the custom queryMore", query)
        return records

    # ── Composite ─────────────────────────────────────────────────────────

    async def _composite(self, body: dict) -> dict:
        async with self._composite_slots:
            self._watchdog.before_request()
            response = await self._transport.composite(body, tooling=True)
            self._watchdog.after_request()
        return response

    async def dependencies_query(
        self,
        ids: list[str],
        logger: FilteringBoundLogger | None = None,
    ) -> DependencyData:
        log = logger or self._logger
        self._watchdog.before_request()
        per_request = self._settings.max_ids_in_dependency_request
        per_call = self._settings.max_composite_request_size
        wave_size = self._settings.max_dependency_batch_size

        bodies: list[dict] = []
        ids_by_reference: dict[str, list[str]] = {}
        for i in range(0, len(ids), per_request):
            if not bodies or len(bodies[-1]["compositeRequest"]) == per_call:
                bodies.append({"allOrNone": False, "compositeRequest": []})
            chunk = ids[i : i + per_request]
            subset = "'" + "','".join(chunk) + "'"
            reference_id = f"chunk{i}"
            ids_by_reference[reference_id] = chunk
            bodies[-1]["compositeRequest"].append(
                {
                    "method": "GET",
                    "url": (
                        f"/services/data/v{self._api_version}.0/tooling/query?q="
                        f"SELECT {DEPENDENCY_FIELDS} "
                        "FROM MetadataComponentDependency "
                        f"WHERE RefMetadataComponentId IN ({subset}) "
                        f"OR MetadataComponentId IN ({subset}) "
                    ),
                    "referenceId": reference_id,
                }
            )
        log.info("dependencies_query_start", ids=len(ids), composite_calls=len(bodies))

        records: list[DependencyRecord] = []
        errors: list[str] = []
        seen: set[str] = set()
        for w in range(0, len(bodies), wave_size):
            wave = bodies[w : w + wave_size]
            responses = await asyncio.gather(
                *(self._composite(body) for body in wave), return_exceptions=True
            )
            for body, response in zip(wave, responses):
                body_ids = [
                    i for sub in body["compositeRequest"] for i in ids_by_reference[sub["referenceId"]]
                ]
                if isinstance(response, QuotaExceededError):
                    raise response
                if isinstance(response, SalesforceError):
                    log.error(
                        "dependencies_call_failed",
                        error_code=response.error_code,
                        error=str(response),
                        ids=len(body_ids),
                    )
                    raise response.with_context(
                        "Calling Composite Tooling API to get dependencies.", {"ids": body_ids}
                    )
                if isinstance(response, BaseException):
                    raise response
                for sub in response.get("compositeResponse") or []:
                    chunk_ids = ids_by_reference.get(sub.get("referenceId"), [])
                    if sub.get("httpStatusCode") == 200:
                        for r in (sub.get("body") or {}).get("records") or []:
                            record_id = urls.case_safe_id(r["MetadataComponentId"])
                            ref_id = urls.case_safe_id(r["RefMetadataComponentId"])
                            key = f"{record_id}-{ref_id}"
                            if key in seen:
                                continue
                            seen.add(key)
                            records.append(
                                DependencyRecord(
                                    id=record_id,
                                    name=r.get("MetadataComponentName"),
                                    type=r.get("MetadataComponentType"),
                                    url=urls.setup_url(record_id, r.get("MetadataComponentType")),
                                    ref_id=ref_id,
                                    ref_name=r.get("RefMetadataComponentName"),
                                    ref_type=r.get("RefMetadataComponentType"),
                                    ref_url=urls.setup_url(ref_id, r.get("RefMetadataComponentType")),
                                )
                            )
                        continue
                    error_code = _sub_error_code(sub)
                    log.warning("dependencies_sub_request_error", error_code=error_code)
                    if error_code == "UNKNOWN_EXCEPTION":
                        errors.extend(chunk_ids)
                        continue
                    raise SalesforceError(
                        f"One of the request had an issue with HTTP errorCode={error_code}",
                        error_code=error_code,
                        context={
                            "when": "Calling Composite Tooling API to get dependencies.",
                            "what": {"ids": chunk_ids, "body": sub.get("body")},
                        },
                    )

        log.info("dependencies_query_done", records=len(records), errors=len(errors))
        return DependencyData(records=records, errors=errors)

    async def read_metadata_at_scale(
        self,
        metadata_type: str,
        ids: list[str],
        by_passes: list[str] | None = None,
        logger: FilteringBoundLogger | None = None,
    ) -> list[dict]:
        """Read one tooling sobject per id through composite calls.

        Sub-responses whose error code is in `by_passes` are skipped; any other
        error aborts the whole read.
        """
        log = logger or self._logger
        by_passes = by_passes or []
        self._watchdog.before_request()
        per_call = self._settings.max_composite_request_size
        wave_size = self._settings.max_at_scale_batch_size

        bodies: list[dict] = []
        for i, sfdc_id in enumerate(ids):
            if not bodies or len(bodies[-1]["compositeRequest"]) == per_call:
                bodies.append({"allOrNone": False, "compositeRequest": []})
            bodies[-1]["compositeRequest"].append(
                {
                    "method": "GET",
                    "url": f"/services/data/v{self._api_version}.0/tooling/sobjects/{metadata_type}/{sfdc_id}",
                    "referenceId": f"chunk{i}",
                }
            )
        log.info(
            "read_metadata_at_scale_start",
            type=metadata_type,
            ids=len(ids),
            composite_calls=len(bodies),
        )

        records: list[dict] = []
        for w in range(0, len(bodies), wave_size):
            wave = bodies[w : w + wave_size]
            responses = await asyncio.gather(
                *(self._composite(body) for body in wave), return_exceptions=True
            )
            for response in responses:
                if isinstance(response, QuotaExceededError):
                    raise response
                if isinstance(response, SalesforceError):
                    if response.error_code in by_passes:
                        log.info("read_metadata_at_scale_bypassed", error_code=response.error_code)
                        continue
                    raise response.with_context(
                        "Calling Composite Tooling API to get metadata at scale.",
                        {"type": metadata_type, "ids": ids},
                    )
                if isinstance(response, BaseException):
                    raise response
                for sub in response.get("compositeResponse") or []:
                    if sub.get("httpStatusCode") == 200:
                        records.append(sub.get("body"))
                        continue
                    error_code = _sub_error_code(sub)
                    if error_code in by_passes:
                        continue
                    raise SalesforceError(
                        f"One of the request for type={metadata_type} had an issue "
                        f"with HTTP errorCode={error_code}",
                        error_code=error_code,
                        context={
                            "when": "Calling Composite Tooling API to get metadata at scale.",
                            "what": {"type": metadata_type, "ids": ids, "body": sub.get("body")},
                        },
                    )

        log.info("read_metadata_at_scale_done", type=metadata_type, records=len(records))
        return records

    # ── Metadata API ──────────────────────────────────────────────────────

    async def read_metadata(
        self,
        requests: list[MetadataRequest],
        logger: FilteringBoundLogger | None = None,
    ) -> dict[str, list[dict]]:
        """Read metadata members by type; a "*" member lists the type first."""
        log = logger or self._logger
        self._watchdog.before_request()
        requests = [MetadataRequest(type=r.type, members=list(r.members)) for r in requests]
        log.info("read_metadata_start", types=len(requests))

        async def expand(request: MetadataRequest) -> None:
            try:
                self._watchdog.before_request()
                listed = await self._transport.list_metadata(request.type, self._api_version)
                self._watchdog.after_request()
            except QuotaExceededError:
                raise
            except SalesforceError as e:
                raise e.with_context(
                    "Calling Metadata API to get a list of metadata.",
                    {"type": request.type, "api_version": self._api_version},
                )
            request.members = [m for m in request.members if m != "*"]
            request.members.extend(item["fullName"] for item in listed)

        await asyncio.gather(*(expand(r) for r in requests if "*" in r.members))

        async def read(metadata_type: str, members: list[str]) -> list[dict]:
            try:
                self._watchdog.before_request()
                items = await self._transport.read_metadata(
                    metadata_type, members, self._api_version
                )
                self._watchdog.after_request()
            except QuotaExceededError:
                raise
            except SalesforceError as e:
                raise e.with_context(
                    "Calling Metadata API to read a list of metadata.",
                    {"type": metadata_type, "members_in_process": members},
                )
            return items

        size = self._settings.max_members_in_metadata_request
        slices = [
            (r.type, r.members[i : i + size])
            for r in requests
            for i in range(0, len(r.members), size)
        ]
        results = await asyncio.gather(*(read(t, m) for t, m in slices))

        response: dict[str, list[dict]] = {r.type: [] for r in requests}
        for (metadata_type, _), items in zip(slices, results):
            response[metadata_type].extend(items)
        log.info(
            "read_metadata_done",
            counts={t: len(items) for t, items in response.items()},
        )
        return response

    # ── Describe ──────────────────────────────────────────────────────────

    async def describe_global(self, logger: FilteringBoundLogger | None = None) -> list[dict]:
        log = logger or self._logger
        self._watchdog.before_request()
        response = await self._transport.describe_global()
        self._watchdog.after_request()
        sobjects = list(response.get("sobjects") or [])
        sobjects.append(dict(ACTIVITY_OBJECT))
        log.info("describe_global_done", sobjects=len(sobjects))
        return sobjects

    async def describe(self, sobject: str, logger: FilteringBoundLogger | None = None) -> dict:
        if sobject == "Activity":
            return dict(ACTIVITY_OBJECT)
        log = logger or self._logger
        self._watchdog.before_request()
        described = await self._transport.describe(sobject)
        self._watchdog.after_request()
        log.info("describe_done", sobject=sobject)
        return described

    async def record_count(self, sobject: str, logger: FilteringBoundLogger | None = None) -> int:
        log = logger or self._logger
        self._watchdog.before_request()
        result = await self._transport.request("GET", f"/limits/recordCount?sObjects={sobject}")
        self._watchdog.after_request()
        counts = result.get("sObjects") if isinstance(result, dict) else None
        count = counts[0].get("count", 0) if isinstance(counts, list) and len(counts) == 1 else 0
        log.info("record_count_done", sobject=sobject, count=count)
        return count


def _sub_error_code(sub: dict) -> str | None:
    body = sub.get("body")
    if isinstance(body, list) and body and isinstance(body[0], dict):
        return body[0].get("errorCode")
    return None
