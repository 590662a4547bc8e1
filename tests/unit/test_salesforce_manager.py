"""Tests for the Salesforce API access layer."""

from __future__ import annotations

import asyncio
import re

import pytest

from org_check.config.settings import Settings
from org_check.exceptions import QuotaExceededError, SalesforceError
from org_check.models.domain import MetadataRequest, SOQLQueryRequest
from org_check.salesforce.manager import SalesforceManager

TABLE = [{"Id": f"a0B00000000{i:04d}AAA", "Name": f"Row {i}"} for i in range(10)]

_PAGE = re.compile(r"Id > '(\w+)' ORDER BY Id LIMIT (\d+)")


def paged_table(soql, tooling, batch_size):
    start, limit = _PAGE.search(soql).groups()
    rows = [r for r in TABLE if r["Id"] > start]
    return {"records": rows[: int(limit)], "done": True}


def composite_with(sub_response):
    def handler(body, tooling):
        return {
            "compositeResponse": [
                {"referenceId": sub["referenceId"], **sub_response(sub)}
                for sub in body["compositeRequest"]
            ]
        }

    return handler


def test_case_safe_id():
    assert SalesforceManager.case_safe_id("001000000000001AAA") == "001000000000001"
    assert SalesforceManager.case_safe_id("001000000000001") == "001000000000001"
    assert SalesforceManager.case_safe_id(None) is None


async def test_standard_pagination_follows_cursor(sfdc_manager, fake_transport):
    fake_transport.query_handler = lambda soql, tooling, size: {
        "records": TABLE[:4],
        "done": False,
        "nextRecordsUrl": "/services/data/v60.0/query/01g-2000",
    }
    fake_transport.query_more_handler = lambda locator, tooling: {
        "records": TABLE[4:],
        "done": True,
    }
    results = await sfdc_manager.soql_query([SOQLQueryRequest(string="SELECT Id FROM Account")])
    assert results == [TABLE]
    assert fake_transport.count("query") == 1
    assert fake_transport.count("query_more") == 1


@pytest.mark.parametrize("batch_size", [1, 3, 7, 10, 2000])
async def test_custom_pagination_is_independent_of_batch_size(
    fake_transport, settings, batch_size
):
    settings = Settings(**{**settings.model_dump(), "no_query_more_batch_size": batch_size})
    manager = SalesforceManager(fake_transport, settings)
    fake_transport.query_handler = paged_table
    results = await manager.soql_query(
        [SOQLQueryRequest(string="SELECT Id, Name FROM Account", query_more_field="Id")]
    )
    assert results == [TABLE]
    assert fake_transport.count("query") == len(TABLE) // batch_size + 1


async def test_custom_pagination_with_where_clause_uses_and(sfdc_manager, fake_transport):
    fake_transport.query_handler = paged_table
    await sfdc_manager.soql_query(
        [
            SOQLQueryRequest(
                string="SELECT Id FROM Account WHERE IsDeleted = false",
                query_more_field="Id",
            )
        ]
    )
    first_query = fake_transport.calls[0][1]
    assert "AND Id > '000000000000000000'" in first_query


async def test_bypassed_error_returns_empty_list(sfdc_manager, fake_transport):
    def fail(soql, tooling, size):
        raise SalesforceError("nope", error_code="INVALID_TYPE")

    fake_transport.query_handler = fail
    results = await sfdc_manager.soql_query(
        [SOQLQueryRequest(string="SELECT Id FROM Foo", by_passes=["INVALID_TYPE"])]
    )
    assert results == [[]]


async def test_query_error_carries_context(sfdc_manager, fake_transport):
    def fail(soql, tooling, size):
        raise SalesforceError("malformed", error_code="MALFORMED_QUERY")

    fake_transport.query_handler = fail
    with pytest.raises(SalesforceError) as exc_info:
        await sfdc_manager.soql_query([SOQLQueryRequest(string="SELECT Id FROM Foo")])
    assert exc_info.value.error_code == "MALFORMED_QUERY"
    assert exc_info.value.context["what"] == "SELECT Id FROM Foo"
    assert "standard queryMore" in exc_info.value.context["when"]


async def test_red_zone_stops_further_calls(sfdc_manager, fake_transport):
    fake_transport.usage = (950, 1000)
    with pytest.raises(QuotaExceededError):
        await sfdc_manager.soql_query([SOQLQueryRequest(string="SELECT Id FROM Account")])
    assert fake_transport.count("query") == 1

    with pytest.raises(QuotaExceededError):
        await sfdc_manager.soql_query([SOQLQueryRequest(string="SELECT Id FROM Account")])
    assert fake_transport.count("query") == 1


async def test_dependencies_are_chunked_and_deduplicated(sfdc_manager, fake_transport):
    ids = [f"00N0000000{i:05d}" for i in range(250)]
    record = {
        "MetadataComponentId": "01p000000000001AAA",
        "MetadataComponentName": "MyClass",
        "MetadataComponentType": "ApexClass",
        "RefMetadataComponentId": ids[0],
        "RefMetadataComponentName": "Field__c",
        "RefMetadataComponentType": "CustomField",
    }
    fake_transport.composite_handler = composite_with(
        lambda sub: {"httpStatusCode": 200, "body": {"records": [record]}}
    )
    data = await sfdc_manager.dependencies_query(ids)

    assert fake_transport.count("composite") == 1
    body = fake_transport.calls[0][1]
    assert len(body["compositeRequest"]) == 3
    assert len(data.records) == 1
    assert data.records[0].id == "01p000000000001"
    assert data.records[0].ref_id == ids[0]
    assert data.errors == []


async def test_dependencies_unknown_exception_marks_chunk(sfdc_manager, fake_transport):
    ids = [f"00N0000000{i:05d}" for i in range(150)]

    def sub_response(sub):
        if sub["referenceId"] == "chunk100":
            return {"httpStatusCode": 500, "body": [{"errorCode": "UNKNOWN_EXCEPTION"}]}
        return {"httpStatusCode": 200, "body": {"records": []}}

    fake_transport.composite_handler = composite_with(sub_response)
    data = await sfdc_manager.dependencies_query(ids)
    assert data.errors == ids[100:]


async def test_dependencies_other_error_aborts(sfdc_manager, fake_transport):
    fake_transport.composite_handler = composite_with(
        lambda sub: {"httpStatusCode": 400, "body": [{"errorCode": "INVALID_FIELD"}]}
    )
    with pytest.raises(SalesforceError) as exc_info:
        await sfdc_manager.dependencies_query(["00N000000000001"])
    assert exc_info.value.error_code == "INVALID_FIELD"
    assert exc_info.value.context["what"]["ids"] == ["00N000000000001"]


async def test_dependencies_failed_call_aborts(sfdc_manager, fake_transport):
    def fail(body, tooling):
        raise SalesforceError("HTTP 500", error_code="500")

    fake_transport.composite_handler = fail
    with pytest.raises(SalesforceError) as exc_info:
        await sfdc_manager.dependencies_query(["00N000000000001"])
    assert exc_info.value.error_code == "500"
    assert exc_info.value.context["what"] == {"ids": ["00N000000000001"]}
    assert "dependencies" in exc_info.value.context["when"]


async def test_read_metadata_at_scale_skips_bypassed_codes(sfdc_manager, fake_transport):
    ids = [f"00N00000000000{i}" for i in range(7)]

    def sub_response(sub):
        if sub["url"].endswith(ids[3]):
            return {"httpStatusCode": 404, "body": [{"errorCode": "INVALID_CROSS_REFERENCE_KEY"}]}
        return {"httpStatusCode": 200, "body": {"Id": sub["url"].rsplit("/", 1)[-1]}}

    fake_transport.composite_handler = composite_with(sub_response)
    records = await sfdc_manager.read_metadata_at_scale(
        "CustomField", ids, ["INVALID_CROSS_REFERENCE_KEY"]
    )
    assert fake_transport.count("composite") == 2
    assert [r["Id"] for r in records] == [i for i in ids if i != ids[3]]


async def test_read_metadata_at_scale_aborts_on_other_codes(sfdc_manager, fake_transport):
    fake_transport.composite_handler = composite_with(
        lambda sub: {"httpStatusCode": 404, "body": [{"errorCode": "NOT_FOUND"}]}
    )
    with pytest.raises(SalesforceError) as exc_info:
        await sfdc_manager.read_metadata_at_scale(
            "CustomField", ["00N000000000001"], ["INVALID_CROSS_REFERENCE_KEY"]
        )
    assert exc_info.value.context["what"]["type"] == "CustomField"


async def test_read_metadata_expands_wildcard(sfdc_manager, fake_transport):
    names = [f"Profile{i}" for i in range(12)]
    fake_transport.list_metadata_handler = lambda t, v: [{"fullName": n} for n in names]
    fake_transport.read_metadata_handler = lambda t, members, v: [
        {"fullName": m} for m in members
    ]
    result = await sfdc_manager.read_metadata(
        [MetadataRequest(type="ProfilePasswordPolicy", members=["*"])]
    )
    assert [r["fullName"] for r in result["ProfilePasswordPolicy"]] == names
    assert fake_transport.count("list_metadata") == 1
    assert fake_transport.count("read_metadata") == 2


async def test_describe_activity_is_answered_locally(sfdc_manager, fake_transport):
    described = await sfdc_manager.describe("Activity")
    assert described["keyPrefix"] == "00T"
    assert fake_transport.calls == []


async def test_describe_global_appends_activity(sfdc_manager, fake_transport):
    fake_transport.describe_global_handler = lambda: {"sobjects": [{"name": "Account"}]}
    sobjects = await sfdc_manager.describe_global()
    assert [s["name"] for s in sobjects] == ["Account", "Activity"]


async def test_record_count(sfdc_manager, fake_transport):
    fake_transport.request_handler = lambda m, url, body: {
        "sObjects": [{"name": "Account", "count": 42}]
    }
    assert await sfdc_manager.record_count("Account") == 42
    assert fake_transport.calls[0][1] == ("GET", "/limits/recordCount?sObjects=Account")


GROUPS = [{"ProfileId": f"00e00000000{i:04d}", "total": i, "qmField": 100 + i} for i in range(10)]

_AGGREGATE_START = re.compile(r"LastLoginNumber__c > (\d+) ")
_AGGREGATE_LIMIT = re.compile(r"LIMIT (\d+)")


def paged_groups(soql, tooling, batch_size):
    start = _AGGREGATE_START.search(soql)
    limit = int(_AGGREGATE_LIMIT.search(soql).group(1))
    rows = [g for g in GROUPS if start is None or g["qmField"] > int(start.group(1))]
    return {"records": rows[:limit], "done": True}


@pytest.mark.parametrize("batch_size", [1, 4, 10, 2000])
async def test_custom_pagination_of_aggregate_queries(fake_transport, settings, batch_size):
    settings = Settings(**{**settings.model_dump(), "no_query_more_batch_size": batch_size})
    manager = SalesforceManager(fake_transport, settings)
    fake_transport.query_handler = paged_groups
    results = await manager.soql_query(
        [
            SOQLQueryRequest(
                string="SELECT ProfileId, COUNT(Id) total FROM User GROUP BY ProfileId",
                query_more_field="LastLoginNumber__c",
            )
        ]
    )
    assert results == [GROUPS]
    assert fake_transport.count("query") == len(GROUPS) // batch_size + 1

    queries = [soql for call, soql in fake_transport.calls]
    assert "MAX(LastLoginNumber__c) qmField" in queries[0]
    assert "ORDER BY MAX(LastLoginNumber__c)" in queries[0]
    assert "WHERE" not in queries[0]
    if len(queries) > 1:
        assert f"WHERE LastLoginNumber__c > {GROUPS[batch_size - 1]['qmField']} " in queries[1]
        assert queries[1].index("WHERE") < queries[1].index("GROUP BY")


async def test_composite_calls_are_bounded(fake_transport, settings):
    settings = Settings(**{**settings.model_dump(), "max_concurrent_requests": 2})
    manager = SalesforceManager(fake_transport, settings)
    in_flight = 0
    peak = 0

    async def slow_composite(body, tooling=True):
        nonlocal in_flight, peak
        in_flight += 1
        peak = max(peak, in_flight)
        await asyncio.sleep(0.01)
        in_flight -= 1
        return {
            "compositeResponse": [
                {"referenceId": sub["referenceId"], "httpStatusCode": 200, "body": {"Id": "x"}}
                for sub in body["compositeRequest"]
            ]
        }

    fake_transport.composite = slow_composite
    records = await manager.read_metadata_at_scale(
        "CustomField", [f"00N00000000{i:04d}" for i in range(30)]
    )
    assert len(records) == 30
    assert peak == 2
