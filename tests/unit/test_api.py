"""Tests for the operator HTTP endpoints."""

from __future__ import annotations

from contextlib import asynccontextmanager

import pytest
from fastapi.testclient import TestClient

from org_check.api.app import create_app
from org_check.pipeline.dataset_manager import DatasetManager
from org_check.pipeline.recipe_manager import RecipeManager
from org_check.scoring.engine import ScoringEngine
from org_check.storage.cache import DataCacheManager


class InMemoryStorage:
    def __init__(self) -> None:
        self.items: dict[str, str] = {}

    async def get_item(self, key):
        return self.items.get(key)

    async def set_item(self, key, value):
        self.items[key] = value

    async def remove_item(self, key):
        self.items.pop(key, None)

    async def keys(self):
        return sorted(self.items)

    async def key_exists(self, key):
        return key in self.items


@pytest.fixture
def client(sfdc_manager, fake_transport, data_factory):
    fake_transport.query_handler = lambda soql, tooling, size: {
        "records": [
            {
                "Id": "00E000000000001AAA",
                "Name": "CEO",
                "DeveloperName": "CEO",
                "ParentRoleId": None,
                "PortalType": "None",
                "Users": {"records": [{"Id": "005000000000001AAA", "IsActive": True}]},
            }
        ],
        "done": True,
    }
    cache = DataCacheManager(InMemoryStorage())
    dataset_manager = DatasetManager(sfdc_manager, cache, data_factory)

    @asynccontextmanager
    async def fake_lifespan(app):
        app.state.sfdc_manager = sfdc_manager
        app.state.cache = cache
        app.state.scoring_engine = ScoringEngine()
        app.state.dataset_manager = dataset_manager
        app.state.recipe_manager = RecipeManager(dataset_manager)
        yield

    app = create_app()
    app.router.lifespan_context = fake_lifespan
    with TestClient(app) as test_client:
        yield test_client


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "ok"
    assert body["api_version"] == 60
    assert "user-roles" in body["recipes"]
    assert "X-Request-ID" in response.headers
    assert "X-Duration-MS" in response.headers


def test_usage(client):
    body = client.get("/usage").json()
    assert body["zone"] == "green"
    assert body["red_threshold"] == 0.9


def test_rules(client):
    rules = client.get("/rules").json()
    assert len(rules) == 52
    rule = client.get("/rules/45").json()
    assert rule["applicable_types"] == ["UserRole"]
    assert client.get("/rules/999").status_code == 404


def test_recipe_run_then_cache_listing(client, fake_transport):
    response = client.get("/recipes/user-roles")
    assert response.status_code == 200
    body = response.json()
    assert body["count"] == 1
    assert body["records"][0]["name"] == "CEO"
    assert body["records"][0]["level"] == 0

    cache_items = client.get("/cache").json()
    assert [i["name"] for i in cache_items] == ["user-roles"]

    client.get("/recipes/user-roles")
    assert fake_transport.count("query") == 1

    assert client.delete("/recipes/user-roles").status_code == 204
    client.get("/recipes/user-roles")
    assert fake_transport.count("query") == 2

    assert client.delete("/cache").status_code == 204
    assert client.get("/cache").json() == []


def test_unknown_recipe(client):
    assert client.get("/recipes/nope").status_code == 404


def test_object_name_must_be_an_api_name(client, fake_transport):
    params = {"sobject": "Account' OR ManageableState != 'x"}
    assert client.get("/recipes/custom-fields", params=params).status_code == 400
    assert client.delete("/recipes/custom-fields", params=params).status_code == 400
    assert fake_transport.calls == []
    assert client.get("/cache").json() == []
