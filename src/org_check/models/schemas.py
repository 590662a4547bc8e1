"""Pydantic models for API response serialization."""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, Field


class HealthResponse(BaseModel):
    status: str
    api_version: int
    datasets: list[str]
    recipes: list[str]


class UsageResponse(BaseModel):
    current_usage_ratio: float
    current_usage_percentage: str
    yellow_threshold: float
    red_threshold: float
    zone: Literal["green", "yellow", "red"]


class CacheItemResponse(BaseModel):
    name: str
    is_empty: bool
    is_map: bool
    length: int
    created: int


class ScoreRuleResponse(BaseModel):
    id: int
    description: str
    bad_field: str
    error_message: str
    applicable_types: list[str]


class RecipeResponse(BaseModel):
    alias: str
    parameters: dict[str, str] = Field(default_factory=dict)
    count: int
    records: list[dict[str, Any]]
