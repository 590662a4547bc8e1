"""Core domain objects used throughout the system."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass
class SOQLQueryRequest:
    string: str
    tooling: bool = False
    by_passes: list[str] = field(default_factory=list)
    query_more_field: str | None = None  # set to page on that field instead of the native cursor


@dataclass
class MetadataRequest:
    type: str
    members: list[str]  # "*" expands to every member of the type


@dataclass
class DependencyRecord:
    id: str
    name: str
    type: str
    url: str
    ref_id: str
    ref_name: str
    ref_type: str
    ref_url: str


@dataclass
class DependencyData:
    records: list[DependencyRecord] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)


@dataclass
class DependencyItem:
    id: str
    name: str
    type: str
    url: str


@dataclass
class DataDependencies:
    had_error: bool = False
    using: list[DependencyItem] = field(default_factory=list)
    referenced: list[DependencyItem] = field(default_factory=list)
    referenced_by_types: dict[str, int] = field(default_factory=dict)


@dataclass
class DatasetRunInformation:
    alias: str
    cache_key: str
    parameters: dict[str, Any] = field(default_factory=dict)


@dataclass
class CacheItemDetails:
    name: str
    is_empty: bool
    is_map: bool
    length: int
    created: int  # epoch milliseconds
