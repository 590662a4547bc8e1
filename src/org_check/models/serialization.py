"""JSON-ready conversion of dataset results, preserving record classes."""

from __future__ import annotations

import dataclasses
from typing import Any

from org_check.models.domain import DataDependencies, DependencyItem
from org_check.models.entities import ENTITY_CLASSES

TYPE_TAG = "@type"

_REGISTRY: dict[str, type] = {
    cls.__name__: cls for cls in (*ENTITY_CLASSES, DataDependencies, DependencyItem)
}


def is_reference_name(name: str) -> bool:
    """Names of in-memory links between records; these are never persisted."""
    return name.endswith("_ref") or name.endswith("_refs")


def to_payload(value: Any) -> Any:
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        payload: dict[str, Any] = {TYPE_TAG: type(value).__name__}
        for f in dataclasses.fields(value):
            if is_reference_name(f.name):
                continue
            payload[f.name] = to_payload(getattr(value, f.name))
        return payload
    if isinstance(value, dict):
        return {k: to_payload(v) for k, v in value.items()}
    if isinstance(value, (list, tuple, set, frozenset)):
        return [to_payload(v) for v in value]
    return value


def from_payload(value: Any) -> Any:
    if isinstance(value, list):
        return [from_payload(v) for v in value]
    if not isinstance(value, dict):
        return value
    type_name = value.get(TYPE_TAG)
    if type_name is None:
        return {k: from_payload(v) for k, v in value.items()}
    cls = _REGISTRY.get(type_name)
    if cls is None:
        raise ValueError(f"Unknown record type in payload: {type_name}")
    names = {f.name for f in dataclasses.fields(cls)}
    return cls(**{k: from_payload(v) for k, v in value.items() if k in names})
