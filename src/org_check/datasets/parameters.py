"""Global parameters shared by recipes and extraction units."""

from __future__ import annotations

import re
from typing import Any

from org_check.exceptions import InvalidParameterError

ALL_VALUES = "*"

SOBJECT_NAME = "sobject"
PACKAGE_NAME = "namespace"
SOBJECT_TYPE_NAME = "sobjecttype"

_API_NAME = re.compile(r"[A-Za-z0-9_]+")


def _get(parameters: dict[str, Any] | None, name: str) -> str:
    value = (parameters or {}).get(name)
    return ALL_VALUES if value is None else value


def get_sobject_name(parameters: dict[str, Any] | None) -> str:
    """The object API name, checked before it reaches a SOQL filter or a cache key."""
    value = _get(parameters, SOBJECT_NAME)
    if value != ALL_VALUES and (not isinstance(value, str) or _API_NAME.fullmatch(value) is None):
        raise InvalidParameterError(f"Invalid object API name: {value!r}")
    return value


def get_package_name(parameters: dict[str, Any] | None) -> str:
    return _get(parameters, PACKAGE_NAME)


def get_sobject_type_name(parameters: dict[str, Any] | None) -> str:
    return _get(parameters, SOBJECT_TYPE_NAME)


def matches(value: str | None, expected: str) -> bool:
    """True when `expected` is the wildcard or equals `value`."""
    return expected == ALL_VALUES or value == expected
