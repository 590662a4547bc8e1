"""Constant list of the kinds of objects an org can contain."""

from __future__ import annotations

from typing import Any

from structlog.typing import FilteringBoundLogger

from org_check.factory.data_factory import DataFactory
from org_check.models.entities import (
    OBJECTTYPE_ID_CUSTOM_BIG_OBJECT,
    OBJECTTYPE_ID_CUSTOM_EVENT,
    OBJECTTYPE_ID_CUSTOM_EXTERNAL_SOBJECT,
    OBJECTTYPE_ID_CUSTOM_METADATA_TYPE,
    OBJECTTYPE_ID_CUSTOM_SETTING,
    OBJECTTYPE_ID_CUSTOM_SOBJECT,
    OBJECTTYPE_ID_KNOWLEDGE_ARTICLE,
    OBJECTTYPE_ID_STANDARD_SOBJECT,
    ObjectType,
)
from org_check.salesforce.manager import SalesforceManager

OBJECT_TYPES = (
    (OBJECTTYPE_ID_STANDARD_SOBJECT, "Standard Object"),
    (OBJECTTYPE_ID_CUSTOM_SOBJECT, "Custom Object"),
    (OBJECTTYPE_ID_CUSTOM_EXTERNAL_SOBJECT, "External Object"),
    (OBJECTTYPE_ID_CUSTOM_SETTING, "Custom Setting"),
    (OBJECTTYPE_ID_CUSTOM_METADATA_TYPE, "Custom Metadata Type"),
    (OBJECTTYPE_ID_CUSTOM_EVENT, "Platform Event"),
    (OBJECTTYPE_ID_KNOWLEDGE_ARTICLE, "Knowledge Article"),
    (OBJECTTYPE_ID_CUSTOM_BIG_OBJECT, "Big Object"),
)


class ObjectTypesDataset:
    async def run(
        self,
        sfdc_manager: SalesforceManager,
        data_factory: DataFactory,
        logger: FilteringBoundLogger,
        parameters: dict[str, Any],
    ) -> dict[str, ObjectType]:
        factory = data_factory.get_instance(ObjectType)
        return {
            type_id: factory.create({"id": type_id, "label": label})
            for type_id, label in OBJECT_TYPES
        }
