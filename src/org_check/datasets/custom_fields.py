"""Custom fields of the org, enriched with their metadata and dependencies."""

from __future__ import annotations

from typing import Any

from structlog.typing import FilteringBoundLogger

from org_check.datasets.parameters import ALL_VALUES, get_sobject_name
from org_check.factory.data_factory import DataFactory
from org_check.models.domain import SOQLQueryRequest
from org_check.models.entities import Field
from org_check.salesforce import metadata_types as mt
from org_check.salesforce.manager import SalesforceManager
from org_check.utils.code_scanner import (
    find_hard_coded_ids,
    find_hard_coded_urls,
    remove_comments_from_code,
)

# Key prefixes of the Comment, History, Share, Feed and Event companions of custom objects
EXCLUDED_OBJECT_PREFIXES = ("00a", "017", "02c", "0D5", "1CE")

# Trending historical objects
EXCLUDED_OBJECT_SUFFIX = "_hd"


def _is_relevant(record: dict) -> bool:
    entity = record.get("EntityDefinition")
    if not entity:
        return False
    if entity.get("KeyPrefix") in EXCLUDED_OBJECT_PREFIXES:
        return False
    return not (entity.get("QualifiedApiName") or "").endswith(EXCLUDED_OBJECT_SUFFIX)


def _is_restricted_picklist(value_set: Any) -> bool:
    if not value_set:
        return False
    # A string value set points to a global picklist, which is always restricted
    if isinstance(value_set, str):
        return True
    return value_set.get("restricted") is True


class CustomFieldsDataset:
    async def run(
        self,
        sfdc_manager: SalesforceManager,
        data_factory: DataFactory,
        logger: FilteringBoundLogger,
        parameters: dict[str, Any],
    ) -> dict[str, Field]:
        object_name = get_sobject_name(parameters)
        query = (
            "SELECT Id, EntityDefinition.QualifiedApiName, EntityDefinition.IsCustomSetting, "
            "EntityDefinition.KeyPrefix "
            "FROM CustomField "
            "WHERE ManageableState IN ('installedEditable', 'unmanaged') "
        )
        if object_name != ALL_VALUES:
            query += f"AND EntityDefinition.QualifiedApiName = '{object_name}'"

        results = await sfdc_manager.soql_query(
            [SOQLQueryRequest(string=query, tooling=True)], logger
        )
        custom_field_records = results[0]
        logger.info("custom_fields_queried", records=len(custom_field_records))

        entity_info_by_id: dict[str, dict] = {}
        for record in custom_field_records:
            if not _is_relevant(record):
                continue
            entity = record["EntityDefinition"]
            entity_info_by_id[sfdc_manager.case_safe_id(record["Id"])] = {
                "qualified_api_name": entity.get("QualifiedApiName"),
                "is_custom_setting": entity.get("IsCustomSetting") is True,
            }

        dependencies = await sfdc_manager.dependencies_query(
            [sfdc_manager.case_safe_id(r["Id"]) for r in custom_field_records], logger
        )

        records = await sfdc_manager.read_metadata_at_scale(
            mt.CUSTOM_FIELD,
            list(entity_info_by_id),
            ["INVALID_CROSS_REFERENCE_KEY"],
            logger,
        )

        factory = data_factory.get_instance(Field)
        custom_fields: dict[str, Field] = {}
        for record in records:
            field_id = sfdc_manager.case_safe_id(record.get("Id"))
            entity_info = entity_info_by_id.get(field_id)
            if entity_info is None:
                logger.warning("custom_field_without_entity", id=field_id)
                continue
            metadata = record.get("Metadata") or {}
            object_id = entity_info["qualified_api_name"]
            object_type_id = sfdc_manager.get_object_type(
                object_id, entity_info["is_custom_setting"]
            )
            is_unique = metadata.get("unique") is True
            is_external_id = metadata.get("externalId") is True
            encryption_scheme = metadata.get("encryptionScheme")

            custom_field = factory.create(
                {
                    "id": field_id,
                    "name": record.get("DeveloperName"),
                    "label": metadata.get("label"),
                    "package": record.get("NamespacePrefix") or "",
                    "description": record.get("Description"),
                    "is_custom": True,
                    "created_date": record.get("CreatedDate"),
                    "last_modified_date": record.get("LastModifiedDate"),
                    "object_id": object_id,
                    "object_type_id": object_type_id,
                    "tooltip": record.get("InlineHelpText"),
                    "type": metadata.get("type"),
                    "length": metadata.get("length"),
                    "is_unique": is_unique,
                    "is_encrypted": encryption_scheme is not None and encryption_scheme != "None",
                    "is_external_id": is_external_id,
                    "is_indexed": is_unique or is_external_id,
                    "default_value": metadata.get("defaultValue"),
                    "is_restricted_picklist": _is_restricted_picklist(metadata.get("valueSet")),
                    "formula": metadata.get("formula"),
                    "url": sfdc_manager.setup_url(
                        field_id, mt.CUSTOM_FIELD, object_id, object_type_id
                    ),
                },
                dependency_data=dependencies,
            )

            if custom_field.formula:
                source_code = remove_comments_from_code(custom_field.formula)
                custom_field.hard_coded_urls = find_hard_coded_urls(source_code)
                custom_field.hard_coded_ids = find_hard_coded_ids(source_code)

            factory.compute_score(custom_field)
            custom_fields[custom_field.id] = custom_field

        logger.info("custom_fields_parsed", fields=len(custom_fields))
        return custom_fields
