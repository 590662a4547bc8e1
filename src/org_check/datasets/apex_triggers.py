"""Apex triggers of the org, with a scan of their bodies."""

from __future__ import annotations

from typing import Any

from structlog.typing import FilteringBoundLogger

from org_check.factory.data_factory import DataFactory
from org_check.models.domain import SOQLQueryRequest
from org_check.models.entities import ApexTrigger
from org_check.salesforce import metadata_types as mt
from org_check.salesforce.manager import SalesforceManager
from org_check.utils.code_scanner import (
    find_hard_coded_ids,
    find_hard_coded_urls,
    has_dml,
    has_soql,
    remove_comments_from_code,
)

APEX_TRIGGER_QUERY = (
    "SELECT Id, Name, ApiVersion, Status, NamespacePrefix, Body, "
    "UsageBeforeInsert, UsageAfterInsert, UsageBeforeUpdate, UsageAfterUpdate, "
    "UsageBeforeDelete, UsageAfterDelete, UsageAfterUndelete, UsageIsBulk, "
    "LengthWithoutComments, EntityDefinition.QualifiedApiName, "
    "CreatedDate, LastModifiedDate "
    "FROM ApexTrigger "
    "WHERE ManageableState IN ('installedEditable', 'unmanaged') "
)


class ApexTriggersDataset:
    async def run(
        self,
        sfdc_manager: SalesforceManager,
        data_factory: DataFactory,
        logger: FilteringBoundLogger,
        parameters: dict[str, Any],
    ) -> dict[str, ApexTrigger]:
        results = await sfdc_manager.soql_query(
            [SOQLQueryRequest(string=APEX_TRIGGER_QUERY, tooling=True)], logger
        )
        factory = data_factory.get_instance(ApexTrigger)

        apex_triggers: dict[str, ApexTrigger] = {}
        for record in results[0]:
            entity = record.get("EntityDefinition")
            if not entity:
                continue
            trigger_id = sfdc_manager.case_safe_id(record["Id"])
            object_id = entity.get("QualifiedApiName")
            trigger = factory.create(
                {
                    "id": trigger_id,
                    "name": record.get("Name"),
                    "api_version": record.get("ApiVersion"),
                    "package": record.get("NamespacePrefix") or "",
                    "length": record.get("LengthWithoutComments"),
                    "is_active": record.get("Status") == "Active",
                    "before_insert": record.get("UsageBeforeInsert"),
                    "after_insert": record.get("UsageAfterInsert"),
                    "before_update": record.get("UsageBeforeUpdate"),
                    "after_update": record.get("UsageAfterUpdate"),
                    "before_delete": record.get("UsageBeforeDelete"),
                    "after_delete": record.get("UsageAfterDelete"),
                    "after_undelete": record.get("UsageAfterUndelete"),
                    "object_id": object_id,
                    "has_soql": False,
                    "has_dml": False,
                    "created_date": record.get("CreatedDate"),
                    "last_modified_date": record.get("LastModifiedDate"),
                    "url": sfdc_manager.setup_url(trigger_id, mt.APEX_TRIGGER, object_id),
                }
            )

            if record.get("Body"):
                source_code = remove_comments_from_code(record["Body"])
                trigger.has_soql = has_soql(source_code)
                trigger.has_dml = has_dml(source_code)
                trigger.hard_coded_urls = find_hard_coded_urls(source_code)
                trigger.hard_coded_ids = find_hard_coded_ids(source_code)

            factory.compute_score(trigger)
            apex_triggers[trigger.id] = trigger

        logger.info("apex_triggers_parsed", triggers=len(apex_triggers))
        return apex_triggers
