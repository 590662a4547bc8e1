"""Role hierarchy of the org with member counts."""

from __future__ import annotations

from typing import Any

from structlog.typing import FilteringBoundLogger

from org_check.factory.data_factory import DataFactory
from org_check.models.domain import SOQLQueryRequest
from org_check.models.entities import UserRole
from org_check.salesforce import metadata_types as mt
from org_check.salesforce.manager import SalesforceManager

USER_ROLE_QUERY = (
    "SELECT Id, DeveloperName, Name, ParentRoleId, PortalType, "
    "(SELECT Id, IsActive FROM Users) "
    "FROM UserRole "
)


def _assign_levels(roots: list[UserRole], children_by_parent: dict[str, list[UserRole]]) -> None:
    stack = [(root, 0) for root in roots]
    while stack:
        role, level = stack.pop()
        role.level = level
        stack.extend((child, level + 1) for child in children_by_parent.get(role.id, []))


class UserRolesDataset:
    async def run(
        self,
        sfdc_manager: SalesforceManager,
        data_factory: DataFactory,
        logger: FilteringBoundLogger,
        parameters: dict[str, Any],
    ) -> dict[str, UserRole]:
        results = await sfdc_manager.soql_query([SOQLQueryRequest(string=USER_ROLE_QUERY)], logger)
        factory = data_factory.get_instance(UserRole)

        roles: dict[str, UserRole] = {}
        roots: list[UserRole] = []
        children_by_parent: dict[str, list[UserRole]] = {}
        for record in results[0]:
            role_id = sfdc_manager.case_safe_id(record["Id"])
            parent_id = sfdc_manager.case_safe_id(record.get("ParentRoleId"))
            active_member_ids: list[str] = []
            inactive_members_count = 0
            for user in (record.get("Users") or {}).get("records") or []:
                if user.get("IsActive") is True:
                    active_member_ids.append(sfdc_manager.case_safe_id(user["Id"]))
                else:
                    inactive_members_count += 1

            role = factory.create(
                {
                    "id": role_id,
                    "name": record.get("Name"),
                    "apiname": record.get("DeveloperName"),
                    "parent_id": parent_id,
                    "has_parent": bool(parent_id),
                    "active_member_ids": active_member_ids,
                    "active_members_count": len(active_member_ids),
                    "has_active_members": len(active_member_ids) > 0,
                    "inactive_members_count": inactive_members_count,
                    "has_inactive_members": inactive_members_count > 0,
                    "is_external": record.get("PortalType") != "None",
                    "url": sfdc_manager.setup_url(role_id, mt.ROLE),
                }
            )
            if role.has_parent:
                children_by_parent.setdefault(parent_id, []).append(role)
            else:
                roots.append(role)
            roles[role_id] = role

        _assign_levels(roots, children_by_parent)
        for role in roles.values():
            factory.compute_score(role)

        logger.info("user_roles_parsed", roles=len(roles), roots=len(roots))
        return roles
