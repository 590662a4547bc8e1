"""Tests for the extraction units against the fake transport."""

from __future__ import annotations

import pytest

from org_check.datasets.apex_triggers import ApexTriggersDataset
from org_check.datasets.custom_fields import CustomFieldsDataset
from org_check.datasets.object_types import ObjectTypesDataset
from org_check.datasets.profile_password_policies import ProfilePasswordPoliciesDataset
from org_check.datasets.user_roles import UserRolesDataset
from org_check.exceptions import InvalidParameterError
from org_check.observability.logger import get_logger
from org_check.scoring.rules import CURRENT_API_VERSION

logger = get_logger("test_datasets")

TRIGGER_BODY = (
    "trigger InvoiceTrigger on Invoice__c (before insert) {\n"
    "    // look up the accounts\n"
    "    List<Account> accounts = [SELECT Id FROM Account];\n"
    "    update accounts;\n"
    "    Id ownerId = '005000000000001AAA';\n"
    "}"
)


async def test_apex_triggers(sfdc_manager, fake_transport, data_factory):
    fake_transport.query_handler = lambda soql, tooling, size: {
        "done": True,
        "records": [
            {
                "Id": "01q000000000001AAA",
                "Name": "InvoiceTrigger",
                "ApiVersion": CURRENT_API_VERSION,
                "Status": "Inactive",
                "NamespacePrefix": None,
                "Body": TRIGGER_BODY,
                "UsageBeforeInsert": True,
                "UsageAfterInsert": False,
                "LengthWithoutComments": 120,
                "EntityDefinition": {"QualifiedApiName": "Invoice__c"},
            },
            # Triggers on objects that no longer exist
            {"Id": "01q000000000002AAA", "Name": "Orphan", "EntityDefinition": None},
        ],
    }

    triggers = await ApexTriggersDataset().run(sfdc_manager, data_factory, logger, {})

    assert list(triggers) == ["01q000000000001"]
    trigger = triggers["01q000000000001"]
    assert trigger.object_id == "Invoice__c"
    assert trigger.package == ""
    assert trigger.before_insert is True
    assert trigger.is_active is False
    assert trigger.has_soql is True
    assert trigger.has_dml is True
    assert trigger.hard_coded_ids == ["005000000000001AAA"]
    assert trigger.url == "/lightning/setup/ObjectManager/Invoice__c/ApexTriggers/01q000000000001/view"
    assert trigger.bad_reason_ids == [14, 15, 34, 47]
    assert trigger.score == len(trigger.bad_fields) == 4
    assert fake_transport.count("composite") == 0


async def test_apex_trigger_without_body_is_not_scanned(sfdc_manager, fake_transport, data_factory):
    fake_transport.query_handler = lambda soql, tooling, size: {
        "done": True,
        "records": [
            {
                "Id": "01q000000000003AAA",
                "Name": "Empty",
                "ApiVersion": CURRENT_API_VERSION,
                "Status": "Active",
                "EntityDefinition": {"QualifiedApiName": "Account"},
            }
        ],
    }

    triggers = await ApexTriggersDataset().run(sfdc_manager, data_factory, logger, {})

    trigger = triggers["01q000000000003"]
    assert trigger.has_soql is False
    assert trigger.hard_coded_ids is None
    assert trigger.score == 0


async def test_profile_password_policies(sfdc_manager, fake_transport, data_factory):
    fake_transport.list_metadata_handler = lambda t, v: [
        {"fullName": "AdminPolicy"},
        {"fullName": "StandardPolicy"},
        {"fullName": "DeletedPolicy"},
    ]
    fake_transport.read_metadata_handler = lambda t, members, v: [
        {
            "fullName": "AdminPolicy",
            "profile": "Admin",
            "passwordExpiration": "0",
            "passwordHistory": "3",
            "minimumPasswordLength": "8",
            "passwordComplexity": "3",
            "maxLoginAttempts": "5",
            "lockoutInterval": "15",
            "passwordQuestion": "1",
            "obscure": "true",
        },
        {
            "fullName": "StandardPolicy",
            "profile": "Standard User",
            "passwordExpiration": "180",
            "passwordHistory": "0",
            "minimumPasswordLength": "6",
            "passwordComplexity": "1",
            "passwordQuestion": "0",
        },
        {"fullName": "DeletedPolicy", "profile": None},
    ]

    policies = await ProfilePasswordPoliciesDataset().run(sfdc_manager, data_factory, logger, {})

    assert sorted(policies) == ["Admin", "Standard User"]
    admin = policies["Admin"]
    assert admin.obscure is True
    assert admin.password_question is True
    assert admin.max_login_attempts == 5
    assert admin.bad_reason_ids == [24, 26]

    standard = policies["Standard User"]
    assert standard.max_login_attempts is None
    assert standard.bad_reason_ids == [25, 27, 28, 29, 30, 31]
    assert standard.score == 6

    assert fake_transport.count("list_metadata") == 1
    assert fake_transport.calls[-1] == (
        "read_metadata",
        ("ProfilePasswordPolicy", ["AdminPolicy", "StandardPolicy", "DeletedPolicy"]),
    )


def role(role_id, parent_id=None, users=None, portal_type="None"):
    return {
        "Id": role_id,
        "Name": role_id,
        "DeveloperName": role_id,
        "ParentRoleId": parent_id,
        "PortalType": portal_type,
        "Users": {"records": users} if users is not None else None,
    }


async def test_user_roles(sfdc_manager, fake_transport, data_factory):
    fake_transport.query_handler = lambda soql, tooling, size: {
        "done": True,
        "records": [
            role("00E000000000001AAA", users=[{"Id": "005000000000001AAA", "IsActive": True}]),
            role(
                "00E000000000002AAA",
                parent_id="00E000000000001AAA",
                users=[{"Id": "005000000000002AAA", "IsActive": False}],
            ),
            role("00E000000000003AAA", parent_id="00E000000000002AAA", portal_type="Partner"),
        ],
    }

    roles = await UserRolesDataset().run(sfdc_manager, data_factory, logger, {})

    ceo, vp, partner = roles["00E000000000001"], roles["00E000000000002"], roles["00E000000000003"]
    assert [ceo.level, vp.level, partner.level] == [0, 1, 2]
    assert ceo.active_member_ids == ["005000000000001"]
    assert ceo.has_parent is False
    assert ceo.bad_reason_ids == []
    assert vp.parent_id == "00E000000000001"
    assert vp.inactive_members_count == 1
    assert vp.has_inactive_members is True
    assert vp.bad_reason_ids == [19]
    assert partner.is_external is True
    assert ceo.is_external is False
    assert partner.active_members_count == 0
    assert partner.url == "/lightning/setup/Roles/page?address=%2F00E000000000003"


async def test_deep_role_hierarchy_is_flagged(sfdc_manager, fake_transport, data_factory):
    ids = [f"00E00000000001{i}" for i in range(8)]
    records = [
        role(role_id, parent_id=ids[i - 1] if i else None, users=[{"Id": f"0050000000000{i:02d}", "IsActive": True}])
        for i, role_id in enumerate(ids)
    ]
    fake_transport.query_handler = lambda soql, tooling, size: {"done": True, "records": records}

    roles = await UserRolesDataset().run(sfdc_manager, data_factory, logger, {})

    assert roles[ids[-1]].level == 7
    assert roles[ids[-1]].bad_reason_ids == [45]
    assert roles[ids[-2]].bad_reason_ids == []


async def test_object_types_need_no_call(sfdc_manager, fake_transport, data_factory):
    types = await ObjectTypesDataset().run(sfdc_manager, data_factory, logger, {})

    assert len(types) == 8
    assert types["CustomObject"].label == "Custom Object"
    assert fake_transport.calls == []


async def test_custom_fields_refuse_an_object_name_that_is_not_an_api_name(
    sfdc_manager, fake_transport, data_factory
):
    with pytest.raises(InvalidParameterError):
        await CustomFieldsDataset().run(
            sfdc_manager, data_factory, logger, {"sobject": "Account' OR ManageableState != 'x"}
        )
    assert fake_transport.calls == []
