"""Setup URLs, object type detection and id normalisation."""

from __future__ import annotations

from org_check.models.entities import (
    OBJECTTYPE_ID_CUSTOM_BIG_OBJECT,
    OBJECTTYPE_ID_CUSTOM_EVENT,
    OBJECTTYPE_ID_CUSTOM_EXTERNAL_SOBJECT,
    OBJECTTYPE_ID_CUSTOM_METADATA_TYPE,
    OBJECTTYPE_ID_CUSTOM_SETTING,
    OBJECTTYPE_ID_CUSTOM_SOBJECT,
    OBJECTTYPE_ID_KNOWLEDGE_ARTICLE,
    OBJECTTYPE_ID_STANDARD_SOBJECT,
)
from org_check.observability.logger import get_logger
from org_check.salesforce import metadata_types as mt

logger = get_logger("urls")

_OBJECT_MANAGER = "/lightning/setup/ObjectManager/"

# Setup pages for objects that are not handled by the object manager
_SPECIAL_OBJECT_URLS = {
    mt.CUSTOM_BIG_OBJECT: "/lightning/setup/BigObjects/page?address=%2F{id}%3Fsetupid%3DBigObjects",
    mt.CUSTOM_EVENT: "/lightning/setup/EventObjects/page?address=%2F{id}%3Fsetupid%3DEventObjects",
    mt.CUSTOM_SETTING: "/lightning/setup/CustomSettings/page?address=%2F{id}%3Fsetupid%3DCustomSettings",
    mt.CUSTOM_METADATA_TYPE: "/lightning/setup/CustomMetadata/page?address=%2F{id}%3Fsetupid%3DCustomMetadata",
    mt.EXTERNAL_OBJECT: "/lightning/setup/ExternalObjects/page?address=%2F{id}%3Fsetupid%3DExternalObjects",
}

_OBJECT_MANAGER_TYPES = (mt.STANDARD_OBJECT, mt.CUSTOM_OBJECT, mt.KNOWLEDGE_ARTICLE)

# Object components: {type: sub-page under the parent object}
_OBJECT_COMPONENT_PAGES = {
    mt.PAGE_LAYOUT: "PageLayouts",
    mt.WEB_LINK: "ButtonsLinksActions",
    mt.RECORD_TYPE: "RecordTypes",
    mt.APEX_TRIGGER: "ApexTriggers",
    mt.FIELD_SET: "FieldSets",
    mt.LIGHTNING_PAGE: "LightningPages",
}

_SIMPLE_URLS = {
    mt.VALIDATION_RULE: "/lightning/setup/ObjectManager/page?address=%2F{id}",
    mt.USER: "/lightning/setup/ManageUsers/page?address=%2F{id}%3Fnoredirect%3D1%26isUserEntityOverride%3D1",
    mt.PROFILE: "/lightning/setup/EnhancedProfiles/page?address=%2F{id}",
    mt.PERMISSION_SET: "/lightning/setup/PermSets/page?address=%2F{id}",
    mt.PERMISSION_SET_LICENSE: "/lightning/setup/PermissionSetLicense/page?address=%2F{id}",
    mt.PERMISSION_SET_GROUP: "/lightning/setup/PermSetGroups/page?address=%2F{id}",
    mt.ROLE: "/lightning/setup/Roles/page?address=%2F{id}",
    mt.PUBLIC_GROUP: "/lightning/setup/PublicGroups/page?address=%2Fsetup%2Fown%2Fgroupdetail.jsp%3Fid%3D{id}",
    mt.QUEUE: "/lightning/setup/Queues/page?address=%2Fp%2Fown%2FQueue%2Fd%3Fid%3D{id}",
    mt.TECHNICAL_GROUP: "",
    mt.EMAIL_TEMPLATE: "/lightning/r/EmailTemplate/{id}/view",
    mt.CUSTOM_LABEL: "/lightning/setup/ExternalStrings/page?address=%2F{id}",
    mt.STATIC_RESOURCE: "/lightning/setup/StaticResources/page?address=%2F{id}",
    mt.CUSTOM_SITE: "/servlet/networks/switch?networkId={id}&startURL=%2FcommunitySetup%2FcwApp.app%23%2Fc%2Fhome&",
    mt.CUSTOM_TAB: "/lightning/setup/CustomTabs/page?address=%2F{id}",
    mt.FLOW_VERSION: "/builder_platform_interaction/flowBuilder.app?flowId={id}",
    mt.FLOW_DEFINITION: "/{id}",
    mt.WORKFLOW_RULE: "/lightning/setup/WorkflowRules/page?address=%2F{id}&nodeId=WorkflowRules",
    mt.VISUALFORCE_PAGE: "/lightning/setup/ApexPages/page?address=%2F{id}",
    mt.VISUALFORCE_COMPONENT: "/lightning/setup/ApexComponent/page?address=%2F{id}",
    mt.AURA_WEB_COMPONENT: "/lightning/setup/LightningComponentBundles/page?address=%2F{id}",
    mt.LIGHTNING_WEB_COMPONENT: "/lightning/setup/LightningComponentBundles/page?address=%2F{id}",
    mt.APEX_CLASS: "/lightning/setup/ApexClasses/page?address=%2F{id}",
    mt.KNOWLEDGE_ARTICLE_VERSION: "/{id}",
}

_OBJECT_TYPE_BY_SUFFIX = (
    ("__c", OBJECTTYPE_ID_CUSTOM_SOBJECT),
    ("__x", OBJECTTYPE_ID_CUSTOM_EXTERNAL_SOBJECT),
    ("__mdt", OBJECTTYPE_ID_CUSTOM_METADATA_TYPE),
    ("__e", OBJECTTYPE_ID_CUSTOM_EVENT),
    ("__ka", OBJECTTYPE_ID_KNOWLEDGE_ARTICLE),
    ("__b", OBJECTTYPE_ID_CUSTOM_BIG_OBJECT),
)


def case_safe_id(sfdc_id: str | None) -> str | None:
    """Reduce an 18-character id to its 15-character form."""
    if sfdc_id and len(sfdc_id) == 18:
        return sfdc_id[:15]
    return sfdc_id


def setup_url(
    sfdc_id: str | None,
    metadata_type: str | None,
    parent_id: str | None = None,
    parent_type: str | None = None,
) -> str:
    """Relative setup URL for an item, or "" when there is no id."""
    if not sfdc_id:
        return ""

    if metadata_type in (mt.STANDARD_FIELD, mt.CUSTOM_FIELD, mt.ANY_FIELD):
        if parent_type in _OBJECT_MANAGER_TYPES:
            if parent_id:
                return f"{_OBJECT_MANAGER}{parent_id}/FieldsAndRelationships/{sfdc_id}/view"
            return f"{_OBJECT_MANAGER}page?address=%2F{sfdc_id}"
        if parent_type in _SPECIAL_OBJECT_URLS:
            return _SPECIAL_OBJECT_URLS[parent_type].format(id=sfdc_id)
        return f"{_OBJECT_MANAGER}page?address=%2F{sfdc_id}"

    if metadata_type in _OBJECT_MANAGER_TYPES:
        return f"{_OBJECT_MANAGER}{sfdc_id}/Details/view"
    if metadata_type in _SPECIAL_OBJECT_URLS:
        return _SPECIAL_OBJECT_URLS[metadata_type].format(id=sfdc_id)

    if metadata_type in _OBJECT_COMPONENT_PAGES:
        if parent_id:
            return f"{_OBJECT_MANAGER}{parent_id}/{_OBJECT_COMPONENT_PAGES[metadata_type]}/{sfdc_id}/view"
        return f"{_OBJECT_MANAGER}page?address=%2F{sfdc_id}"

    if metadata_type in _SIMPLE_URLS:
        return _SIMPLE_URLS[metadata_type].format(id=sfdc_id)

    logger.warning(
        "setup_url_type_not_supported",
        type=metadata_type,
        id=sfdc_id,
        parent_id=parent_id,
        parent_type=parent_type,
    )
    return f"/{sfdc_id}"


def get_object_type(api_name: str, is_custom_setting: bool = False) -> str:
    """Object type id derived from the API name suffix."""
    if is_custom_setting is True:
        return OBJECTTYPE_ID_CUSTOM_SETTING
    for suffix, object_type in _OBJECT_TYPE_BY_SUFFIX:
        if api_name.endswith(suffix):
            return object_type
    return OBJECTTYPE_ID_STANDARD_SOBJECT
