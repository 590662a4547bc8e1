"""Typed records produced by the extraction units.

Records are slotted dataclasses: assigning an attribute that is not a declared
field raises, so a record can never silently grow new properties. Scored
records carry `score`, `bad_fields` and `bad_reason_ids`; records that can be
linked through the dependency graph also carry `dependencies`.

Fields whose name ends with `_ref` (or `_refs`) hold in-memory links to other
records. They are filled by recipes and never persisted in the cache.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, ClassVar

from org_check.models.domain import DataDependencies


class EntityType(str, Enum):
    """Kinds of metadata a score rule can apply to."""

    APEX_CLASS = "ApexClass"
    APEX_TRIGGER = "ApexTrigger"
    COLLABORATION_GROUP = "CollaborationGroup"
    CUSTOM_LABEL = "CustomLabel"
    DOCUMENT = "Document"
    FIELD = "Field"
    FIELD_SET = "FieldSet"
    FLOW = "Flow"
    GROUP = "Group"
    HOME_PAGE_COMPONENT = "HomePageComponent"
    LIGHTNING_AURA_COMPONENT = "LightningAuraComponent"
    LIGHTNING_PAGE = "LightningPage"
    LIGHTNING_WEB_COMPONENT = "LightningWebComponent"
    LIMIT = "Limit"
    OBJECT_TYPE = "ObjectType"
    PAGE_LAYOUT = "PageLayout"
    PERMISSION_SET = "PermissionSet"
    PERMISSION_SET_LICENSE = "PermissionSetLicense"
    PROFILE = "Profile"
    PROFILE_PASSWORD_POLICY = "ProfilePasswordPolicy"
    PROFILE_RESTRICTIONS = "ProfileRestrictions"
    RECORD_TYPE = "RecordType"
    USER = "User"
    USER_ROLE = "UserRole"
    VALIDATION_RULE = "ValidationRule"
    VISUALFORCE_COMPONENT = "VisualForceComponent"
    VISUALFORCE_PAGE = "VisualForcePage"
    WEB_LINK = "WebLink"
    WORKFLOW = "Workflow"


# Object type ids share their values with the setup metadata type names
OBJECTTYPE_ID_STANDARD_SOBJECT = "StandardEntity"
OBJECTTYPE_ID_CUSTOM_SOBJECT = "CustomObject"
OBJECTTYPE_ID_CUSTOM_EXTERNAL_SOBJECT = "ExternalObject"
OBJECTTYPE_ID_CUSTOM_SETTING = "CustomSetting"
OBJECTTYPE_ID_CUSTOM_METADATA_TYPE = "CustomMetadataType"
OBJECTTYPE_ID_CUSTOM_EVENT = "CustomEvent"
OBJECTTYPE_ID_KNOWLEDGE_ARTICLE = "KnowledgeArticle"
OBJECTTYPE_ID_CUSTOM_BIG_OBJECT = "CustomBigObject"


@dataclass(slots=True)
class Data:
    """Base of every scored record."""

    ENTITY_TYPE: ClassVar[EntityType]
    LABEL: ClassVar[str] = ""

    score: int = 0
    bad_fields: list[str] = field(default_factory=list)
    bad_reason_ids: list[int] = field(default_factory=list)


@dataclass(slots=True)
class DataWithDependencies(Data):
    dependencies: DataDependencies | None = None


@dataclass(slots=True)
class DataWithoutScoring:
    ENTITY_TYPE: ClassVar[EntityType]
    LABEL: ClassVar[str] = ""


@dataclass(slots=True)
class Field(DataWithDependencies):
    ENTITY_TYPE: ClassVar[EntityType] = EntityType.FIELD
    LABEL: ClassVar[str] = "Standard or Custom Field"

    id: str | None = None
    url: str | None = None
    name: str | None = None
    label: str | None = None
    package: str | None = None
    description: str | None = None
    created_date: str | None = None
    last_modified_date: str | None = None
    object_id: str | None = None
    object_type_id: str | None = None
    object_type_ref: ObjectType | None = None
    is_custom: bool | None = None
    tooltip: str | None = None
    type: str | None = None
    length: int | None = None
    is_unique: bool | None = None
    is_encrypted: bool | None = None
    is_external_id: bool | None = None
    is_indexed: bool | None = None
    default_value: str | None = None
    is_restricted_picklist: bool | None = None
    formula: str | None = None
    hard_coded_urls: list[str] | None = None
    hard_coded_ids: list[str] | None = None


@dataclass(slots=True)
class ApexTrigger(Data):
    ENTITY_TYPE: ClassVar[EntityType] = EntityType.APEX_TRIGGER
    LABEL: ClassVar[str] = "Apex Trigger"

    id: str | None = None
    name: str | None = None
    url: str | None = None
    api_version: float | None = None
    package: str | None = None
    length: int | None = None
    is_active: bool | None = None
    before_insert: bool | None = None
    after_insert: bool | None = None
    before_update: bool | None = None
    after_update: bool | None = None
    before_delete: bool | None = None
    after_delete: bool | None = None
    after_undelete: bool | None = None
    object_id: str | None = None
    object_ref: Any = None
    has_soql: bool | None = None
    has_dml: bool | None = None
    hard_coded_urls: list[str] | None = None
    hard_coded_ids: list[str] | None = None
    created_date: str | None = None
    last_modified_date: str | None = None


@dataclass(slots=True)
class ProfilePasswordPolicy(Data):
    ENTITY_TYPE: ClassVar[EntityType] = EntityType.PROFILE_PASSWORD_POLICY
    LABEL: ClassVar[str] = "Password Policy from a Profile"

    lockout_interval: int | None = None
    max_login_attempts: int | None = None
    minimum_password_length: int | None = None
    minimum_password_lifetime: bool | None = None
    obscure: bool | None = None
    password_complexity: int | None = None
    password_expiration: int | None = None
    password_history: int | None = None
    password_question: bool | None = None
    profile_name: str | None = None
    forgot_password_redirect: bool | None = None


@dataclass(slots=True)
class UserRole(Data):
    ENTITY_TYPE: ClassVar[EntityType] = EntityType.USER_ROLE
    LABEL: ClassVar[str] = "Role"

    id: str | None = None
    name: str | None = None
    apiname: str | None = None
    url: str | None = None
    parent_id: str | None = None
    parent_ref: UserRole | None = None
    level: int | None = None
    has_parent: bool | None = None
    active_members_count: int | None = None
    active_member_ids: list[str] | None = None
    active_member_refs: list[Any] | None = None
    has_active_members: bool | None = None
    inactive_members_count: int | None = None
    has_inactive_members: bool | None = None
    is_external: bool | None = None


@dataclass(slots=True)
class ObjectType(DataWithoutScoring):
    ENTITY_TYPE: ClassVar[EntityType] = EntityType.OBJECT_TYPE
    LABEL: ClassVar[str] = "Object Type"

    id: str | None = None
    label: str | None = None


ENTITY_CLASSES: tuple[type, ...] = (Field, ApexTrigger, ProfilePasswordPolicy, UserRole, ObjectType)
