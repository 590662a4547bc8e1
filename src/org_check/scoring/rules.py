"""Versioned table of score rules.

Rule ids are hard coded and never reused: new rules are appended at the end
with the next id, retired rules keep their slot.
"""

from __future__ import annotations

import math
from collections.abc import Callable
from dataclasses import dataclass
from datetime import date
from typing import Any

from org_check.models.entities import EntityType as T


def current_api_version(today: date) -> int:
    """Latest API version an org can handle on the given date (three releases a year)."""
    month = today.month
    if month <= 2:
        release = 0
    elif month <= 6:
        release = 1
    elif month <= 10:
        release = 2
    else:
        release = 3
    return 3 * (today.year - 2022) + 53 + release


CURRENT_API_VERSION = current_api_version(date.today())


def is_old_api_version(current_version: Any, version: Any, definition_of_old: int = 3) -> bool:
    """True when `version` is at least `definition_of_old` years behind."""
    if version and current_version and definition_of_old:
        return ((current_version - version) / 3) >= definition_of_old
    return False


def is_empty(value: Any) -> bool:
    if isinstance(value, (int, float)) and not isinstance(value, bool) and value == 0:
        return False
    if not value:
        return True
    if hasattr(value, "__len__") and len(value) == 0:
        return True
    if isinstance(value, str) and not value.strip():
        return True
    return False


@dataclass(frozen=True)
class ScoreRule:
    id: int
    description: str
    predicate: Callable[[Any], bool]
    bad_field: str
    error_message: str
    applicable_types: frozenset[T]


def _unreferenced(d: Any) -> bool:
    deps = d.dependencies
    return deps is not None and deps.had_error is False and is_empty(deps.referenced)


def _dependency_error(d: Any) -> bool:
    return d.dependencies is not None and d.dependencies.had_error is True


def _has_items(value: Any) -> bool:
    return bool(value) and len(value) > 0


def _gt(value: Any, limit: float) -> bool:
    return value is not None and value > limit


def _lt(value: Any, limit: float) -> bool:
    return value is not None and value < limit


_DEPENDENCY_TYPES = frozenset({
    T.FIELD, T.APEX_CLASS, T.CUSTOM_LABEL, T.FLOW, T.LIGHTNING_PAGE,
    T.LIGHTNING_AURA_COMPONENT, T.LIGHTNING_WEB_COMPONENT,
    T.VISUALFORCE_COMPONENT, T.VISUALFORCE_PAGE,
})

_HARD_CODED_TYPES = frozenset({
    T.APEX_CLASS, T.APEX_TRIGGER, T.COLLABORATION_GROUP, T.FIELD,
    T.HOME_PAGE_COMPONENT, T.VISUALFORCE_COMPONENT, T.VISUALFORCE_PAGE, T.WEB_LINK,
})


def _rule(id, description, predicate, bad_field, error_message, applicable) -> ScoreRule:
    return ScoreRule(id, description, predicate, bad_field, error_message, frozenset(applicable))


ALL_SCORE_RULES: tuple[ScoreRule, ...] = (
    _rule(
        0, "Not referenced anywhere",
        _unreferenced,
        "dependencies.referenced.length",
        "This component is not referenced anywhere (as we were told by the Dependency API). "
        "Please review the need to keep it in your org.",
        [T.CUSTOM_LABEL, T.FLOW, T.LIGHTNING_PAGE, T.LIGHTNING_AURA_COMPONENT,
         T.LIGHTNING_WEB_COMPONENT, T.VISUALFORCE_COMPONENT, T.VISUALFORCE_PAGE],
    ),
    _rule(
        1, "No reference anywhere for custom field",
        lambda d: d.is_custom is True and _unreferenced(d),
        "dependencies.referenced.length",
        "This custom field is not referenced anywhere (as we were told by the Dependency API). "
        "Please review the need to keep it in your org.",
        [T.FIELD],
    ),
    _rule(
        2, "No reference anywhere for apex class",
        lambda d: d.is_test is False and _unreferenced(d),
        "dependencies.referenced.length",
        "This apex class is not referenced anywhere (as we were told by the Dependency API). "
        "Please review the need to keep it in your org.",
        [T.APEX_CLASS],
    ),
    _rule(
        3, "Sorry, we had an issue with the Dependency API to gather the dependencies of this item",
        _dependency_error,
        "dependencies.referenced.length",
        "Sorry, we had an issue with the Dependency API to gather the dependencies of this item.",
        _DEPENDENCY_TYPES,
    ),
    _rule(
        4, "API Version too old",
        lambda d: is_old_api_version(CURRENT_API_VERSION, d.api_version),
        "api_version",
        "The API version of this component is too old. Please update it to a newest version.",
        [T.APEX_CLASS, T.APEX_TRIGGER, T.FLOW, T.LIGHTNING_AURA_COMPONENT,
         T.LIGHTNING_WEB_COMPONENT, T.VISUALFORCE_PAGE, T.VISUALFORCE_COMPONENT],
    ),
    _rule(
        5, "No assert in this Apex Test",
        lambda d: d.is_test is True and d.nb_system_asserts == 0,
        "nb_system_asserts",
        "This apex test does not contain any assert! "
        "Best practices force you to define asserts in tests.",
        [T.APEX_CLASS],
    ),
    _rule(
        6, "No description",
        lambda d: is_empty(d.description),
        "description",
        "This component does not have a description. Best practices force you to use the "
        "Description field to give some informative context about why and how it is used/set/govern.",
        [T.FLOW, T.LIGHTNING_PAGE, T.LIGHTNING_AURA_COMPONENT, T.LIGHTNING_WEB_COMPONENT,
         T.VISUALFORCE_PAGE, T.VISUALFORCE_COMPONENT, T.WORKFLOW, T.WEB_LINK, T.FIELD_SET,
         T.VALIDATION_RULE, T.DOCUMENT],
    ),
    _rule(
        7, "No description for custom component",
        lambda d: d.is_custom is True and is_empty(d.description),
        "description",
        "This custom component does not have a description. Best practices force you to use the "
        "Description field to give some informative context about why and how it is used/set/govern.",
        [T.FIELD, T.PERMISSION_SET, T.PROFILE],
    ),
    _rule(
        8, "No explicit sharing in apex class",
        lambda d: d.is_test is False and d.is_class is True and not d.specified_sharing,
        "specified_sharing",
        "This Apex Class does not specify a sharing model. Best practices force you to specify "
        "with, without or inherit sharing to better control the visibility of the data you "
        "process in Apex.",
        [T.APEX_CLASS],
    ),
    _rule(
        9, "Schedulable should be scheduled",
        lambda d: d.is_scheduled is False and d.is_schedulable is True,
        "is_scheduled",
        "This Apex Class implements Schedulable but is not scheduled. What is the point? "
        "Is this class still necessary?",
        [T.APEX_CLASS],
    ),
    _rule(
        10, "Not able to compile class",
        lambda d: d.needs_recompilation is True,
        "name",
        "This Apex Class can not be compiled for some reason. You should try to recompile it. "
        "If the issue remains you need to consider refactorying this class or the classes that "
        "it is using.",
        [T.APEX_CLASS],
    ),
    _rule(
        11, "No coverage for this class",
        lambda d: d.is_test is False and (
            not d.coverage or (isinstance(d.coverage, float) and math.isnan(d.coverage))
        ),
        "coverage",
        "This Apex Class does not have any code coverage. Consider launching the corresponding "
        "tests that will bring some coverage. If you do not know which test to launch just run "
        "them all!",
        [T.APEX_CLASS],
    ),
    _rule(
        12, "Coverage not enough",
        lambda d: _gt(d.coverage, 0) and d.coverage < 0.75,
        "coverage",
        "This Apex Class does not have enough code coverage (less than 75% of lines are covered "
        "by successful unit tests). Maybe you ran not all the unit tests to cover this class "
        "entirely? If you did, then consider augmenting that coverage with new test methods.",
        [T.APEX_CLASS],
    ),
    _rule(
        13, "At least one testing method failed",
        lambda d: d.is_test is True and _has_items(d.test_failed_methods),
        "test_failed_methods",
        "This Apex Test Class has at least one failed method.",
        [T.APEX_CLASS],
    ),
    _rule(
        14, "Apex trigger should not contain SOQL statement",
        lambda d: d.has_soql is True,
        "has_soql",
        "This Apex Trigger contains at least one SOQL statement. Best practices force you to "
        "move any SOQL statement in dedicated Apex Classes that you would call from the trigger. "
        "Please update the code accordingly.",
        [T.APEX_TRIGGER],
    ),
    _rule(
        15, "Apex trigger should not contain DML action",
        lambda d: d.has_dml is True,
        "has_dml",
        "This Apex Trigger contains at least one DML action. Best practices force you to move "
        "any DML action in dedicated Apex Classes that you would call from the trigger. "
        "Please update the code accordingly.",
        [T.APEX_TRIGGER],
    ),
    _rule(
        16, "Apex Trigger should not contain logic",
        lambda d: _gt(d.length, 5000),
        "length",
        "Due to the massive number of source code (more than 5000 characters) in this Apex "
        "Trigger, we suspect that it contains logic. Best practices force you to move any logic "
        "in dedicated Apex Classes that you would call from the trigger. "
        "Please update the code accordingly.",
        [T.APEX_TRIGGER],
    ),
    _rule(
        17, "No direct member for this group",
        lambda d: not d.nb_direct_members,
        "nb_direct_members",
        "This public group (or queue) does not contain any direct members (users or sub groups). "
        "Is it empty on purpose? Maybe you should review its use in your org...",
        [T.GROUP],
    ),
    _rule(
        18, "Custom permset or profile with no member",
        lambda d: d.is_custom is True and d.member_counts == 0,
        "member_counts",
        "This custom permission set (or custom profile) has no members. Is it empty on purpose? "
        "Maybe you should review its use in your org...",
        [T.PERMISSION_SET, T.PROFILE],
    ),
    _rule(
        19, "Role with no active users",
        lambda d: d.active_members_count == 0,
        "active_members_count",
        "This role has no active users assigned to it. Is it on purpose? "
        "Maybe you should review its use in your org...",
        [T.USER_ROLE],
    ),
    _rule(
        20, "Active user not under LEX",
        lambda d: d.on_lightning_experience is False,
        "on_lightning_experience",
        "This user is still using Classic. Time to switch to Lightning for all your users, "
        "don't you think?",
        [T.USER],
    ),
    _rule(
        21, "Active user never logged",
        lambda d: d.last_login is None,
        "last_login",
        "This active user never logged yet. Time to optimize your licence cost!",
        [T.USER],
    ),
    _rule(
        22, "Workflow with no action",
        lambda d: d.has_action is False,
        "has_action",
        "This workflow has no action, please review it and potentially remove it.",
        [T.WORKFLOW],
    ),
    _rule(
        23, "Workflow with empty time triggered list",
        lambda d: _has_items(d.empty_time_triggers),
        "empty_time_triggers",
        "This workflow is time triggered but with no time triggered action, please review it.",
        [T.WORKFLOW],
    ),
    _rule(
        24, "Password policy with question containing password!",
        lambda d: d.password_question is True,
        "password_question",
        "This profile password policy allows to have password in the question! Please change "
        "that setting as it is clearly a lack of security in your org!",
        [T.PROFILE_PASSWORD_POLICY],
    ),
    _rule(
        25, "Password policy with too big expiration",
        lambda d: _gt(d.password_expiration, 90),
        "password_expiration",
        "This profile password policy allows to have password that expires after 90 days. "
        "Please consider having a shorter period of time for expiration if you policy.",
        [T.PROFILE_PASSWORD_POLICY],
    ),
    _rule(
        26, "Password policy with no expiration",
        lambda d: d.password_expiration == 0,
        "password_expiration",
        "This profile password policy allows to have password that never expires. Why is that? "
        "Do you have this profile for technical users? Please reconsider this setting and use "
        "JWT authentication instead for technical users.",
        [T.PROFILE_PASSWORD_POLICY],
    ),
    _rule(
        27, "Password history too small",
        lambda d: _lt(d.password_history, 3),
        "password_history",
        "This profile password policy allows users to set their password with a too-short "
        "memory. For example, they can keep on using the same different password everytime you "
        "ask them to change it. Please increase this setting.",
        [T.PROFILE_PASSWORD_POLICY],
    ),
    _rule(
        28, "Password minimum size too small",
        lambda d: _lt(d.minimum_password_length, 8),
        "minimum_password_length",
        "This profile password policy allows users to set passwords with less than 8 charcaters. "
        "That minimum length is not strong enough. Please increase this setting.",
        [T.PROFILE_PASSWORD_POLICY],
    ),
    _rule(
        29, "Password complexity too weak",
        lambda d: _lt(d.password_complexity, 3),
        "password_complexity",
        "This profile password policy allows users to set too-easy passwords. The complexity "
        "you choose is not storng enough. Please increase this setting.",
        [T.PROFILE_PASSWORD_POLICY],
    ),
    _rule(
        30, "No max login attempts set",
        lambda d: d.max_login_attempts is None,
        "max_login_attempts",
        "This profile password policy allows users to try infinitely to log in without locking "
        "the access. Please review this setting.",
        [T.PROFILE_PASSWORD_POLICY],
    ),
    _rule(
        31, "No lockout period set",
        lambda d: d.lockout_interval is None,
        "lockout_interval",
        "This profile password policy does not set a value for any locked out period. "
        "Please review this setting.",
        [T.PROFILE_PASSWORD_POLICY],
    ),
    _rule(
        32, "IP Range too large",
        lambda d: any(i["difference"] > 100000 for i in d.ip_ranges),
        "ip_ranges",
        "This profile includes an IP range that is to wide (more than 100.000 IP addresses!). "
        "If you set an IP Range it should be not that large. You could split that range into "
        "multiple ones. The risk is that you include an IP that is not part of your company. "
        "Please review this setting.",
        [T.PROFILE_RESTRICTIONS],
    ),
    _rule(
        33, "Login hours too large",
        lambda d: any(i["difference"] > 1200 for i in d.login_hours),
        "login_hours",
        "This profile includes a login hour that is to wide (more than 20 hours a day!). If you "
        "set a login hour it should reflect the reality. Please review this setting.",
        [T.PROFILE_RESTRICTIONS],
    ),
    _rule(
        34, "Inactive component",
        lambda d: d.is_active is False,
        "is_active",
        "This component is inactive, so why do not you just remove it from your org?",
        [T.VALIDATION_RULE, T.RECORD_TYPE, T.APEX_TRIGGER, T.WORKFLOW],
    ),
    _rule(
        35, "No active version for this flow",
        lambda d: d.is_version_active is False,
        "is_version_active",
        "This flow does not have an active version, did you forgot to activate its latest "
        "version? or you do not need that flow anymore?",
        [T.FLOW],
    ),
    _rule(
        36, "Too many versions under this flow",
        lambda d: _gt(d.versions_count, 7),
        "versions_count",
        "This flow has more than seven versions. Maybe it is time to do some cleaning in this flow!",
        [T.FLOW],
    ),
    _rule(
        37, "Migrate this process builder",
        lambda d: d.current_version_ref is not None and d.current_version_ref.type == "Workflow",
        "name",
        "Time to migrate this process builder to flow!",
        [T.FLOW],
    ),
    _rule(
        38, "No description for the current version of a flow",
        lambda d: is_empty(d.current_version_ref.description if d.current_version_ref else None),
        "current_version_ref.description",
        "This flow's current version does not have a description. Best practices force you to "
        "use the Description field to give some informative context about why and how it is "
        "used/set/govern.",
        [T.FLOW],
    ),
    _rule(
        39, "API Version too old for the current version of a flow",
        lambda d: is_old_api_version(
            CURRENT_API_VERSION,
            d.current_version_ref.api_version if d.current_version_ref else None,
        ),
        "current_version_ref.api_version",
        "The API version of this flow's current version is too old. "
        "Please update it to a newest version.",
        [T.FLOW],
    ),
    _rule(
        40, "This flow is running without sharing",
        lambda d: d.current_version_ref is not None
        and d.current_version_ref.running_mode == "SystemModeWithoutSharing",
        "current_version_ref.running_mode",
        "The running mode of this version without sharing. With great power comes great "
        "responsabilities. Please check if this is REALLY needed.",
        [T.FLOW],
    ),
    _rule(
        41, "Too many nodes in this version",
        lambda d: d.current_version_ref is not None
        and _gt(d.current_version_ref.total_node_count, 100),
        "current_version_ref.total_node_count",
        "There are more than one hundred of nodes in this flow. Please consider using Apex? "
        "or cut it into multiple sub flows?",
        [T.FLOW],
    ),
    _rule(
        42, "Near the limit",
        lambda d: d.used_percentage >= 0.80,
        "used_percentage",
        "This limit is almost reached (>80%). Please review this.",
        [T.LIMIT],
    ),
    _rule(
        43, "Almost all licenses are used",
        lambda d: d.used_percentage is not None and d.used_percentage >= 0.80,
        "used_percentage",
        "The number of seats for this license is almost reached (>80%). Please review this.",
        [T.PERMISSION_SET_LICENSE],
    ),
    _rule(
        44, "You could have licenses to free up",
        lambda d: _gt(d.remaining_count, 0) and d.distinct_active_assignee_count != d.used_count,
        "distinct_active_assignee_count",
        "The Used count from that permission set license does not match the number of disctinct "
        "active user assigned to the same license. Please check if you could free up some licenses!",
        [T.PERMISSION_SET_LICENSE],
    ),
    _rule(
        45, "Role with a level >= 7",
        lambda d: d.level is not None and d.level >= 7,
        "level",
        "This role has a level in the Role Hierarchy which is seven or greater. Please reduce "
        "the maximum depth of the role hierarchy. Having that much levels has an impact on "
        "performance...",
        [T.USER_ROLE],
    ),
    _rule(
        46, "Hard-coded URL suspicion in this item",
        lambda d: _has_items(d.hard_coded_urls),
        "hard_coded_urls",
        "The source code of this item contains one or more hard coded URLs pointing to domains "
        "like salesforce.com or force.*",
        _HARD_CODED_TYPES,
    ),
    _rule(
        47, "Hard-coded Salesforce IDs suspicion in this item",
        lambda d: _has_items(d.hard_coded_ids),
        "hard_coded_ids",
        "The source code of this item contains one or more hard coded Salesforce IDs",
        _HARD_CODED_TYPES,
    ),
    _rule(
        48, "At least one successful testing method was very long",
        lambda d: d.is_test is True and _has_items(d.test_passed_but_long_methods),
        "test_passed_but_long_methods",
        "This Apex Test Class has at least one successful method which took more than 20 "
        "secondes to execute",
        [T.APEX_CLASS],
    ),
    _rule(
        49, "Page layout should be assigned to at least one Profile",
        lambda d: d.profile_assignment_count == 0,
        "profile_assignment_count",
        "This Page Layout is not assigned to any Profile. Please review this page layout and "
        "assign it to at least one profile.",
        [T.PAGE_LAYOUT],
    ),
    _rule(
        50, "Hard-coded URL suspicion in this document",
        lambda d: d.is_hard_coded_url is True,
        "document_url",
        "The URL of this document contains a hard coded URL pointing to domains like "
        "salesforce.com or force.*",
        [T.DOCUMENT],
    ),
    _rule(
        51, "Unassigned Record Type",
        lambda d: d.is_default is False and d.is_available is False,
        "is_default",
        "This record type is not set as default nor as visible in any profile in this org. "
        "Please review this record type and remove it if it is not needed anymore.",
        [T.RECORD_TYPE],
    ),
)
