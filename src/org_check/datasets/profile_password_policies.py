"""Password policies attached to profiles, read through the Metadata API."""

from __future__ import annotations

from typing import Any

from structlog.typing import FilteringBoundLogger

from org_check.factory.data_factory import DataFactory
from org_check.models.domain import MetadataRequest
from org_check.models.entities import ProfilePasswordPolicy
from org_check.salesforce.manager import SalesforceManager

METADATA_TYPE = "ProfilePasswordPolicy"


def _to_int(value: Any) -> int | None:
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def _to_bool(value: Any) -> bool:
    return value is True or value == "true"


class ProfilePasswordPoliciesDataset:
    async def run(
        self,
        sfdc_manager: SalesforceManager,
        data_factory: DataFactory,
        logger: FilteringBoundLogger,
        parameters: dict[str, Any],
    ) -> dict[str, ProfilePasswordPolicy]:
        results = await sfdc_manager.read_metadata(
            [MetadataRequest(type=METADATA_TYPE, members=["*"])], logger
        )
        factory = data_factory.get_instance(ProfilePasswordPolicy)

        policies: dict[str, ProfilePasswordPolicy] = {}
        for item in results.get(METADATA_TYPE) or []:
            # Policies of deleted profiles come back with a nil or empty profile
            profile = item.get("profile")
            if not isinstance(profile, str) or profile == "":
                continue
            policy = factory.create_with_score(
                {
                    "forgot_password_redirect": _to_bool(item.get("forgotPasswordRedirect")),
                    "lockout_interval": _to_int(item.get("lockoutInterval")),
                    "max_login_attempts": _to_int(item.get("maxLoginAttempts")),
                    "minimum_password_length": _to_int(item.get("minimumPasswordLength")),
                    "minimum_password_lifetime": _to_bool(item.get("minimumPasswordLifetime")),
                    "obscure": _to_bool(item.get("obscure")),
                    "password_complexity": _to_int(item.get("passwordComplexity")),
                    "password_expiration": _to_int(item.get("passwordExpiration")),
                    "password_history": _to_int(item.get("passwordHistory")),
                    "password_question": item.get("passwordQuestion") == "1",
                    "profile_name": profile,
                }
            )
            policies[policy.profile_name] = policy

        logger.info("profile_password_policies_parsed", policies=len(policies))
        return policies
