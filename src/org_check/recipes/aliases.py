"""Aliases of the registered recipes."""

CUSTOM_FIELDS = "custom-fields"
APEX_TRIGGERS = "apex-triggers"
PROFILE_PASSWORD_POLICIES = "profile-password-policies"
USER_ROLES = "user-roles"
