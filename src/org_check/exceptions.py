"""Custom exception hierarchy for Org Check."""

from __future__ import annotations

from typing import Any


class OrgCheckError(Exception):
    """Base exception for all Org Check errors."""


class SalesforceError(OrgCheckError):
    """Error returned by (or raised while calling) the Salesforce APIs.

    `context` is filled by the API access layer with a `when` / `what` pair
    describing the operation and the payload that failed.
    """

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        context: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.error_code = error_code
        self.context = context

    def with_context(self, when: str, what: Any) -> SalesforceError:
        self.context = {"when": when, "what": what}
        return self


class QuotaExceededError(SalesforceError):
    """The daily API request limit is in the red zone; no more calls allowed."""

    def __init__(self, usage_ratio: float, usage_percentage: str, threshold: float) -> None:
        super().__init__(
            "The Daily API Request limit has been reached. We cannot continue.",
            error_code="WATCH_DOG",
        )
        self.usage_ratio = usage_ratio
        self.usage_percentage = usage_percentage
        self.threshold = threshold


class DatasetRunError(OrgCheckError):
    """An extraction unit failed; carries the alias of the failing dataset."""

    def __init__(self, dataset: str, cause: BaseException) -> None:
        super().__init__(f"Dataset '{dataset}' failed: {cause}")
        self.dataset = dataset
        self.cause = cause


class RecipeError(OrgCheckError):
    """Error while extracting or transforming a recipe."""


class UnknownPropertyError(OrgCheckError, TypeError):
    """A record was built with a property its entity type does not declare."""


class ConfigurationError(OrgCheckError):
    """Error in system configuration."""


class InvalidParameterError(OrgCheckError, ValueError):
    """A global parameter value is not acceptable (e.g. not an API name)."""
