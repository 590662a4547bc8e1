"""Daily API request watchdog: refuses new calls once usage is in the red zone."""

from __future__ import annotations

import time
from collections.abc import Callable
from dataclasses import dataclass

from org_check.exceptions import QuotaExceededError
from org_check.observability.logger import get_logger

logger = get_logger("watchdog")

DAILY_API_REQUEST_WARNING_THRESHOLD = 0.70
DAILY_API_REQUEST_FATAL_THRESHOLD = 0.90
LIMIT_INFO_FRESHNESS_SECONDS = 60

ApiLimitExtractor = Callable[[], "tuple[int, int] | None"]


@dataclass
class SalesforceUsageInformation:
    """Last known ratio (not percentage) of the daily API request limit."""

    current_usage_ratio: float = 0.0
    yellow_threshold: float = DAILY_API_REQUEST_WARNING_THRESHOLD
    red_threshold: float = DAILY_API_REQUEST_FATAL_THRESHOLD

    @property
    def current_usage_percentage(self) -> str:
        return f"{self.current_usage_ratio * 100:.2f}"

    @property
    def is_green_zone(self) -> bool:
        return self.current_usage_ratio < self.yellow_threshold

    @property
    def is_yellow_zone(self) -> bool:
        return self.yellow_threshold <= self.current_usage_ratio < self.red_threshold

    @property
    def is_red_zone(self) -> bool:
        return self.current_usage_ratio >= self.red_threshold

    @property
    def zone(self) -> str:
        if self.is_red_zone:
            return "red"
        if self.is_yellow_zone:
            return "yellow"
        return "green"


class SalesforceWatchDog:
    """Gates every Salesforce call on the last observed daily API usage.

    `api_limit_extractor` returns `(used, max)` as reported by the platform on
    the last response, or None when nothing has been reported yet.
    """

    def __init__(
        self,
        api_limit_extractor: ApiLimitExtractor,
        warning_threshold: float = DAILY_API_REQUEST_WARNING_THRESHOLD,
        fatal_threshold: float = DAILY_API_REQUEST_FATAL_THRESHOLD,
        freshness_seconds: float = LIMIT_INFO_FRESHNESS_SECONDS,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._api_limit_extractor = api_limit_extractor
        self._freshness_seconds = freshness_seconds
        self._clock = clock
        self._last_request_to_salesforce: float | None = None
        self._last_api_usage = SalesforceUsageInformation(
            yellow_threshold=warning_threshold,
            red_threshold=fatal_threshold,
        )

    @property
    def daily_api_request_limit_information(self) -> SalesforceUsageInformation:
        return self._last_api_usage

    def before_request(self) -> None:
        """Raise QuotaExceededError if the last fresh measurement is red-zone."""
        last = self._last_request_to_salesforce
        if (
            last is not None
            and self._clock() - last <= self._freshness_seconds
            and self._last_api_usage.is_red_zone
        ):
            usage = self._last_api_usage
            logger.error(
                "daily_api_limit_reached",
                usage_percentage=usage.current_usage_percentage,
                threshold=usage.red_threshold,
            )
            raise QuotaExceededError(
                usage_ratio=usage.current_usage_ratio,
                usage_percentage=usage.current_usage_percentage,
                threshold=usage.red_threshold,
            )

    def after_request(self) -> None:
        """Refresh usage from the last response, then re-check the limit."""
        api_usage = self._api_limit_extractor()
        if not api_usage:
            return
        used, maximum = api_usage
        if not maximum:
            return
        self._last_api_usage.current_usage_ratio = used / maximum
        self._last_request_to_salesforce = self._clock()
        if self._last_api_usage.is_yellow_zone:
            logger.warning(
                "daily_api_limit_warning",
                usage_percentage=self._last_api_usage.current_usage_percentage,
            )
        self.before_request()
