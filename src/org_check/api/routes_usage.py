"""Daily API request usage endpoint."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from org_check.api.dependencies import get_sfdc_manager
from org_check.models.schemas import UsageResponse
from org_check.salesforce.manager import SalesforceManager

router = APIRouter()


@router.get("/usage", response_model=UsageResponse)
async def usage(sfdc_manager: SalesforceManager = Depends(get_sfdc_manager)) -> UsageResponse:
    info = sfdc_manager.daily_api_request_limit_information
    return UsageResponse(
        current_usage_ratio=info.current_usage_ratio,
        current_usage_percentage=info.current_usage_percentage,
        yellow_threshold=info.yellow_threshold,
        red_threshold=info.red_threshold,
        zone=info.zone,
    )
