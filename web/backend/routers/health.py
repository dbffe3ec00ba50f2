#!/usr/bin/env python3
"""
Health endpoints - liveness of the service and its collaborators.
"""

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from core.app_context import AppContext
from ..dependencies import get_app_context
from ..models.responses import HealthResponse, IntegrationReportResponse
from ..services.integration_service import build_health_report, build_integration_report

router = APIRouter(tags=["health"])


@router.get("/health", response_model=HealthResponse, responses={503: {"model": HealthResponse}})
async def health_check(context: AppContext = Depends(get_app_context)):
    """
    Health check endpoint.

    Reports "degraded" with status 503 when storage is missing operations
    or unreachable, or when the AI service liveness probe fails.
    """
    report, status_code = await build_health_report(context)
    return JSONResponse(status_code=status_code, content=report)


@router.get("/api/test-integration", response_model=IntegrationReportResponse)
def test_integration(context: AppContext = Depends(get_app_context)):
    """
    Show which storage operations are bound and the active field mappings.
    """
    return build_integration_report(context)
