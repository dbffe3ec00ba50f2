#!/usr/bin/env python3
"""
Recommendation endpoints - run the pipeline, save candidates, form metadata.
"""

import logging
from typing import Any, Dict

from fastapi import APIRouter, Body, Depends
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse

from core.app_context import AppContext
from core.orchestrator import RecommendationOrchestrator
from ..dependencies import get_app_context, get_orchestrator
from ..exceptions import failure_response
from ..models.responses import (
    FAILURE_RESPONSES,
    DropdownOptionsResponse,
    RecommendationResponse,
    SaveUserResponse,
)
from ..services.integration_service import fetch_dropdown_options

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["recommendations"])


@router.get("/dropdown-options", response_model=DropdownOptionsResponse, responses=FAILURE_RESPONSES)
async def get_dropdown_options(context: AppContext = Depends(get_app_context)):
    """
    Get option lists for the candidate form (sectors, skills, ...).
    """
    try:
        dropdowns = await fetch_dropdown_options(context)
    except Exception as e:
        logger.error(f"Dropdown fetch error: {e!r}")
        return failure_response(e, "Failed to fetch dropdowns", context.config.expose_error_details)

    return JSONResponse(content=jsonable_encoder({"success": True, "dropdowns": dropdowns}))


@router.post("/recommend", response_model=RecommendationResponse, responses=FAILURE_RESPONSES)
async def recommend(
    candidate: Dict[str, Any] = Body(..., description="Candidate attributes under their mapped field names"),
    orchestrator: RecommendationOrchestrator = Depends(get_orchestrator)
):
    """
    Run the recommendation pipeline for a candidate.

    The pipeline will:
    - Validate required fields (name, sector)
    - Save the candidate
    - Fetch careers for the candidate's sector
    - Ask the AI service for recommendations (with timeout and retry)
    - Save the recommendations against the candidate

    On failure the response still carries the candidate id when the
    candidate was saved before the failing step.
    """
    outcome = await orchestrator.recommend(candidate)
    return JSONResponse(status_code=outcome.status_code, content=jsonable_encoder(outcome.to_response()))


@router.post("/save-user", response_model=SaveUserResponse, responses=FAILURE_RESPONSES)
async def save_user(
    candidate: Dict[str, Any] = Body(..., description="Candidate attributes under their mapped field names"),
    orchestrator: RecommendationOrchestrator = Depends(get_orchestrator)
):
    """
    Validate and save a candidate without requesting recommendations.
    """
    outcome = await orchestrator.save_candidate(candidate)
    return JSONResponse(status_code=outcome.status_code, content=jsonable_encoder(outcome.to_response()))
