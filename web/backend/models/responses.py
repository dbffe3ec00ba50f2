#!/usr/bin/env python3
"""
Response models for API endpoints.

Field names follow the JSON contract consumed by the frontend (camelCase).
"""

from pydantic import BaseModel, ConfigDict, Field
from typing import Any, Dict, List, Optional


class RecommendationMetadata(BaseModel):
    """Counts describing one pipeline run."""
    careersAnalyzed: int = Field(ge=0)
    recommendationsGenerated: int = Field(ge=0)


class RecommendationResponse(BaseModel):
    """Successful recommendation pipeline response."""
    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "success": True,
                "candidateId": "c1",
                "recommendations": [{"title": "Engineer", "score": 0.9}],
                "processingTime": 412,
                "metadata": {"careersAnalyzed": 1, "recommendationsGenerated": 1}
            }
        }
    )

    success: bool
    candidateId: Any
    recommendations: List[Any]
    processingTime: int = Field(ge=0, description="Milliseconds spent in the pipeline")
    metadata: RecommendationMetadata


class FailureResponse(BaseModel):
    """Classified failure of a pipeline or collaborator call."""
    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "success": False,
                "error": "AI recommendation failed",
                "type": "ConnectionRefused",
                "candidateId": "c1",
                "processingTime": 2051
            }
        }
    )

    success: bool = False
    error: str
    type: str = Field(description="Validation, Timeout, ConnectionRefused, ContractViolation or Unknown")
    candidateId: Optional[Any] = None
    processingTime: Optional[int] = None
    details: Optional[Any] = None


class SaveUserResponse(BaseModel):
    """Response after saving a candidate without scoring."""
    success: bool
    id: Any


class DropdownOptionsResponse(BaseModel):
    """Form metadata options."""
    success: bool
    dropdowns: Dict[str, List[Any]]


class HealthResponse(BaseModel):
    """Service health including collaborator reachability."""
    status: str = Field(description="ok or degraded")
    timestamp: str
    services: Dict[str, str]
    fieldMappings: Dict[str, Dict[str, str]]


class DatabaseIntegration(BaseModel):
    """Storage collaborator introspection."""
    loaded: bool
    backend: Optional[str] = None
    methods: Dict[str, bool] = Field(default_factory=dict)


class IntegrationTests(BaseModel):
    database: DatabaseIntegration
    fieldMappings: Dict[str, Dict[str, str]]


class IntegrationReportResponse(BaseModel):
    """Response of the integration self-test endpoint."""
    tests: IntegrationTests


FAILURE_RESPONSES = {
    400: {"model": FailureResponse, "description": "Candidate validation failed"},
    408: {"model": FailureResponse, "description": "A collaborator call timed out"},
    500: {"model": FailureResponse, "description": "Contract violation or unknown failure"},
    503: {"model": FailureResponse, "description": "Scoring service unreachable"},
}
