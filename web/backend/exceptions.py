#!/usr/bin/env python3
"""
Error handlers for the web application.

All error responses share one envelope: {"success": false, "error", "type"}.
"""

import logging
from typing import Any, Dict

from fastapi import Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from core.exceptions import ErrorKind, RecommenderError, classify_error

logger = logging.getLogger(__name__)


def failure_response(exc: Exception, message: str, expose_details: bool) -> JSONResponse:
    """
    Build a classified failure response for errors outside the pipeline.

    Args:
        exc: The exception raised by a collaborator.
        message: Stable, user-facing message.
        expose_details: Include the exception text (non-production only).
    """
    kind = classify_error(exc)
    content: Dict[str, Any] = {
        "success": False,
        "error": message,
        "type": kind.value,
    }
    if expose_details:
        content["details"] = str(exc)
    return JSONResponse(status_code=kind.status_code, content=content)


async def recommender_exception_handler(
    request: Request,
    exc: RecommenderError
) -> JSONResponse:
    """
    Handle service layer exceptions that escaped a route.

    Args:
        request: The FastAPI request.
        exc: The service exception.

    Returns:
        JSONResponse with error details.
    """
    logger.error(f"Service error in {request.url.path}: {exc}", exc_info=True)

    return JSONResponse(
        status_code=exc.kind.status_code,
        content={
            "success": False,
            "error": str(exc),
            "type": exc.kind.value
        }
    )


async def http_exception_handler(
    request: Request,
    exc: StarletteHTTPException
) -> JSONResponse:
    """
    Handle HTTP exceptions with consistent format.

    Unknown routes get a message naming the method and path.
    """
    error = exc.detail
    if exc.status_code == 404 and exc.detail == "Not Found":
        error = f"Route {request.method} {request.url.path} not found"

    return JSONResponse(
        status_code=exc.status_code,
        content={
            "success": False,
            "error": error,
            "type": "HTTPException"
        }
    )


async def request_validation_exception_handler(
    request: Request,
    exc: RequestValidationError
) -> JSONResponse:
    """Report malformed request bodies as validation failures."""
    return JSONResponse(
        status_code=ErrorKind.VALIDATION.status_code,
        content={
            "success": False,
            "error": "Validation failed",
            "type": ErrorKind.VALIDATION.value,
            "details": jsonable_encoder(exc.errors())
        }
    )


async def general_exception_handler(
    request: Request,
    exc: Exception
) -> JSONResponse:
    """
    Handle unexpected exceptions.

    Args:
        request: The FastAPI request.
        exc: The exception.

    Returns:
        JSONResponse with error details.
    """
    logger.exception(f"Unexpected error in {request.url.path}")

    return JSONResponse(
        status_code=500,
        content={
            "success": False,
            "error": "Internal server error",
            "type": "InternalError"
        }
    )
