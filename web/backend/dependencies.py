#!/usr/bin/env python3
"""
FastAPI dependencies for dependency injection.
"""

from functools import lru_cache

from fastapi import Depends

from core.app_context import AppContext
from core.config_loader import get_config
from core.orchestrator import RecommendationOrchestrator


@lru_cache()
def get_app_context() -> AppContext:
    """
    Process-wide application context, built on first use.

    The app lifespan calls this at startup so configuration and field
    mapping errors surface before any request is served.
    """
    return AppContext.build(get_config())


def get_orchestrator(
    context: AppContext = Depends(get_app_context)
) -> RecommendationOrchestrator:
    """
    FastAPI dependency that yields a fresh orchestrator per request.

    Usage:
        @router.post("/endpoint")
        async def my_endpoint(orchestrator: RecommendationOrchestrator = Depends(get_orchestrator)):
            ...
    """
    return context.new_orchestrator()
