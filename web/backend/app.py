#!/usr/bin/env python3
"""
Career Recommender API - FastAPI Application

Accepts candidate profiles, stores them, and returns AI career
recommendations for the candidate's sector.

Usage:
    uvicorn web.backend.app:app --port 5000

Then open:
    - http://localhost:5000/health - Service and collaborator health
    - http://localhost:5000/api/test-integration - Storage/field mapping self-test
    - http://localhost:5000/docs - API Documentation (Swagger UI)
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from core.config_loader import get_config
from core.exceptions import RecommenderError
from .dependencies import get_app_context
from .exceptions import (
    general_exception_handler,
    http_exception_handler,
    recommender_exception_handler,
    request_validation_exception_handler,
)
from .routers import health_router, recommendations_router

# Load configuration
config = get_config()

# Configure logging
logging.basicConfig(
    level=getattr(logging, config.logging.level.upper(), logging.INFO),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Build collaborators and validate field mappings before serving
    context = get_app_context()
    logger.info("Ready for teammate integration!")
    yield
    context.close()


def create_app() -> FastAPI:
    """Create the FastAPI application with routers and error handlers."""
    app = FastAPI(
        title="Career Recommender API",
        description="Candidate intake and AI career recommendations",
        version="1.0.0",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan
    )

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        logger.info(f"{request.method} {request.url.path}")
        return await call_next(request)

    # Register exception handlers
    app.add_exception_handler(RecommenderError, recommender_exception_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, request_validation_exception_handler)
    app.add_exception_handler(Exception, general_exception_handler)

    # Include routers
    app.include_router(health_router)
    app.include_router(recommendations_router)

    return app


app = create_app()


def main():
    """Run the web server."""
    import uvicorn

    logger.info(f"Backend running at http://{config.server.host}:{config.server.port}")
    logger.info(f"Health check: http://{config.server.host}:{config.server.port}/health")
    logger.info(f"Integration test: http://{config.server.host}:{config.server.port}/api/test-integration")

    uvicorn.run(
        "web.backend.app:app",
        host=config.server.host,
        port=config.server.port,
        reload=False,
        log_level="info"
    )


if __name__ == "__main__":
    main()
