"""
Readiness Engine API Service

FastAPI application exposing readiness, roadmap, mentor validation,
role selection and skill ledger endpoints.
"""

import uuid
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request, Response
from fastapi.encoders import jsonable_encoder
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from shared.utils.config import get_settings
from shared.utils.errors import ReadinessError
from shared.utils.logging import bind_request_context, clear_context, get_logger, setup_logging

setup_logging()
logger = get_logger("api_service")
settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler."""
    logger.info("Starting API service", debug=settings.debug)
    yield
    logger.info("Shutting down API service")


app = FastAPI(
    title="Readiness Engine API",
    description="Skill readiness scoring and improvement roadmaps",
    version="0.1.0",
    lifespan=lifespan,
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def request_id_middleware(request: Request, call_next) -> Response:
    """Add request_id to all requests and responses."""
    request_id = str(uuid.uuid4())
    request.state.request_id = request_id
    bind_request_context(request_id)

    response = await call_next(request)
    response.headers["X-Request-Id"] = request_id

    clear_context()
    return response


@app.exception_handler(ReadinessError)
async def readiness_error_handler(request: Request, exc: ReadinessError) -> JSONResponse:
    """Render domain errors as {success, error, message, details}."""
    if exc.status_code >= 500:
        logger.error("Request failed", error=exc.code, message=exc.message, path=request.url.path)
    else:
        logger.info("Request rejected", error=exc.code, message=exc.message, path=request.url.path)

    body = exc.to_dict()
    body["request_id"] = getattr(request.state, "request_id", None)
    return JSONResponse(status_code=exc.status_code, content=jsonable_encoder(body))


@app.get("/health")
async def health_check() -> dict:
    """Health check endpoint."""
    return {
        "status": "healthy",
        "service": "api_service",
        "version": "0.1.0",
    }


# Import and include routers
from apps.api_service.routers import mentor_validation, readiness, roadmap, role_selection, skills

app.include_router(readiness.router, prefix="/readiness", tags=["readiness"])
app.include_router(roadmap.router, prefix="/roadmap", tags=["roadmap"])
app.include_router(mentor_validation.router, prefix="/mentor-validation", tags=["mentor-validation"])
app.include_router(role_selection.router, prefix="/role-selection", tags=["role-selection"])
app.include_router(skills.router, prefix="/skills", tags=["skills"])


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "apps.api_service.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.debug,
    )
