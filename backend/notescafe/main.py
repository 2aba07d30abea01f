"""
Notes Cafe FastAPI Application Entry Point.

Run with: uvicorn notescafe.main:app --reload
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

import httpx
from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from notescafe.api.routes import auth, health, notes, pdf, planner, profile
from notescafe.config import get_settings
from notescafe.db import build_document_store
from notescafe.errors import DataProviderError, handle_api_error

settings = get_settings()
logger = logging.getLogger(__name__)

# Document store codes -> HTTP status
DATA_ERROR_STATUS = {
    "not-found": status.HTTP_404_NOT_FOUND,
    "permission-denied": status.HTTP_403_FORBIDDEN,
    "already-exists": status.HTTP_409_CONFLICT,
    "failed-precondition": status.HTTP_412_PRECONDITION_FAILED,
    "unavailable": status.HTTP_503_SERVICE_UNAVAILABLE,
}


def configure_logging() -> None:
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager for startup/shutdown."""
    # Startup
    app.state.store = build_document_store(settings)
    app.state.http_client = httpx.AsyncClient(timeout=10.0)
    logger.info("Started %s (%s, store=%s)", settings.app_name, settings.environment, settings.document_store_backend)
    yield
    # Shutdown
    await app.state.http_client.aclose()


configure_logging()

app = FastAPI(
    title=settings.app_name,
    description="Exam preparation API: phone sign-in, profiles, notes and study planner",
    version=settings.app_version,
    lifespan=lifespan,
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(DataProviderError)
async def data_provider_error_handler(request: Request, exc: DataProviderError) -> JSONResponse:
    """Document store failures never reach the client verbatim."""
    return JSONResponse(
        status_code=DATA_ERROR_STATUS.get(exc.code, status.HTTP_500_INTERNAL_SERVER_ERROR),
        content={"error": handle_api_error(exc, f"{request.method} {request.url.path}"), "code": exc.code},
    )


# Include routers
app.include_router(health.router, prefix="/api")
app.include_router(pdf.router, prefix="/api")
app.include_router(auth.router, prefix="/api")
app.include_router(profile.router, prefix="/api")
app.include_router(notes.router, prefix="/api")
app.include_router(planner.router, prefix="/api")
