"""
Pinpoint Feedback API

Accepts in-app bug reports (screenshot plus notes) and files them as
Trello cards.
"""

import logging
from contextlib import asynccontextmanager
from collections.abc import AsyncGenerator
from typing import Any

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from pinpoint.config import get_settings
from pinpoint.middleware import (
    RequestIDLogFilter,
    RequestIDMiddleware,
    SecurityHeadersMiddleware,
)
from pinpoint.routers import feedback
from pinpoint.services.http_client import close_shared_client

logger = logging.getLogger(__name__)

settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan: startup and shutdown."""
    for handler in logging.getLogger().handlers:
        handler.addFilter(RequestIDLogFilter())
    if not get_settings().trello_configured:
        logger.warning("Trello credentials missing; feedback submissions will be rejected")
    yield
    await close_shared_client()


app = FastAPI(
    title="Pinpoint Feedback API",
    description="In-app feedback reports delivered to Trello",
    version="0.1.0",
    lifespan=lifespan,
)

# Request IDs and security headers
app.add_middleware(RequestIDMiddleware)
app.add_middleware(SecurityHeadersMiddleware)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Content-Type", "X-Request-ID"],
)

# Routers
app.include_router(feedback.router, prefix="/api/pinpoint")


def _check_config() -> str:
    """Verify required configuration is loaded. Returns 'ok' or 'fail'."""
    return "ok" if get_settings().trello_configured else "fail"


@app.get("/api/pinpoint/health")
async def health_check() -> JSONResponse:
    """Health check verifying the service can deliver feedback."""
    checks = {"config": _check_config()}
    failed = [k for k, v in checks.items() if v != "ok"]

    if failed:
        logger.warning("Health check degraded, failed: %s", ", ".join(failed))

    result: dict[str, Any] = {
        "status": "degraded" if failed else "ok",
        "service": "pinpoint-feedback-api",
        "version": "0.1.0",
        "checks": checks,
    }
    return JSONResponse(content=result, status_code=200)
