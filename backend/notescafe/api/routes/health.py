"""Health check route."""

import resource
import sys
import time
from datetime import datetime, timezone
from typing import Annotated, Any

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse

from notescafe.config import Settings, get_settings

router = APIRouter(tags=["health"])

_started_at = time.monotonic()


def _memory_usage() -> dict[str, int]:
    usage = resource.getrusage(resource.RUSAGE_SELF)
    # ru_maxrss is kilobytes on Linux, bytes on macOS
    max_rss = usage.ru_maxrss if sys.platform == "darwin" else usage.ru_maxrss * 1024
    return {"maxRss": max_rss}


@router.get("/health")
async def health_check(settings: Annotated[Settings, Depends(get_settings)]) -> dict[str, Any]:
    """Liveness probe with process uptime and memory."""
    return {
        "status": "ok",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "environment": settings.environment,
        "version": settings.app_version,
        "uptime": time.monotonic() - _started_at,
        "memory": _memory_usage(),
    }


@router.api_route("/health", methods=["POST", "PUT", "PATCH", "DELETE"], include_in_schema=False)
async def health_method_not_allowed() -> JSONResponse:
    return JSONResponse(
        {"error": "Method not allowed"},
        status_code=status.HTTP_405_METHOD_NOT_ALLOWED,
        headers={"Allow": "GET"},
    )
