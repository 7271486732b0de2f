"""Health check API endpoint for embedsearch.

Reports registry connectivity and whether AI search is configured. A
registry outage is reported as ``degraded`` rather than unhealthy because
lookups keep working from the allowlist.
"""

import time

from fastapi import APIRouter

from ..core.config import get_settings_instance
from ..core.database import check_db_connection
from ..core.logging import get_logger
from ..core.response import WidgetResponse

logger = get_logger(__name__)
router = APIRouter(prefix="/health", tags=["health"])


@router.get("", summary="Health check", description="Registry and AI search status.")
async def health_check():
    settings = get_settings_instance()
    logger.info("Health check requested")

    health_data = {
        "status": "healthy",
        "timestamp": time.time(),
        "version": settings.version,
        "environment": settings.environment,
        "checks": {},
    }

    if await check_db_connection():
        health_data["checks"]["registry"] = {"status": "healthy"}
    else:
        health_data["checks"]["registry"] = {
            "status": "unavailable",
            "degraded_allowlist_size": len(settings.degraded_allowlist),
        }
        health_data["status"] = "degraded"

    health_data["checks"]["ai_search"] = {
        "status": "configured" if settings.ai_search_configured else "not_configured",
        "model": settings.ai_search_model,
        "fallback_on_error": settings.ai_search_fallback_on_error,
    }
    if not settings.ai_search_configured:
        health_data["status"] = "degraded"

    logger.info(f"Health check completed with status: {health_data['status']}")
    return WidgetResponse.success(health_data)
