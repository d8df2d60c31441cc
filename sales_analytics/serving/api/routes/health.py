"""
Health Check Endpoints

Provides health and readiness checks for orchestration systems.
"""

from datetime import datetime, timezone
from typing import Dict, Any

from fastapi import APIRouter, Request, Response
from pydantic import BaseModel

from sales_analytics.config import get_settings

router = APIRouter()


class HealthResponse(BaseModel):
    """Health check response"""
    status: str
    version: str
    environment: str
    timestamp: datetime
    checks: Dict[str, Any]


@router.get("/health", response_model=HealthResponse)
async def health_check(request: Request) -> HealthResponse:
    """
    Health check endpoint.

    Checks:
    - Application status
    - Warehouse tables loaded
    """
    settings = get_settings()
    warehouse = getattr(request.app.state, "warehouse", None)

    if warehouse is None:
        checks = {"warehouse": {"status": "unavailable"}}
        overall_status = "degraded"
    else:
        checks = {"warehouse": {"status": "healthy", "rows": warehouse.row_counts}}
        overall_status = "healthy"

    return HealthResponse(
        status=overall_status,
        version=settings.version,
        environment=settings.app_env,
        timestamp=datetime.now(timezone.utc),
        checks=checks,
    )


@router.get("/health/live")
async def liveness_check() -> Dict[str, str]:
    """Returns 200 if the application is running."""
    return {"status": "alive"}


@router.get("/health/ready")
async def readiness_check(request: Request, response: Response) -> Dict[str, str]:
    """Returns 200 once the warehouse is loaded and reports can be served."""
    if getattr(request.app.state, "warehouse", None) is None:
        response.status_code = 503
        return {"status": "not_ready", "reason": "warehouse_unavailable"}
    return {"status": "ready"}
