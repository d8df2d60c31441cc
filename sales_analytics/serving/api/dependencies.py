"""
Shared FastAPI dependencies
"""

from fastapi import HTTPException, Request

from sales_analytics.ingestion.schemas import SalesWarehouse
from sales_analytics.serving.views import ViewRegistry, default_registry


def get_warehouse(request: Request) -> SalesWarehouse:
    """The warehouse loaded at startup; 503 until it is available"""
    warehouse = getattr(request.app.state, "warehouse", None)
    if warehouse is None:
        raise HTTPException(status_code=503, detail="Warehouse not loaded")
    return warehouse


def get_registry(request: Request) -> ViewRegistry:
    registry = getattr(request.app.state, "registry", None)
    if registry is None:
        registry = default_registry()
        request.app.state.registry = registry
    return registry
