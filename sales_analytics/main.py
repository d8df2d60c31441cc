"""
FastAPI Application

Main entry point for the Sales Warehouse Analytics API.
"""

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from sqlalchemy.exc import SQLAlchemyError
import structlog

from sales_analytics.config import get_settings
from sales_analytics.database.connection import close_database
from sales_analytics.ingestion import SalesWarehouse, WarehouseLoadError, load_warehouse
from sales_analytics.serving.api.middleware import RequestLoggingMiddleware
from sales_analytics.serving.api.routes import health_router, reports_router
from sales_analytics.serving.views import default_registry

logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Load the warehouse on startup unless one was supplied."""
    from sales_analytics.config.logging import configure_logging
    configure_logging()

    logger.info("Starting Sales Warehouse Analytics API")

    if getattr(app.state, "warehouse", None) is None:
        try:
            app.state.warehouse = await load_warehouse()
        except (WarehouseLoadError, SQLAlchemyError, OSError) as e:
            logger.warning("Warehouse load failed, reports unavailable", error=str(e))

    yield

    logger.info("Shutting down...")
    await close_database()


def create_app(warehouse: Optional[SalesWarehouse] = None) -> FastAPI:
    """
    Create and configure the API application.

    Args:
        warehouse: Preloaded warehouse; loaded from settings at startup when omitted
    """
    settings = get_settings()

    app = FastAPI(
        title="Sales Warehouse Analytics API",
        description="Customer and product reporting views over the sales warehouse",
        version=settings.version,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )
    app.state.warehouse = warehouse
    app.state.registry = default_registry()

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(GZipMiddleware, minimum_size=1000)
    app.add_middleware(RequestLoggingMiddleware)

    app.include_router(health_router, prefix="/api/v1", tags=["Health"])
    app.include_router(reports_router, prefix="/api/v1/reports", tags=["Reports"])

    @app.get("/api/v1/info")
    async def api_info():
        """API information endpoint."""
        return {
            "name": "Sales Warehouse Analytics API",
            "version": settings.version,
            "environment": settings.app_env,
            "documentation": "/docs",
        }

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host=get_settings().api_host, port=get_settings().api_port)
