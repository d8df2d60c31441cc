"""
Reports API Endpoints

REST API over the reporting views. Every request recomputes the view from the
loaded warehouse tables.
"""

from datetime import date
from typing import Any, Dict, List, Optional

import polars as pl
from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel
import structlog

from sales_analytics.config import get_settings
from sales_analytics.ingestion.schemas import SalesWarehouse
from sales_analytics.serving.api.dependencies import get_registry, get_warehouse
from sales_analytics.serving.views import UnknownViewError, ViewRegistry
from sales_analytics.transformation.segmentation import CustomerSegment, PerformanceSegment

router = APIRouter()
logger = structlog.get_logger(__name__)


class ViewInfo(BaseModel):
    """Catalogue entry"""
    name: str
    description: str


class ViewCatalog(BaseModel):
    """Available views"""
    views: List[ViewInfo]


class CustomerReportRow(BaseModel):
    """One customer report row"""
    customer_key: Optional[int]
    customer_number: Optional[str]
    customer_name: Optional[str]
    age: Optional[int]
    age_group: str
    customer_segment: str
    last_order_date: date
    recency: int
    total_orders: int
    total_sales: float
    total_quantity: int
    total_products: int
    lifespan: int
    avg_order_value: float
    avg_monthly_spend: float


class ProductReportRow(BaseModel):
    """One product report row"""
    product_key: Optional[int]
    product_name: Optional[str]
    category: Optional[str]
    subcategory: Optional[str]
    cost: Optional[float]
    last_sale_date: date
    recency_in_months: int
    product_segment: str
    lifespan: int
    total_orders: int
    total_sales: float
    total_quantity: int
    total_customers: int
    avg_selling_price: Optional[float]
    avg_order_revenue: float
    avg_monthly_revenue: float


class CustomerReportResponse(BaseModel):
    """Paginated customer report"""
    reference_date: date
    total: int
    limit: int
    offset: int
    items: List[CustomerReportRow]


class ProductReportResponse(BaseModel):
    """Paginated product report"""
    reference_date: date
    total: int
    limit: int
    offset: int
    items: List[ProductReportRow]


class ViewResponse(BaseModel):
    """Paginated rows of any view"""
    view: str
    reference_date: date
    total: int
    limit: int
    offset: int
    columns: List[str]
    rows: List[Dict[str, Any]]


def _page(df: pl.DataFrame, limit: Optional[int], offset: int) -> List[Dict[str, Any]]:
    """Slice a frame into JSON-safe records (NaN becomes null)"""
    page = df.slice(offset, limit).with_columns(pl.col(pl.Float64).fill_nan(None))
    return page.to_dicts()


def _limit(limit: Optional[int]) -> int:
    settings = get_settings()
    return min(limit or settings.reporting.default_page_size, settings.reporting.max_page_size)


def _read(registry: ViewRegistry, name: str, warehouse: SalesWarehouse, reference_date: date) -> pl.DataFrame:
    try:
        return registry.read(name, warehouse, reference_date)
    except UnknownViewError:
        raise HTTPException(status_code=404, detail=f"Unknown view: {name}")


@router.get("", response_model=ViewCatalog)
async def list_views(registry: ViewRegistry = Depends(get_registry)) -> ViewCatalog:
    """List the views that can be read."""
    return ViewCatalog(
        views=[ViewInfo(name=v.name, description=v.description) for v in registry.views()]
    )


@router.get("/customers", response_model=CustomerReportResponse)
def get_customer_report(
    segment: Optional[CustomerSegment] = None,
    reference_date: Optional[date] = None,
    limit: Optional[int] = Query(None, ge=1),
    offset: int = Query(0, ge=0),
    warehouse: SalesWarehouse = Depends(get_warehouse),
    registry: ViewRegistry = Depends(get_registry),
) -> CustomerReportResponse:
    """Customer report, optionally filtered by value segment."""
    reference_date = reference_date or get_settings().reporting.resolve_reference_date()
    logger.info("get_customer_report called", segment=segment, reference_date=str(reference_date))

    df = _read(registry, "report_customers", warehouse, reference_date)
    if segment is not None:
        df = df.filter(pl.col("customer_segment") == segment.value)

    limit = _limit(limit)
    return CustomerReportResponse(
        reference_date=reference_date,
        total=df.height,
        limit=limit,
        offset=offset,
        items=[CustomerReportRow(**row) for row in _page(df, limit, offset)],
    )


@router.get("/products", response_model=ProductReportResponse)
def get_product_report(
    segment: Optional[PerformanceSegment] = None,
    category: Optional[str] = None,
    reference_date: Optional[date] = None,
    limit: Optional[int] = Query(None, ge=1),
    offset: int = Query(0, ge=0),
    warehouse: SalesWarehouse = Depends(get_warehouse),
    registry: ViewRegistry = Depends(get_registry),
) -> ProductReportResponse:
    """Product report, optionally filtered by performance tier and category."""
    reference_date = reference_date or get_settings().reporting.resolve_reference_date()
    logger.info(
        "get_product_report called",
        segment=segment,
        category=category,
        reference_date=str(reference_date),
    )

    df = _read(registry, "report_products", warehouse, reference_date)
    if segment is not None:
        df = df.filter(pl.col("product_segment") == segment.value)
    if category is not None:
        df = df.filter(pl.col("category") == category)

    limit = _limit(limit)
    return ProductReportResponse(
        reference_date=reference_date,
        total=df.height,
        limit=limit,
        offset=offset,
        items=[ProductReportRow(**row) for row in _page(df, limit, offset)],
    )


@router.get("/{view_name}", response_model=ViewResponse)
def read_view(
    view_name: str,
    reference_date: Optional[date] = None,
    limit: Optional[int] = Query(None, ge=1),
    offset: int = Query(0, ge=0),
    warehouse: SalesWarehouse = Depends(get_warehouse),
    registry: ViewRegistry = Depends(get_registry),
) -> ViewResponse:
    """Rows of any registered view."""
    reference_date = reference_date or get_settings().reporting.resolve_reference_date()
    df = _read(registry, view_name, warehouse, reference_date)

    limit = _limit(limit)
    return ViewResponse(
        view=view_name,
        reference_date=reference_date,
        total=df.height,
        limit=limit,
        offset=offset,
        columns=df.columns,
        rows=_page(df, limit, offset),
    )
