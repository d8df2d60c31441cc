"""
Customer and Product Reports

The two reporting views consumed by BI tools. Each combines one aggregate row
per customer or product with segment labels and KPI formulas.
"""

from datetime import date
from typing import List

import polars as pl
import structlog

from sales_analytics.ingestion.schemas import SalesWarehouse
from .aggregators import SalesAggregator
from .segmentation import (
    age_group_expr,
    average_per_month_expr,
    average_per_order_expr,
    customer_segment_expr,
    month_diff_expr,
    months_until_expr,
    performance_segment_expr,
    years_until_expr,
)

logger = structlog.get_logger(__name__)


CUSTOMER_REPORT_COLUMNS: List[str] = [
    "customer_key",
    "customer_number",
    "customer_name",
    "age",
    "age_group",
    "customer_segment",
    "last_order_date",
    "recency",
    "total_orders",
    "total_sales",
    "total_quantity",
    "total_products",
    "lifespan",
    "avg_order_value",
    "avg_monthly_spend",
]

PRODUCT_REPORT_COLUMNS: List[str] = [
    "product_key",
    "product_name",
    "category",
    "subcategory",
    "cost",
    "last_sale_date",
    "recency_in_months",
    "product_segment",
    "lifespan",
    "total_orders",
    "total_sales",
    "total_quantity",
    "total_customers",
    "avg_selling_price",
    "avg_order_revenue",
    "avg_monthly_revenue",
]


def _full_name() -> pl.Expr:
    first, last = pl.col("first_name"), pl.col("last_name")
    return (
        pl.when(first.is_null() & last.is_null())
        .then(pl.lit(None, dtype=pl.Utf8))
        .otherwise(pl.concat_str([first, last], separator=" ", ignore_nulls=True))
    )


def build_customer_report(warehouse: SalesWarehouse, reference_date: date) -> pl.DataFrame:
    """
    Customer report: one row per customer with at least one dated order.

    Highlights:
    - name, age and age group from the customer dimension
    - VIP / Regular / New segment from lifespan and spend
    - recency, average order value and average monthly spend
    """
    aggregated = SalesAggregator(warehouse).by_customer()

    report = (
        aggregated
        .with_columns(
            _full_name().alias("customer_name"),
            years_until_expr("birthdate", reference_date).alias("age"),
            month_diff_expr("first_order_date", "last_order_date").alias("lifespan"),
            months_until_expr("last_order_date", reference_date).alias("recency"),
        )
        .with_columns(
            age_group_expr("age").alias("age_group"),
            customer_segment_expr("lifespan", "total_sales").alias("customer_segment"),
            average_per_order_expr("total_sales", "total_orders").alias("avg_order_value"),
            average_per_month_expr("total_sales", "lifespan").alias("avg_monthly_spend"),
        )
        .select(CUSTOMER_REPORT_COLUMNS)
    )

    logger.info(
        "Customer report built",
        customers=report.height,
        reference_date=reference_date.isoformat(),
    )
    return report


def build_product_report(warehouse: SalesWarehouse, reference_date: date) -> pl.DataFrame:
    """
    Product report: one row per product with at least one dated sale.

    Highlights:
    - name, category, subcategory and cost from the product dimension
    - High-Performer / Mid-Range / Low-Performer tier from revenue
    - recency, average selling price, average order and monthly revenue
    """
    aggregated = SalesAggregator(warehouse).by_product()

    report = (
        aggregated
        .with_columns(
            pl.col("last_order_date").alias("last_sale_date"),
            months_until_expr("last_order_date", reference_date).alias("recency_in_months"),
            month_diff_expr("first_order_date", "last_order_date").alias("lifespan"),
            pl.col("avg_selling_price").round(1),
        )
        .with_columns(
            performance_segment_expr("total_sales").alias("product_segment"),
            average_per_order_expr("total_sales", "total_orders").alias("avg_order_revenue"),
            average_per_month_expr("total_sales", "lifespan").alias("avg_monthly_revenue"),
        )
        .select(PRODUCT_REPORT_COLUMNS)
    )

    logger.info(
        "Product report built",
        products=report.height,
        reference_date=reference_date.isoformat(),
    )
    return report
