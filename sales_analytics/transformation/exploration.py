"""
Exploratory Sales Analyses

The analysis set the reporting views grew out of:
- dimension and date range exploration
- key business measures
- magnitude and ranking
- change over time and cumulative trends
- year-over-year product performance
- part-to-whole and data segmentation
"""

from datetime import date
from enum import Enum
from typing import Dict, List, Optional, Tuple

import polars as pl
import structlog

from sales_analytics.ingestion.schemas import SalesWarehouse
from .aggregators import Granularity, SalesAggregator, distinct_count, filter_dated
from .reports import build_customer_report
from .segmentation import (
    compare_to_average_expr,
    compare_to_previous_expr,
    cost_segment_expr,
    month_diff_expr,
    year_diff_expr,
    years_until_expr,
)

logger = structlog.get_logger(__name__)


class MagnitudeDimension(str, Enum):
    """Supported magnitude breakdowns"""
    CUSTOMERS_BY_COUNTRY = "customers_by_country"
    CUSTOMERS_BY_GENDER = "customers_by_gender"
    PRODUCTS_BY_CATEGORY = "products_by_category"
    REVENUE_BY_CATEGORY = "revenue_by_category"
    REVENUE_BY_CUSTOMER = "revenue_by_customer"
    ITEMS_BY_COUNTRY = "items_by_country"


class CustomerRanking(str, Enum):
    """Customer ranking criteria"""
    REVENUE = "revenue"
    FEWEST_ORDERS = "fewest_orders"


# =============================================================================
# EXPLORATION
# =============================================================================

def explore_dimensions(warehouse: SalesWarehouse) -> Dict[str, pl.DataFrame]:
    """Distinct customer countries and the category > subcategory > product hierarchy"""
    countries = (
        warehouse.customers.select("country")
        .unique()
        .sort("country", nulls_last=True)
    )
    hierarchy = (
        warehouse.products.select(["category", "subcategory", "product_name"])
        .unique()
        .sort(["category", "subcategory", "product_name"], nulls_last=True)
    )
    return {"countries": countries, "product_hierarchy": hierarchy}


def explore_date_range(warehouse: SalesWarehouse, reference_date: date) -> pl.DataFrame:
    """Span of the order history and of customer birthdates, as one row"""
    orders = (
        filter_dated(warehouse.sales)
        .select(
            pl.col("order_date").min().alias("first_order_date"),
            pl.col("order_date").max().alias("last_order_date"),
        )
        .with_columns(
            year_diff_expr("first_order_date", "last_order_date").alias("order_range_years"),
            month_diff_expr("first_order_date", "last_order_date").alias("order_range_months"),
        )
    )
    births = (
        warehouse.customers
        .select(
            pl.col("birthdate").min().alias("oldest_birthdate"),
            pl.col("birthdate").max().alias("youngest_birthdate"),
        )
        .with_columns(
            years_until_expr("oldest_birthdate", reference_date).alias("oldest_age"),
            years_until_expr("youngest_birthdate", reference_date).alias("youngest_age"),
        )
    )
    return pl.concat([orders, births], how="horizontal")


def key_metrics(warehouse: SalesWarehouse) -> pl.DataFrame:
    """Headline business measures in long format"""
    sales = filter_dated(warehouse.sales)

    measures: List[Tuple[str, Optional[float]]] = [
        ("Total Sales", sales["sales_amount"].sum()),
        ("Total Quantity", sales["quantity"].sum()),
        ("Average Price", sales["price"].mean()),
        ("Total Orders", sales["order_number"].drop_nulls().n_unique()),
        ("Total Products", warehouse.products["product_key"].drop_nulls().n_unique()),
        ("Total Customers", warehouse.customers["customer_key"].drop_nulls().n_unique()),
        ("Customers Ordering", sales["customer_key"].drop_nulls().n_unique()),
    ]

    return pl.DataFrame(
        {
            "measure_name": [name for name, _ in measures],
            "measure_value": [float(value) if value is not None else None for _, value in measures],
        },
        schema={"measure_name": pl.Utf8, "measure_value": pl.Float64},
    )


# =============================================================================
# MAGNITUDE & RANKING
# =============================================================================

def magnitude(warehouse: SalesWarehouse, dimension: MagnitudeDimension) -> pl.DataFrame:
    """
    Size of a measure across the members of a dimension, largest first.

    Args:
        warehouse: Source tables
        dimension: Which breakdown to compute
    """
    dimension = MagnitudeDimension(dimension)
    aggregator = SalesAggregator(warehouse)

    if dimension == MagnitudeDimension.CUSTOMERS_BY_COUNTRY:
        result = warehouse.customers.group_by("country").agg(
            distinct_count("customer_key").alias("total_customers")
        )
        sort_by = "total_customers"
    elif dimension == MagnitudeDimension.CUSTOMERS_BY_GENDER:
        result = warehouse.customers.group_by("gender").agg(
            distinct_count("customer_key").alias("total_customers")
        )
        sort_by = "total_customers"
    elif dimension == MagnitudeDimension.PRODUCTS_BY_CATEGORY:
        result = warehouse.products.group_by("category").agg(
            distinct_count("product_key").alias("total_products"),
            pl.col("cost").mean().alias("avg_cost"),
        )
        sort_by = "total_products"
    elif dimension == MagnitudeDimension.REVENUE_BY_CATEGORY:
        result = aggregator.by_dimension(["category"], products=True).select(
            "category", pl.col("total_sales").alias("total_revenue")
        )
        sort_by = "total_revenue"
    elif dimension == MagnitudeDimension.REVENUE_BY_CUSTOMER:
        result = aggregator.by_dimension(
            ["customer_key", "first_name", "last_name"], customers=True
        ).select(
            "customer_key", "first_name", "last_name", pl.col("total_sales").alias("total_revenue")
        )
        sort_by = "total_revenue"
    else:
        result = aggregator.by_dimension(["country"], customers=True).select(
            "country", pl.col("total_quantity").alias("total_sold_items")
        )
        sort_by = "total_sold_items"

    key = result.columns[0]
    return result.sort([sort_by, key], descending=[True, False], nulls_last=True)


def rank_products(
    warehouse: SalesWarehouse,
    n: int = 5,
    ascending: bool = False,
) -> pl.DataFrame:
    """Top (or bottom, with ``ascending``) N products by revenue"""
    revenue = SalesAggregator(warehouse).by_dimension(
        ["product_key", "product_name"], products=True
    ).select("product_key", "product_name", pl.col("total_sales").alias("total_revenue"))

    return (
        revenue.sort(["total_revenue", "product_key"], descending=[not ascending, False])
        .head(n)
        .with_row_index("rank", offset=1)
    )


def rank_customers(
    warehouse: SalesWarehouse,
    n: int = 10,
    by: CustomerRanking = CustomerRanking.REVENUE,
) -> pl.DataFrame:
    """Top N customers by revenue, or the N with the fewest orders"""
    by = CustomerRanking(by)
    customers = SalesAggregator(warehouse).by_dimension(
        ["customer_key", "first_name", "last_name"], customers=True
    ).select(
        "customer_key",
        "first_name",
        "last_name",
        pl.col("total_sales").alias("total_revenue"),
        "total_orders",
    )

    if by == CustomerRanking.REVENUE:
        ordered = customers.sort(["total_revenue", "customer_key"], descending=[True, False])
    else:
        ordered = customers.sort(["total_orders", "customer_key"])

    return ordered.head(n).with_row_index("rank", offset=1)


# =============================================================================
# TRENDS
# =============================================================================

def sales_over_time(
    warehouse: SalesWarehouse,
    granularity: Granularity = Granularity.MONTH,
) -> pl.DataFrame:
    """Sales, customers and quantity per time bucket"""
    return SalesAggregator(warehouse).by_period(granularity).select(
        "period", "total_sales", "total_customers", "total_quantity"
    )


def cumulative_sales(
    warehouse: SalesWarehouse,
    granularity: Granularity = Granularity.MONTH,
) -> pl.DataFrame:
    """
    Running total of sales and running mean of the average price.

    Both are cumulative from the first bucket, not windowed. Buckets whose
    average price is null do not count towards the running mean.
    """
    periods = SalesAggregator(warehouse).by_period(granularity).sort("period")

    priced = pl.col("avg_price").is_not_null().cast(pl.Int64).cum_sum()
    return periods.select(
        "period",
        "total_sales",
        pl.col("total_sales").cum_sum().alias("running_total_sales"),
        "avg_price",
        (
            pl.when(priced > 0)
            .then(pl.col("avg_price").fill_null(0).cum_sum() / priced)
        ).alias("moving_average_price"),
    )


def yearly_product_performance(warehouse: SalesWarehouse) -> pl.DataFrame:
    """
    Each product's yearly sales compared with its own average and with the
    previous year it sold in.

    The first year of a product has no previous year: ``py_sales``,
    ``diff_py`` and ``py_change`` are null there.
    """
    yearly = SalesAggregator(warehouse).by_product_year()

    return (
        yearly
        .with_columns(
            pl.col("current_sales").mean().over("product_key").alias("avg_sales"),
            pl.col("current_sales").shift(1).over("product_key").alias("py_sales"),
        )
        .with_columns(
            (pl.col("current_sales") - pl.col("avg_sales")).alias("diff_avg"),
            (pl.col("current_sales") - pl.col("py_sales")).alias("diff_py"),
        )
        .with_columns(
            compare_to_average_expr("diff_avg").alias("avg_change"),
            compare_to_previous_expr("diff_py").alias("py_change"),
        )
        .select(
            "order_year",
            "product_key",
            "product_name",
            "current_sales",
            "avg_sales",
            "diff_avg",
            "avg_change",
            "py_sales",
            "diff_py",
            "py_change",
        )
    )


# =============================================================================
# PART-TO-WHOLE & SEGMENTATION
# =============================================================================

def category_contribution(warehouse: SalesWarehouse) -> pl.DataFrame:
    """
    Share of overall sales per category, as a percentage rounded to 2 places.

    Percentages are null when overall sales are zero.
    """
    categories = SalesAggregator(warehouse).by_category().select("category", "total_sales")

    return (
        categories
        .with_columns(pl.col("total_sales").sum().alias("overall_sales"))
        .with_columns(
            pl.when(pl.col("overall_sales") != 0)
            .then(pl.col("total_sales") / pl.col("overall_sales") * 100)
            .round(2)
            .alias("percentage_of_total")
        )
        .sort(["total_sales", "category"], descending=[True, False], nulls_last=True)
    )


def product_cost_ranges(warehouse: SalesWarehouse) -> pl.DataFrame:
    """Number of products in each cost band"""
    return (
        warehouse.products
        .with_columns(cost_segment_expr("cost").alias("cost_range"))
        .group_by("cost_range")
        .agg(pl.len().alias("total_products"))
        .sort(["total_products", "cost_range"], descending=[True, False])
    )


def customer_segment_counts(warehouse: SalesWarehouse, reference_date: date) -> pl.DataFrame:
    """Number of customers in each VIP / Regular / New segment"""
    return (
        build_customer_report(warehouse, reference_date)
        .group_by("customer_segment")
        .agg(pl.len().alias("total_customers"))
        .sort(["total_customers", "customer_segment"], descending=[True, False])
    )
