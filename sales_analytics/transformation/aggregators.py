"""
Sales Aggregation Module

Groups fact rows by time bucket, product, category or customer and computes
the additive measures every report is derived from:
- total sales, quantity and distinct orders
- distinct customers / products
- first and last order date
- average price and average selling price
"""

from datetime import date
from enum import Enum
from typing import List, Optional, Sequence

import polars as pl
import structlog

from sales_analytics.ingestion.schemas import SalesWarehouse

logger = structlog.get_logger(__name__)


class Granularity(str, Enum):
    """Time bucket sizes"""
    YEAR = "year"
    MONTH = "month"


_TRUNCATE_EVERY = {
    Granularity.YEAR: "1y",
    Granularity.MONTH: "1mo",
}


def truncate_date(value: date, granularity: Granularity) -> date:
    """Truncate a date to the first day of its year or month"""
    granularity = Granularity(granularity)
    if granularity == Granularity.YEAR:
        return value.replace(month=1, day=1)
    return value.replace(day=1)


def truncate_expr(column: str, granularity: Granularity) -> pl.Expr:
    """Expression form of ``truncate_date``"""
    return pl.col(column).dt.truncate(_TRUNCATE_EVERY[Granularity(granularity)])


def distinct_count(column: str) -> pl.Expr:
    """COUNT(DISTINCT column): nulls are not counted"""
    return pl.col(column).drop_nulls().n_unique()


def filter_dated(sales: pl.DataFrame) -> pl.DataFrame:
    """Drop fact rows with no order date"""
    dated = sales.filter(pl.col("order_date").is_not_null())
    excluded = sales.height - dated.height
    if excluded:
        logger.debug("Excluded undated sales rows", excluded=excluded, kept=dated.height)
    return dated


def join_dimensions(
    warehouse: SalesWarehouse,
    customers: bool = False,
    products: bool = False,
) -> pl.DataFrame:
    """
    Dated fact rows left-joined to the requested dimensions.

    Fact rows without a dimension match keep null descriptive fields and stay
    in the result.
    """
    df = filter_dated(warehouse.sales)

    if customers:
        df = df.join(
            warehouse.customers.unique(subset=["customer_key"], keep="first"),
            on="customer_key",
            how="left",
        )
    if products:
        df = df.join(
            warehouse.products.unique(subset=["product_key"], keep="first"),
            on="product_key",
            how="left",
        )

    return df


def avg_selling_price_expr() -> pl.Expr:
    """mean(sales_amount / quantity), skipping lines with zero or null quantity"""
    safe_quantity = pl.when(pl.col("quantity") != 0).then(pl.col("quantity"))
    return (pl.col("sales_amount") / safe_quantity).mean()


def sales_measures() -> List[pl.Expr]:
    """Measures shared by every grouping"""
    return [
        pl.col("sales_amount").sum().alias("total_sales"),
        pl.col("quantity").sum().alias("total_quantity"),
        distinct_count("order_number").alias("total_orders"),
        pl.col("order_date").min().alias("first_order_date"),
        pl.col("order_date").max().alias("last_order_date"),
        pl.col("price").mean().alias("avg_price"),
    ]


class SalesAggregator:
    """
    Aggregates dated sales rows by a grouping key.

    Every method returns one row per group, sorted by the group key so results
    are deterministic.

    Example:
        aggregator = SalesAggregator(warehouse)
        monthly = aggregator.by_period(Granularity.MONTH)
    """

    def __init__(self, warehouse: SalesWarehouse):
        self.warehouse = warehouse

    def by_dimension(
        self,
        keys: Sequence[str],
        customers: bool = False,
        products: bool = False,
        extra: Optional[List[pl.Expr]] = None,
    ) -> pl.DataFrame:
        """Group by arbitrary columns of the (optionally joined) fact rows"""
        df = join_dimensions(self.warehouse, customers=customers, products=products)
        keys = list(keys)
        result = (
            df.group_by(keys)
            .agg(sales_measures() + (extra or []))
            .sort(keys, nulls_last=True)
        )
        logger.debug("Aggregated sales", keys=keys, rows_in=df.height, groups=result.height)
        return result

    def by_period(self, granularity: Granularity = Granularity.MONTH) -> pl.DataFrame:
        """One row per year or month bucket, ordered by time"""
        df = filter_dated(self.warehouse.sales).with_columns(
            truncate_expr("order_date", granularity).alias("period")
        )
        return (
            df.group_by("period")
            .agg(
                sales_measures()
                + [distinct_count("customer_key").alias("total_customers")]
            )
            .sort("period")
        )

    def by_product(self) -> pl.DataFrame:
        """Per-product measures with product attributes"""
        return self.by_dimension(
            ["product_key", "product_name", "category", "subcategory", "cost"],
            products=True,
            extra=[
                distinct_count("customer_key").alias("total_customers"),
                avg_selling_price_expr().alias("avg_selling_price"),
            ],
        )

    def by_customer(self) -> pl.DataFrame:
        """Per-customer measures with customer attributes"""
        return self.by_dimension(
            ["customer_key", "customer_number", "first_name", "last_name", "birthdate"],
            customers=True,
            extra=[distinct_count("product_key").alias("total_products")],
        )

    def by_category(self) -> pl.DataFrame:
        """Per-category measures; unmatched products fall in a null category"""
        return self.by_dimension(
            ["category"],
            products=True,
            extra=[distinct_count("product_key").alias("total_products")],
        )

    def by_product_year(self) -> pl.DataFrame:
        """Per (product key, year) sales, ordered by product then year"""
        df = join_dimensions(self.warehouse, products=True).with_columns(
            pl.col("order_date").dt.year().alias("order_year")
        )
        return (
            df.group_by(["product_key", "product_name", "order_year"])
            .agg(pl.col("sales_amount").sum().alias("current_sales"))
            .sort(["product_key", "order_year"])
        )
