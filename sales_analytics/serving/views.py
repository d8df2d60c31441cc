"""
Reporting Views

Named, saved analyses over the warehouse. A view stores only how to compute
its rows; ``read`` recomputes them from the source tables every time.
"""

from dataclasses import dataclass
from datetime import date
from functools import partial
from typing import Callable, Dict, List, Optional

import polars as pl
import structlog

from sales_analytics.ingestion.schemas import SalesWarehouse
from sales_analytics.transformation.aggregators import Granularity
from sales_analytics.transformation.exploration import (
    CustomerRanking,
    MagnitudeDimension,
    category_contribution,
    cumulative_sales,
    customer_segment_counts,
    explore_date_range,
    explore_dimensions,
    key_metrics,
    magnitude,
    product_cost_ranges,
    rank_customers,
    rank_products,
    sales_over_time,
    yearly_product_performance,
)
from sales_analytics.transformation.reports import build_customer_report, build_product_report

logger = structlog.get_logger(__name__)

ViewBuilder = Callable[[SalesWarehouse, date], pl.DataFrame]


class UnknownViewError(KeyError):
    """Raised when a view name is not registered"""


@dataclass(frozen=True)
class ReportView:
    """A named view definition"""
    name: str
    description: str
    builder: ViewBuilder


class ViewRegistry:
    """
    Catalogue of view definitions.

    Example:
        registry = default_registry()
        customers = registry.read("report_customers", warehouse, date.today())
    """

    def __init__(self):
        self._views: Dict[str, ReportView] = {}

    def register(self, name: str, builder: ViewBuilder, description: str = "") -> ReportView:
        """Add or replace a view definition"""
        view = ReportView(name=name, description=description, builder=builder)
        self._views[name] = view
        return view

    def get(self, name: str) -> ReportView:
        try:
            return self._views[name]
        except KeyError:
            raise UnknownViewError(name) from None

    def names(self) -> List[str]:
        return sorted(self._views)

    def views(self) -> List[ReportView]:
        return [self._views[name] for name in self.names()]

    def __contains__(self, name: str) -> bool:
        return name in self._views

    def read(
        self,
        name: str,
        warehouse: SalesWarehouse,
        reference_date: Optional[date] = None,
    ) -> pl.DataFrame:
        """Compute a view's rows from the current warehouse contents"""
        view = self.get(name)
        reference_date = reference_date or date.today()
        df = view.builder(warehouse, reference_date)
        logger.debug("View computed", view=name, rows=df.height)
        return df


def _ignore_date(func: Callable[[SalesWarehouse], pl.DataFrame]) -> ViewBuilder:
    def builder(warehouse: SalesWarehouse, reference_date: date) -> pl.DataFrame:
        return func(warehouse)
    return builder


def _dimension(key: str) -> ViewBuilder:
    return _ignore_date(lambda warehouse: explore_dimensions(warehouse)[key])


def default_registry() -> ViewRegistry:
    """Registry holding the two reports and every exploratory analysis"""
    registry = ViewRegistry()

    # Reports
    registry.register("report_customers", build_customer_report, "Customer KPIs, age group and value segment")
    registry.register("report_products", build_product_report, "Product KPIs and performance tier")

    # Exploration
    registry.register("dimension_countries", _dimension("countries"), "Distinct customer countries")
    registry.register("dimension_product_hierarchy", _dimension("product_hierarchy"), "Category, subcategory and product names")
    registry.register("date_range", explore_date_range, "Order history span and customer age range")
    registry.register("key_metrics", _ignore_date(key_metrics), "Headline business measures")

    for dimension in MagnitudeDimension:
        registry.register(
            f"magnitude_{dimension.value}",
            _ignore_date(partial(magnitude, dimension=dimension)),
            f"Magnitude analysis: {dimension.value.replace('_', ' ')}",
        )

    # Ranking
    registry.register("top_products", _ignore_date(partial(rank_products, n=5)), "Five highest-revenue products")
    registry.register("bottom_products", _ignore_date(partial(rank_products, n=5, ascending=True)), "Five lowest-revenue products")
    registry.register("top_customers", _ignore_date(partial(rank_customers, n=10)), "Ten highest-revenue customers")
    registry.register(
        "fewest_order_customers",
        _ignore_date(partial(rank_customers, n=3, by=CustomerRanking.FEWEST_ORDERS)),
        "Three customers with the fewest orders",
    )

    # Trends
    for granularity in Granularity:
        registry.register(
            f"sales_by_{granularity.value}",
            _ignore_date(partial(sales_over_time, granularity=granularity)),
            f"Sales, customers and quantity per {granularity.value}",
        )
        registry.register(
            f"cumulative_sales_by_{granularity.value}",
            _ignore_date(partial(cumulative_sales, granularity=granularity)),
            f"Running total sales and moving average price per {granularity.value}",
        )
    registry.register("product_yearly_performance", _ignore_date(yearly_product_performance), "Product sales vs. average and previous year")

    # Part-to-whole and segmentation
    registry.register("category_contribution", _ignore_date(category_contribution), "Share of sales per category")
    registry.register("product_cost_ranges", _ignore_date(product_cost_ranges), "Products per cost band")
    registry.register("customer_segments", customer_segment_counts, "Customers per value segment")

    return registry
