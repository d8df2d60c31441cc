"""
Segmentation & KPI Rules

Deterministic classification and derived-metric formulas applied to
aggregated rows. Each rule exists twice: as a scalar function for single
values and as a Polars expression for whole frames. Both evaluate branches in
order and take the first match, with null inputs falling through to the final
branch.
"""

from datetime import date
from enum import Enum
from typing import Optional

import polars as pl


class CustomerSegment(str, Enum):
    """Customer value segments"""
    VIP = "VIP"
    REGULAR = "Regular"
    NEW = "New"


class AgeGroup(str, Enum):
    """Customer age bands"""
    UNDER_20 = "Under 20"
    TWENTIES = "20-29"
    THIRTIES = "30-39"
    FORTIES = "40-49"
    FIFTY_PLUS = "50 and above"


class CostSegment(str, Enum):
    """Product unit cost bands"""
    BELOW_100 = "Below 100"
    FROM_100_TO_500 = "100-500"
    FROM_500_TO_1000 = "500-1000"
    ABOVE_1000 = "Above 1000"


class PerformanceSegment(str, Enum):
    """Product revenue tiers"""
    HIGH = "High-Performer"
    MID = "Mid-Range"
    LOW = "Low-Performer"


class AverageComparison(str, Enum):
    """Position of a value relative to its series mean"""
    ABOVE = "Above Avg"
    BELOW = "Below Avg"
    AVG = "Avg"


class PeriodChange(str, Enum):
    """Direction of change from the previous period"""
    INCREASE = "Increase"
    DECREASE = "Decrease"
    NO_CHANGE = "No Change"


# Thresholds
VIP_MIN_LIFESPAN_MONTHS = 12
VIP_MIN_SALES = 5000
HIGH_PERFORMER_MIN_SALES = 50000
MID_RANGE_MIN_SALES = 10000


# =============================================================================
# SCALAR RULES
# =============================================================================

def month_diff(start: date, end: date) -> int:
    """Number of calendar-month boundaries crossed between two dates"""
    return (end.year - start.year) * 12 + (end.month - start.month)


def year_diff(start: date, end: date) -> int:
    """Number of calendar-year boundaries crossed between two dates"""
    return end.year - start.year


def customer_segment(lifespan: Optional[int], total_sales: Optional[float]) -> CustomerSegment:
    """VIP / Regular for customers of twelve months or more, New otherwise"""
    if lifespan is not None and total_sales is not None and lifespan >= VIP_MIN_LIFESPAN_MONTHS:
        if total_sales > VIP_MIN_SALES:
            return CustomerSegment.VIP
        return CustomerSegment.REGULAR
    return CustomerSegment.NEW


def age_group(age: Optional[int]) -> AgeGroup:
    if age is None:
        return AgeGroup.FIFTY_PLUS
    if age < 20:
        return AgeGroup.UNDER_20
    if 20 <= age <= 29:
        return AgeGroup.TWENTIES
    if 30 <= age <= 39:
        return AgeGroup.THIRTIES
    if 40 <= age <= 49:
        return AgeGroup.FORTIES
    return AgeGroup.FIFTY_PLUS


def cost_segment(cost: Optional[float]) -> CostSegment:
    """
    Band a unit cost.

    The two middle bands share their edges; the first band listed wins, so
    500 is '100-500' and 1000 is '500-1000'.
    """
    if cost is None:
        return CostSegment.ABOVE_1000
    if cost < 100:
        return CostSegment.BELOW_100
    if 100 <= cost <= 500:
        return CostSegment.FROM_100_TO_500
    if 500 <= cost <= 1000:
        return CostSegment.FROM_500_TO_1000
    return CostSegment.ABOVE_1000


def performance_segment(total_sales: Optional[float]) -> PerformanceSegment:
    if total_sales is not None:
        if total_sales > HIGH_PERFORMER_MIN_SALES:
            return PerformanceSegment.HIGH
        if total_sales >= MID_RANGE_MIN_SALES:
            return PerformanceSegment.MID
    return PerformanceSegment.LOW


def average_per_order(total_sales: float, total_orders: int) -> float:
    """Average order value; 0 when there are no orders"""
    if not total_orders:
        return 0
    return total_sales / total_orders


def average_per_month(total_sales: float, lifespan: int) -> float:
    """Average monthly amount; a zero lifespan counts as one whole month"""
    if not lifespan:
        return total_sales
    return total_sales / lifespan


def compare_to_average(diff: Optional[float]) -> Optional[AverageComparison]:
    if diff is None:
        return None
    if diff > 0:
        return AverageComparison.ABOVE
    if diff < 0:
        return AverageComparison.BELOW
    return AverageComparison.AVG


def compare_to_previous(diff: Optional[float]) -> Optional[PeriodChange]:
    if diff is None:
        return None
    if diff > 0:
        return PeriodChange.INCREASE
    if diff < 0:
        return PeriodChange.DECREASE
    return PeriodChange.NO_CHANGE


# =============================================================================
# EXPRESSION RULES
# =============================================================================

def customer_segment_expr(lifespan: str = "lifespan", total_sales: str = "total_sales") -> pl.Expr:
    long_lived = pl.col(lifespan) >= VIP_MIN_LIFESPAN_MONTHS
    return (
        pl.when(long_lived & (pl.col(total_sales) > VIP_MIN_SALES))
        .then(pl.lit(CustomerSegment.VIP.value))
        .when(long_lived & (pl.col(total_sales) <= VIP_MIN_SALES))
        .then(pl.lit(CustomerSegment.REGULAR.value))
        .otherwise(pl.lit(CustomerSegment.NEW.value))
    )


def age_group_expr(age: str = "age") -> pl.Expr:
    return (
        pl.when(pl.col(age) < 20)
        .then(pl.lit(AgeGroup.UNDER_20.value))
        .when(pl.col(age).is_between(20, 29))
        .then(pl.lit(AgeGroup.TWENTIES.value))
        .when(pl.col(age).is_between(30, 39))
        .then(pl.lit(AgeGroup.THIRTIES.value))
        .when(pl.col(age).is_between(40, 49))
        .then(pl.lit(AgeGroup.FORTIES.value))
        .otherwise(pl.lit(AgeGroup.FIFTY_PLUS.value))
    )


def cost_segment_expr(cost: str = "cost") -> pl.Expr:
    return (
        pl.when(pl.col(cost) < 100)
        .then(pl.lit(CostSegment.BELOW_100.value))
        .when(pl.col(cost).is_between(100, 500))
        .then(pl.lit(CostSegment.FROM_100_TO_500.value))
        .when(pl.col(cost).is_between(500, 1000))
        .then(pl.lit(CostSegment.FROM_500_TO_1000.value))
        .otherwise(pl.lit(CostSegment.ABOVE_1000.value))
    )


def performance_segment_expr(total_sales: str = "total_sales") -> pl.Expr:
    return (
        pl.when(pl.col(total_sales) > HIGH_PERFORMER_MIN_SALES)
        .then(pl.lit(PerformanceSegment.HIGH.value))
        .when(pl.col(total_sales) >= MID_RANGE_MIN_SALES)
        .then(pl.lit(PerformanceSegment.MID.value))
        .otherwise(pl.lit(PerformanceSegment.LOW.value))
    )


def month_index(expr: pl.Expr) -> pl.Expr:
    """Months since year 0, so that differences count month boundaries"""
    return expr.dt.year().cast(pl.Int64) * 12 + expr.dt.month().cast(pl.Int64)


def month_diff_expr(start: str, end: str) -> pl.Expr:
    """Calendar months between two date columns"""
    return month_index(pl.col(end)) - month_index(pl.col(start))


def year_diff_expr(start: str, end: str) -> pl.Expr:
    """Calendar years between two date columns"""
    return pl.col(end).dt.year().cast(pl.Int64) - pl.col(start).dt.year().cast(pl.Int64)


def months_until_expr(column: str, reference_date: date) -> pl.Expr:
    """Calendar months from a date column to the reference date"""
    reference_index = reference_date.year * 12 + reference_date.month
    return pl.lit(reference_index, dtype=pl.Int64) - month_index(pl.col(column))


def years_until_expr(column: str, reference_date: date) -> pl.Expr:
    """Calendar years from a date column to the reference date"""
    return pl.lit(reference_date.year, dtype=pl.Int64) - pl.col(column).dt.year().cast(pl.Int64)


def average_per_order_expr(total_sales: str = "total_sales", total_orders: str = "total_orders") -> pl.Expr:
    return (
        pl.when(pl.col(total_orders) == 0)
        .then(pl.lit(0.0))
        .otherwise(pl.col(total_sales) / pl.col(total_orders))
    )


def average_per_month_expr(total_sales: str = "total_sales", lifespan: str = "lifespan") -> pl.Expr:
    return (
        pl.when(pl.col(lifespan) == 0)
        .then(pl.col(total_sales).cast(pl.Float64))
        .otherwise(pl.col(total_sales) / pl.col(lifespan))
    )


def compare_to_average_expr(diff: str) -> pl.Expr:
    return (
        pl.when(pl.col(diff) > 0)
        .then(pl.lit(AverageComparison.ABOVE.value))
        .when(pl.col(diff) < 0)
        .then(pl.lit(AverageComparison.BELOW.value))
        .when(pl.col(diff) == 0)
        .then(pl.lit(AverageComparison.AVG.value))
    )


def compare_to_previous_expr(diff: str) -> pl.Expr:
    return (
        pl.when(pl.col(diff) > 0)
        .then(pl.lit(PeriodChange.INCREASE.value))
        .when(pl.col(diff) < 0)
        .then(pl.lit(PeriodChange.DECREASE.value))
        .when(pl.col(diff) == 0)
        .then(pl.lit(PeriodChange.NO_CHANGE.value))
    )
