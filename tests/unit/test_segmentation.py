"""
Unit Tests - Segmentation & KPI Rules
"""
from datetime import date

import polars as pl
import pytest

from sales_analytics.transformation.segmentation import (
    AgeGroup,
    AverageComparison,
    CostSegment,
    CustomerSegment,
    PerformanceSegment,
    PeriodChange,
    age_group,
    age_group_expr,
    average_per_month,
    average_per_month_expr,
    average_per_order,
    average_per_order_expr,
    compare_to_average,
    compare_to_average_expr,
    compare_to_previous,
    cost_segment,
    cost_segment_expr,
    customer_segment,
    customer_segment_expr,
    month_diff,
    month_diff_expr,
    months_until_expr,
    performance_segment,
    performance_segment_expr,
    year_diff,
    years_until_expr,
)


class TestDateDifferences:
    """Tests for calendar boundary differences"""

    def test_month_diff_counts_boundaries(self):
        """31 Jan to 1 Feb is one month; 1 Jan to 31 Jan is none"""
        assert month_diff(date(2013, 1, 31), date(2013, 2, 1)) == 1
        assert month_diff(date(2013, 1, 1), date(2013, 1, 31)) == 0

    def test_month_diff_across_years(self):
        assert month_diff(date(2010, 12, 29), date(2014, 1, 28)) == 37

    def test_year_diff_counts_boundaries(self):
        assert year_diff(date(2013, 12, 31), date(2014, 1, 1)) == 1
        assert year_diff(date(1990, 5, 10), date(2024, 6, 15)) == 34

    def test_month_diff_expr_matches_scalar(self):
        df = pl.DataFrame({
            "start": [date(2013, 1, 31), date(2010, 12, 29), None],
            "end": [date(2013, 2, 1), date(2014, 1, 28), date(2014, 1, 28)],
        })

        result = df.select(month_diff_expr("start", "end").alias("diff"))

        assert result["diff"].to_list() == [1, 37, None]

    def test_until_reference_date(self):
        df = pl.DataFrame({"d": [date(2021, 1, 20), date(1990, 5, 10)]})

        result = df.select(
            months_until_expr("d", date(2024, 6, 15)).alias("months"),
            years_until_expr("d", date(2024, 6, 15)).alias("years"),
        )

        assert result["months"].to_list() == [41, 409]
        assert result["years"].to_list() == [3, 34]


class TestCustomerSegment:
    """Tests for VIP / Regular / New"""

    def test_vip(self):
        assert customer_segment(12, 5000.01) == CustomerSegment.VIP

    def test_regular_at_sales_boundary(self):
        """Exactly 5000 is not strictly above the VIP threshold"""
        assert customer_segment(12, 5000) == CustomerSegment.REGULAR

    def test_new_below_lifespan(self):
        assert customer_segment(11, 1_000_000) == CustomerSegment.NEW

    def test_null_inputs_are_new(self):
        assert customer_segment(None, 9000) == CustomerSegment.NEW
        assert customer_segment(24, None) == CustomerSegment.NEW

    def test_expr_matches_scalar(self):
        cases = [(12, 5000.01), (12, 5000.0), (11, 99999.0), (0, 0.0), (None, 9000.0), (24, None)]
        df = pl.DataFrame(
            {"lifespan": [c[0] for c in cases], "total_sales": [c[1] for c in cases]},
            schema={"lifespan": pl.Int64, "total_sales": pl.Float64},
        )

        result = df.select(customer_segment_expr().alias("segment"))["segment"].to_list()

        assert result == [customer_segment(*c).value for c in cases]


class TestAgeGroup:
    """Tests for age bands"""

    @pytest.mark.parametrize("age,expected", [
        (0, AgeGroup.UNDER_20),
        (19, AgeGroup.UNDER_20),
        (20, AgeGroup.TWENTIES),
        (29, AgeGroup.TWENTIES),
        (30, AgeGroup.THIRTIES),
        (39, AgeGroup.THIRTIES),
        (40, AgeGroup.FORTIES),
        (49, AgeGroup.FORTIES),
        (50, AgeGroup.FIFTY_PLUS),
        (None, AgeGroup.FIFTY_PLUS),
    ])
    def test_age_group(self, age, expected):
        assert age_group(age) == expected

    def test_expr_null_age_is_fifty_and_above(self):
        df = pl.DataFrame({"age": [19, 45, None]}, schema={"age": pl.Int64})

        result = df.select(age_group_expr().alias("g"))["g"].to_list()

        assert result == ["Under 20", "40-49", "50 and above"]


class TestCostSegment:
    """Tests for cost bands"""

    @pytest.mark.parametrize("cost,expected", [
        (99.99, CostSegment.BELOW_100),
        (100, CostSegment.FROM_100_TO_500),
        (500, CostSegment.FROM_100_TO_500),
        (500.01, CostSegment.FROM_500_TO_1000),
        (1000, CostSegment.FROM_500_TO_1000),
        (1000.01, CostSegment.ABOVE_1000),
        (None, CostSegment.ABOVE_1000),
    ])
    def test_cost_segment(self, cost, expected):
        assert cost_segment(cost) == expected

    def test_expr_shared_edges_take_first_band(self):
        df = pl.DataFrame({"cost": [500.0, 1000.0, None]}, schema={"cost": pl.Float64})

        result = df.select(cost_segment_expr().alias("band"))["band"].to_list()

        assert result == ["100-500", "500-1000", "Above 1000"]


class TestPerformanceSegment:
    """Tests for product revenue tiers"""

    @pytest.mark.parametrize("sales,expected", [
        (50000.01, PerformanceSegment.HIGH),
        (50000, PerformanceSegment.MID),
        (10000, PerformanceSegment.MID),
        (9999.99, PerformanceSegment.LOW),
        (None, PerformanceSegment.LOW),
    ])
    def test_performance_segment(self, sales, expected):
        assert performance_segment(sales) == expected

    def test_expr_boundaries(self):
        df = pl.DataFrame({"total_sales": [50001.0, 50000.0, 10000.0, 9999.0]})

        result = df.select(performance_segment_expr().alias("tier"))["tier"].to_list()

        assert result == ["High-Performer", "Mid-Range", "Mid-Range", "Low-Performer"]


class TestKpiFormulas:
    """Tests for derived averages"""

    def test_average_per_order(self):
        assert average_per_order(6010, 2) == 3005

    def test_average_per_order_with_no_orders(self):
        assert average_per_order(100, 0) == 0

    def test_average_per_month(self):
        assert average_per_month(6000, 12) == 500

    def test_average_per_month_zero_lifespan(self):
        """A zero lifespan returns total sales unchanged"""
        assert average_per_month(20, 0) == 20

    def test_exprs_guard_zero_denominators(self):
        df = pl.DataFrame({
            "total_sales": [100.0, 6000.0],
            "total_orders": [0, 2],
            "lifespan": [0, 12],
        })

        result = df.select(
            average_per_order_expr().alias("aov"),
            average_per_month_expr().alias("monthly"),
        )

        assert result["aov"].to_list() == [0.0, 3000.0]
        assert result["monthly"].to_list() == [100.0, 500.0]


class TestComparisons:
    """Tests for average and previous-period comparisons"""

    def test_compare_to_average(self):
        assert compare_to_average(10) == AverageComparison.ABOVE
        assert compare_to_average(-10) == AverageComparison.BELOW
        assert compare_to_average(0) == AverageComparison.AVG
        assert compare_to_average(None) is None

    def test_compare_to_previous(self):
        assert compare_to_previous(1) == PeriodChange.INCREASE
        assert compare_to_previous(-1) == PeriodChange.DECREASE
        assert compare_to_previous(0) == PeriodChange.NO_CHANGE
        assert compare_to_previous(None) is None

    def test_expr_keeps_null(self):
        df = pl.DataFrame({"diff": [5.0, None]})

        result = df.select(compare_to_average_expr("diff").alias("c"))["c"].to_list()

        assert result == ["Above Avg", None]
