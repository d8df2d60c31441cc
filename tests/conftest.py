"""
Test Suite Configuration
"""
from datetime import date

import polars as pl
import pytest

from sales_analytics.config import Settings
from sales_analytics.ingestion import SalesWarehouse


REFERENCE_DATE = date(2024, 6, 15)


@pytest.fixture(scope="session")
def test_settings() -> Settings:
    """Create test settings"""
    return Settings(
        app_env="testing",
        debug=True,
    )


@pytest.fixture
def reference_date() -> date:
    return REFERENCE_DATE


@pytest.fixture
def sample_sales_df() -> pl.DataFrame:
    """
    Sales lines for testing.

    Customer 1 spends 6010 over exactly 12 months (VIP), customer 2 spends
    exactly 5000 over 12 months (Regular), customer 3 buys once with a zero
    quantity line. One line has no order date and one references a customer
    and product missing from the dimensions.
    """
    return pl.DataFrame({
        "order_number": ["SO1", "SO1", "SO2", "SO3", "SO4", "SO5", "SO6", "SO7"],
        "order_date": [
            date(2020, 1, 15),
            date(2020, 1, 15),
            date(2021, 1, 20),
            date(2020, 3, 1),
            date(2021, 3, 31),
            date(2021, 6, 10),
            None,
            date(2021, 6, 10),
        ],
        "customer_key": [1, 1, 1, 2, 2, 3, 1, 99],
        "product_key": [10, 30, 10, 20, 20, 30, 10, 99],
        "sales_amount": [3000.0, 10.0, 3000.0, 1000.0, 4000.0, 20.0, 9999.0, 50.0],
        "quantity": [1, 2, 1, 2, 8, 0, 1, 1],
        "price": [3000.0, 5.0, 3000.0, 500.0, 500.0, 5.0, 9999.0, 50.0],
    })


@pytest.fixture
def sample_customers_df() -> pl.DataFrame:
    """Create sample customers DataFrame for testing"""
    return pl.DataFrame({
        "customer_key": [1, 2, 3, 4],
        "customer_number": ["AW00011000", "AW00011001", "AW00011002", "AW00011003"],
        "first_name": ["Ann", "Bob", "Cid", "Dee"],
        "last_name": ["Lee", "Ray", "Moe", "Fox"],
        "country": ["Germany", "France", "Germany", None],
        "gender": ["Female", "Male", "Male", "Female"],
        "birthdate": [date(1990, 5, 10), date(2006, 1, 1), None, date(1960, 3, 3)],
    })


@pytest.fixture
def sample_products_df() -> pl.DataFrame:
    """Create sample products DataFrame for testing"""
    return pl.DataFrame({
        "product_key": [10, 20, 30, 40],
        "product_name": ["Road Bike", "Helmet", "Socks", "Frame"],
        "category": ["Bikes", "Accessories", "Clothing", "Components"],
        "subcategory": ["Road Bikes", "Helmets", "Socks", "Frames"],
        "cost": [1000.0, 500.0, 5.0, None],
    })


@pytest.fixture
def warehouse(sample_sales_df, sample_customers_df, sample_products_df) -> SalesWarehouse:
    """Conformed warehouse built from the sample frames"""
    return SalesWarehouse.from_frames(
        sales=sample_sales_df,
        customers=sample_customers_df,
        products=sample_products_df,
    )


def _make_warehouse(sales: dict, customers: dict = None, products: dict = None) -> SalesWarehouse:
    customers = customers or {
        "customer_key": [], "customer_number": [], "first_name": [], "last_name": [], "birthdate": [],
    }
    products = products or {
        "product_key": [], "product_name": [], "category": [], "subcategory": [], "cost": [],
    }
    return SalesWarehouse.from_frames(
        sales=pl.DataFrame(sales, strict=False),
        customers=pl.DataFrame(customers, strict=False),
        products=pl.DataFrame(products, strict=False),
    )


@pytest.fixture
def make_warehouse():
    """Factory for small ad-hoc warehouses; omitted dimensions are empty"""
    return _make_warehouse
