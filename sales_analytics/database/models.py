"""
Database Models - Star Schema Design

Read-side models of the sales warehouse. The schema consists of:

Fact Tables:
- FactSales: one row per order line

Dimension Tables:
- DimCustomer: customer attributes
- DimProduct: product catalog with categories and cost
"""

from datetime import date
from typing import Optional

from sqlalchemy import (
    Date,
    Float,
    Index,
    Integer,
    String,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Base class for all database models"""
    pass


# =============================================================================
# DIMENSION TABLES
# =============================================================================

class DimCustomer(Base):
    """
    Customer Dimension Table

    Descriptive customer attributes referenced by ``customer_key``.
    """
    __tablename__ = "dim_customers"

    customer_key: Mapped[int] = mapped_column(Integer, primary_key=True)
    customer_id: Mapped[Optional[int]] = mapped_column(Integer)
    customer_number: Mapped[Optional[str]] = mapped_column(String(50))
    first_name: Mapped[Optional[str]] = mapped_column(String(100))
    last_name: Mapped[Optional[str]] = mapped_column(String(100))
    country: Mapped[Optional[str]] = mapped_column(String(100))
    marital_status: Mapped[Optional[str]] = mapped_column(String(20))
    gender: Mapped[Optional[str]] = mapped_column(String(20))
    birthdate: Mapped[Optional[date]] = mapped_column(Date)
    create_date: Mapped[Optional[date]] = mapped_column(Date)

    __table_args__ = (
        Index("ix_dim_customers_country", "country"),
    )


class DimProduct(Base):
    """
    Product Dimension Table

    Product catalog with category hierarchy and unit cost.
    """
    __tablename__ = "dim_products"

    product_key: Mapped[int] = mapped_column(Integer, primary_key=True)
    product_id: Mapped[Optional[int]] = mapped_column(Integer)
    product_number: Mapped[Optional[str]] = mapped_column(String(50))
    product_name: Mapped[Optional[str]] = mapped_column(String(200))
    category_id: Mapped[Optional[str]] = mapped_column(String(20))
    category: Mapped[Optional[str]] = mapped_column(String(100))
    subcategory: Mapped[Optional[str]] = mapped_column(String(100))
    maintenance: Mapped[Optional[str]] = mapped_column(String(20))
    cost: Mapped[Optional[float]] = mapped_column(Float)
    product_line: Mapped[Optional[str]] = mapped_column(String(50))
    start_date: Mapped[Optional[date]] = mapped_column(Date)

    __table_args__ = (
        Index("ix_dim_products_category", "category"),
    )


# =============================================================================
# FACT TABLES
# =============================================================================

class FactSales(Base):
    """
    Sales Fact Table

    Grain is one order line. Keys reference the dimensions but are not enforced
    as foreign keys: lines whose customer or product is missing from the
    dimension tables are valid and still count towards sales totals.
    """
    __tablename__ = "fact_sales"

    # Order lines have no natural single-column key
    line_id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    order_number: Mapped[str] = mapped_column(String(50), nullable=False)
    product_key: Mapped[Optional[int]] = mapped_column(Integer)
    customer_key: Mapped[Optional[int]] = mapped_column(Integer)
    order_date: Mapped[Optional[date]] = mapped_column(Date)
    shipping_date: Mapped[Optional[date]] = mapped_column(Date)
    due_date: Mapped[Optional[date]] = mapped_column(Date)
    sales_amount: Mapped[Optional[float]] = mapped_column(Float)
    quantity: Mapped[Optional[int]] = mapped_column(Integer)
    price: Mapped[Optional[float]] = mapped_column(Float)

    __table_args__ = (
        Index("ix_fact_sales_order_date", "order_date"),
        Index("ix_fact_sales_customer", "customer_key"),
        Index("ix_fact_sales_product", "product_key"),
    )
