"""
Warehouse Table Schemas

Fixed column types for the fact and dimension tables, and the immutable
container the analytics layer consumes.
"""

from dataclasses import dataclass
from typing import Dict, List

import polars as pl


FACT_SALES_TABLE = "fact_sales"
CUSTOMERS_TABLE = "dim_customers"
PRODUCTS_TABLE = "dim_products"


FACT_SALES_SCHEMA: Dict[str, pl.DataType] = {
    "order_number": pl.Utf8,
    "product_key": pl.Int64,
    "customer_key": pl.Int64,
    "order_date": pl.Date,
    "shipping_date": pl.Date,
    "due_date": pl.Date,
    "sales_amount": pl.Float64,
    "quantity": pl.Int64,
    "price": pl.Float64,
}

CUSTOMERS_SCHEMA: Dict[str, pl.DataType] = {
    "customer_key": pl.Int64,
    "customer_number": pl.Utf8,
    "first_name": pl.Utf8,
    "last_name": pl.Utf8,
    "country": pl.Utf8,
    "marital_status": pl.Utf8,
    "gender": pl.Utf8,
    "birthdate": pl.Date,
    "create_date": pl.Date,
}

PRODUCTS_SCHEMA: Dict[str, pl.DataType] = {
    "product_key": pl.Int64,
    "product_number": pl.Utf8,
    "product_name": pl.Utf8,
    "category": pl.Utf8,
    "subcategory": pl.Utf8,
    "cost": pl.Float64,
    "product_line": pl.Utf8,
    "start_date": pl.Date,
}

# Columns a source table must provide; the rest are filled with nulls
REQUIRED_COLUMNS: Dict[str, List[str]] = {
    FACT_SALES_TABLE: [
        "order_number",
        "order_date",
        "customer_key",
        "product_key",
        "sales_amount",
        "quantity",
        "price",
    ],
    CUSTOMERS_TABLE: ["customer_key", "customer_number", "first_name", "last_name", "birthdate"],
    PRODUCTS_TABLE: ["product_key", "product_name", "category", "subcategory", "cost"],
}

TABLE_SCHEMAS: Dict[str, Dict[str, pl.DataType]] = {
    FACT_SALES_TABLE: FACT_SALES_SCHEMA,
    CUSTOMERS_TABLE: CUSTOMERS_SCHEMA,
    PRODUCTS_TABLE: PRODUCTS_SCHEMA,
}


class WarehouseLoadError(Exception):
    """Raised when a warehouse table cannot be read or conformed"""


def _coerce(name: str, source: pl.DataType, target: pl.DataType) -> pl.Expr:
    col = pl.col(name)
    if target == pl.Date:
        if source == pl.Utf8:
            return col.str.strip_chars().str.to_date("%Y-%m-%d", strict=False)
        if source == pl.Datetime:
            return col.dt.date()
        if source == pl.Date:
            return col
    return col.cast(target, strict=False)


def conform_to_schema(df: pl.DataFrame, table: str) -> pl.DataFrame:
    """
    Select and cast a raw table to its fixed schema.

    Missing optional columns are added as nulls; values that cannot be cast
    (e.g. a malformed date) become null instead of failing the load.

    Raises:
        WarehouseLoadError: If a required column is absent
    """
    schema = TABLE_SCHEMAS[table]
    missing = [c for c in REQUIRED_COLUMNS[table] if c not in df.columns]
    if missing:
        raise WarehouseLoadError(f"Table '{table}' is missing columns: {missing}")

    exprs = []
    for name, dtype in schema.items():
        if name in df.columns:
            exprs.append(_coerce(name, df.schema[name], dtype).alias(name))
        else:
            exprs.append(pl.lit(None, dtype=dtype).alias(name))

    return df.select(exprs)


def empty_table(table: str) -> pl.DataFrame:
    """Zero-row frame with the table's schema"""
    return pl.DataFrame(schema=TABLE_SCHEMAS[table])


@dataclass(frozen=True)
class SalesWarehouse:
    """
    Read-only snapshot of the three warehouse tables.

    Every analysis is recomputed from these frames; nothing writes back.
    """
    sales: pl.DataFrame
    customers: pl.DataFrame
    products: pl.DataFrame

    @classmethod
    def from_frames(
        cls,
        sales: pl.DataFrame,
        customers: pl.DataFrame,
        products: pl.DataFrame,
    ) -> "SalesWarehouse":
        """Build a warehouse from raw frames, conforming each to its schema"""
        return cls(
            sales=conform_to_schema(sales, FACT_SALES_TABLE),
            customers=conform_to_schema(customers, CUSTOMERS_TABLE),
            products=conform_to_schema(products, PRODUCTS_TABLE),
        )

    @property
    def row_counts(self) -> Dict[str, int]:
        return {
            FACT_SALES_TABLE: self.sales.height,
            CUSTOMERS_TABLE: self.customers.height,
            PRODUCTS_TABLE: self.products.height,
        }
