"""
Unit Tests - Warehouse Loading
"""
from datetime import date

import polars as pl
import pytest
from sqlalchemy import insert
from sqlalchemy.ext.asyncio import create_async_engine

from sales_analytics.database.models import Base, DimCustomer, DimProduct, FactSales
from sales_analytics.ingestion import (
    FileFormat,
    SalesWarehouse,
    WarehouseLoadError,
    WarehouseLoader,
    load_warehouse_from_database,
)
from sales_analytics.ingestion.schemas import conform_to_schema, empty_table


def _write_tables(path, sales, customers, products, prefix: str = "", fmt: str = "csv"):
    for name, df in (("fact_sales", sales), ("dim_customers", customers), ("dim_products", products)):
        target = path / f"{prefix}{name}.{fmt}"
        if fmt == "csv":
            df.write_csv(target)
        else:
            df.write_parquet(target)


class TestSchemas:
    """Tests for schema conformance"""

    def test_conform_adds_optional_columns(self, sample_products_df):
        result = conform_to_schema(sample_products_df, "dim_products")

        assert "product_line" in result.columns
        assert result["product_line"].null_count() == len(result)

    def test_conform_rejects_missing_required_column(self, sample_sales_df):
        with pytest.raises(WarehouseLoadError, match="order_date"):
            conform_to_schema(sample_sales_df.drop("order_date"), "fact_sales")

    def test_malformed_date_becomes_null(self):
        df = pl.DataFrame({
            "customer_key": ["1", "2"],
            "customer_number": ["A", "B"],
            "first_name": ["x", "y"],
            "last_name": ["x", "y"],
            "birthdate": ["1971-10-06", "not a date"],
        })

        result = conform_to_schema(df, "dim_customers")

        assert result["birthdate"].to_list() == [date(1971, 10, 6), None]
        assert result["customer_key"].dtype == pl.Int64

    def test_empty_table(self):
        df = empty_table("fact_sales")

        assert len(df) == 0
        assert df.schema["order_date"] == pl.Date


class TestWarehouseLoader:
    """Tests for file loading"""

    def test_load_csv(self, tmp_path, sample_sales_df, sample_customers_df, sample_products_df):
        _write_tables(tmp_path, sample_sales_df, sample_customers_df, sample_products_df)

        warehouse = WarehouseLoader(tmp_path, FileFormat.CSV).load()

        assert warehouse.row_counts == {"fact_sales": 8, "dim_customers": 4, "dim_products": 4}
        assert warehouse.sales["order_date"].dtype == pl.Date
        assert warehouse.sales["order_date"].null_count() == 1
        assert warehouse.sales["sales_amount"].sum() == 21079.0
        assert warehouse.products["cost"].null_count() == 1

    def test_load_gold_prefixed_csv(self, tmp_path, sample_sales_df, sample_customers_df, sample_products_df):
        _write_tables(tmp_path, sample_sales_df, sample_customers_df, sample_products_df, prefix="gold.")

        warehouse = WarehouseLoader(tmp_path, "csv").load()

        assert len(warehouse.sales) == 8

    def test_load_parquet(self, tmp_path, sample_sales_df, sample_customers_df, sample_products_df):
        _write_tables(tmp_path, sample_sales_df, sample_customers_df, sample_products_df, fmt="parquet")

        warehouse = WarehouseLoader(tmp_path, FileFormat.PARQUET).load()

        assert warehouse.customers["birthdate"].null_count() == 1
        assert warehouse.sales["customer_key"].dtype == pl.Int64

    def test_missing_table(self, tmp_path, sample_sales_df):
        sample_sales_df.write_csv(tmp_path / "fact_sales.csv")

        with pytest.raises(WarehouseLoadError, match="dim_customers"):
            WarehouseLoader(tmp_path, FileFormat.CSV).load()

    def test_null_markers(self, tmp_path):
        (tmp_path / "dim_products.csv").write_text(
            "product_key,product_name,category,subcategory,cost\n"
            "1,Chain,Components,Chains,NULL\n"
            "2,Tube,,Tires,2.5\n"
        )

        df = WarehouseLoader(tmp_path, FileFormat.CSV).read_table("dim_products")

        assert df["cost"].to_list() == [None, 2.5]
        assert df["category"].to_list() == ["Components", None]


class TestDatabaseLoader:
    """Tests for loading through SQLAlchemy"""

    async def test_load_from_database(self, tmp_path):
        engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'warehouse.db'}")
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
            await conn.execute(insert(DimCustomer), [
                {"customer_key": 1, "customer_number": "AW1", "first_name": "Ann", "last_name": "Lee",
                 "country": "Germany", "birthdate": date(1990, 5, 10)},
            ])
            await conn.execute(insert(DimProduct), [
                {"product_key": 10, "product_name": "Road Bike", "category": "Bikes",
                 "subcategory": "Road Bikes", "cost": 1000.0},
            ])
            await conn.execute(insert(FactSales), [
                {"order_number": "SO1", "product_key": 10, "customer_key": 1,
                 "order_date": date(2020, 1, 15), "sales_amount": 3000.0, "quantity": 1, "price": 3000.0},
                {"order_number": "SO2", "product_key": 10, "customer_key": 1,
                 "order_date": None, "sales_amount": 100.0, "quantity": 1, "price": 100.0},
            ])

        try:
            warehouse = await load_warehouse_from_database(engine)
        finally:
            await engine.dispose()

        assert isinstance(warehouse, SalesWarehouse)
        assert warehouse.row_counts == {"fact_sales": 2, "dim_customers": 1, "dim_products": 1}
        assert warehouse.sales["order_date"].to_list() == [date(2020, 1, 15), None]
        assert warehouse.customers["birthdate"][0] == date(1990, 5, 10)
        assert "line_id" not in warehouse.sales.columns

    async def test_missing_database_table(self, tmp_path):
        engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'partial.db'}")
        async with engine.begin() as conn:
            await conn.run_sync(DimCustomer.__table__.create)

        try:
            with pytest.raises(WarehouseLoadError, match="fact_sales"):
                await load_warehouse_from_database(engine)
        finally:
            await engine.dispose()
