"""
Warehouse Loader

Reads the fact and dimension tables into a ``SalesWarehouse``.
Supports:
- CSV and Parquet table files in a directory
- A SQL database through SQLAlchemy
"""

from enum import Enum
from pathlib import Path
from typing import Dict, List, Optional, Union

import polars as pl
import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncEngine

from sales_analytics.config import get_settings
from sales_analytics.database.connection import get_db, get_engine, init_database, missing_tables
from sales_analytics.database.models import DimCustomer, DimProduct, FactSales
from .schemas import (
    CUSTOMERS_TABLE,
    FACT_SALES_TABLE,
    PRODUCTS_TABLE,
    TABLE_SCHEMAS,
    SalesWarehouse,
    WarehouseLoadError,
    conform_to_schema,
)

logger = structlog.get_logger(__name__)


class FileFormat(str, Enum):
    """Supported table file formats"""
    CSV = "csv"
    PARQUET = "parquet"


NULL_VALUES: List[str] = ["", "NULL", "null", "None", "NA", "N/A"]

TABLE_MODELS = {
    FACT_SALES_TABLE: FactSales,
    CUSTOMERS_TABLE: DimCustomer,
    PRODUCTS_TABLE: DimProduct,
}


class WarehouseLoader:
    """
    Loads warehouse tables from a directory of files.

    Each table is looked up as ``<table>.<ext>`` or ``gold.<table>.<ext>``.

    Example:
        loader = WarehouseLoader("data/warehouse", FileFormat.CSV)
        warehouse = loader.load()
    """

    def __init__(
        self,
        data_path: Optional[Union[str, Path]] = None,
        file_format: Optional[Union[str, FileFormat]] = None,
    ):
        settings = get_settings()
        self.data_path = Path(data_path or settings.warehouse.data_path)
        self.file_format = FileFormat(file_format or settings.warehouse.file_format)

    def _locate(self, table: str) -> Path:
        ext = self.file_format.value
        for candidate in (f"{table}.{ext}", f"gold.{table}.{ext}"):
            path = self.data_path / candidate
            if path.exists():
                return path
        raise WarehouseLoadError(
            f"No {ext} file for table '{table}' in {self.data_path}"
        )

    def _read_csv(self, path: Path) -> pl.DataFrame:
        """Read CSV with every column as text; typing happens in conform"""
        return pl.read_csv(
            path,
            null_values=NULL_VALUES,
            infer_schema=False,
        )

    def _read_parquet(self, path: Path) -> pl.DataFrame:
        return pl.read_parquet(path)

    def read_table(self, table: str) -> pl.DataFrame:
        """Read one table and conform it to its schema"""
        path = self._locate(table)
        readers = {
            FileFormat.CSV: self._read_csv,
            FileFormat.PARQUET: self._read_parquet,
        }
        try:
            raw = readers[self.file_format](path)
        except (OSError, pl.exceptions.PolarsError) as e:
            raise WarehouseLoadError(f"Failed to read {path}: {e}") from e

        df = conform_to_schema(raw, table)
        logger.info("Table loaded", table=table, path=str(path), rows=df.height)
        return df

    def load(self) -> SalesWarehouse:
        """Load all three tables"""
        warehouse = SalesWarehouse(
            sales=self.read_table(FACT_SALES_TABLE),
            customers=self.read_table(CUSTOMERS_TABLE),
            products=self.read_table(PRODUCTS_TABLE),
        )
        logger.info("Warehouse loaded", source="files", **warehouse.row_counts)
        return warehouse


async def _read_model(engine: AsyncEngine, table: str) -> pl.DataFrame:
    model = TABLE_MODELS[table]
    schema = TABLE_SCHEMAS[table]
    columns = [getattr(model, name) for name in schema if hasattr(model, name)]

    async with get_db(engine) as db:
        result = await db.execute(select(*columns))
        rows = result.mappings().all()

    data: Dict[str, list] = {name: [row[name] for row in rows] for name in schema if hasattr(model, name)}
    raw = pl.DataFrame(data, schema={name: schema[name] for name in data})
    return conform_to_schema(raw, table)


async def load_warehouse_from_database(engine: Optional[AsyncEngine] = None) -> SalesWarehouse:
    """
    Load all three tables through SQLAlchemy.

    Args:
        engine: Engine to read from; the initialized global engine when omitted

    Raises:
        WarehouseLoadError: If any of the three tables does not exist
    """
    engine = engine or get_engine()
    missing = await missing_tables(engine, TABLE_MODELS)
    if missing:
        raise WarehouseLoadError(f"Database is missing warehouse tables: {missing}")

    sales = await _read_model(engine, FACT_SALES_TABLE)
    customers = await _read_model(engine, CUSTOMERS_TABLE)
    products = await _read_model(engine, PRODUCTS_TABLE)

    warehouse = SalesWarehouse(sales=sales, customers=customers, products=products)
    logger.info("Warehouse loaded", source="database", **warehouse.row_counts)
    return warehouse


async def load_warehouse() -> SalesWarehouse:
    """Load the warehouse from the configured source"""
    settings = get_settings()
    if settings.warehouse.source == "database":
        engine = await init_database()
        return await load_warehouse_from_database(engine)
    return WarehouseLoader().load()
