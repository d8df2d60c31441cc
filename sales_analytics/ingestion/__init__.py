"""
Warehouse Ingestion Module
"""
from .schemas import (
    SalesWarehouse,
    WarehouseLoadError,
    conform_to_schema,
    empty_table,
)
from .warehouse_loader import (
    FileFormat,
    WarehouseLoader,
    load_warehouse,
    load_warehouse_from_database,
)

__all__ = [
    "SalesWarehouse",
    "WarehouseLoadError",
    "conform_to_schema",
    "empty_table",
    "FileFormat",
    "WarehouseLoader",
    "load_warehouse",
    "load_warehouse_from_database",
]
