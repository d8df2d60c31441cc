"""
Database Module
"""
from .connection import init_database, close_database, get_db, get_engine, missing_tables
from .models import Base, DimCustomer, DimProduct, FactSales

__all__ = [
    "init_database",
    "close_database",
    "get_db",
    "get_engine",
    "missing_tables",
    "Base",
    "DimCustomer",
    "DimProduct",
    "FactSales",
]
