"""
Sales Transformation Module
"""
from .aggregators import Granularity, SalesAggregator, truncate_date
from .reports import build_customer_report, build_product_report

__all__ = [
    "Granularity",
    "SalesAggregator",
    "truncate_date",
    "build_customer_report",
    "build_product_report",
]
