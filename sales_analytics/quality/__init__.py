"""
Data Quality Module
"""
from .validators import (
    QualityRule,
    ValidationResult,
    ValidationSeverity,
    ValidationStatus,
    WarehouseValidator,
    validate_warehouse,
    warehouse_rules,
)

__all__ = [
    "QualityRule",
    "ValidationResult",
    "ValidationSeverity",
    "ValidationStatus",
    "WarehouseValidator",
    "validate_warehouse",
    "warehouse_rules",
]
