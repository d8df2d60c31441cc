"""
Warehouse Quality Rules

Each rule flags the rows of one warehouse table that break a data contract.
Reporting tolerates several of these conditions (undated sales lines, keys
with no dimension row, zero quantities), so those rules are warnings: they
show up in the run summary and the reports are still built. Nothing here
filters or rewrites a table.
"""

from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from enum import Enum
from typing import Callable, Dict, List, Optional

import polars as pl
import structlog

from sales_analytics.ingestion.schemas import SalesWarehouse

logger = structlog.get_logger(__name__)

AMOUNT_TOLERANCE = 0.01


class ValidationSeverity(str, Enum):
    """How a broken rule affects the table status"""
    ERROR = "error"  # table unusable for reporting
    WARNING = "warning"  # tolerated, reported
    INFO = "info"


class ValidationStatus(str, Enum):
    """Status of one table"""
    PASSED = "passed"
    FAILED = "failed"
    PARTIAL = "partial"


ERROR = ValidationSeverity.ERROR
WARNING = ValidationSeverity.WARNING
INFO = ValidationSeverity.INFO


@dataclass(frozen=True)
class QualityRule:
    """
    A row-level data contract on one table.

    ``flags`` builds a boolean expression that is true for offending rows. It
    receives the whole warehouse so cross-table rules can look up dimension
    keys.
    """
    name: str
    table: str
    severity: ValidationSeverity
    description: str
    flags: Callable[[SalesWarehouse], pl.Expr]


@dataclass
class RuleOutcome:
    """Result of evaluating one rule"""
    name: str
    severity: ValidationSeverity
    failed_rows: int
    total_rows: int
    message: str

    @property
    def passed(self) -> bool:
        return self.failed_rows == 0


@dataclass
class ValidationResult:
    """All rule outcomes for one table"""
    table: str
    status: ValidationStatus
    checks: List[RuleOutcome] = field(default_factory=list)
    checked_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def total_checks(self) -> int:
        return len(self.checks)

    @property
    def passed_checks(self) -> int:
        return sum(1 for c in self.checks if c.passed)

    @property
    def failed_checks(self) -> int:
        return self._broken(ERROR)

    @property
    def warning_count(self) -> int:
        return self._broken(WARNING)

    @property
    def success_rate(self) -> float:
        """Percentage of rules with no offending rows"""
        if not self.checks:
            return 100.0
        return self.passed_checks / self.total_checks * 100

    def check(self, name: str) -> RuleOutcome:
        return next(c for c in self.checks if c.name == name)

    def _broken(self, severity: ValidationSeverity) -> int:
        return sum(1 for c in self.checks if not c.passed and c.severity == severity)


def _unknown_key(dimension: str, key: str) -> Callable[[SalesWarehouse], pl.Expr]:
    def flags(warehouse: SalesWarehouse) -> pl.Expr:
        keys = getattr(warehouse, dimension)[key].drop_nulls().unique().to_list()
        if not keys:
            return pl.col(key).is_not_null()
        return pl.col(key).is_not_null() & ~pl.col(key).is_in(keys)
    return flags


def _repeated(key: str) -> Callable[[SalesWarehouse], pl.Expr]:
    # every occurrence of a key after its first
    return lambda _: pl.col(key).is_not_null() & ~pl.col(key).is_first_distinct()


def _precedes(later: str, earlier: str) -> Callable[[SalesWarehouse], pl.Expr]:
    return lambda _: pl.col(later) < pl.col(earlier)


def _amount_mismatch(_: SalesWarehouse) -> pl.Expr:
    expected = pl.col("quantity") * pl.col("price")
    return (pl.col("sales_amount") - expected).abs() > AMOUNT_TOLERANCE


def _null(column: str) -> Callable[[SalesWarehouse], pl.Expr]:
    return lambda _: pl.col(column).is_null()


def _below(column: str, bound: float, inclusive: bool = False) -> Callable[[SalesWarehouse], pl.Expr]:
    if inclusive:
        return lambda _: pl.col(column) <= bound
    return lambda _: pl.col(column) < bound


def warehouse_rules(today: Optional[date] = None) -> List[QualityRule]:
    """The rule set applied to every warehouse load"""
    today = today or date.today()
    return [
        QualityRule("order_number_present", "fact_sales", ERROR,
                    "sales line without an order number", _null("order_number")),
        QualityRule("order_date_present", "fact_sales", WARNING,
                    "undated sales line, left out of every report", _null("order_date")),
        QualityRule("quantity_positive", "fact_sales", WARNING,
                    "sales line with zero or negative quantity", _below("quantity", 0, inclusive=True)),
        QualityRule("sales_amount_non_negative", "fact_sales", WARNING,
                    "negative sales amount", _below("sales_amount", 0)),
        QualityRule("customer_known", "fact_sales", WARNING,
                    "customer key missing from dim_customers", _unknown_key("customers", "customer_key")),
        QualityRule("product_known", "fact_sales", WARNING,
                    "product key missing from dim_products", _unknown_key("products", "product_key")),
        QualityRule("shipped_after_order", "fact_sales", WARNING,
                    "shipping date before the order date", _precedes("shipping_date", "order_date")),
        QualityRule("due_after_order", "fact_sales", WARNING,
                    "due date before the order date", _precedes("due_date", "order_date")),
        QualityRule("sales_amount_matches_quantity_price", "fact_sales", INFO,
                    "sales amount differs from quantity * price", _amount_mismatch),

        QualityRule("customer_key_present", "dim_customers", ERROR,
                    "customer row without a key", _null("customer_key")),
        QualityRule("customer_key_unique", "dim_customers", ERROR,
                    "repeated customer key", _repeated("customer_key")),
        QualityRule("birthdate_not_in_future", "dim_customers", WARNING,
                    "birthdate after today", lambda _: pl.col("birthdate") > pl.lit(today)),

        QualityRule("product_key_present", "dim_products", ERROR,
                    "product row without a key", _null("product_key")),
        QualityRule("product_key_unique", "dim_products", ERROR,
                    "repeated product key", _repeated("product_key")),
        QualityRule("cost_non_negative", "dim_products", WARNING,
                    "negative product cost", _below("cost", 0)),
    ]


class WarehouseValidator:
    """
    Evaluates quality rules table by table.

    A table FAILS when an ERROR rule has offending rows, or when a WARNING
    rule does and ``strict_mode`` is on. Otherwise broken WARNING rules give
    PARTIAL. INFO rules never change the status.

    Example:
        results = WarehouseValidator().validate(warehouse)
        results["fact_sales"].check("customer_known").failed_rows
    """

    def __init__(self, rules: Optional[List[QualityRule]] = None, strict_mode: bool = False):
        self.rules = rules if rules is not None else warehouse_rules()
        self.strict_mode = strict_mode

    def validate(self, warehouse: SalesWarehouse) -> Dict[str, ValidationResult]:
        tables = {
            "fact_sales": warehouse.sales,
            "dim_customers": warehouse.customers,
            "dim_products": warehouse.products,
        }
        return {
            table: self.validate_table(table, df, warehouse)
            for table, df in tables.items()
        }

    def validate_table(self, table: str, df: pl.DataFrame, warehouse: SalesWarehouse) -> ValidationResult:
        rules = [r for r in self.rules if r.table == table]
        counts = {}
        if rules:
            counts = df.select(
                [r.flags(warehouse).fill_null(False).sum().alias(r.name) for r in rules]
            ).row(0, named=True)

        outcomes = []
        for rule in rules:
            outcome = RuleOutcome(
                name=rule.name,
                severity=rule.severity,
                failed_rows=int(counts[rule.name]),
                total_rows=df.height,
                message=rule.description,
            )
            if not outcome.passed:
                logger.warning(
                    "Quality rule broken",
                    table=table,
                    rule=rule.name,
                    severity=rule.severity.value,
                    rows=outcome.failed_rows,
                )
            outcomes.append(outcome)

        result = ValidationResult(table=table, status=self._status(outcomes), checks=outcomes)
        logger.info(
            "Table validated",
            table=table,
            status=result.status.value,
            rows=df.height,
            passed=result.passed_checks,
            checks=result.total_checks,
        )
        return result

    def _status(self, outcomes: List[RuleOutcome]) -> ValidationStatus:
        broken = {o.severity for o in outcomes if not o.passed}
        if ERROR in broken:
            return ValidationStatus.FAILED
        if WARNING in broken:
            return ValidationStatus.FAILED if self.strict_mode else ValidationStatus.PARTIAL
        return ValidationStatus.PASSED


def validate_warehouse(warehouse: SalesWarehouse, strict_mode: bool = False) -> Dict[str, ValidationResult]:
    """Run the standard rules over all three tables"""
    return WarehouseValidator(strict_mode=strict_mode).validate(warehouse)
