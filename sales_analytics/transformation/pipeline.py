"""
Report Pipeline

Validates the source tables, computes views and writes them to the export
zone.
"""

from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Dict, List, Optional, Union

import polars as pl
import structlog

from sales_analytics.config import get_settings
from sales_analytics.ingestion.schemas import SalesWarehouse
from sales_analytics.quality.validators import ValidationResult, ValidationStatus, validate_warehouse
from sales_analytics.serving.views import ViewRegistry, default_registry

logger = structlog.get_logger(__name__)

REPORT_VIEWS = ["report_customers", "report_products"]


class ExportFormat(str, Enum):
    """Materialized view file formats"""
    PARQUET = "parquet"
    CSV = "csv"


@dataclass
class ReportResult:
    """Result of materializing one view"""
    view_name: str
    rows: int
    reference_date: date
    started_at: datetime
    completed_at: datetime
    duration_seconds: float
    output_path: Optional[str] = None
    errors: List[str] = field(default_factory=list)

    @property
    def succeeded(self) -> bool:
        return not self.errors


class ReportPipeline:
    """
    Computes and exports reporting views.

    Example:
        pipeline = ReportPipeline(warehouse, reference_date=date(2014, 1, 1))
        results = pipeline.run()
    """

    def __init__(
        self,
        warehouse: SalesWarehouse,
        registry: Optional[ViewRegistry] = None,
        output_path: Optional[Union[str, Path]] = None,
        export_format: Optional[Union[str, ExportFormat]] = None,
        reference_date: Optional[date] = None,
    ):
        settings = get_settings()
        self.warehouse = warehouse
        self.registry = registry or default_registry()
        self.output_path = Path(output_path or settings.reporting.export_path)
        self.export_format = ExportFormat(export_format or settings.reporting.export_format)
        self.reference_date = reference_date or settings.reporting.resolve_reference_date()

    def validate(self) -> Dict[str, ValidationResult]:
        """Run data quality checks over the source tables"""
        results = validate_warehouse(self.warehouse)
        failed = [table for table, result in results.items() if result.status == ValidationStatus.FAILED]
        if failed:
            logger.error("Source validation failed", tables=failed)
        return results

    def build(self, view_name: str) -> pl.DataFrame:
        """Compute a view without writing it"""
        return self.registry.read(view_name, self.warehouse, self.reference_date)

    def _write_output(self, df: pl.DataFrame, name: str) -> str:
        """Write a computed view to the export zone"""
        self.output_path.mkdir(parents=True, exist_ok=True)
        timestamp = datetime.now(timezone.utc).strftime("%Y%m%d_%H%M%S")
        output_file = self.output_path / f"{name}_{timestamp}.{self.export_format.value}"

        if self.export_format == ExportFormat.PARQUET:
            df.write_parquet(output_file)
        else:
            df.write_csv(output_file)

        logger.info("View written", view=name, rows=df.height, path=str(output_file))
        return str(output_file)

    def materialize(self, view_name: str) -> ReportResult:
        """
        Compute a view and export it.

        IO and computation failures are recorded on the result; an unknown
        view name raises ``UnknownViewError``.
        """
        self.registry.get(view_name)

        started_at = datetime.now(timezone.utc)
        errors: List[str] = []
        output_file = None
        rows = 0

        try:
            df = self.build(view_name)
            rows = df.height
            output_file = self._write_output(df, view_name)
        except (OSError, pl.exceptions.PolarsError) as e:
            logger.error("View materialization failed", view=view_name, error=str(e))
            errors.append(str(e))

        completed_at = datetime.now(timezone.utc)

        return ReportResult(
            view_name=view_name,
            rows=rows,
            reference_date=self.reference_date,
            started_at=started_at,
            completed_at=completed_at,
            duration_seconds=(completed_at - started_at).total_seconds(),
            output_path=output_file,
            errors=errors,
        )

    def run(self, view_names: Optional[List[str]] = None) -> Dict[str, ReportResult]:
        """
        Materialize several views, the two reports by default.

        Args:
            view_names: Views to export

        Returns:
            Dictionary of results by view name
        """
        view_names = view_names or REPORT_VIEWS
        logger.info("Starting report pipeline", views=view_names, reference_date=self.reference_date.isoformat())

        results = {name: self.materialize(name) for name in view_names}

        total_rows = sum(r.rows for r in results.values())
        total_duration = sum(r.duration_seconds for r in results.values())
        logger.info(
            "Report pipeline complete",
            views=len(results),
            rows=total_rows,
            failed=sum(1 for r in results.values() if not r.succeeded),
            duration_seconds=round(total_duration, 3),
        )

        return results
