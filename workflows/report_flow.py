"""
Prefect Workflow Orchestration - Report Refresh

Scheduled workflow that reloads the warehouse, checks data quality and
exports the reporting views.
"""

from datetime import date
from typing import List, Optional

from prefect import flow, task, get_run_logger

from sales_analytics.config import get_settings
from sales_analytics.ingestion import SalesWarehouse, load_warehouse
from sales_analytics.transformation.pipeline import REPORT_VIEWS, ReportPipeline


# =============================================================================
# TASKS
# =============================================================================

@task(
    name="load_warehouse",
    description="Read fact and dimension tables",
    retries=3,
    retry_delay_seconds=60,
)
async def load_warehouse_task() -> SalesWarehouse:
    """Load the warehouse from the configured source"""
    logger = get_run_logger()
    warehouse = await load_warehouse()
    logger.info(f"Warehouse loaded: {warehouse.row_counts}")
    return warehouse


@task(
    name="validate_warehouse",
    description="Run data quality validations",
)
def validate_warehouse_task(warehouse: SalesWarehouse) -> dict:
    """Validate the source tables"""
    logger = get_run_logger()
    results = ReportPipeline(warehouse).validate()

    summary = {}
    for table, result in results.items():
        logger.info(
            f"Validation {table} {result.status.value}: "
            f"{result.passed_checks}/{result.total_checks} checks passed"
        )
        summary[table] = {
            "status": result.status.value,
            "passed_checks": result.passed_checks,
            "failed_checks": result.failed_checks,
            "warnings": result.warning_count,
        }
    return summary


@task(
    name="export_view",
    description="Compute and export one reporting view",
    retries=2,
    retry_delay_seconds=30,
)
def export_view_task(
    warehouse: SalesWarehouse,
    view_name: str,
    reference_date: Optional[date] = None,
) -> dict:
    """Materialize a view to the export zone"""
    logger = get_run_logger()
    result = ReportPipeline(warehouse, reference_date=reference_date).materialize(view_name)

    if not result.succeeded:
        raise RuntimeError(f"Export of {view_name} failed: {result.errors}")

    logger.info(f"Exported {view_name}: {result.rows} rows -> {result.output_path}")
    return {
        "view": view_name,
        "rows": result.rows,
        "output_path": result.output_path,
        "duration_seconds": result.duration_seconds,
    }


# =============================================================================
# FLOWS
# =============================================================================

@flow(
    name="refresh_reports",
    description="Reload the warehouse and export the reporting views",
)
async def refresh_reports(
    view_names: Optional[List[str]] = None,
    reference_date: Optional[date] = None,
) -> dict:
    """
    Report refresh pipeline.

    Steps:
    1. Load warehouse tables
    2. Validate data quality
    3. Export each view
    """
    logger = get_run_logger()
    settings = get_settings()

    view_names = view_names or REPORT_VIEWS
    reference_date = reference_date or settings.reporting.resolve_reference_date()

    logger.info(f"Refreshing {view_names} as of {reference_date}")

    warehouse = await load_warehouse_task()
    validation = validate_warehouse_task(warehouse)
    exports = [export_view_task(warehouse, name, reference_date) for name in view_names]

    return {
        "reference_date": reference_date.isoformat(),
        "validation": validation,
        "exports": exports,
        "status": "success",
    }


if __name__ == "__main__":
    import asyncio

    from sales_analytics.config.logging import configure_logging

    configure_logging()
    asyncio.run(refresh_reports())
