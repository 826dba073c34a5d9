"""Pipeline orchestration module."""

from src.pipeline.orchestrator import (
    RunResult,
    export_collection_csv,
    process_sales_csv,
    run_daily_report,
    step_test_connection,
)

__all__ = [
    "RunResult",
    "export_collection_csv",
    "process_sales_csv",
    "run_daily_report",
    "step_test_connection",
]
