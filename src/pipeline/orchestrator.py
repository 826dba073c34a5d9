#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Sales Report Pipeline Orchestrator

Workflow (--step report, run daily by cron):
1. Fetch: Download the previous day's collection from the Toteat API
2. Normalize: Reduce the payload to line items (tax split + category)
3. Aggregate: Roll up products and categories into a Report
4. Export: Write the XLSX (and CSV) report to the export directory
5. Notify: Email the XLSX with the run summary (skipped with --no-email)

Other steps:
- csv: Build the same report from an uploaded sales CSV export
- collection: Export the raw collection as one CSV row per payment
- test-connection: Check the Toteat API (or local file) is reachable
"""

import argparse
import logging
import sys
from dataclasses import dataclass
from datetime import date, datetime
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

from src.modules.notify_email import GmailNotifier
from src.modules.sales.aggregate_sales import (
    aggregate,
    build_line_items,
    build_notification_summary,
)
from src.modules.sales.classify_items import ItemCategorizer
from src.modules.sales.clean_sales_csv import load_sales_csv
from src.modules.sales.collection_summary import (
    collection_to_csv,
    parse_collection,
    summarize_collection,
)
from src.modules.sales.models import NormalizedPayload, NotificationSummary, Report
from src.modules.sales.normalize_records import normalize
from src.modules.toteat_api import ToteatClient, default_report_date
from src.report.exporter import write_report_csv, write_report_xlsx
from src.utils.exceptions import ConfigError, ExportError, InvalidUploadError
from src.utils.report_config import ReportConfig

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s [%(levelname)-8s] %(message)s"


@dataclass
class RunResult:
    """Outcome of one pipeline run."""

    success: bool
    message: str = ""
    report: Optional[Report] = None
    summary: Optional[NotificationSummary] = None
    xlsx_path: Optional[Path] = None
    csv_path: Optional[Path] = None
    email: Optional[Dict[str, Any]] = None


# === HELPER FUNCTIONS ===


def _banner(title: str) -> None:
    logger.info("=" * 70)
    logger.info(title)
    logger.info("=" * 70)


def build_categorizer(config: ReportConfig) -> ItemCategorizer:
    """Categorizer from the configured rule table."""
    return ItemCategorizer(config.category_rules, config.default_category)


def build_report_from_payload(
    payload: Any,
    config: ReportConfig,
    report_date: str,
    location_label: Optional[str] = None,
) -> Tuple[Report, NormalizedPayload]:
    """Normalize, categorize and aggregate a fetched payload.

    Args:
        payload: Vendor data (not modified)
        config: Pipeline configuration
        report_date: Report date (YYYY-MM-DD), used as begin and end date
        location_label: Overrides the configured location

    Returns:
        Tuple of (report, normalized payload)
    """
    normalized = normalize(payload, decimal_comma=config.decimal_comma)
    line_items = build_line_items(
        normalized.items, build_categorizer(config), config.tax_rate
    )
    report = aggregate(
        line_items,
        location_label or config.location_label,
        report_date,
        report_date,
    )
    return report, normalized


def resolve_upload_path(config: ReportConfig, csv_path: Path) -> Path:
    """Relative uploads that do not exist as given are looked up in upload_dir."""
    if csv_path.is_absolute() or csv_path.exists():
        return csv_path
    return config.upload_dir / csv_path


def _export_report(
    report: Report, config: ReportConfig, report_date: str
) -> Tuple[Path, Path]:
    xlsx_path = write_report_xlsx(
        report, config.export_dir / config.report_filename(report_date, "xlsx")
    )
    csv_path = write_report_csv(
        report, config.export_dir / config.report_filename(report_date, "csv")
    )
    return xlsx_path, csv_path


# === PIPELINE STEPS ===


def run_daily_report(
    config: ReportConfig,
    report_date: Optional[date] = None,
    client: Optional[ToteatClient] = None,
    notifier: Optional[GmailNotifier] = None,
    send_email: bool = True,
    location_label: Optional[str] = None,
) -> RunResult:
    """Fetch → normalize → aggregate → export → email.

    Args:
        config: Pipeline configuration
        report_date: Day to report; defaults to yesterday
        client: Vendor client; built from config when None
        notifier: Email notifier; built from config when None
        send_email: Send the notification after exporting
        location_label: Overrides the configured location

    Returns:
        RunResult; fetch and export failures are reported, not raised
    """
    if report_date is None:
        report_date = default_report_date()
    date_str = report_date.isoformat()

    _banner(f"DAILY SALES REPORT: {date_str}")

    if client is None:
        client = ToteatClient(config.toteat)
    fetch = client.get_collection(report_date)
    if not fetch.ok:
        logger.error(f"Fetch failed, report not generated: {fetch.message}")
        return RunResult(success=False, message=fetch.message)

    report, normalized = build_report_from_payload(
        fetch.data, config, date_str, location_label
    )
    summary = build_notification_summary(report, normalized.order_count)

    try:
        xlsx_path, csv_path = _export_report(report, config, date_str)
    except ExportError as e:
        logger.error(str(e))
        return RunResult(success=False, message=str(e), report=report)

    result = RunResult(
        success=True,
        message=f"Report generated with {summary.product_count} products",
        report=report,
        summary=summary,
        xlsx_path=xlsx_path,
        csv_path=csv_path,
    )

    if send_email:
        if notifier is None:
            notifier = GmailNotifier(config.email)
        result.email = notifier.send_sales_report(
            xlsx_path, date_str, summary, report.location_label
        )
        if not result.email.get("success"):
            logger.warning(f"Report exported but email failed: {result.email}")
    else:
        logger.info("Email notification skipped")

    _banner("DAILY SALES REPORT COMPLETED")
    return result


def process_sales_csv(
    config: ReportConfig,
    csv_path: Path,
    location_label: Optional[str] = None,
    report_date: Optional[date] = None,
    delete_after: bool = False,
) -> RunResult:
    """Build the report from an uploaded sales CSV export.

    Args:
        config: Pipeline configuration
        csv_path: Uploaded CSV
        location_label: Overrides the configured location
        report_date: Report date; defaults to today
        delete_after: Remove the upload once parsed

    Returns:
        RunResult (failure for empty or unreadable uploads)
    """
    date_str = (report_date or date.today()).isoformat()
    _banner(f"SALES CSV: {csv_path.name}")

    try:
        raw_items = load_sales_csv(
            csv_path, decimal_comma=config.decimal_comma, delete_after=delete_after
        )
    except InvalidUploadError as e:
        logger.error(f"Invalid upload: {e}")
        return RunResult(success=False, message=str(e))

    line_items = build_line_items(raw_items, build_categorizer(config), config.tax_rate)
    report = aggregate(
        line_items, location_label or config.location_label, date_str, date_str
    )

    try:
        xlsx_path, report_csv_path = _export_report(report, config, date_str)
    except ExportError as e:
        logger.error(str(e))
        return RunResult(success=False, message=str(e), report=report)

    return RunResult(
        success=True,
        message=f"Processed {len(raw_items)} rows into {len(report.items)} products",
        report=report,
        summary=build_notification_summary(report, 0),
        xlsx_path=xlsx_path,
        csv_path=report_csv_path,
    )


def export_collection_csv(
    config: ReportConfig,
    report_date: Optional[date] = None,
    client: Optional[ToteatClient] = None,
) -> RunResult:
    """Export the day's collection as one CSV row per payment."""
    if report_date is None:
        report_date = default_report_date()
    date_str = report_date.isoformat()

    _banner(f"COLLECTION EXPORT: {date_str}")

    if client is None:
        client = ToteatClient(config.toteat)
    fetch = client.get_collection(report_date)
    if not fetch.ok:
        return RunResult(success=False, message=fetch.message)

    parsed = parse_collection(fetch.data, date_str, config.decimal_comma)
    summary = summarize_collection(parsed)
    for entry in summary["payment_breakdown"]:
        logger.info(
            f"  {entry['method']}: {entry['amount']:,.0f} ({entry['percentage']})"
        )

    output_path = config.export_dir / f"collection_{date_str}.csv"
    try:
        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_text(collection_to_csv(parsed), encoding="utf-8")
    except OSError as e:
        message = f"Failed to write CSV {output_path}: {e}"
        logger.error(message)
        return RunResult(success=False, message=message)

    logger.info(f"Wrote collection CSV: {output_path}")
    return RunResult(
        success=True,
        message=f"Collection total: {parsed.total_amount:,.0f}",
        csv_path=output_path,
    )


def step_test_connection(
    config: ReportConfig, client: Optional[ToteatClient] = None
) -> bool:
    """Check the Toteat API (or local sample) is reachable."""
    if client is None:
        client = ToteatClient(config.toteat)
    if not config.toteat.use_local_file and not client.validate_credentials():
        return False

    status = client.test_connection()
    log = logger.info if status["connected"] else logger.error
    log(f"Toteat connection ({status['mode']}): {status['message']}")
    return bool(status["connected"])


# === MAIN ===


def _parse_date(value: str) -> date:
    try:
        return datetime.strptime(value, "%Y-%m-%d").date()
    except ValueError:
        raise argparse.ArgumentTypeError(f"Invalid date '{value}', use YYYY-MM-DD")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Sales Report Pipeline: Fetch → Normalize → Export → Email"
    )
    parser.add_argument(
        "--step",
        choices=["report", "csv", "collection", "test-connection"],
        default="report",
        help="Pipeline step to run (default: report)",
    )
    parser.add_argument(
        "--date",
        type=_parse_date,
        default=None,
        help="Report date YYYY-MM-DD (default: yesterday)",
    )
    parser.add_argument(
        "--csv",
        type=Path,
        help="Sales CSV for --step csv (relative names fall back to uploads dir)",
    )
    parser.add_argument("--location", help="Override the configured location name")
    parser.add_argument(
        "--no-email",
        action="store_true",
        default=False,
        help="Do not send the email notification",
    )
    parser.add_argument("--config", type=Path, help="Path to pipeline.toml")
    return parser


def main(argv=None):
    """Main entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.INFO,
        format=LOG_FORMAT,
        handlers=[logging.StreamHandler(sys.stdout)],
    )

    try:
        config = ReportConfig(args.config)
    except (FileNotFoundError, ConfigError) as e:
        logger.error(str(e))
        sys.exit(1)
    logging.getLogger().setLevel(config.log_level.upper())

    if args.step == "csv":
        if args.csv is None:
            parser.error("--step csv requires --csv PATH")
        csv_path = resolve_upload_path(config, args.csv)
        result = process_sales_csv(config, csv_path, args.location, args.date)
        success = result.success
    elif args.step == "collection":
        success = export_collection_csv(config, args.date).success
    elif args.step == "test-connection":
        success = step_test_connection(config)
    else:
        result = run_daily_report(
            config,
            args.date,
            send_email=not args.no_email,
            location_label=args.location,
        )
        success = result.success

    sys.exit(0 if success else 1)


if __name__ == "__main__":
    main()
