import argparse
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, List, Optional, Sequence, Tuple

import pandas as pd
from dotenv import load_dotenv

from .aggregation import (
    ANNUAL_COLUMNS,
    ANNUAL_CURRENCY_COLUMNS,
    ANNUAL_DECIMAL_COLUMNS,
    CONTRACTOR_COLUMNS,
    CONTRACTOR_CURRENCY_COLUMNS,
    CONTRACTOR_DECIMAL_COLUMNS,
    REGION_COLUMNS,
    REGION_CURRENCY_COLUMNS,
    REGION_DECIMAL_COLUMNS,
    annual_report,
    contractor_report,
    region_report,
)
from .augment import enrich_records, projects_frame
from .config import (
    ANNUAL_REPORT_NAME,
    CONTRACTOR_REPORT_NAME,
    REGION_REPORT_NAME,
    Config,
)
from .config import load_config as load_runtime_config
from .errors import DataFileError, ReportWriteError
from .formatting import frame_rows, to_display_frame, year_range
from .loader import load_project_rows
from .models import EnrichedProject
from .reporting import make_summary_text
from .summary import build_summary, summary_payload
from .validation import ValidationTally, validate_rows
from .writers import render_table, write_report_csv, write_summary_json, write_workbook

BASE_DIR = Path(__file__).resolve().parents[2]

load_dotenv(BASE_DIR / ".env")

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_INPUT_ERROR = 1
EXIT_WRITE_ERROR = 2

MENU_TEXT = (
    "\n==============================================\n"
    "Flood Control Project Data Analysis Menu\n"
    "==============================================\n"
    "[1]  Load Data File\n"
    "[2]  Generate Reports\n"
    "[3]  Exit"
)


@dataclass(frozen=True)
class ReportTable:
    """A finished report: raw numbers for computation, text for output."""

    name: str
    title: str
    subtitle: str
    data: pd.DataFrame
    display: pd.DataFrame

    @property
    def headers(self) -> List[str]:
        return list(self.display.columns)

    @property
    def rows(self) -> List[List[object]]:
        return frame_rows(self.display)


def load_projects(cfg: Config) -> Tuple[List[EnrichedProject], ValidationTally]:
    """Read, validate and enrich the project CSV named by ``cfg``."""

    rows = load_project_rows(cfg.input_csv)
    records, tally = validate_rows(rows, cfg.funding_years)
    return enrich_records(records), tally


def build_reports(projects: Sequence[EnrichedProject], cfg: Config) -> List[ReportTable]:
    frame = projects_frame(projects)
    years = year_range(cfg.funding_years)

    regions = region_report(frame, high_delay_days=cfg.high_delay_days)[list(REGION_COLUMNS)]
    contractors = contractor_report(
        frame,
        min_projects=cfg.min_contractor_projects,
        top_n=cfg.top_contractors,
    )
    annual = annual_report(frame)

    return [
        ReportTable(
            name=REGION_REPORT_NAME,
            title="Report 1: Regional Flood Mitigation Efficiency Summary",
            subtitle=f"(Filtered {years} Projects)",
            data=regions,
            display=to_display_frame(regions, REGION_CURRENCY_COLUMNS, REGION_DECIMAL_COLUMNS),
        ),
        ReportTable(
            name=CONTRACTOR_REPORT_NAME,
            title="Report 2: Top Contractors Performance Ranking",
            subtitle=(
                f"(Top {cfg.top_contractors} by TotalCost, "
                f">={cfg.min_contractor_projects} projects)"
            ),
            data=contractors,
            display=to_display_frame(
                contractors[list(CONTRACTOR_COLUMNS)],
                CONTRACTOR_CURRENCY_COLUMNS,
                CONTRACTOR_DECIMAL_COLUMNS,
            ),
        ),
        ReportTable(
            name=ANNUAL_REPORT_NAME,
            title="Report 3: Annual Project Type Cost Overrun Trends",
            subtitle="(Grouped by FundingYear and TypeOfWork)",
            data=annual,
            display=to_display_frame(
                annual[list(ANNUAL_COLUMNS)],
                ANNUAL_CURRENCY_COLUMNS,
                ANNUAL_DECIMAL_COLUMNS,
            ),
        ),
    ]


def write_all_reports(projects: Sequence[EnrichedProject], cfg: Config) -> Tuple[List[Path], List[ReportWriteError]]:
    """
    Print and export every report plus the summary.

    Each export is independent: a failed write is logged and the remaining
    exports still run.
    """

    written: List[Path] = []
    failures: List[ReportWriteError] = []

    def _attempt(writer: Callable[[], Path]) -> bool:
        try:
            written.append(writer())
        except ReportWriteError as exc:
            logger.error("%s", exc)
            failures.append(exc)
            return False
        return True

    reports = build_reports(projects, cfg)
    for report in reports:
        logger.info("\n%s\n%s\n", report.title, report.subtitle)
        logger.info("%s\n", render_table(report.headers, report.rows))
        exported = _attempt(
            lambda report=report: write_report_csv(cfg.report_csv(report.name), report.headers, report.rows)
        )
        if exported:
            logger.info("(Full table exported to %s.csv)\n", report.name)

    summary = build_summary(projects)
    payload = summary_payload(summary)
    if _attempt(lambda: write_summary_json(cfg.summary_json, payload)):
        logger.info("Summary stats exported to %s", cfg.summary_json.name)

    if cfg.export_xlsx:
        sheets = {report.name: report.display for report in reports}
        sheets["summary"] = pd.DataFrame([payload])
        _attempt(lambda: write_workbook(cfg.workbook_xlsx, sheets))

    logger.info("\n=== SUMMARY ===\n")
    logger.info("%s", make_summary_text(summary))
    return written, failures


def run(runtime_config: Optional[Config] = None) -> int:
    runtime_cfg = runtime_config or load_runtime_config(os.environ, None)

    stage_counter = 0

    if not logging.getLogger().handlers:
        logging.basicConfig(level=logging.INFO, format="%(message)s")

    def log_stage(message: str) -> None:
        nonlocal stage_counter
        stage_counter += 1
        logger.info("[pipeline:%02d] %s", stage_counter, message)

    def log_detail(message: str) -> None:
        logger.info("           %s", message)

    log_stage("Loading project records")
    log_detail(f"input_csv => {runtime_cfg.input_csv}")
    try:
        projects, tally = load_projects(runtime_cfg)
    except DataFileError as exc:
        logger.error("Error: %s", exc)
        return EXIT_INPUT_ERROR
    log_detail(f"rows_loaded={tally.rows_loaded} | rows_retained={tally.rows_retained}")

    log_stage("Generating reports")
    written, failures = write_all_reports(projects, runtime_cfg)

    logger.info("\nOutputs written:")
    for path in written:
        logger.info(" - %s", path)
    if failures:
        logger.warning("%s export(s) failed; see errors above.", len(failures))
        return EXIT_WRITE_ERROR
    return EXIT_OK


def interactive_menu(cfg: Config, input_fn: Callable[[str], str] = input) -> int:
    """Load/generate/exit loop; data is loaded at most once per session."""

    projects: Optional[List[EnrichedProject]] = None
    while True:
        logger.info(MENU_TEXT)
        try:
            choice = input_fn("\nEnter your choice: ").strip()
        except EOFError:
            return EXIT_OK

        if choice == "1":
            if projects is not None:
                logger.info("Data file already loaded. Ready to generate reports.")
                continue
            try:
                projects, _ = load_projects(cfg)
            except DataFileError as exc:
                logger.error("Error: %s", exc)
        elif choice == "2":
            if projects is None:
                logger.warning("No data loaded. Please select option [1] to load the data file first.")
                continue
            logger.info("\n>>> Generating all reports...\n")
            write_all_reports(projects, cfg)
        elif choice == "3":
            logger.info("Exiting program...")
            return EXIT_OK
        else:
            logger.warning("Invalid choice. Please enter 1, 2, or 3.")


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Generate flood control project reports from a DPWH CSV extract")
    parser.add_argument("--input-csv", help="Path to the flood control projects CSV")
    parser.add_argument("--output-dir", help="Directory for generated reports")
    parser.add_argument("--funding-years", help="Funding years to analyse, e.g. 2021-2023 or 2021,2022")
    parser.add_argument("--min-projects", type=int, help="Minimum credited projects for the contractor ranking")
    parser.add_argument("--top", type=int, help="Number of contractors to keep in the ranking")
    parser.add_argument("--xlsx", action="store_true", help="Also bundle every report into one workbook")
    parser.add_argument("--interactive", action="store_true", help="Run the load/generate menu instead of a single pass")
    parser.add_argument("-v", "--verbose", action="store_true", help="Increase logging verbosity")
    return parser.parse_args(argv)


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = parse_args(argv)
    runtime_cfg = load_runtime_config(os.environ, args)
    log_level = logging.DEBUG if runtime_cfg.verbose else logging.INFO
    logging.basicConfig(level=log_level, format="%(message)s")
    try:
        if runtime_cfg.interactive:
            return interactive_menu(runtime_cfg)
        return run(runtime_config=runtime_cfg)
    except Exception:  # pragma: no cover
        logger.exception("Fatal error during report generation")
        return 1


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
