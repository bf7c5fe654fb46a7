from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Optional

from .config import (
    ANNUAL_REPORT_NAME,
    CONTRACTOR_REPORT_NAME,
    REGION_REPORT_NAME,
    load_config,
)
from .cli import run as run_pipeline


@dataclass
class GenerateOptions:
    input_csv: Optional[Path] = None
    output_dir: Optional[Path] = None
    funding_years: Optional[str] = None
    min_projects: Optional[int] = None
    top: Optional[int] = None
    export_xlsx: bool = False


def generate_reports(options: GenerateOptions) -> Dict[str, Path]:
    """Programmatic interface to run the report pipeline and return artifact paths.

    Returns a dict with keys: regional, contractors, annual, summary and, when
    requested, workbook.
    """
    import os

    env = dict(os.environ)
    if options.input_csv:
        env["FCP_DATA_CSV"] = str(options.input_csv)
    if options.output_dir:
        env["OUTPUT_DIR"] = str(options.output_dir)
    if options.funding_years:
        env["FUNDING_YEARS"] = str(options.funding_years)
    if options.min_projects is not None:
        env["MIN_CONTRACTOR_PROJECTS"] = str(options.min_projects)
    if options.top is not None:
        env["TOP_CONTRACTORS"] = str(options.top)
    if options.export_xlsx:
        env["EXPORT_XLSX"] = "1"

    cfg = load_config(env, None)
    rc = run_pipeline(runtime_config=cfg)
    if rc != 0:
        raise RuntimeError(f"Report run failed with code {rc}")
    artifacts = {
        "regional": cfg.report_csv(REGION_REPORT_NAME),
        "contractors": cfg.report_csv(CONTRACTOR_REPORT_NAME),
        "annual": cfg.report_csv(ANNUAL_REPORT_NAME),
        "summary": cfg.summary_json,
    }
    if cfg.export_xlsx:
        artifacts["workbook"] = cfg.workbook_xlsx
    return artifacts
