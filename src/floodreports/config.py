from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from types import SimpleNamespace
from typing import Mapping, Optional, Tuple


_BOOLEAN_TRUE = {"1", "true", "yes", "on"}

DEFAULT_FUNDING_YEARS: Tuple[int, ...] = (2021, 2022, 2023)
DEFAULT_MIN_CONTRACTOR_PROJECTS = 5
DEFAULT_TOP_CONTRACTORS = 15
DEFAULT_HIGH_DELAY_DAYS = 30

REGION_REPORT_NAME = "report1_regional_summary"
CONTRACTOR_REPORT_NAME = "report2_contractor_ranking"
ANNUAL_REPORT_NAME = "report3_annual_trends"
SUMMARY_FILENAME = "summary.json"
WORKBOOK_FILENAME = "flood_control_reports.xlsx"


@dataclass(frozen=True)
class Config:
    """Runtime configuration assembled from environment variables and CLI options."""

    base_dir: Path
    input_csv: Path
    output_dir: Path
    funding_years: Tuple[int, ...] = DEFAULT_FUNDING_YEARS
    min_contractor_projects: int = DEFAULT_MIN_CONTRACTOR_PROJECTS
    top_contractors: int = DEFAULT_TOP_CONTRACTORS
    high_delay_days: int = DEFAULT_HIGH_DELAY_DAYS
    export_xlsx: bool = False
    interactive: bool = False
    verbose: bool = False

    @property
    def summary_json(self) -> Path:
        return self.output_dir / SUMMARY_FILENAME

    @property
    def workbook_xlsx(self) -> Path:
        return self.output_dir / WORKBOOK_FILENAME

    def report_csv(self, report_name: str) -> Path:
        return self.output_dir / f"{report_name}.csv"


def _to_path(value: object | None) -> Optional[Path]:
    if value is None:
        return None
    if isinstance(value, Path):
        return value.expanduser().resolve()
    text = str(value).strip()
    if not text:
        return None
    return Path(text).expanduser().resolve()


def _to_int(value: object | None) -> Optional[int]:
    if value is None:
        return None
    text = str(value).strip()
    if not text:
        return None
    try:
        return int(float(text))
    except ValueError:
        return None


def _to_years(value: object | None) -> Optional[Tuple[int, ...]]:
    """Parse ``"2021,2022"`` or ``"2021-2023"`` into a sorted tuple of years."""

    if value is None:
        return None
    if isinstance(value, (list, tuple)):
        years = {_to_int(item) for item in value}
    else:
        text = str(value).strip()
        if not text:
            return None
        if "-" in text and "," not in text:
            low, _, high = text.partition("-")
            start, end = _to_int(low), _to_int(high)
            if start is None or end is None or end < start:
                return None
            years = set(range(start, end + 1))
        else:
            years = {_to_int(part) for part in text.split(",")}
    years.discard(None)
    if not years:
        return None
    return tuple(sorted(years))  # type: ignore[arg-type]


def _flag(value: object | None) -> bool:
    if value is None:
        return False
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in _BOOLEAN_TRUE


def _namespace(cli_args: object | None) -> SimpleNamespace:
    if cli_args is None:
        return SimpleNamespace()
    if isinstance(cli_args, SimpleNamespace):
        return cli_args
    if hasattr(cli_args, "__dict__"):
        return SimpleNamespace(**{k: v for k, v in vars(cli_args).items()})
    return SimpleNamespace()


def load_config(env: Mapping[str, str], cli_args: object | None = None) -> Config:
    """Build a runtime :class:`Config` from environment variables and CLI options."""

    base_dir = Path(__file__).resolve().parents[2]
    default_input = (base_dir / "data" / "dpwh_flood_control_projects.csv").resolve()
    default_output_dir = (base_dir / "outputs").resolve()

    input_csv = _to_path(env.get("FCP_DATA_CSV")) or default_input
    output_dir = _to_path(env.get("OUTPUT_DIR")) or default_output_dir
    funding_years = _to_years(env.get("FUNDING_YEARS")) or DEFAULT_FUNDING_YEARS
    min_projects = _to_int(env.get("MIN_CONTRACTOR_PROJECTS"))
    top_contractors = _to_int(env.get("TOP_CONTRACTORS"))
    high_delay_days = _to_int(env.get("HIGH_DELAY_DAYS"))
    export_xlsx = _flag(env.get("EXPORT_XLSX"))
    if min_projects is not None:
        min_projects = max(1, min_projects)
    if top_contractors is not None:
        top_contractors = max(1, top_contractors)
    interactive = False
    verbose = False

    cli_ns = _namespace(cli_args)
    if getattr(cli_ns, "input_csv", None):
        input_csv = _to_path(cli_ns.input_csv) or input_csv
    if getattr(cli_ns, "output_dir", None):
        output_dir = _to_path(cli_ns.output_dir) or output_dir
    if getattr(cli_ns, "funding_years", None):
        funding_years = _to_years(cli_ns.funding_years) or funding_years
    if getattr(cli_ns, "min_projects", None) is not None:
        min_projects = max(1, int(cli_ns.min_projects))
    if getattr(cli_ns, "top", None) is not None:
        top_contractors = max(1, int(cli_ns.top))
    if getattr(cli_ns, "xlsx", False):
        export_xlsx = True
    if getattr(cli_ns, "interactive", False):
        interactive = True
    if getattr(cli_ns, "verbose", False):
        verbose = bool(cli_ns.verbose)

    return Config(
        base_dir=base_dir,
        input_csv=input_csv,
        output_dir=output_dir,
        funding_years=funding_years,
        min_contractor_projects=min_projects if min_projects is not None else DEFAULT_MIN_CONTRACTOR_PROJECTS,
        top_contractors=top_contractors if top_contractors is not None else DEFAULT_TOP_CONTRACTORS,
        high_delay_days=high_delay_days if high_delay_days is not None else DEFAULT_HIGH_DELAY_DAYS,
        export_xlsx=export_xlsx,
        interactive=interactive,
        verbose=verbose,
    )


__all__ = [
    "ANNUAL_REPORT_NAME",
    "CONTRACTOR_REPORT_NAME",
    "Config",
    "REGION_REPORT_NAME",
    "load_config",
]
