"""
Row validation for raw project records.

Each raw row is checked in a fixed order and either accepted as a typed
:class:`~floodreports.models.ProjectRecord` or rejected with the first
failing :class:`~floodreports.models.RejectReason`.  Rejections are counted,
never raised, so one bad row cannot abort a run.
"""

from __future__ import annotations

import logging
import math
import re
from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Iterable, List, Mapping, Optional, Sequence, Tuple

from .config import DEFAULT_FUNDING_YEARS
from .formatting import round2, year_range
from .models import (
    REQUIRED_COLUMNS,
    Accepted,
    ProjectRecord,
    RejectReason,
    Rejected,
    ValidationResult,
)

logger = logging.getLogger(__name__)

_DATE_FORMATS: Tuple[str, ...] = ("%Y-%m-%d", "%Y/%m/%d", "%m/%d/%Y")

# Plain digits or comma-grouped thousands, optional fraction.
_AMOUNT_RE = re.compile(r"^[+-]?(?:\d{1,3}(?:,\d{3})+|\d+)?(?:\.\d+)?$")


@dataclass
class ValidationTally:
    """Running counters for one validation pass."""

    rows_loaded: int = 0
    rows_retained: int = 0
    reasons: Counter = field(default_factory=Counter)

    @property
    def rows_filtered(self) -> int:
        return self.rows_loaded - self.rows_retained

    def record(self, result: ValidationResult) -> None:
        self.rows_loaded += 1
        if isinstance(result, Accepted):
            self.rows_retained += 1
        else:
            self.reasons[result.reason] += 1


def _text(row: Mapping[str, object], column: str) -> str:
    value = row.get(column)
    if value is None:
        return ""
    if isinstance(value, float) and math.isnan(value):
        return ""
    return str(value).strip()


def _parse_year(text: str) -> Optional[int]:
    try:
        numeric = float(text)
    except ValueError:
        return None
    if not math.isfinite(numeric) or not numeric.is_integer():
        return None
    return int(numeric)


def _parse_amount(text: str) -> Optional[float]:
    cleaned = text.strip()
    if not any(ch.isdigit() for ch in cleaned) or not _AMOUNT_RE.match(cleaned):
        return None
    return round2(float(cleaned.replace(",", "")))


def _parse_date(text: str) -> Optional[datetime]:
    parsed: Optional[datetime] = None
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        for fmt in _DATE_FORMATS:
            try:
                parsed = datetime.strptime(text, fmt)
                break
            except ValueError:
                continue
    if parsed is None:
        return None
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


def validate_row(
    row: Mapping[str, object],
    funding_years: Sequence[int] = DEFAULT_FUNDING_YEARS,
) -> ValidationResult:
    """Accept or reject a single raw row."""

    values = {column: _text(row, column) for column in REQUIRED_COLUMNS}
    if any(not value for value in values.values()):
        return Rejected(RejectReason.EMPTY_FIELD)

    year = _parse_year(values["FundingYear"])
    if year is None or year not in funding_years:
        return Rejected(RejectReason.YEAR_OUT_OF_RANGE)

    budget = _parse_amount(values["ApprovedBudgetForContract"])
    cost = _parse_amount(values["ContractCost"])
    if budget is None or cost is None:
        return Rejected(RejectReason.NOT_NUMERIC)
    if budget <= 0 or cost <= 0:
        return Rejected(RejectReason.NON_POSITIVE_AMOUNT)

    start = _parse_date(values["StartDate"])
    completed = _parse_date(values["ActualCompletionDate"])
    if start is None or completed is None or completed < start:
        return Rejected(RejectReason.INVALID_DATE_RANGE)

    return Accepted(
        ProjectRecord(
            project_id=values["ProjectId"],
            contractor=values["Contractor"],
            region=values["Region"],
            main_island=values["MainIsland"],
            province=values["Province"],
            municipality=values["Municipality"],
            type_of_work=values["TypeOfWork"],
            funding_year=year,
            approved_budget=budget,
            contract_cost=cost,
            start_date=start,
            completion_date=completed,
        )
    )


def validate_rows(
    rows: Iterable[Mapping[str, object]],
    funding_years: Sequence[int] = DEFAULT_FUNDING_YEARS,
) -> Tuple[List[ProjectRecord], ValidationTally]:
    """Validate every row, returning the accepted records and the pass tally."""

    tally = ValidationTally()
    records: List[ProjectRecord] = []
    for row in rows:
        result = validate_row(row, funding_years)
        tally.record(result)
        if isinstance(result, Accepted):
            records.append(result.record)

    logger.info(
        "Processing data... (%s rows loaded, %s retained for %s)",
        tally.rows_loaded,
        tally.rows_retained,
        year_range(funding_years),
    )
    for reason in RejectReason:
        if tally.reasons[reason]:
            logger.debug("        rejected[%s] => %s", reason.value, tally.reasons[reason])
    return records, tally
