from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Tuple, Union


REQUIRED_COLUMNS: Tuple[str, ...] = (
    "ProjectId",
    "Contractor",
    "Region",
    "MainIsland",
    "Province",
    "Municipality",
    "TypeOfWork",
    "FundingYear",
    "ApprovedBudgetForContract",
    "ContractCost",
    "StartDate",
    "ActualCompletionDate",
)

CONTRACTOR_SEPARATOR = "/"


class RejectReason(str, Enum):
    """Why a raw row was excluded from analysis, in evaluation order."""

    EMPTY_FIELD = "EmptyField"
    YEAR_OUT_OF_RANGE = "YearOutOfRange"
    NOT_NUMERIC = "NotNumeric"
    NON_POSITIVE_AMOUNT = "NonPositiveAmount"
    INVALID_DATE_RANGE = "InvalidDateRange"


@dataclass(frozen=True)
class ProjectRecord:
    """A raw row that passed validation, with typed numeric and date fields."""

    project_id: str
    contractor: str
    region: str
    main_island: str
    province: str
    municipality: str
    type_of_work: str
    funding_year: int
    approved_budget: float
    contract_cost: float
    start_date: datetime
    completion_date: datetime

    @property
    def contractors(self) -> Tuple[str, ...]:
        """Individual contractor names credited for this project."""

        return split_contractors(self.contractor)


@dataclass(frozen=True)
class EnrichedProject:
    """Validated project plus the derived savings and delay fields."""

    record: ProjectRecord
    cost_savings: float
    completion_delay_days: int

    @property
    def is_overrun(self) -> bool:
        return self.cost_savings < 0


@dataclass(frozen=True)
class Accepted:
    record: ProjectRecord


@dataclass(frozen=True)
class Rejected:
    reason: RejectReason


ValidationResult = Union[Accepted, Rejected]


@dataclass(frozen=True)
class GlobalSummary:
    """Dataset-wide rollup written to ``summary.json``."""

    total_projects: int
    total_contractors: int
    total_provinces: int
    total_regions: int
    global_avg_delay: float
    global_total_savings: float
    global_total_budget: float
    date_range: str


def split_contractors(value: str) -> Tuple[str, ...]:
    """Split a ``/``-joined contractor field into trimmed, non-empty names."""

    names = (part.strip() for part in str(value).split(CONTRACTOR_SEPARATOR))
    # A name repeated within one row is credited once.
    return tuple(dict.fromkeys(name for name in names if name))
