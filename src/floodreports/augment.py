from __future__ import annotations

import math
from typing import Iterable, List, Sequence

import pandas as pd

from .formatting import round2
from .models import EnrichedProject, ProjectRecord

PROJECT_COLUMNS: Sequence[str] = (
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
    "CostSavings",
    "CompletionDelayDays",
)

_SECONDS_PER_DAY = 86400


def completion_delay_days(record: ProjectRecord) -> int:
    """Whole days from start to actual completion, rounding partial days up."""

    elapsed = (record.completion_date - record.start_date).total_seconds()
    return max(0, math.ceil(elapsed / _SECONDS_PER_DAY))


def enrich_record(record: ProjectRecord) -> EnrichedProject:
    """Attach ``CostSavings`` and ``CompletionDelayDays`` to a validated record."""

    return EnrichedProject(
        record=record,
        cost_savings=round2(record.approved_budget - record.contract_cost),
        completion_delay_days=completion_delay_days(record),
    )


def enrich_records(records: Iterable[ProjectRecord]) -> List[EnrichedProject]:
    return [enrich_record(record) for record in records]


def projects_frame(projects: Iterable[EnrichedProject]) -> pd.DataFrame:
    """
    Project enriched records onto a DataFrame for the grouping pipelines.

    Row order follows the input order so grouped output keeps first-encounter
    ordering for ties.
    """

    rows = [
        (
            p.record.project_id,
            p.record.contractor,
            p.record.region,
            p.record.main_island,
            p.record.province,
            p.record.municipality,
            p.record.type_of_work,
            p.record.funding_year,
            p.record.approved_budget,
            p.record.contract_cost,
            p.cost_savings,
            p.completion_delay_days,
        )
        for p in projects
    ]
    frame = pd.DataFrame.from_records(rows, columns=list(PROJECT_COLUMNS))
    return frame.astype(
        {
            "FundingYear": "int64",
            "ApprovedBudgetForContract": "float64",
            "ContractCost": "float64",
            "CostSavings": "float64",
            "CompletionDelayDays": "int64",
        }
    )
