"""
Grouping pipelines behind the three published reports.

All functions take the enriched project frame built by
:func:`floodreports.augment.projects_frame` and return a new DataFrame of raw
numeric values.  Nothing here formats for display; see
:mod:`floodreports.formatting`.

Grouping uses ``sort=False`` and every sort is stable, so ties keep the order
in which groups first appear in the input.  Running a report twice on the
same input therefore yields identical output.
"""

from __future__ import annotations

from typing import Dict, List, Sequence, Tuple

import numpy as np
import pandas as pd

from .config import (
    DEFAULT_HIGH_DELAY_DAYS,
    DEFAULT_MIN_CONTRACTOR_PROJECTS,
    DEFAULT_TOP_CONTRACTORS,
)
from .formatting import round2
from .models import split_contractors

RELIABILITY_DELAY_HORIZON_DAYS = 90.0
RELIABILITY_CAP = 100.0
RISK_THRESHOLD = 50.0
HIGH_RISK = "HIGH RISK"
LOW_RISK = "LOW RISK"

REGION_COLUMNS: Sequence[str] = (
    "Region",
    "MainIsland",
    "TotalBudget",
    "MedianSavings",
    "AvgDelay",
    "HighDelayPct",
    "EfficiencyScore",
)
REGION_CURRENCY_COLUMNS: Sequence[str] = ("TotalBudget", "MedianSavings")
REGION_DECIMAL_COLUMNS: Sequence[str] = ("AvgDelay", "HighDelayPct", "EfficiencyScore")

CONTRACTOR_COLUMNS: Sequence[str] = (
    "Rank",
    "Contractor",
    "TotalCost",
    "NumProjects",
    "AvgDelay",
    "TotalSavings",
    "ReliabilityIndex",
    "RiskFlag",
)
CONTRACTOR_CURRENCY_COLUMNS: Sequence[str] = ("TotalCost", "TotalSavings")
CONTRACTOR_DECIMAL_COLUMNS: Sequence[str] = ("AvgDelay", "ReliabilityIndex")

ANNUAL_COLUMNS: Sequence[str] = (
    "FundingYear",
    "TypeOfWork",
    "TotalProjects",
    "AvgSavings",
    "OverrunRate",
    "YoYChange",
)
ANNUAL_CURRENCY_COLUMNS: Sequence[str] = ("AvgSavings",)
ANNUAL_DECIMAL_COLUMNS: Sequence[str] = ("OverrunRate", "YoYChange")


def median_savings(values: Sequence[float]) -> float:
    """
    Return ``sorted(values)[len(values) // 2]``.

    For even-sized groups this picks the upper of the two middle elements
    rather than averaging them: ``[100, 300]`` yields ``300``.
    """

    if len(values) == 0:
        return 0.0
    ordered = np.sort(np.asarray(values, dtype=float), kind="stable")
    return float(ordered[len(ordered) // 2])


def normalize_score(raw_score: float, min_score: float, max_score: float) -> float:
    if max_score > min_score:
        return round2(100.0 * (raw_score - min_score) / (max_score - min_score))
    return 0.0


def reliability_index(avg_delay: float, total_savings: float, total_cost: float) -> float:
    """``(1 - avg_delay / 90) * (savings / cost) * 100``, capped at 100."""

    if total_cost == 0:
        return 0.0
    index = (1.0 - avg_delay / RELIABILITY_DELAY_HORIZON_DAYS) * (total_savings / total_cost) * 100.0
    return min(index, RELIABILITY_CAP)


def region_report(
    projects: pd.DataFrame,
    high_delay_days: int = DEFAULT_HIGH_DELAY_DAYS,
) -> pd.DataFrame:
    """
    Regional efficiency summary grouped by ``(Region, MainIsland)``.

    The returned frame carries an extra ``RawScore`` column (savings per delay
    day) used for the min-max normalised ``EfficiencyScore``.
    """

    columns = list(REGION_COLUMNS) + ["RawScore"]
    if projects.empty:
        return pd.DataFrame(columns=columns)

    rows: List[Dict[str, object]] = []
    for (region, main_island), group in projects.groupby(["Region", "MainIsland"], sort=False):
        count = len(group)
        delays = group["CompletionDelayDays"]
        median = median_savings(group["CostSavings"].to_numpy())
        avg_delay = round2(delays.sum() / count)
        high_delay_pct = round2(100.0 * int((delays > high_delay_days).sum()) / count)
        raw_score = (median / avg_delay) * 100.0 if avg_delay > 0 else 0.0
        rows.append(
            {
                "Region": region,
                "MainIsland": main_island,
                "TotalBudget": float(group["ApprovedBudgetForContract"].sum()),
                "MedianSavings": median,
                "AvgDelay": avg_delay,
                "HighDelayPct": high_delay_pct,
                "RawScore": raw_score,
            }
        )

    out = pd.DataFrame(rows)
    min_score = float(out["RawScore"].min())
    max_score = float(out["RawScore"].max())
    out["EfficiencyScore"] = [
        normalize_score(score, min_score, max_score) for score in out["RawScore"]
    ]
    out = out.sort_values("EfficiencyScore", ascending=False, kind="stable")
    return out.reset_index(drop=True)[columns]


def contractor_credits(projects: pd.DataFrame) -> pd.DataFrame:
    """
    One row per (project, credited contractor).

    A ``/``-joined contractor field credits every named contractor with the
    full row's cost, delay and savings.
    """

    credited = projects.assign(ContractorName=projects["Contractor"].map(split_contractors))
    credited = credited.explode("ContractorName")
    return credited.dropna(subset=["ContractorName"]).reset_index(drop=True)


def contractor_report(
    projects: pd.DataFrame,
    min_projects: int = DEFAULT_MIN_CONTRACTOR_PROJECTS,
    top_n: int = DEFAULT_TOP_CONTRACTORS,
) -> pd.DataFrame:
    """Top contractors by total contract cost among those with ``min_projects`` or more."""

    if projects.empty:
        return pd.DataFrame(columns=list(CONTRACTOR_COLUMNS))

    credits = contractor_credits(projects)
    grouped = (
        credits.groupby("ContractorName", sort=False)
        .agg(
            TotalCost=("ContractCost", "sum"),
            NumProjects=("ContractCost", "size"),
            TotalDelay=("CompletionDelayDays", "sum"),
            TotalSavings=("CostSavings", "sum"),
        )
        .reset_index()
        .rename(columns={"ContractorName": "Contractor"})
    )
    grouped = grouped.loc[grouped["NumProjects"] >= min_projects].copy()
    if grouped.empty:
        return pd.DataFrame(columns=list(CONTRACTOR_COLUMNS))

    avg_delay = grouped["TotalDelay"] / grouped["NumProjects"]
    grouped["AvgDelay"] = avg_delay.map(round2)
    raw_index = np.array(
        [
            reliability_index(delay, savings, cost)
            for delay, savings, cost in zip(avg_delay, grouped["TotalSavings"], grouped["TotalCost"])
        ]
    )
    # Flag on the unrounded index.
    grouped["RiskFlag"] = np.where(raw_index < RISK_THRESHOLD, HIGH_RISK, LOW_RISK)
    grouped["ReliabilityIndex"] = [round2(value) for value in raw_index]

    ranked = grouped.sort_values("TotalCost", ascending=False, kind="stable").head(top_n)
    ranked = ranked.reset_index(drop=True)
    ranked["Rank"] = np.arange(1, len(ranked) + 1)
    return ranked[list(CONTRACTOR_COLUMNS)]


def _previous_year_change(
    year: int,
    type_of_work: str,
    avg_savings: float,
    baseline: Dict[Tuple[int, str], float],
) -> float:
    previous = baseline.get((year - 1, type_of_work))
    if previous is None or previous == 0:
        return 0.0
    return round2((avg_savings - previous) / previous * 100.0)


def annual_report(projects: pd.DataFrame) -> pd.DataFrame:
    """Funding year × type-of-work overrun trends with year-over-year change."""

    if projects.empty:
        return pd.DataFrame(columns=list(ANNUAL_COLUMNS))

    rows: List[Dict[str, object]] = []
    for (year, type_of_work), group in projects.groupby(["FundingYear", "TypeOfWork"], sort=False):
        total_projects = int(group["ProjectId"].nunique())
        overruns = int((group["CostSavings"] < 0).sum())
        rows.append(
            {
                "FundingYear": int(year),
                "TypeOfWork": type_of_work,
                "TotalProjects": total_projects,
                "AvgSavings": round2(group["CostSavings"].mean()),
                "OverrunRate": round2(100.0 * overruns / total_projects),
            }
        )

    out = pd.DataFrame(rows)
    baseline = {
        (int(year), work): avg
        for year, work, avg in zip(out["FundingYear"], out["TypeOfWork"], out["AvgSavings"])
    }
    out["YoYChange"] = [
        _previous_year_change(int(year), work, avg, baseline)
        for year, work, avg in zip(out["FundingYear"], out["TypeOfWork"], out["AvgSavings"])
    ]
    out = out.sort_values(["FundingYear", "AvgSavings"], ascending=[True, False], kind="stable")
    return out.reset_index(drop=True)[list(ANNUAL_COLUMNS)]
