from __future__ import annotations

from dataclasses import asdict
from typing import Dict, Iterable, Set

from .formatting import round2, year_range
from .models import EnrichedProject, GlobalSummary


def build_summary(projects: Iterable[EnrichedProject]) -> GlobalSummary:
    """Single pass over every enriched project; no grouping."""

    project_ids: Set[str] = set()
    contractors: Set[str] = set()
    provinces: Set[str] = set()
    regions: Set[str] = set()
    years: Set[int] = set()
    count = 0
    total_delay = 0
    total_savings = 0.0
    total_budget = 0.0

    for project in projects:
        record = project.record
        count += 1
        project_ids.add(record.project_id)
        contractors.update(record.contractors)
        provinces.add(record.province)
        regions.add(record.region)
        years.add(record.funding_year)
        total_delay += project.completion_delay_days
        total_savings += project.cost_savings
        total_budget += record.approved_budget

    return GlobalSummary(
        total_projects=len(project_ids),
        total_contractors=len(contractors),
        total_provinces=len(provinces),
        total_regions=len(regions),
        global_avg_delay=round2(total_delay / count) if count else 0.0,
        global_total_savings=round2(total_savings),
        global_total_budget=round2(total_budget),
        date_range=year_range(years),
    )


def summary_payload(summary: GlobalSummary) -> Dict[str, object]:
    """Flat mapping in field order, ready for the JSON writer."""

    return asdict(summary)
