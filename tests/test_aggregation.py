from __future__ import annotations

import numpy as np
import pandas as pd

from floodreports.aggregation import (
    HIGH_RISK,
    LOW_RISK,
    annual_report,
    contractor_credits,
    contractor_report,
    median_savings,
    region_report,
    reliability_index,
)
from floodreports.augment import enrich_records, projects_frame
from floodreports.validation import validate_rows


def _frame(rows) -> pd.DataFrame:
    records, _ = validate_rows(rows)
    return projects_frame(enrich_records(records))


def _project(row_factory, pid, savings=100.0, delay=10, cost=1000.0, **fields):
    end = (pd.Timestamp("2022-01-01") + pd.Timedelta(days=delay)).strftime("%Y-%m-%d")
    return row_factory(
        ProjectId=pid,
        ApprovedBudgetForContract=f"{cost + savings:.2f}",
        ContractCost=f"{cost:.2f}",
        StartDate="2022-01-01",
        ActualCompletionDate=end,
        **fields,
    )


# --- Region report ---------------------------------------------------------


def test_median_uses_index_half_of_sorted_values():
    assert median_savings([300.0, 100.0]) == 300.0
    assert median_savings([50.0, 10.0, 30.0]) == 30.0
    assert median_savings([4.0, 1.0, 3.0, 2.0]) == 3.0
    assert median_savings([]) == 0.0


def test_region_report_worked_example(row_factory):
    rows = [
        _project(row_factory, "N1", savings=100, delay=10, Region="NCR", MainIsland="Luzon"),
        _project(row_factory, "N2", savings=300, delay=20, Region="NCR", MainIsland="Luzon"),
    ]
    report = region_report(_frame(rows))

    assert len(report) == 1
    row = report.iloc[0]
    assert row["MedianSavings"] == 300.0
    assert row["AvgDelay"] == 15.0
    assert row["TotalBudget"] == 2400.0
    assert np.isclose(row["RawScore"], 2000.0)
    # A single group has max == min, so its score is 0.
    assert row["EfficiencyScore"] == 0.0


def test_region_scores_are_min_max_normalised_and_sorted(row_factory):
    rows = [
        _project(row_factory, "V1", savings=50, delay=5, Region="Region VII", MainIsland="Visayas"),
        _project(row_factory, "N1", savings=100, delay=10, Region="NCR", MainIsland="Luzon"),
        _project(row_factory, "V2", savings=10, delay=5, Region="Region VII", MainIsland="Visayas"),
        _project(row_factory, "N2", savings=300, delay=20, Region="NCR", MainIsland="Luzon"),
        _project(row_factory, "V3", savings=30, delay=5, Region="Region VII", MainIsland="Visayas"),
        _project(row_factory, "M1", savings=80, delay=0, Region="Region X", MainIsland="Mindanao"),
    ]
    report = region_report(_frame(rows))

    assert report["Region"].tolist() == ["NCR", "Region VII", "Region X"]
    assert report["EfficiencyScore"].tolist() == [100.0, 30.0, 0.0]
    assert report.loc[report["RawScore"].idxmin(), "EfficiencyScore"] == 0.0
    assert report.loc[report["RawScore"].idxmax(), "EfficiencyScore"] == 100.0


def test_region_groups_match_distinct_region_island_pairs(row_factory):
    rows = [
        _project(row_factory, "A", Region="Region IV-A", MainIsland="Luzon"),
        _project(row_factory, "B", Region="Region IV-A", MainIsland="Mindoro"),
        _project(row_factory, "C", Region="Region IV-A", MainIsland="Luzon"),
    ]
    frame = _frame(rows)
    report = region_report(frame)
    assert len(report) == len(frame[["Region", "MainIsland"]].drop_duplicates())


def test_high_delay_pct_counts_delays_over_threshold(row_factory):
    rows = [
        _project(row_factory, "A", delay=40),
        _project(row_factory, "B", delay=10),
        _project(row_factory, "C", delay=31),
        _project(row_factory, "D", delay=30, Region="Other"),
    ]
    report = region_report(_frame(rows)).set_index("Region")
    assert report.loc["Region I", "HighDelayPct"] == 66.67
    assert report.loc["Other", "HighDelayPct"] == 0.0


def test_region_ties_keep_first_encounter_order(row_factory):
    rows = [
        _project(row_factory, "A", Region="Zeta"),
        _project(row_factory, "B", Region="Alpha"),
    ]
    report = region_report(_frame(rows))
    assert report["Region"].tolist() == ["Zeta", "Alpha"]


def test_region_report_empty_frame():
    assert region_report(projects_frame([])).empty


# --- Contractor report -----------------------------------------------------


def test_reliability_index_formula_and_cap():
    assert np.isclose(reliability_index(9.0, 100.0, 1000.0), 9.0)
    assert reliability_index(0.0, 2000.0, 1000.0) == 100.0
    assert reliability_index(120.0, 100.0, 1000.0) < 0


def test_joint_contractors_are_each_credited_in_full(row_factory):
    rows = [_project(row_factory, "J1", savings=100, cost=1000, Contractor="ALPHA / BETA")]
    credits = contractor_credits(_frame(rows))

    assert credits["ContractorName"].tolist() == ["ALPHA", "BETA"]
    assert credits["ContractCost"].tolist() == [1000.0, 1000.0]
    assert credits["CostSavings"].tolist() == [100.0, 100.0]


def test_contractor_threshold_is_at_least_five_projects(row_factory):
    rows = [_project(row_factory, f"A{i}", Contractor="ALPHA") for i in range(5)]
    rows += [_project(row_factory, f"B{i}", Contractor="BETA") for i in range(4)]
    report = contractor_report(_frame(rows))

    assert report["Contractor"].tolist() == ["ALPHA"]
    assert report["NumProjects"].tolist() == [5]
    assert (report["NumProjects"] >= 5).all()


def test_shared_rows_count_towards_each_contractor(row_factory):
    rows = [_project(row_factory, f"A{i}", Contractor="ALPHA") for i in range(4)]
    rows.append(_project(row_factory, "J1", Contractor="ALPHA/BETA"))
    report = contractor_report(_frame(rows))
    assert report["Contractor"].tolist() == ["ALPHA"]
    assert report["NumProjects"].tolist() == [5]


def test_contractor_ranking_sorted_by_cost_and_truncated(row_factory):
    rows = []
    for name, cost in (("SMALL", 100.0), ("LARGE", 5000.0), ("MID", 1000.0)):
        rows += [_project(row_factory, f"{name}{i}", cost=cost, Contractor=name) for i in range(5)]
    report = contractor_report(_frame(rows), top_n=2)

    assert report["Contractor"].tolist() == ["LARGE", "MID"]
    assert report["Rank"].tolist() == [1, 2]
    assert report["TotalCost"].is_monotonic_decreasing
    assert list(report.columns) == [
        "Rank",
        "Contractor",
        "TotalCost",
        "NumProjects",
        "AvgDelay",
        "TotalSavings",
        "ReliabilityIndex",
        "RiskFlag",
    ]


def test_contractor_report_never_exceeds_fifteen_rows(row_factory):
    rows = []
    for idx in range(18):
        rows += [_project(row_factory, f"C{idx}-{i}", cost=1000.0 + idx, Contractor=f"CO {idx}") for i in range(5)]
    report = contractor_report(_frame(rows))
    assert len(report) == 15
    assert report["Rank"].tolist() == list(range(1, 16))
    assert report.iloc[0]["Contractor"] == "CO 17"


def test_contractor_metrics_and_risk_flags(row_factory):
    rows = [_project(row_factory, f"R{i}", savings=100, delay=9, Contractor="RISKY") for i in range(5)]
    rows += [_project(row_factory, f"S{i}", savings=2000, delay=0, Contractor="SAFE") for i in range(5)]
    report = contractor_report(_frame(rows)).set_index("Contractor")

    assert report.loc["RISKY", "AvgDelay"] == 9.0
    assert report.loc["RISKY", "TotalSavings"] == 500.0
    assert report.loc["RISKY", "ReliabilityIndex"] == 9.0
    assert report.loc["RISKY", "RiskFlag"] == HIGH_RISK
    assert report.loc["SAFE", "ReliabilityIndex"] == 100.0
    assert report.loc["SAFE", "RiskFlag"] == LOW_RISK


def test_contractor_report_with_no_qualifying_contractors(row_factory):
    report = contractor_report(_frame([_project(row_factory, "A")]))
    assert report.empty
    assert "Rank" in report.columns


# --- Annual report -----------------------------------------------------------


def _annual_rows(row_factory):
    return [
        _project(row_factory, "D1", savings=100, FundingYear="2021", TypeOfWork="Dike"),
        _project(row_factory, "D2", savings=300, FundingYear="2021", TypeOfWork="Dike"),
        _project(row_factory, "D3", savings=300, FundingYear="2022", TypeOfWork="Dike"),
        _project(row_factory, "R1", savings=500, FundingYear="2022", TypeOfWork="Drainage"),
        _project(row_factory, "D4", savings=-150, FundingYear="2023", TypeOfWork="Dike"),
        _project(row_factory, "Z1", savings=0, FundingYear="2021", TypeOfWork="Revetment"),
        _project(row_factory, "Z2", savings=40, FundingYear="2022", TypeOfWork="Revetment"),
    ]


def test_annual_report_sorting_and_metrics(row_factory):
    report = annual_report(_frame(_annual_rows(row_factory)))

    keys = list(zip(report["FundingYear"], report["TypeOfWork"]))
    assert keys == [
        (2021, "Dike"),
        (2021, "Revetment"),
        (2022, "Drainage"),
        (2022, "Dike"),
        (2022, "Revetment"),
        (2023, "Dike"),
    ]
    indexed = report.set_index(["FundingYear", "TypeOfWork"])
    assert indexed.loc[(2021, "Dike"), "AvgSavings"] == 200.0
    assert indexed.loc[(2022, "Dike"), "YoYChange"] == 50.0
    assert indexed.loc[(2023, "Dike"), "YoYChange"] == -150.0
    assert indexed.loc[(2023, "Dike"), "OverrunRate"] == 100.0
    assert indexed.loc[(2022, "Drainage"), "YoYChange"] == 0.0


def test_first_year_rows_have_no_yoy_change(row_factory):
    report = annual_report(_frame(_annual_rows(row_factory)))
    assert (report.loc[report["FundingYear"] == 2021, "YoYChange"] == 0).all()


def test_zero_baseline_gives_zero_yoy(row_factory):
    report = annual_report(_frame(_annual_rows(row_factory))).set_index(["FundingYear", "TypeOfWork"])
    assert report.loc[(2022, "Revetment"), "YoYChange"] == 0.0


def test_total_projects_counts_distinct_project_ids(row_factory):
    rows = [
        _project(row_factory, "X1", savings=-10, TypeOfWork="Dike"),
        _project(row_factory, "X1", savings=-10, TypeOfWork="Dike", Contractor="OTHER"),
        _project(row_factory, "X2", savings=20, TypeOfWork="Dike"),
    ]
    report = annual_report(_frame(rows))
    assert report["TotalProjects"].tolist() == [2]
    assert report["OverrunRate"].tolist() == [100.0]
    assert report["AvgSavings"].tolist() == [0.0]


def test_risk_flag_uses_unrounded_index(row_factory):
    rows = [
        _project(row_factory, f"B{i}", savings=49996.0, delay=0, cost=100000.0, Contractor="BELOW")
        for i in range(5)
    ]
    rows += [
        _project(row_factory, f"E{i}", savings=50000.0, delay=0, cost=100000.0, Contractor="EXACT")
        for i in range(5)
    ]
    report = contractor_report(_frame(rows)).set_index("Contractor")

    assert report.loc["BELOW", "ReliabilityIndex"] == 50.0
    assert report.loc["BELOW", "RiskFlag"] == HIGH_RISK
    assert report.loc["EXACT", "ReliabilityIndex"] == 50.0
    assert report.loc["EXACT", "RiskFlag"] == LOW_RISK
