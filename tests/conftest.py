from __future__ import annotations

import csv
from pathlib import Path
from typing import Callable, Dict, List

import pytest

from floodreports.models import REQUIRED_COLUMNS

EXTRA_COLUMNS = ["ProjectName", "ContractId", "ProjectLatitude", "ProjectLongitude"]


def make_row(**overrides: object) -> Dict[str, str]:
    row = {
        "ProjectId": "P-001",
        "Contractor": "ALPHA BUILDERS",
        "Region": "Region I",
        "MainIsland": "Luzon",
        "Province": "Ilocos Norte",
        "Municipality": "Laoag City",
        "TypeOfWork": "Construction of Flood Mitigation Structure",
        "FundingYear": "2022",
        "ApprovedBudgetForContract": "1000000.00",
        "ContractCost": "950000.00",
        "StartDate": "2022-01-10",
        "ActualCompletionDate": "2022-03-01",
        "ProjectName": "Flood wall",
        "ContractId": "C-001",
        "ProjectLatitude": "18.19",
        "ProjectLongitude": "120.59",
    }
    row.update({key: str(value) for key, value in overrides.items()})
    return row


@pytest.fixture
def row_factory() -> Callable[..., Dict[str, str]]:
    return make_row


@pytest.fixture
def csv_factory(tmp_path: Path) -> Callable[[List[Dict[str, str]]], Path]:
    def _create(rows: List[Dict[str, str]], filename: str = "projects.csv") -> Path:
        path = tmp_path / filename
        fieldnames = list(REQUIRED_COLUMNS) + EXTRA_COLUMNS
        with path.open("w", newline="", encoding="utf-8") as fh:
            writer = csv.DictWriter(fh, fieldnames=fieldnames)
            writer.writeheader()
            for row in rows:
                writer.writerow({key: row.get(key, "") for key in fieldnames})
        return path

    return _create
