"""Report exporters (CSV, JSON, XLSX) and the fixed-width console table."""

from __future__ import annotations

import json
from pathlib import Path
from typing import List, Mapping, Sequence

import pandas as pd

from .errors import ReportWriteError

MAX_CELL_CHARS = 19
_TRUNCATED_CHARS = 16


def write_report_csv(path: Path, headers: Sequence[str], rows: Sequence[Sequence[object]]) -> Path:
    """Write one report as CSV with ``headers`` as the header row."""

    path = Path(path)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        frame = pd.DataFrame(list(rows), columns=list(headers))
        frame.to_csv(path, index=False, encoding="utf-8", lineterminator="\n")
    except OSError as exc:
        raise ReportWriteError(path, exc) from exc
    return path


def write_summary_json(path: Path, payload: Mapping[str, object]) -> Path:
    path = Path(path)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w", encoding="utf-8") as fh:
            json.dump(dict(payload), fh, indent=2)
            fh.write("\n")
    except OSError as exc:
        raise ReportWriteError(path, exc) from exc
    return path


def write_workbook(path: Path, sheets: Mapping[str, pd.DataFrame]) -> Path:
    """Bundle every report into one workbook, one sheet per report."""

    path = Path(path)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with pd.ExcelWriter(path, engine="openpyxl") as writer:
            for sheet_name, frame in sheets.items():
                frame.to_excel(writer, sheet_name=sheet_name[:31], index=False)
    except OSError as exc:
        raise ReportWriteError(path, exc) from exc
    return path


def _cell(value: object) -> str:
    text = "" if value is None else str(value)
    if len(text) > MAX_CELL_CHARS:
        return text[:_TRUNCATED_CHARS] + "..."
    return text


def render_table(headers: Sequence[str], rows: Sequence[Sequence[object]]) -> str:
    """
    Render an aligned, ``|``-delimited table.

    Cells longer than 19 characters are cut to 16 characters plus ``...``.
    """

    header_cells = [_cell(h) for h in headers]
    body: List[List[str]] = [[_cell(value) for value in row] for row in rows]
    widths = [len(cell) for cell in header_cells]
    for row in body:
        for idx, cell in enumerate(row):
            widths[idx] = max(widths[idx], len(cell))

    def _line(cells: Sequence[str]) -> str:
        return "|" + " | ".join(cell.ljust(widths[idx]) for idx, cell in enumerate(cells)) + "|"

    lines = [_line(header_cells), "|" + "-+-".join("-" * width for width in widths) + "|"]
    lines.extend(_line(row) for row in body)
    return "\n".join(lines)
