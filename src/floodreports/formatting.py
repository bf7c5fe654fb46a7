"""Numeric rounding and display formatting shared by every report."""

from __future__ import annotations

import math
from typing import Iterable, List, Sequence

import pandas as pd


def round2(value: float) -> float:
    """Round to 2 decimals with halves going up (towards positive infinity)."""

    numeric = float(value)
    if math.isnan(numeric) or math.isinf(numeric):
        return numeric
    # floor() returns an int, so small negatives come back as 0.0, never -0.0.
    return math.floor(numeric * 100 + 0.5) / 100


def format_currency(value: float) -> str:
    """Render ``value`` as ``1,234,567.89`` (groups of 3, no currency symbol)."""

    return f"{round2(value):,.2f}"


def format_decimal(value: float) -> str:
    return f"{round2(value):.2f}"


def to_display_frame(
    frame: pd.DataFrame,
    currency_columns: Sequence[str] = (),
    decimal_columns: Sequence[str] = (),
) -> pd.DataFrame:
    """
    Return a copy of ``frame`` with numeric columns rendered as text.

    Computation always happens on the raw numeric frame; this is only applied
    once a report is final (sorted, ranked and truncated).
    """

    display = frame.copy()
    for column in currency_columns:
        if column in display.columns:
            display[column] = display[column].map(format_currency)
    for column in decimal_columns:
        if column in display.columns:
            display[column] = display[column].map(format_decimal)
    return display


def frame_rows(frame: pd.DataFrame) -> List[List[object]]:
    """Convert a display frame into plain row lists for the writers."""

    return [list(row) for row in frame.itertuples(index=False, name=None)]


def year_range(years: Iterable[int]) -> str:
    values = sorted(set(int(year) for year in years))
    if not values:
        return ""
    return f"{values[0]}-{values[-1]}"
