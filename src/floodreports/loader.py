from __future__ import annotations

import logging
from pathlib import Path
from typing import Dict, List

import pandas as pd

from .errors import InputFileNotFoundError, MalformedCsvError
from .models import REQUIRED_COLUMNS

logger = logging.getLogger(__name__)


def _read_csv(path: Path) -> pd.DataFrame:
    # Every cell stays text; typing happens in validation.
    options = dict(dtype=str, keep_default_na=False, skipinitialspace=False)
    try:
        return pd.read_csv(path, encoding="utf-8-sig", **options)
    except UnicodeDecodeError:
        logger.warning("UTF-8 decoding failed for %s; retrying as Latin-1", path)
        return pd.read_csv(path, encoding="latin1", **options)


def load_project_frame(path: Path) -> pd.DataFrame:
    """
    Read the project CSV with every column kept as text.

    Raises
    ------
    InputFileNotFoundError
        When ``path`` does not exist.
    MalformedCsvError
        When the file cannot be parsed or lacks a required column.
    """

    path = Path(path)
    if not path.is_file():
        raise InputFileNotFoundError(path)

    try:
        frame = _read_csv(path)
    except pd.errors.EmptyDataError as exc:
        raise MalformedCsvError(f"{path.name} is empty") from exc
    except (pd.errors.ParserError, UnicodeDecodeError) as exc:
        raise MalformedCsvError(f"Unable to parse {path.name}: {exc}") from exc

    frame.columns = [str(col).strip() for col in frame.columns]
    missing = [col for col in REQUIRED_COLUMNS if col not in frame.columns]
    if missing:
        raise MalformedCsvError(f"{path.name} is missing required columns: {', '.join(missing)}")
    return frame


def load_project_rows(path: Path) -> List[Dict[str, str]]:
    """Return raw rows as dictionaries; unrecognised columns pass through untouched."""

    return load_project_frame(path).to_dict(orient="records")
