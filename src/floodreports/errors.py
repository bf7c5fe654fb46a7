"""
Run-level exceptions for ingestion and report export.

Row-level problems never raise; see :mod:`floodreports.validation`.
"""

from __future__ import annotations

from pathlib import Path


class DataFileError(Exception):
    """Base exception for failures that stop a run before any report is produced."""


class InputFileNotFoundError(DataFileError, FileNotFoundError):
    """Raised when the project CSV does not exist."""

    def __init__(self, path: Path) -> None:
        super().__init__(f"Input data file not found: {path}")
        self.path = path


class MalformedCsvError(DataFileError):
    """Raised when the project CSV cannot be parsed or lacks required columns."""


class ReportWriteError(Exception):
    """Raised when a single report or summary export fails."""

    def __init__(self, path: Path, cause: BaseException) -> None:
        super().__init__(f"Failed to write {path.name}: {cause}")
        self.path = path
        self.cause = cause
