"""Cleaning and aggregation pipeline for DPWH flood control project extracts."""

from .api import GenerateOptions, generate_reports
from .config import Config, load_config

__all__ = ["Config", "GenerateOptions", "generate_reports", "load_config"]
