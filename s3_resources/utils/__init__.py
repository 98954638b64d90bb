"""Utility helpers for S3 resources."""

from .logger import configure_logging
from .report import ListingReportGenerator

__all__ = ["configure_logging", "ListingReportGenerator"]
