"""Run report rendering."""

from webencode.reports.builder import (
    NOT_GENERATED,
    build_report,
    build_report_data,
    build_report_json,
)

__all__ = [
    "NOT_GENERATED",
    "build_report",
    "build_report_data",
    "build_report_json",
]
