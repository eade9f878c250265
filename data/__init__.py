"""
Data Module - Chart Pattern Scanner

Raw and pivot series types plus the structural input checks run before a scan.
"""

from .pivots import (
    PivotPoint,
    PivotSeries,
    InputReport,
    check_pivot_index,
    local_extrema_pivots
)

__all__ = [
    "PivotPoint",
    "PivotSeries",
    "InputReport",
    "check_pivot_index",
    "local_extrema_pivots"
]
