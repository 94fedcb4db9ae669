"""
Disposition engine -- aggregation and filtering of colony removal events.

Re-exports key entry points so callers can do::

    from dispositions import aggregate, normalize_monthly, RecordPaginator
"""

from dispositions.aggregation import (
    DispositionFacets,
    MonthlyBreakdown,
    aggregate,
    build_dashboard_stats,
    normalize_monthly,
)
from dispositions.catalog import ReasonCatalog, default_catalog
from dispositions.chart_filter import ReasonSelection, recompute
from dispositions.record_filter import RecordFilters, RecordPaginator
from dispositions.records import DispositionRecord

__all__ = [
    "DispositionFacets",
    "MonthlyBreakdown",
    "aggregate",
    "build_dashboard_stats",
    "normalize_monthly",
    "ReasonCatalog",
    "default_catalog",
    "ReasonSelection",
    "recompute",
    "RecordFilters",
    "RecordPaginator",
    "DispositionRecord",
]
