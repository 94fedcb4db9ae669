"""
Dashboard facet aggregation over disposition records.

Turns a flat record set plus a reference date into four facets:

    year_total            sum(count) where removal_date >= "{YYYY}-01-01"
    month_total           sum(count) where removal_date >= "{YYYY}-{MM}-01"
    special_reason_total  sum(count) where reason_code == special code
                          (all-time, no date bound)
    monthly               month x reason breakdown, same year predicate as
                          year_total, sparse (only months that occur)

normalize_monthly() expands the sparse breakdown into the dense 12-entry
series the dashboard chart consumes.

Date predicates compare fixed-width ``YYYY-MM-DD`` strings lexicographically;
see dispositions.records.normalize_removal_date().  The reference date is
always injected by the caller; nothing in this module reads the clock.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Iterable

from dispositions.catalog import SPECIAL_REASON_CODE
from dispositions.records import DispositionRecord

logger = logging.getLogger(__name__)

MONTHS: tuple[str, ...] = tuple(f"{m:02d}" for m in range(1, 13))


@dataclass
class MonthlyBreakdown:
    """Per-month total plus its reason -> count mapping."""

    month: str
    total: int = 0
    reasons: dict[str, int] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {"month": self.month, "total": self.total, "reasons": dict(self.reasons)}


@dataclass
class DispositionFacets:
    year_total: int = 0
    month_total: int = 0
    special_reason_total: int = 0
    monthly: list[MonthlyBreakdown] = field(default_factory=list)


def period_starts(now: date) -> tuple[str, str]:
    """Return the (start-of-year, start-of-month) date strings for *now*."""
    year_start = f"{now.year:04d}-01-01"
    month_start = f"{now.year:04d}-{now.month:02d}-01"
    return year_start, month_start


def aggregate(
    records: Iterable[DispositionRecord],
    now: date,
    special_reason_code: str = SPECIAL_REASON_CODE,
) -> DispositionFacets:
    """Compute every dashboard facet in a single pass over *records*.

    Args:
        records: Disposition records; never mutated.
        now: Reference date that anchors the year and month windows.
        special_reason_code: Reason code counted by the all-time facet.

    Returns:
        DispositionFacets whose ``monthly`` list is sparse and sorted by month.
    """
    year_start, month_start = period_starts(now)

    year_total = 0
    month_total = 0
    special_total = 0
    # (month, reason) -> count
    cells: dict[tuple[str, str], int] = defaultdict(int)

    for rec in records:
        if rec.reason_code == special_reason_code:
            special_total += rec.count
        if rec.removal_date >= year_start:
            year_total += rec.count
            cells[(rec.removal_month, rec.reason_key)] += rec.count
        if rec.removal_date >= month_start:
            month_total += rec.count

    by_month: dict[str, MonthlyBreakdown] = {}
    for (month, reason), count in cells.items():
        entry = by_month.setdefault(month, MonthlyBreakdown(month=month))
        entry.reasons[reason] = count
        entry.total += count

    monthly = [by_month[m] for m in sorted(by_month)]
    logger.debug(
        "aggregate now=%s year=%d month=%d special=%d months=%d",
        now.isoformat(), year_total, month_total, special_total, len(monthly),
    )
    return DispositionFacets(
        year_total=year_total,
        month_total=month_total,
        special_reason_total=special_total,
        monthly=monthly,
    )


def normalize_monthly(sparse: Iterable[MonthlyBreakdown]) -> list[MonthlyBreakdown]:
    """Expand a sparse monthly breakdown into the dense Jan..Dec series.

    Months missing from *sparse* become zero entries with an empty reason
    mapping.  Entries whose month is not "01".."12" (only possible with a
    malformed removal date) have no slot in the series and are left out.
    """
    found = {entry.month: entry for entry in sparse}
    return [found.get(m) or MonthlyBreakdown(month=m) for m in MONTHS]


def build_dashboard_stats(
    records: Iterable[DispositionRecord],
    now: date,
    special_reason_code: str = SPECIAL_REASON_CODE,
) -> dict[str, Any]:
    """Aggregate, normalize, and shape the result for the dashboard.

    Returns:
        ``{year, month, projectTermination, monthlyData}`` where monthlyData
        has exactly 12 entries in ascending month order.
    """
    facets = aggregate(records, now, special_reason_code)
    return {
        "year": facets.year_total,
        "month": facets.month_total,
        "projectTermination": facets.special_reason_total,
        "monthlyData": [m.to_dict() for m in normalize_monthly(facets.monthly)],
    }
