"""
Reason-code highlighting for the monthly removal chart.

Given the dense monthly series and a set of selected reason codes, every month
splits into a highlighted ``filtered`` part (sum of the selected reasons) and
a ``remainder`` so the chart can stack the two.  The selection is edited with
three operations:

    toggle_reason(selection, code)           add if absent, remove if present
    toggle_category(selection, catalog, id)  all selected -> remove all,
                                             otherwise add the missing ones
    clear                                    empty selection

All of these are pure functions returning a new frozenset.  ReasonSelection
wraps them for callers that want to hold the selection as mutable state.
"""

from __future__ import annotations

from typing import Any, Iterable

from dispositions.aggregation import MONTHS, MonthlyBreakdown
from dispositions.catalog import ReasonCatalog

MONTH_NAMES: tuple[str, ...] = (
    "Jan", "Feb", "Mar", "Apr", "May", "Jun",
    "Jul", "Aug", "Sep", "Oct", "Nov", "Dec",
)


# ── Selection edits ──────────────────────────────────────────────────────────

def toggle_reason(selection: Iterable[str], code: str) -> frozenset[str]:
    """Symmetric difference of *selection* with ``{code}``."""
    return frozenset(selection) ^ {code}


def toggle_category(
    selection: Iterable[str],
    catalog: ReasonCatalog,
    category_id: str,
) -> frozenset[str]:
    """Select or deselect every option of one catalog category at once.

    If every code in the category is already selected, all of them are
    removed; otherwise the missing ones are added.  Codes outside the category
    are never touched.  An unknown category id leaves the selection unchanged.
    """
    current = frozenset(selection)
    cat_codes = frozenset(catalog.codes_for_category(category_id))
    if not cat_codes:
        return current
    if cat_codes <= current:
        return current - cat_codes
    return current | cat_codes


# ── Derived series ───────────────────────────────────────────────────────────

def percentage(filtered: int, total: int) -> float:
    """Share of *total* taken by *filtered*, one decimal; 0 for an empty month."""
    if total <= 0:
        return 0.0
    return round(filtered / total * 100, 1)


def month_label(month: str) -> str:
    """Short English name for a two-digit month; unknown months pass through."""
    if month in MONTHS:
        return MONTH_NAMES[int(month) - 1]
    return month


def recompute(
    monthly: Iterable[MonthlyBreakdown],
    selection: Iterable[str],
) -> list[dict[str, Any]]:
    """Split each month into filtered and remainder counts.

    Args:
        monthly: Dense monthly series (see normalize_monthly()).
        selection: Selected reason codes; codes missing from a month count 0.

    Returns:
        One ``{name, month, total, filtered, remainder, percentage}`` dict per
        input month, in input order.  With an empty selection every month has
        ``filtered == 0`` and ``remainder == total``.
    """
    selected = frozenset(selection)
    series = []
    for entry in monthly:
        filtered = sum(entry.reasons.get(code, 0) for code in selected)
        series.append({
            "name": month_label(entry.month),
            "month": entry.month,
            "total": entry.total,
            "filtered": filtered,
            "remainder": entry.total - filtered,
            "percentage": percentage(filtered, entry.total),
        })
    return series


class ReasonSelection:
    """Mutable holder for the chart's selected reason codes.

    Usage::

        sel = ReasonSelection(catalog)
        sel.toggle_category("HEALTH")
        sel.toggle_reason("EXP-01")
        chart = sel.series(dense_monthly)
    """

    def __init__(self, catalog: ReasonCatalog, selected: Iterable[str] = ()) -> None:
        self._catalog = catalog
        self._selected: frozenset[str] = frozenset(selected)

    @property
    def selected(self) -> frozenset[str]:
        return self._selected

    def toggle_reason(self, code: str) -> frozenset[str]:
        self._selected = toggle_reason(self._selected, code)
        return self._selected

    def toggle_category(self, category_id: str) -> frozenset[str]:
        self._selected = toggle_category(self._selected, self._catalog, category_id)
        return self._selected

    def clear_all(self) -> None:
        self._selected = frozenset()

    def ordered(self) -> list[str]:
        """Selected codes in catalog order, unknown codes last (sorted)."""
        known = [c for c in self._catalog.all_codes() if c in self._selected]
        unknown = sorted(c for c in self._selected if c not in self._catalog)
        return known + unknown

    def series(self, monthly: Iterable[MonthlyBreakdown]) -> list[dict[str, Any]]:
        return recompute(monthly, self._selected)
