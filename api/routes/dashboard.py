"""Dashboard endpoints: headline counters and the reason-highlighted chart."""

import sqlite3
from datetime import date

from fastapi import APIRouter, Depends, Query

from api.database import get_app_config, get_catalog, get_db, get_stats_cache
from api.models import ChartResponse, DashboardStatsOut
from dispositions.aggregation import MonthlyBreakdown, build_dashboard_stats
from dispositions.catalog import ReasonCatalog
from dispositions.chart_filter import ReasonSelection
from dispositions.records import normalize_removal_date
from utils.cache import TTLCache
from utils.config import AppConfig
from utils.database import fetch_records, store_fingerprint

router = APIRouter(prefix="/dashboard", tags=["dashboard"])


def _reference_date(as_of: str | None) -> date:
    """Parse ``as_of`` (YYYY-MM-DD); today when omitted."""
    if not as_of:
        return date.today()
    return date.fromisoformat(normalize_removal_date(as_of))


def _stats(
    conn: sqlite3.Connection,
    cache: TTLCache,
    now: date,
    special_reason_code: str,
) -> dict:
    key = ("stats", store_fingerprint(conn), now.isoformat(), special_reason_code)
    return cache.get_or_set(
        key,
        lambda: build_dashboard_stats(fetch_records(conn), now, special_reason_code),
    )


@router.get(
    "/stats",
    summary="Dashboard counters and monthly breakdown",
    response_model=DashboardStatsOut,
)
def dashboard_stats(
    as_of: str | None = Query(None, description="Reference date YYYY-MM-DD (default: today)"),
    conn: sqlite3.Connection = Depends(get_db),
    cache: TTLCache = Depends(get_stats_cache),
    cfg: AppConfig = Depends(get_app_config),
) -> dict:
    """Return ``{year, month, projectTermination, monthlyData}``.

    ``year`` and ``month`` count animals removed since the start of the
    reference year and month; ``projectTermination`` is all-time.
    ``monthlyData`` always holds 12 entries, Jan..Dec.
    """
    now = _reference_date(as_of)
    return _stats(conn, cache, now, cfg.special_reason_code)


@router.get(
    "/chart",
    summary="Monthly chart series split by selected reasons",
    response_model=ChartResponse,
)
def dashboard_chart(
    reason: list[str] | None = Query(None, description="Reason code(s) to toggle"),
    category: list[str] | None = Query(None, description="Category id(s) to toggle"),
    as_of: str | None = Query(None, description="Reference date YYYY-MM-DD (default: today)"),
    conn: sqlite3.Connection = Depends(get_db),
    cache: TTLCache = Depends(get_stats_cache),
    catalog: ReasonCatalog = Depends(get_catalog),
    cfg: AppConfig = Depends(get_app_config),
) -> dict:
    """Build a selection and split each month into filtered/remainder.

    Starting from an empty selection, each ``reason`` is toggled in order,
    then each ``category``.  Repeating a reason therefore deselects it.
    """
    now = _reference_date(as_of)
    stats = _stats(conn, cache, now, cfg.special_reason_code)

    selection = ReasonSelection(catalog)
    for code in reason or []:
        selection.toggle_reason(code)
    for category_id in category or []:
        selection.toggle_category(category_id)

    monthly = [
        MonthlyBreakdown(month=m["month"], total=m["total"], reasons=dict(m["reasons"]))
        for m in stats["monthlyData"]
    ]
    return {"selected": selection.ordered(), "series": selection.series(monthly)}
