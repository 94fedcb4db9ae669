"""
Disposition record endpoints.

GET    /dispositions         filtered, paginated list (newest first)
GET    /dispositions/{id}    single record
POST   /dispositions         create a record
DELETE /dispositions/{id}    delete a record

Records are never edited in place; a wrong entry is deleted and re-entered.
"""

import logging
import sqlite3

from fastapi import APIRouter, Depends, HTTPException, Query

from api.database import get_catalog, get_db
from api.models import (
    DeleteResult,
    DispositionCreate,
    DispositionOut,
    ErrorResponse,
    RecordPageOut,
)
from dispositions.catalog import ReasonCatalog
from dispositions.record_filter import DEFAULT_PAGE_SIZE, RecordPaginator
from dispositions.records import normalize_removal_date
from utils.database import delete_record, fetch_records, get_record, insert_record

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/dispositions", tags=["dispositions"])


@router.get(
    "",
    summary="List disposition records",
    response_model=RecordPageOut,
    responses={400: {"model": ErrorResponse}},
)
def list_dispositions(
    removal_date: str | None = Query(None, description="Exact removal date YYYY-MM-DD"),
    species_name: str | None = Query(None, description="Exact species"),
    strain_name: str | None = Query(None, description="Exact strain"),
    sex: str | None = Query(None, description="male | female"),
    reason_code: str | None = Query(None, description="Exact reason code"),
    page: int = Query(1, description="1-based page; out-of-range pages are ignored"),
    page_size: int = Query(DEFAULT_PAGE_SIZE, description="Page size: 50, 100 or 500"),
    conn: sqlite3.Connection = Depends(get_db),
) -> dict:
    """Return one page of records matching every given filter.

    Species is applied before strain so the species/strain cascade never
    wipes a strain given in the same request.  ``removal_date`` is normalized
    like a submitted date; an unreadable one is a 400.  An out-of-range
    ``page`` leaves the first page selected.
    """
    if removal_date:
        removal_date = normalize_removal_date(removal_date)
    paginator = RecordPaginator(fetch_records(conn), page_size=page_size)
    paginator.set_filter("species_name", species_name)
    for field_name, value in (
        ("strain_name", strain_name),
        ("removal_date", removal_date),
        ("sex", sex),
        ("reason_code", reason_code),
    ):
        paginator.set_filter(field_name, value)
    paginator.change_page(page)

    return {
        "items": [DispositionOut.from_record(r) for r in paginator.page()],
        **paginator.state(),
    }


@router.get("/{record_id}", summary="Get one disposition record", response_model=DispositionOut)
def get_disposition(
    record_id: int,
    conn: sqlite3.Connection = Depends(get_db),
) -> DispositionOut:
    record = get_record(conn, record_id)
    if record is None:
        raise HTTPException(status_code=404, detail=f"Record {record_id} not found")
    return DispositionOut.from_record(record)


@router.post(
    "",
    summary="Create a disposition record",
    response_model=DispositionOut,
    status_code=201,
    responses={400: {"model": ErrorResponse}},
)
def create_disposition(
    payload: DispositionCreate,
    conn: sqlite3.Connection = Depends(get_db),
    catalog: ReasonCatalog = Depends(get_catalog),
) -> DispositionOut:
    """Validate against the reason catalog and store the record.

    Returns 400 for an unknown reason code or a missing project reference
    or receiving institution; 422 for malformed fields.
    """
    checked = payload.check_catalog(catalog)
    record = insert_record(conn, checked.to_row())
    logger.info(
        "created record id=%s species=%s count=%d reason=%s",
        record.id, record.species_name, record.count, record.reason_code,
    )
    return DispositionOut.from_record(record)


@router.delete("/{record_id}", summary="Delete a disposition record", response_model=DeleteResult)
def delete_disposition(
    record_id: int,
    conn: sqlite3.Connection = Depends(get_db),
) -> dict:
    if not delete_record(conn, record_id):
        raise HTTPException(status_code=404, detail=f"Record {record_id} not found")
    logger.info("deleted record id=%s", record_id)
    return {"success": True}
