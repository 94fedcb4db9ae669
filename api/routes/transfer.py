"""
Bulk import and export of disposition records.

POST /transfer/import   JSON array of records; bad items are skipped and reported
GET  /transfer/export   all records as JSON, CSV, or Excel (newest first)

Exported JSON uses the same camelCase keys the import accepts, so an export
can be re-imported as-is (``id`` is ignored on import).

Excel export via openpyxl write_only mode.
X-Total-Count header for client progress tracking.
"""

import csv
import io
import json
import logging
import sqlite3
from datetime import date
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from fastapi.responses import StreamingResponse
from pydantic import ValidationError

from api.database import get_catalog, get_db
from api.models import DispositionCreate, DispositionOut, ImportResult
from dispositions.catalog import ReasonCatalog
from dispositions.records import DispositionRecord
from utils.database import fetch_records, insert_many
from utils.strings import clean_import_item, sanitize_json_text

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/transfer", tags=["transfer"])

EXPORT_COLUMNS = [
    "id", "speciesName", "strainName", "sex", "count", "dateOfBirth",
    "removalDate", "reasonCode", "projectReference", "transferInstitution",
]

_MEDIA_TYPES = {
    "json": "application/json",
    "csv": "text/csv",
    "xlsx": "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
}


def _validation_detail(exc: ValidationError) -> str:
    """Flatten pydantic errors to ``field: message; ...``."""
    parts = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err.get("loc", ()))
        parts.append(f"{loc}: {err['msg']}" if loc else err["msg"])
    return "; ".join(parts)


def parse_import_payload(raw: bytes) -> list[Any]:
    """Decode, sanitize and parse an import body.

    Raises:
        HTTPException: 400 when the body is not valid JSON or not an array.
    """
    try:
        data = json.loads(sanitize_json_text(raw.decode("utf-8")))
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise HTTPException(status_code=400, detail=f"Invalid JSON: {exc}") from exc
    if not isinstance(data, list):
        raise HTTPException(status_code=400, detail="Import payload must be a JSON array")
    return data


def validate_import_items(
    items: list[Any],
    catalog: ReasonCatalog,
) -> tuple[list[dict[str, Any]], list[dict[str, Any]]]:
    """Split raw items into insertable rows and ``{index, detail}`` errors."""
    rows: list[dict[str, Any]] = []
    errors: list[dict[str, Any]] = []
    for index, item in enumerate(items):
        if not isinstance(item, dict):
            errors.append({"index": index, "detail": "Item is not a JSON object"})
            continue
        try:
            payload = DispositionCreate.model_validate(clean_import_item(item))
            rows.append(payload.check_catalog(catalog).to_row())
        except ValidationError as exc:
            errors.append({"index": index, "detail": _validation_detail(exc)})
        except ValueError as exc:
            errors.append({"index": index, "detail": str(exc)})
    return rows, errors


@router.post("/import", summary="Import records from a JSON array", response_model=ImportResult)
async def import_records(
    request: Request,
    conn: sqlite3.Connection = Depends(get_db),
    catalog: ReasonCatalog = Depends(get_catalog),
) -> dict:
    """Import every valid item of a JSON array.

    Tabs and control characters (other than newlines) are stripped from the
    raw text before parsing; string values are trimmed and ``count`` is
    coerced to an integer.  Invalid items are reported by position and do
    not stop the rest of the batch.
    """
    items = parse_import_payload(await request.body())
    rows, errors = validate_import_items(items, catalog)
    imported = insert_many(conn, rows)
    logger.info("import finished: %d imported, %d failed", imported, len(errors))
    return {"imported": imported, "failed": len(errors), "errors": errors}


def export_rows(records: list[DispositionRecord]) -> list[dict[str, Any]]:
    return [DispositionOut.from_record(r).model_dump(by_alias=True) for r in records]


def export_filename(fmt: str, today: date | None = None) -> str:
    today = today or date.today()
    return f"lab_colony_export_{today.isoformat()}.{fmt}"


@router.get("/export", summary="Export all records as JSON, CSV, or Excel")
def export_records(
    fmt: str = Query("json", pattern="^(json|csv|xlsx)$", description="Output format"),
    conn: sqlite3.Connection = Depends(get_db),
) -> StreamingResponse:
    """Return every record, newest removal first, as a file download."""
    rows = export_rows(fetch_records(conn))
    headers = {
        "Content-Disposition": f"attachment; filename={export_filename(fmt)}",
        "X-Total-Count": str(len(rows)),
    }

    if fmt == "csv":
        def csv_stream():
            buf = io.StringIO()
            writer = csv.DictWriter(buf, fieldnames=EXPORT_COLUMNS)
            writer.writeheader()
            yield buf.getvalue()
            for row in rows:
                buf.seek(0)
                buf.truncate()
                writer.writerow(row)
                yield buf.getvalue()

        return StreamingResponse(csv_stream(), media_type=_MEDIA_TYPES["csv"], headers=headers)

    if fmt == "xlsx":
        import openpyxl

        def xlsx_bytes() -> bytes:
            wb = openpyxl.Workbook(write_only=True)
            ws = wb.create_sheet("Dispositions")
            ws.append(EXPORT_COLUMNS)
            for row in rows:
                ws.append([row.get(c) for c in EXPORT_COLUMNS])
            buf = io.BytesIO()
            wb.save(buf)
            return buf.getvalue()

        content = xlsx_bytes()
        return StreamingResponse(
            iter([content]),
            media_type=_MEDIA_TYPES["xlsx"],
            headers={"Content-Length": str(len(content)), **headers},
        )

    body = json.dumps(rows, indent=2, ensure_ascii=False)
    return StreamingResponse(iter([body]), media_type=_MEDIA_TYPES["json"], headers=headers)
