"""
Reference data endpoints.

GET /reference/reasons    reason catalog: categories with their options
GET /reference/species    species -> strains, plus the accepted sexes
GET /reference/projects   project references already on file (autocomplete)

Reasons and species are static for the life of the process.
"""

import sqlite3

from fastapi import APIRouter, Depends, HTTPException, Query, Response

from api.database import get_catalog, get_db
from api.models import ReasonCategoryOut, SpeciesOut
from dispositions.catalog import SEXES, SPECIES_STRAINS, ReasonCatalog
from utils.database import search_project_references

router = APIRouter(prefix="/reference", tags=["reference"])

_CACHE_CONTROL = "public, max-age=3600"


@router.get(
    "/reasons",
    summary="Removal reason catalog",
    response_model=list[ReasonCategoryOut],
)
def list_reasons(
    response: Response,
    catalog: ReasonCatalog = Depends(get_catalog),
) -> list[dict]:
    """Return every reason category with its options, in catalog order."""
    response.headers["Cache-Control"] = _CACHE_CONTROL
    return catalog.to_dict()


@router.get(
    "/reasons/{category_id}",
    summary="One reason category",
    response_model=ReasonCategoryOut,
)
def get_reason_category(
    category_id: str,
    catalog: ReasonCatalog = Depends(get_catalog),
) -> dict:
    category = catalog.get_category(category_id)
    if category is None:
        raise HTTPException(status_code=404, detail=f"Unknown category {category_id!r}")
    return category.to_dict()


@router.get("/species", summary="Species and strains", response_model=SpeciesOut)
def list_species(response: Response) -> dict:
    response.headers["Cache-Control"] = _CACHE_CONTROL
    return {
        "species": {name: list(strains) for name, strains in SPECIES_STRAINS.items()},
        "sexes": list(SEXES),
    }


@router.get("/projects", summary="Autocomplete project references")
def search_projects(
    q: str = Query("", description="Substring to match; fewer than 2 characters returns nothing"),
    limit: int = Query(10, ge=1, le=50),
    conn: sqlite3.Connection = Depends(get_db),
) -> list[str]:
    """Return up to ``limit`` distinct project references containing ``q``."""
    q = q.strip()
    if len(q) < 2:
        return []
    return search_project_references(conn, q, limit)
