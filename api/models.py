"""
Pydantic request/response models for the API.

Request bodies use the camelCase field names the record-entry and import
clients send (``speciesName``, ``removalDate`` ...); snake_case names are
accepted too.  Responses use the same camelCase keys.

Shape checks (types, species/strain pairs, dates) run inside pydantic and
fail with 422.  Checks that need the reason catalog live in
DispositionCreate.check_catalog(), which raises ValueError (400).
"""

from __future__ import annotations

from datetime import date
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from dispositions.catalog import (
    SEXES,
    SPECIES_STRAINS,
    TRANSFER_REASON_CODE,
    ReasonCatalog,
)
from dispositions.records import (
    NOT_APPLICABLE,
    DispositionRecord,
    normalize_removal_date,
)


class _CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


# ── Disposition records ───────────────────────────────────────────────────────

class DispositionCreate(_CamelModel):
    """A new removal event as submitted by the entry form or an import file."""
    species_name: str = Field(..., alias="speciesName", description="Species", examples=["Mouse"])
    strain_name: str = Field(..., alias="strainName", description="Strain; must belong to the species", examples=["C57BL/6"])
    sex: str = Field(..., description="male | female", examples=["female"])
    count: int = Field(..., ge=1, description="Number of animals removed", examples=[3])
    date_of_birth: str = Field(..., alias="dateOfBirth", description="Birth date, YYYY-MM-DD; not after the removal date", examples=["2023-11-02"])
    removal_date: str = Field(..., alias="removalDate", description="Removal date, YYYY-MM-DD", examples=["2024-02-15"])
    reason_code: str | None = Field(None, alias="reasonCode", description="Catalog reason code", examples=["EXP-01"])
    project_reference: str | None = Field(None, alias="projectReference", description="Project code; required for project-bound reasons", examples=["PRJ-2024-017"])
    transfer_institution: str | None = Field(None, alias="transferInstitution", description="Receiving institution; required for transfers")

    @field_validator("removal_date", "date_of_birth", mode="before")
    @classmethod
    def _normalize_dates(cls, value: Any) -> Any:
        if value is None or value == "":
            return None
        if isinstance(value, (str, date)):
            return normalize_removal_date(value)
        return value

    @field_validator("sex")
    @classmethod
    def _check_sex(cls, value: str) -> str:
        if value not in SEXES:
            raise ValueError(f"sex must be one of {list(SEXES)}")
        return value

    @field_validator("reason_code", "project_reference", "transfer_institution", mode="before")
    @classmethod
    def _blank_to_none(cls, value: Any) -> Any:
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @model_validator(mode="after")
    def _check_strain(self) -> "DispositionCreate":
        strains = SPECIES_STRAINS.get(self.species_name)
        if strains is None:
            raise ValueError(f"Unknown species {self.species_name!r}")
        if self.strain_name not in strains:
            raise ValueError(
                f"Strain {self.strain_name!r} is not a {self.species_name} strain"
            )
        return self

    @model_validator(mode="after")
    def _check_birth_before_removal(self) -> "DispositionCreate":
        if self.date_of_birth > self.removal_date:
            raise ValueError("dateOfBirth must not be after removalDate")
        return self

    def check_catalog(self, catalog: ReasonCatalog) -> "DispositionCreate":
        """Apply the reason-dependent rules and fill the derived defaults.

        Returns a copy with ``project_reference`` defaulted to "-" when the
        reason does not need a project and ``transfer_institution`` cleared
        unless the reason is a transfer.

        Raises:
            ValueError: Unknown reason code, or a required field is missing.
        """
        code = self.reason_code
        if code is not None and code not in catalog:
            raise ValueError(f"Unknown reason code {code!r}")

        project = self.project_reference
        if catalog.requires_project(code):
            if not project or project == NOT_APPLICABLE:
                raise ValueError(f"Reason {code} requires a project reference")
        else:
            project = NOT_APPLICABLE

        institution = self.transfer_institution
        if code == TRANSFER_REASON_CODE:
            if not institution:
                raise ValueError(f"Reason {code} requires a receiving institution")
        else:
            institution = None

        return self.model_copy(update={
            "project_reference": project,
            "transfer_institution": institution,
        })

    def to_row(self) -> dict[str, Any]:
        """Column mapping for utils.database.insert_record()."""
        return self.model_dump(by_alias=False)


class DispositionOut(_CamelModel):
    """A stored disposition record."""
    id: str = Field(..., description="Opaque record id", examples=["42"])
    species_name: str = Field(..., alias="speciesName", examples=["Mouse"])
    strain_name: str = Field(..., alias="strainName", examples=["C57BL/6"])
    sex: str = Field(..., examples=["female"])
    count: int = Field(..., examples=[3])
    date_of_birth: str | None = Field(None, alias="dateOfBirth")
    removal_date: str = Field(..., alias="removalDate", examples=["2024-02-15"])
    reason_code: str | None = Field(None, alias="reasonCode", examples=["EXP-01"])
    project_reference: str | None = Field(None, alias="projectReference", examples=["-"])
    transfer_institution: str | None = Field(None, alias="transferInstitution")

    @classmethod
    def from_record(cls, record: DispositionRecord) -> "DispositionOut":
        return cls.model_validate(record.to_dict())


class RecordPageOut(_CamelModel):
    """One page of the filtered record list plus the pagination state."""
    items: list[DispositionOut]
    current_page: int = Field(..., alias="currentPage", examples=[1])
    total_pages: int = Field(..., alias="totalPages", examples=[3])
    items_per_page: int = Field(..., alias="itemsPerPage", examples=[50])
    total_filtered: int = Field(..., alias="totalFiltered", examples=[120])


class DeleteResult(BaseModel):
    success: bool = True


# ── Dashboard models ──────────────────────────────────────────────────────────

class MonthlyDataOut(BaseModel):
    """Removals in one calendar month of the reference year, by reason."""
    month: str = Field(..., description="Two-digit month", examples=["02"])
    total: int = Field(..., examples=[10])
    reasons: dict[str, int] = Field(default_factory=dict, examples=[{"EXP-01": 3, "HEALTH-02": 7}])


class DashboardStatsOut(_CamelModel):
    """Headline counters plus the dense 12-month series."""
    year: int = Field(..., description="Animals removed since 1 January of the reference year", examples=[120])
    month: int = Field(..., description="Animals removed since the 1st of the reference month", examples=[14])
    project_termination: int = Field(..., alias="projectTermination", description="All-time count for the special reason code", examples=[48])
    monthly_data: list[MonthlyDataOut] = Field(..., alias="monthlyData")


class ChartPointOut(BaseModel):
    name: str = Field(..., examples=["Feb"])
    month: str = Field(..., examples=["02"])
    total: int
    filtered: int
    remainder: int
    percentage: float = Field(..., description="filtered / total * 100, one decimal", examples=[30.0])


class ChartResponse(BaseModel):
    """Chart series split by the selected reason codes."""
    selected: list[str] = Field(..., description="Selected codes in catalog order")
    series: list[ChartPointOut]


# ── Reference data models ─────────────────────────────────────────────────────

class ReasonOptionOut(_CamelModel):
    code: str = Field(..., examples=["EXP-01"])
    label: str = Field(..., examples=["Project termination"])
    description: str = ""
    requires_project: bool = Field(False, alias="requiresProject")


class ReasonCategoryOut(BaseModel):
    """A reason category and its options, in catalog order."""
    id: str = Field(..., examples=["EXP"])
    label: str = Field(..., examples=["Experimental use"])
    options: list[ReasonOptionOut]


class SpeciesOut(BaseModel):
    species: dict[str, list[str]] = Field(..., examples=[{"Rat": ["Wistar", "Sprague Dawley"]}])
    sexes: list[str] = Field(..., examples=[["male", "female"]])


# ── Transfer models ───────────────────────────────────────────────────────────

class ImportErrorOut(BaseModel):
    index: int = Field(..., description="Zero-based position in the submitted array")
    detail: str


class ImportResult(BaseModel):
    """Outcome of a bulk import; failed items do not abort the batch."""
    imported: int = Field(..., examples=[98])
    failed: int = Field(..., examples=[2])
    errors: list[ImportErrorOut] = Field(default_factory=list)


# ── Error models ──────────────────────────────────────────────────────────────

class ErrorResponse(BaseModel):
    """Standard error response body."""
    error: str = Field(..., description="Short error category", examples=["Bad request"])
    detail: str | None = Field(None, description="Human-readable detail message")
    status_code: int = Field(..., description="HTTP status code", examples=[400])
