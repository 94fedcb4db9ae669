"""
Disposition record type and removal-date normalization.

A disposition record is one removal event: ``count`` animals of identical
species, strain, and sex taken out of the colony on ``removal_date``.

Dates are compared as fixed-width ``YYYY-MM-DD`` strings throughout the
engine.  Lexicographic order equals chronological order only for that exact
shape, so every producer must pass dates through normalize_removal_date()
before a record is stored.
"""

from __future__ import annotations

import re
from dataclasses import asdict, dataclass
from datetime import date, datetime
from typing import Any, Mapping

UNSPECIFIED_REASON = "unspecified"
NOT_APPLICABLE = "-"

_ISO_DATE = re.compile(r"(\d{4})-(\d{1,2})-(\d{1,2})(?:[T ][\d:.+\-Z]*)?")


def normalize_removal_date(value: date | datetime | str) -> str:
    """Return *value* as a zero-padded ``YYYY-MM-DD`` string.

    Accepts ``date``/``datetime`` objects and ISO-like strings
    (``2024-3-5``, ``2024-03-05T10:00:00``).

    Raises:
        ValueError: If the value cannot be read as a calendar date.
    """
    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    if not isinstance(value, str):
        raise ValueError(f"Unsupported date value: {value!r}")
    m = _ISO_DATE.fullmatch(value.strip())
    if not m:
        raise ValueError(f"Date must be YYYY-MM-DD, got {value!r}")
    year, month, day = (int(g) for g in m.groups())
    # Round-trip through date() to reject 2024-02-31 and friends
    return date(year, month, day).isoformat()


@dataclass(frozen=True)
class DispositionRecord:
    """One removal event as seen by the aggregation and filter engines."""

    species_name: str
    strain_name: str
    sex: str
    count: int
    removal_date: str
    date_of_birth: str | None = None
    reason_code: str | None = None
    project_reference: str | None = NOT_APPLICABLE
    transfer_institution: str | None = None
    id: str | None = None

    @property
    def removal_month(self) -> str:
        """Two-digit month taken straight from the stored date string."""
        return self.removal_date[5:7]

    @property
    def reason_key(self) -> str:
        return self.reason_code or UNSPECIFIED_REASON

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def record_from_mapping(row: Mapping[str, Any]) -> DispositionRecord:
    """Build a DispositionRecord from a store row or a plain dict.

    The store hands rows back with snake_case column names; ``id`` is turned
    into an opaque string.
    """
    data = dict(row)
    raw_id = data.get("id")
    return DispositionRecord(
        species_name=data["species_name"],
        strain_name=data["strain_name"],
        sex=data["sex"],
        count=int(data["count"]),
        removal_date=data["removal_date"],
        date_of_birth=data.get("date_of_birth"),
        reason_code=data.get("reason_code"),
        project_reference=data.get("project_reference", NOT_APPLICABLE),
        transfer_institution=data.get("transfer_institution"),
        id=str(raw_id) if raw_id is not None else None,
    )
