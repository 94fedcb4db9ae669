"""
Filtering and pagination for the disposition record table.

RecordFilters holds one optional exact-match predicate per filterable field;
an unset predicate matches everything and set predicates are ANDed.
RecordPaginator owns the filters plus the page cursor and re-derives the
filtered view and current page from scratch on every read.

State rules:
  - any filter change resets the page to 1
  - clearing or changing the species filter also clears the strain filter
  - changing the page size resets the page to 1
  - change_page() outside 1..total_pages is a no-op
"""

from __future__ import annotations

import math
from dataclasses import dataclass, fields, replace
from typing import Any, Sequence

from dispositions.records import DispositionRecord

PAGE_SIZE_PRESETS: tuple[int, ...] = (50, 100, 500)
DEFAULT_PAGE_SIZE = PAGE_SIZE_PRESETS[0]


@dataclass(frozen=True)
class RecordFilters:
    removal_date: str | None = None
    species_name: str | None = None
    strain_name: str | None = None
    sex: str | None = None
    reason_code: str | None = None

    @classmethod
    def field_names(cls) -> tuple[str, ...]:
        return tuple(f.name for f in fields(cls))

    def matches(self, record: DispositionRecord) -> bool:
        for name in self.field_names():
            wanted = getattr(self, name)
            if wanted is not None and getattr(record, name) != wanted:
                return False
        return True

    def active(self) -> dict[str, str]:
        return {n: getattr(self, n) for n in self.field_names()
                if getattr(self, n) is not None}


class RecordPaginator:
    """Filter + page state over an externally supplied record list.

    The record list is expected newest-first (the store sorts by removal
    date descending); its order is preserved in every derived view.
    """

    def __init__(
        self,
        records: Sequence[DispositionRecord],
        page_size: int = DEFAULT_PAGE_SIZE,
        page_size_presets: Sequence[int] = PAGE_SIZE_PRESETS,
    ) -> None:
        self._presets = tuple(page_size_presets)
        if page_size not in self._presets:
            raise ValueError(
                f"page_size must be one of {list(self._presets)}, got {page_size}"
            )
        self._records = list(records)
        self._filters = RecordFilters()
        self._page_size = page_size
        self._current_page = 1

    # ── State ─────────────────────────────────────────────────────────────

    @property
    def filters(self) -> RecordFilters:
        return self._filters

    @property
    def current_page(self) -> int:
        return self._current_page

    @property
    def page_size(self) -> int:
        return self._page_size

    def set_filter(self, field_name: str, value: str | None) -> None:
        """Set (or with a falsy value, clear) one predicate.

        Raises:
            ValueError: If *field_name* is not a filterable field.
        """
        if field_name not in RecordFilters.field_names():
            raise ValueError(f"Unknown filter field: {field_name!r}")
        value = value or None
        changes: dict[str, Any] = {field_name: value}
        if field_name == "species_name" and value != self._filters.species_name:
            changes["strain_name"] = None
        self._filters = replace(self._filters, **changes)
        self._current_page = 1

    def clear_filter(self, field_name: str) -> None:
        self.set_filter(field_name, None)

    def set_page_size(self, page_size: int) -> None:
        if page_size not in self._presets:
            raise ValueError(
                f"page_size must be one of {list(self._presets)}, got {page_size}"
            )
        self._page_size = page_size
        self._current_page = 1

    def change_page(self, page: int) -> None:
        if 1 <= page <= self.total_pages:
            self._current_page = page

    # ── Derived views ─────────────────────────────────────────────────────

    def filtered_view(self) -> list[DispositionRecord]:
        return [r for r in self._records if self._filters.matches(r)]

    @property
    def total_filtered(self) -> int:
        return len(self.filtered_view())

    @property
    def total_pages(self) -> int:
        """Page count for display; 1 even when nothing matches."""
        return max(1, math.ceil(self.total_filtered / self._page_size))

    def page(self, n: int | None = None) -> list[DispositionRecord]:
        """Slice ``[(n-1)*size, n*size)`` of the filtered view (current page by default)."""
        n = self._current_page if n is None else n
        start = (n - 1) * self._page_size
        if start < 0:
            return []
        return self.filtered_view()[start:start + self._page_size]

    def state(self) -> dict[str, int]:
        return {
            "currentPage": self._current_page,
            "totalPages": self.total_pages,
            "itemsPerPage": self._page_size,
            "totalFiltered": self.total_filtered,
        }
