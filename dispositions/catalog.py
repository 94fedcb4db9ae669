"""Removal reason catalog and species/strain reference data.

The catalog is static configuration: a list of categories, each holding an
ordered list of reason options.  It is loaded once at process start (either
the built-in default below or a JSON file named by ``APP_REASON_CATALOG``)
and passed explicitly to whatever needs category or requirement lookups.

JSON shape accepted by ReasonCatalog.load_json()::

    [
      {"id": "EXP", "label": "Experimental use",
       "options": [{"code": "EXP-01", "label": "Project termination",
                    "description": "...", "requiresProject": true}]}
    ]
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Iterable

SPECIAL_REASON_CODE = "EXP-01"
TRANSFER_REASON_CODE = "TRF-01"

SEXES = ("male", "female")

# Valid strain names per species.  Strains outside this table are rejected at
# ingestion; the engines themselves never consult it.
SPECIES_STRAINS: dict[str, tuple[str, ...]] = {
    "Mouse": ("C57BL/6", "BALB/c", "CD-1", "Swiss Albino", "129/Sv"),
    "Rat": ("Wistar", "Sprague Dawley", "Long Evans"),
    "Rabbit": ("New Zealand White",),
}


@dataclass(frozen=True)
class ReasonOption:
    code: str
    label: str
    description: str = ""
    requires_project: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "code": self.code,
            "label": self.label,
            "description": self.description,
            "requiresProject": self.requires_project,
        }


@dataclass(frozen=True)
class ReasonCategory:
    id: str
    label: str
    options: tuple[ReasonOption, ...]

    @property
    def codes(self) -> tuple[str, ...]:
        return tuple(o.code for o in self.options)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "label": self.label,
            "options": [o.to_dict() for o in self.options],
        }


class ReasonCatalog:
    """Read-only lookup over reason categories and their options.

    Every option code appears in exactly one category; construction fails
    with ValueError otherwise.
    """

    def __init__(self, categories: Iterable[ReasonCategory]) -> None:
        self._categories: tuple[ReasonCategory, ...] = tuple(categories)
        self._by_category: dict[str, ReasonCategory] = {}
        self._by_code: dict[str, tuple[ReasonCategory, ReasonOption]] = {}
        for category in self._categories:
            if category.id in self._by_category:
                raise ValueError(f"Duplicate reason category id: {category.id!r}")
            self._by_category[category.id] = category
            for option in category.options:
                if option.code in self._by_code:
                    owner = self._by_code[option.code][0].id
                    raise ValueError(
                        f"Reason code {option.code!r} appears in both "
                        f"{owner!r} and {category.id!r}"
                    )
                self._by_code[option.code] = (category, option)

    # ── Construction ──────────────────────────────────────────────────────

    @classmethod
    def from_dict(cls, data: list[dict[str, Any]]) -> "ReasonCatalog":
        """Build a catalog from its JSON-style representation.

        Args:
            data: List of ``{id, label, options: [...]}`` category dicts.

        Raises:
            ValueError: If the payload is not a list or an entry is missing
                a required key.
        """
        if not isinstance(data, list):
            raise ValueError("Reason catalog must be a list of categories")
        categories = []
        for raw in data:
            try:
                options = tuple(
                    ReasonOption(
                        code=opt["code"],
                        label=opt.get("label", opt["code"]),
                        description=opt.get("description", ""),
                        requires_project=bool(opt.get("requiresProject", False)),
                    )
                    for opt in raw["options"]
                )
                categories.append(
                    ReasonCategory(id=raw["id"], label=raw.get("label", raw["id"]),
                                   options=options)
                )
            except (KeyError, TypeError, AttributeError) as exc:
                raise ValueError(f"Malformed reason catalog entry: {raw!r}") from exc
        return cls(categories)

    @classmethod
    def load_json(cls, path: Path) -> "ReasonCatalog":
        """Load a catalog from a JSON file.

        Raises:
            FileNotFoundError: If the file doesn't exist
            ValueError: If the content is not a valid catalog
        """
        with open(path, "r", encoding="utf-8") as f:
            return cls.from_dict(json.load(f))

    # ── Lookups ───────────────────────────────────────────────────────────

    @property
    def categories(self) -> tuple[ReasonCategory, ...]:
        return self._categories

    def get_category(self, category_id: str) -> ReasonCategory | None:
        return self._by_category.get(category_id)

    def codes_for_category(self, category_id: str) -> tuple[str, ...]:
        """Option codes under *category_id*; empty for an unknown id."""
        category = self._by_category.get(category_id)
        return category.codes if category else ()

    def find_option(self, code: str | None) -> ReasonOption | None:
        if not code:
            return None
        entry = self._by_code.get(code)
        return entry[1] if entry else None

    def requires_project(self, code: str | None) -> bool:
        option = self.find_option(code)
        return bool(option and option.requires_project)

    def all_codes(self) -> list[str]:
        return [o.code for c in self._categories for o in c.options]

    def __contains__(self, code: object) -> bool:
        return code in self._by_code

    def __len__(self) -> int:
        return len(self._by_code)

    def to_dict(self) -> list[dict[str, Any]]:
        return [c.to_dict() for c in self._categories]


_DEFAULT_CATALOG: list[dict[str, Any]] = [
    {
        "id": "EXP",
        "label": "Experimental use",
        "options": [
            {"code": "EXP-01", "label": "Project termination",
             "description": "Animal used in an approved project and euthanized at its end point.",
             "requiresProject": True},
            {"code": "EXP-02", "label": "Tissue or organ harvest",
             "description": "Euthanized to supply tissue, organs or blood to a project.",
             "requiresProject": True},
            {"code": "EXP-03", "label": "Pilot study",
             "description": "Used in a pilot study under an approved protocol.",
             "requiresProject": True},
            {"code": "EXP-04", "label": "Training",
             "description": "Used for approved technique or staff training.",
             "requiresProject": False},
        ],
    },
    {
        "id": "HEALTH",
        "label": "Health",
        "options": [
            {"code": "HEALTH-01", "label": "Found dead",
             "description": "Found dead in the cage without prior clinical signs.",
             "requiresProject": False},
            {"code": "HEALTH-02", "label": "Humane end point",
             "description": "Euthanized after reaching a clinical humane end point.",
             "requiresProject": False},
            {"code": "HEALTH-03", "label": "Injury",
             "description": "Fight wounds, fractures or other injuries.",
             "requiresProject": False},
            {"code": "HEALTH-04", "label": "Tumour",
             "description": "Spontaneous tumour or mass.",
             "requiresProject": False},
            {"code": "HEALTH-05", "label": "Malocclusion",
             "description": "Overgrown teeth preventing normal feeding.",
             "requiresProject": False},
        ],
    },
    {
        "id": "BREED",
        "label": "Breeding and colony management",
        "options": [
            {"code": "BREED-01", "label": "Retired breeder",
             "description": "Breeder removed after reaching its productive limit.",
             "requiresProject": False},
            {"code": "BREED-02", "label": "Surplus stock",
             "description": "Animals in excess of colony demand.",
             "requiresProject": False},
            {"code": "BREED-03", "label": "Unwanted genotype",
             "description": "Offspring not carrying the required genotype.",
             "requiresProject": False},
            {"code": "BREED-04", "label": "Over age",
             "description": "Too old for any planned use.",
             "requiresProject": False},
        ],
    },
    {
        "id": "TRF",
        "label": "Transfer",
        "options": [
            {"code": "TRF-01", "label": "Transfer to another institution",
             "description": "Shipped out; the receiving institution must be recorded.",
             "requiresProject": False},
        ],
    },
    {
        "id": "OTHER",
        "label": "Other",
        "options": [
            {"code": "OTHER-01", "label": "Other",
             "description": "Any reason not covered above.",
             "requiresProject": False},
        ],
    },
]


def default_catalog() -> ReasonCatalog:
    """Return the built-in reason catalog."""
    return ReasonCatalog.from_dict(_DEFAULT_CATALOG)


def load_catalog(path: Path | None = None) -> ReasonCatalog:
    """Load the catalog from *path*, or the built-in one when *path* is None."""
    if path is None:
        return default_catalog()
    return ReasonCatalog.load_json(path)
