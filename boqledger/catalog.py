"""Read-only master data: units, division taxonomy and the priced catalog."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Iterable, List, Mapping, Optional, Sequence

from .utils import clean_text

logger = logging.getLogger(__name__)

LABOR_CATEGORIES = {"labor", "labour"}


@dataclass(frozen=True)
class Division:
    """A division of the master taxonomy."""

    code: str
    name: str


@dataclass(frozen=True)
class CatalogEntry:
    """A priced material or labor record that can pre-fill a line item."""

    id: str
    name: str
    unit_cost: float
    category: str = ""
    unit: str = ""

    @property
    def is_labor(self) -> bool:
        return self.category.strip().casefold() in LABOR_CATEGORIES


class Catalog:
    """Ordered collection of :class:`CatalogEntry` records."""

    def __init__(self, entries: Iterable[CatalogEntry] = ()) -> None:
        self._entries: List[CatalogEntry] = list(entries)

    def __iter__(self):
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def get(self, entry_id: str) -> Optional[CatalogEntry]:
        for entry in self._entries:
            if entry.id == entry_id:
                return entry
        return None

    def search(self, query: str) -> List[CatalogEntry]:
        """Entries whose name or category contains ``query``, case-insensitively."""

        needle = clean_text(query).casefold()
        if not needle:
            return list(self._entries)
        return [
            entry
            for entry in self._entries
            if needle in entry.name.casefold() or needle in entry.category.casefold()
        ]

    def categories(self) -> List[str]:
        seen: List[str] = []
        for entry in self._entries:
            if entry.category and entry.category not in seen:
                seen.append(entry.category)
        return seen


@dataclass
class MasterData:
    """Reference data handed to the ledger; never modified by it."""

    units: Sequence[str] = field(default_factory=tuple)
    divisions: Sequence[Division] = field(default_factory=tuple)
    catalog: Catalog = field(default_factory=Catalog)

    def division(self, code: str) -> Optional[Division]:
        for division in self.divisions:
            if division.code == code:
                return division
        return None


def parse_master_data(section: Mapping[str, Any]) -> MasterData:
    """Build :class:`MasterData` from the ``master`` config section."""

    units = tuple(clean_text(unit) for unit in section.get("units", []) or [])
    divisions = tuple(
        Division(code=clean_text(entry["code"]), name=clean_text(entry.get("name", "")))
        for entry in section.get("divisions", []) or []
    )
    entries = []
    for raw in section.get("catalog", []) or []:
        if "id" not in raw or "name" not in raw:
            raise ValueError("Catalog entries require 'id' and 'name'")
        entries.append(
            CatalogEntry(
                id=clean_text(raw["id"]),
                name=clean_text(raw["name"]),
                unit_cost=float(raw.get("cost", raw.get("unit_cost", 0.0)) or 0.0),
                category=clean_text(raw.get("category", "")),
                unit=clean_text(raw.get("unit", "")),
            )
        )
    logger.debug(
        "Loaded master data: %d units, %d divisions, %d catalog entries",
        len(units),
        len(divisions),
        len(entries),
    )
    return MasterData(units=units, divisions=divisions, catalog=Catalog(entries))


__all__ = [
    "Catalog",
    "CatalogEntry",
    "Division",
    "MasterData",
    "parse_master_data",
]
