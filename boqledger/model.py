"""Value types describing an estimate: line items, groupings and projects."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Iterator, List, Optional


class ItemKind(str, Enum):
    """Variant tag of a :class:`LineItem`."""

    PRICED = "priced"
    SECTION = "section"


class PricingMode(str, Enum):
    """Aggregation policy converting the cost base into a grand total."""

    MARKUP = "markup"
    MULTIPLIER = "multiplier"


NUMERIC_FIELDS = (
    "quantity",
    "material_rate",
    "labor_rate",
    "plant_rate",
    "waste_percent",
)
TEXT_FIELDS = ("code", "description", "unit", "division_ref")


@dataclass
class LineItem:
    """A priced unit of work or a section header.

    Section headers only carry ``code`` and ``description``; their numeric
    fields are kept at zero and never contribute to any total.
    """

    id: int
    kind: ItemKind = ItemKind.PRICED
    code: str = ""
    description: str = ""
    unit: str = ""
    quantity: float = 0.0
    material_rate: float = 0.0
    labor_rate: float = 0.0
    plant_rate: float = 0.0
    waste_percent: float = 0.0
    division_ref: Optional[str] = None

    @property
    def is_priced(self) -> bool:
        return self.kind is ItemKind.PRICED


@dataclass
class Grouping:
    """An ordered division of line items, owning its items."""

    id: int
    code: str
    name: str
    items: List[LineItem] = field(default_factory=list)
    collapsed: bool = False


@dataclass
class IdSequence:
    """Monotonic id source; ids handed out are never reused."""

    last: int = 0

    def next(self) -> int:
        self.last += 1
        return self.last


@dataclass
class Project:
    """Aggregate root of an estimate.

    Items live either inside ``groupings`` or in the flat ``items`` list, where
    ``division_ref`` points at a division code purely for display grouping.
    """

    id: int
    title: str = ""
    client_name: str = ""
    currency_symbol: str = ""
    pricing_mode: PricingMode = PricingMode.MARKUP
    markup_percent: float = 0.0
    site_multiplier: float = 1.0
    multiplier_label: str = "Site Multiplier"
    tax_percent: float = 0.0
    groupings: List[Grouping] = field(default_factory=list)
    items: List[LineItem] = field(default_factory=list)
    ids: IdSequence = field(default_factory=IdSequence)

    def iter_items(self) -> Iterator[LineItem]:
        """Yield every line item in display order."""

        for grouping in self.groupings:
            yield from grouping.items
        yield from self.items

    def find_item(self, item_id: int) -> Optional[LineItem]:
        for item in self.iter_items():
            if item.id == item_id:
                return item
        return None

    def find_grouping(self, grouping_id: int) -> Optional[Grouping]:
        for grouping in self.groupings:
            if grouping.id == grouping_id:
                return grouping
        return None

    def find_grouping_by_code(self, code: str) -> Optional[Grouping]:
        for grouping in self.groupings:
            if grouping.code == code:
                return grouping
        return None

    def has_adjustment(self) -> bool:
        """Return True when the active pricing parameter is not its identity."""

        if self.pricing_mode is PricingMode.MULTIPLIER:
            return self.site_multiplier != 1
        return self.markup_percent != 0


def new_project(
    project_id: int,
    title: str = "",
    client_name: str = "",
    currency_symbol: str = "",
    pricing_mode: PricingMode = PricingMode.MARKUP,
) -> Project:
    return Project(
        id=project_id,
        title=title,
        client_name=client_name,
        currency_symbol=currency_symbol,
        pricing_mode=pricing_mode,
    )


__all__ = [
    "Grouping",
    "IdSequence",
    "ItemKind",
    "LineItem",
    "NUMERIC_FIELDS",
    "PricingMode",
    "Project",
    "TEXT_FIELDS",
    "new_project",
]
