"""Mutation commands for a single project.

The :class:`Ledger` is the only writer of its project. Every command is a
discrete in-place update; commands addressing an unknown id do nothing.
"""

from __future__ import annotations

import logging
from typing import Any, Optional, Union

from .catalog import CatalogEntry, Division
from .model import (
    NUMERIC_FIELDS,
    TEXT_FIELDS,
    Grouping,
    ItemKind,
    LineItem,
    PricingMode,
    Project,
)
from .utils import coerce_number

logger = logging.getLogger(__name__)

PROJECT_TEXT_FIELDS = ("title", "client_name", "currency_symbol", "multiplier_label")
PROJECT_NUMERIC_FIELDS = ("markup_percent", "site_multiplier", "tax_percent")


def sequence_label(position: int) -> str:
    """Display label for the ``position``-th entry (1-based) of a scope."""

    if position < 10:
        return "0" + str(position)
    return str(position)


class Ledger:
    """Single-writer editor of a :class:`Project`."""

    def __init__(self, project: Project) -> None:
        self.project = project

    # -- line items -------------------------------------------------------

    def add_item(
        self,
        grouping_id: Optional[int] = None,
        kind: Union[ItemKind, str] = ItemKind.PRICED,
        **values: Any,
    ) -> Optional[LineItem]:
        """Append a new line item and return it.

        Without ``grouping_id`` the item goes to the project's flat list. The
        code is derived once from the number of items already in scope and is
        never renumbered afterwards. ``values`` are applied through
        :meth:`update_field` so they follow the same coercion rules.
        """

        kind = ItemKind(kind)
        unknown = [name for name in values if name not in NUMERIC_FIELDS and name not in TEXT_FIELDS]
        if unknown:
            raise KeyError(f"Unknown line item field(s): {', '.join(sorted(unknown))}")
        if grouping_id is None:
            scope = self.project.items
            code = sequence_label(len(scope) + 1)
        else:
            grouping = self.project.find_grouping(grouping_id)
            if grouping is None:
                logger.debug("add_item ignored: unknown grouping %s", grouping_id)
                return None
            scope = grouping.items
            code = f"{grouping.code}.{len(scope) + 1}" if grouping.code else sequence_label(len(scope) + 1)

        item = LineItem(id=self.project.ids.next(), kind=kind, code=code)
        scope.append(item)
        for field_name, raw_value in values.items():
            self.update_field(item.id, field_name, raw_value)
        logger.debug("Added %s item %s (%s)", kind.value, item.id, item.code)
        return item

    def add_section(self, description: str, grouping_id: Optional[int] = None) -> Optional[LineItem]:
        return self.add_item(grouping_id, ItemKind.SECTION, description=description)

    def add_from_catalog(self, entry: CatalogEntry, grouping_id: Optional[int] = None) -> Optional[LineItem]:
        """Create a priced item pre-filled with a copy of ``entry``'s values."""

        rate_field = "labor_rate" if entry.is_labor else "material_rate"
        return self.add_item(
            grouping_id,
            ItemKind.PRICED,
            description=entry.name,
            unit=entry.unit,
            quantity=1,
            **{rate_field: entry.unit_cost},
        )

    def update_field(self, item_id: int, field_name: str, raw_value: Any) -> Optional[LineItem]:
        """Set one field of a line item.

        Numeric fields store ``0`` for input that is not a finite number; text
        fields store the raw value unchanged. Unknown field names raise
        :class:`KeyError`.
        """

        if field_name not in NUMERIC_FIELDS and field_name not in TEXT_FIELDS:
            raise KeyError(f"Unknown line item field '{field_name}'")
        item = self.project.find_item(item_id)
        if item is None:
            logger.debug("update_field ignored: unknown item %s", item_id)
            return None

        if field_name in NUMERIC_FIELDS:
            value: Any = coerce_number(raw_value)
        elif field_name == "division_ref" and raw_value is None:
            value = None
        else:
            value = "" if raw_value is None else str(raw_value)
        setattr(item, field_name, value)
        return item

    def delete_item(self, item_id: int) -> bool:
        for scope in self._item_scopes():
            for index, item in enumerate(scope):
                if item.id == item_id:
                    del scope[index]
                    logger.debug("Deleted item %s", item_id)
                    return True
        return False

    def _item_scopes(self):
        for grouping in self.project.groupings:
            yield grouping.items
        yield self.project.items

    # -- groupings --------------------------------------------------------

    def add_grouping(self, name: str, code: Optional[str] = None) -> Grouping:
        if code is None:
            code = sequence_label(len(self.project.groupings) + 1)
        grouping = Grouping(id=self.project.ids.next(), code=code, name=name)
        self.project.groupings.append(grouping)
        logger.debug("Added grouping %s (%s)", grouping.id, grouping.code)
        return grouping

    def add_division(self, division: Division) -> Grouping:
        return self.add_grouping(division.name, code=division.code)

    def delete_grouping(self, grouping_id: int) -> bool:
        """Remove a grouping together with the items it owns."""

        for index, grouping in enumerate(self.project.groupings):
            if grouping.id == grouping_id:
                del self.project.groupings[index]
                logger.debug("Deleted grouping %s and %d items", grouping_id, len(grouping.items))
                return True
        return False

    def rename_grouping(self, grouping_id: int, name: str) -> Optional[Grouping]:
        grouping = self.project.find_grouping(grouping_id)
        if grouping is not None:
            grouping.name = name
        return grouping

    def toggle_grouping(self, grouping_id: int) -> Optional[Grouping]:
        grouping = self.project.find_grouping(grouping_id)
        if grouping is not None:
            grouping.collapsed = not grouping.collapsed
        return grouping

    # -- project parameters -----------------------------------------------

    def update_project_field(self, field_name: str, raw_value: Any) -> Project:
        if field_name in PROJECT_NUMERIC_FIELDS:
            setattr(self.project, field_name, coerce_number(raw_value))
        elif field_name in PROJECT_TEXT_FIELDS:
            setattr(self.project, field_name, "" if raw_value is None else str(raw_value))
        else:
            raise KeyError(f"Unknown project field '{field_name}'")
        return self.project

    def set_pricing_mode(self, mode: Union[PricingMode, str]) -> Project:
        self.project.pricing_mode = PricingMode(mode)
        return self.project


__all__ = ["Ledger", "sequence_label"]
