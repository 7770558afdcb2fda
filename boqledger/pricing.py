"""Pricing calculator and grouping rollups.

Everything in this module is a pure function of the current project state.
Nothing is cached: every call walks the items again, so the figures always
reflect the latest edits and rounding never accumulates in the model.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional

import numpy as np
import pandas as pd

from .model import Grouping, LineItem, PricingMode, Project

logger = logging.getLogger(__name__)

ITEM_FRAME_COLUMNS = (
    "item_id",
    "grouping",
    "division_ref",
    "kind",
    "code",
    "description",
    "unit",
    "quantity",
    "waste_percent",
    "material_rate",
    "labor_rate",
    "plant_rate",
    "rate",
    "amount",
)


def effective_material_rate(item: LineItem) -> float:
    return item.material_rate * (1 + item.waste_percent / 100)


def item_rate(item: LineItem) -> Optional[float]:
    """Per-unit cost after waste inflation; ``None`` for section headers."""

    if not item.is_priced:
        return None
    return effective_material_rate(item) + item.labor_rate + item.plant_rate


def item_amount(item: LineItem) -> Optional[float]:
    """Line contribution ``rate * quantity``; ``None`` for section headers."""

    rate = item_rate(item)
    if rate is None:
        return None
    return rate * item.quantity


def sum_amounts(items: List[LineItem]) -> float:
    total = 0.0
    for item in items:
        amount = item_amount(item)
        if amount is not None:
            total += amount
    return total


def grouping_subtotal(grouping: Grouping) -> float:
    """Sum of priced amounts in ``grouping``; ``collapsed`` is ignored."""

    return sum_amounts(grouping.items)


def cost_base(project: Project) -> float:
    """Direct cost of every priced item, wherever it sits."""

    total = 0.0
    for grouping in project.groupings:
        total += grouping_subtotal(grouping)
    total += sum_amounts(project.items)
    return total


def apply_pricing_mode(project: Project, base: float) -> float:
    if project.pricing_mode is PricingMode.MULTIPLIER:
        return base * project.site_multiplier
    return base * (1 + project.markup_percent / 100)


def grand_total(project: Project) -> float:
    return apply_pricing_mode(project, cost_base(project))


@dataclass
class PricingSummary:
    """Snapshot of the computed totals of a project."""

    cost_base: float
    adjustment: float
    grand_total: float
    tax: float
    total_with_tax: float
    mode: PricingMode
    subtotals: Dict[int, float] = field(default_factory=dict)
    item_count: int = 0


def price_project(project: Project) -> PricingSummary:
    """Compute every total of ``project`` from scratch."""

    aggregator = GroupingAggregator(project)
    base = cost_base(project)
    total = apply_pricing_mode(project, base)
    tax = total * project.tax_percent / 100
    summary = PricingSummary(
        cost_base=base,
        adjustment=total - base,
        grand_total=total,
        tax=tax,
        total_with_tax=total + tax,
        mode=project.pricing_mode,
        subtotals={grouping.id: aggregator.subtotal_for(grouping.id) for grouping in project.groupings},
        item_count=aggregator.total_item_count(),
    )
    logger.debug(
        "Priced project %s: cost base %.2f, grand total %.2f",
        project.id,
        summary.cost_base,
        summary.grand_total,
    )
    return summary


class GroupingAggregator:
    """Read-only view rolling line items up through their groupings."""

    def __init__(self, project: Project) -> None:
        self._project = project

    def subtotal_for(self, grouping_id: int) -> float:
        grouping = self._project.find_grouping(grouping_id)
        if grouping is None:
            return 0.0
        return grouping_subtotal(grouping)

    def total_item_count(self) -> int:
        """Number of line items, section headers included."""

        count = sum(len(grouping.items) for grouping in self._project.groupings)
        return count + len(self._project.items)

    def priced_item_count(self) -> int:
        return sum(1 for item in self._project.iter_items() if item.is_priced)

    def subtotals_by_division(self) -> Dict[str, float]:
        """Roll flat-list items up by ``division_ref`` for display.

        Items without a reference are reported under the empty string. The
        result keeps first-seen order.
        """

        totals: Dict[str, float] = {}
        for item in self._project.items:
            key = item.division_ref or ""
            amount = item_amount(item)
            totals[key] = totals.get(key, 0.0) + (amount or 0.0)
        return totals


def items_frame(project: Project) -> pd.DataFrame:
    """Return the computed line items as a dataframe in display order.

    Section headers carry ``NaN`` in the rate and amount columns.
    """

    records = []
    for grouping in project.groupings:
        for item in grouping.items:
            records.append(_item_record(item, grouping.name))
    for item in project.items:
        division = project.find_grouping_by_code(item.division_ref) if item.division_ref else None
        records.append(_item_record(item, division.name if division else (item.division_ref or "")))
    if not records:
        return pd.DataFrame(columns=list(ITEM_FRAME_COLUMNS))
    return pd.DataFrame.from_records(records, columns=list(ITEM_FRAME_COLUMNS))


def _item_record(item: LineItem, grouping_name: str) -> Dict[str, object]:
    rate = item_rate(item)
    amount = item_amount(item)
    return {
        "item_id": item.id,
        "grouping": grouping_name,
        "division_ref": item.division_ref,
        "kind": item.kind.value,
        "code": item.code,
        "description": item.description,
        "unit": item.unit,
        "quantity": item.quantity,
        "waste_percent": item.waste_percent,
        "material_rate": item.material_rate,
        "labor_rate": item.labor_rate,
        "plant_rate": item.plant_rate,
        "rate": np.nan if rate is None else rate,
        "amount": np.nan if amount is None else amount,
    }


__all__ = [
    "GroupingAggregator",
    "PricingSummary",
    "apply_pricing_mode",
    "cost_base",
    "effective_material_rate",
    "grand_total",
    "grouping_subtotal",
    "item_amount",
    "item_rate",
    "items_frame",
    "price_project",
]
