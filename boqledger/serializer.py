"""Deterministic delimited-text export of a priced project."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Mapping, Optional

import pandas as pd

from .columns import ColumnConfig
from .model import Grouping, LineItem, PricingMode, Project
from .pricing import item_amount, item_rate, price_project

logger = logging.getLogger(__name__)

Row = List[str]

LAYOUTS = ("grouped", "flat")


@dataclass
class ExportOptions:
    """Layout settings of the tabular export."""

    layout: str = "grouped"
    delimiter: str = ","
    decimals: int = 2
    division_label: str = "Division"
    code_label: str = "Item Code"
    description_label: str = "Description"
    subtotal_label: str = "Subtotal"
    grand_total_label: str = "GRAND TOTAL"
    tax_label: str = "Tax"
    total_label: str = "TOTAL"
    division_names: Dict[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if self.layout not in LAYOUTS:
            raise ValueError(f"Unknown export layout '{self.layout}'")

    @classmethod
    def flat(cls, **overrides) -> "ExportOptions":
        values = {"layout": "flat", "code_label": "S/N"}
        values.update(overrides)
        return cls(**values)

    def identity_labels(self) -> Row:
        labels = [self.code_label, self.description_label]
        if self.layout == "grouped":
            labels.insert(0, self.division_label)
        return labels


def format_number(value: float, decimals: int = 2) -> str:
    """Plain fixed-point formatting used in export rows."""

    text = f"{value:.{decimals}f}"
    if float(text) == 0:
        # avoid "-0.00"
        text = f"{0.0:.{decimals}f}"
    return text


def format_factor(value: float) -> str:
    return f"{value:g}"


def build_rows(
    project: Project,
    columns: ColumnConfig,
    options: Optional[ExportOptions] = None,
) -> List[Row]:
    """Render ``project`` into header, item and summary rows of text cells."""

    options = options or ExportOptions()
    visible = columns.visible_keys()
    header = options.identity_labels() + [columns.label(key) for key in visible]
    identity_width = len(header) - len(visible)
    rows: List[Row] = [header]

    for grouping in project.groupings:
        for item in grouping.items:
            rows.append(_item_row(item, grouping.name, visible, options))
    for item in project.items:
        rows.append(_item_row(item, _division_name(project, item, options), visible, options))

    rows.extend(_summary_rows(project, visible, identity_width, options))
    return rows


def serialize(
    project: Project,
    columns: ColumnConfig,
    options: Optional[ExportOptions] = None,
) -> str:
    """Return the export text; identical input always yields identical text."""

    options = options or ExportOptions()
    rows = build_rows(project, columns, options)
    frame = pd.DataFrame(rows[1:], columns=rows[0])
    text = frame.to_csv(index=False, sep=options.delimiter, lineterminator="\n")
    logger.debug("Serialized project %s into %d rows", project.id, len(rows))
    return text


def export_filename(title: str, suffix: str = ".csv") -> str:
    """File name for an export: whitespace in the title becomes ``_``."""

    name = re.sub(r"\s", "_", title or "") or "untitled"
    return name + suffix


def _division_name(project: Project, item: LineItem, options: ExportOptions) -> str:
    ref = item.division_ref
    if not ref:
        return ""
    grouping: Optional[Grouping] = project.find_grouping_by_code(ref)
    if grouping is not None:
        return grouping.name
    return options.division_names.get(ref, ref)


def _field_getters(decimals: int) -> Mapping[str, Callable[[LineItem], str]]:
    def number(getter: Callable[[LineItem], Optional[float]]) -> Callable[[LineItem], str]:
        def render(item: LineItem) -> str:
            value = getter(item)
            return "" if value is None else format_number(value, decimals)

        return render

    return {
        "unit": lambda item: item.unit,
        "qty": number(lambda item: item.quantity),
        "waste": number(lambda item: item.waste_percent),
        "material": number(lambda item: item.material_rate),
        "labor": number(lambda item: item.labor_rate),
        "plant": number(lambda item: item.plant_rate),
        "rate": number(item_rate),
        "amount": number(item_amount),
    }


def _item_row(item: LineItem, division: str, visible: List[str], options: ExportOptions) -> Row:
    identity = [item.code, item.description]
    if options.layout == "grouped":
        identity.insert(0, division)
    if not item.is_priced:
        return identity + [""] * len(visible)
    getters = _field_getters(options.decimals)
    return identity + [getters[key](item) for key in visible]


def _summary_rows(project: Project, visible: List[str], identity_width: int, options: ExportOptions) -> List[Row]:
    """Trailing total rows.

    Values go in the amount column; with that column hidden only the labels
    are written.
    """

    summary = price_project(project)
    width = identity_width + len(visible)
    label_index = identity_width - 1
    value_index = identity_width + visible.index("amount") if "amount" in visible else None
    decimals = options.decimals

    def row(label: str, value: Optional[float]) -> Row:
        cells = [""] * width
        cells[label_index] = label
        if value is not None and value_index is not None:
            cells[value_index] = format_number(value, decimals)
        return cells

    rows: List[Row] = []
    if project.has_adjustment():
        rows.append(row(options.subtotal_label, summary.cost_base))
        if project.pricing_mode is PricingMode.MULTIPLIER:
            label = f"{project.multiplier_label} (x{format_factor(project.site_multiplier)})"
            rows.append(row(label, None))
        else:
            rows.append(row(f"Markup ({format_factor(project.markup_percent)}%)", summary.adjustment))
    rows.append(row(options.grand_total_label, summary.grand_total))
    if project.tax_percent != 0:
        rows.append(row(f"{options.tax_label} ({format_factor(project.tax_percent)}%)", summary.tax))
        rows.append(row(options.total_label, summary.total_with_tax))
    return rows


__all__ = [
    "ExportOptions",
    "build_rows",
    "export_filename",
    "format_factor",
    "format_number",
    "serialize",
]
