"""BoQ Ledger core package.

This package turns a hierarchical list of priced work items into subtotals,
grand totals and a deterministic tabular export.  The building blocks are
plain value types (:mod:`boqledger.model`), a single-writer editor
(:class:`Ledger`), pure pricing functions and a serializer, shared by the
command line interface and any user interface built on top of them.
"""

from .catalog import Catalog, CatalogEntry, Division, MasterData
from .columns import CANONICAL_FIELDS, ColumnConfig
from .config import AppConfig, OutputConfig, PricingConfig, load_config
from .io import load_project, project_from_dict, project_to_dict, save_project
from .ledger import Ledger
from .model import Grouping, ItemKind, LineItem, PricingMode, Project, new_project
from .pricing import (
    GroupingAggregator,
    PricingSummary,
    cost_base,
    grand_total,
    item_amount,
    item_rate,
    price_project,
)
from .reporting import export_project, format_currency
from .serializer import ExportOptions, build_rows, export_filename, serialize
from .storage import InMemoryProjectStore, JsonProjectStore, ProjectStore

__all__ = [
    "AppConfig",
    "CANONICAL_FIELDS",
    "Catalog",
    "CatalogEntry",
    "ColumnConfig",
    "Division",
    "ExportOptions",
    "Grouping",
    "GroupingAggregator",
    "InMemoryProjectStore",
    "ItemKind",
    "JsonProjectStore",
    "Ledger",
    "LineItem",
    "MasterData",
    "OutputConfig",
    "PricingConfig",
    "PricingMode",
    "PricingSummary",
    "Project",
    "ProjectStore",
    "build_rows",
    "cost_base",
    "export_filename",
    "export_project",
    "format_currency",
    "grand_total",
    "item_amount",
    "item_rate",
    "load_config",
    "load_project",
    "new_project",
    "price_project",
    "project_from_dict",
    "project_to_dict",
    "save_project",
    "serialize",
]
