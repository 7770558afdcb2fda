"""Reading and writing project files (YAML or JSON)."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

import yaml

from .config import PricingConfig
from .model import Grouping, IdSequence, ItemKind, LineItem, PricingMode, Project
from .utils import clean_text, coerce_number

logger = logging.getLogger(__name__)

PROJECT_SUFFIXES = {".yaml", ".yml", ".json"}


def load_project(path: Path, defaults: Optional[PricingConfig] = None) -> Project:
    """Load a project definition from a YAML or JSON file."""

    path = Path(path).expanduser()
    if not path.exists():
        raise FileNotFoundError(f"Project file '{path}' does not exist")

    ext = path.suffix.lower()
    if ext not in PROJECT_SUFFIXES:
        raise ValueError(f"Unsupported file extension '{ext}' for project '{path}'")

    logger.info("Loading project from %s", path)
    with path.open("r", encoding="utf-8") as handle:
        if ext == ".json":
            raw = json.load(handle)
        else:
            raw = yaml.safe_load(handle) or {}
    return project_from_dict(raw, defaults)


def save_project(project: Project, path: Path) -> Path:
    path = Path(path).expanduser()
    path.parent.mkdir(parents=True, exist_ok=True)
    payload = project_to_dict(project)
    with path.open("w", encoding="utf-8") as handle:
        if path.suffix.lower() == ".json":
            json.dump(payload, handle, ensure_ascii=False, indent=2)
        else:
            yaml.safe_dump(payload, handle, allow_unicode=True, sort_keys=False)
    logger.info("Saved project %s to %s", project.id, path)
    return path


def project_from_dict(raw: Mapping[str, Any], defaults: Optional[PricingConfig] = None) -> Project:
    """Build a :class:`Project` from its mapping representation.

    Missing ids are assigned from the project's id sequence in document
    order; missing pricing parameters fall back to ``defaults`` and then to
    their identity values.
    """

    if not isinstance(raw, Mapping):
        raise ValueError("Project definition must be a mapping")
    defaults = defaults or PricingConfig()

    pricing = raw.get("pricing", {}) or {}
    mode_value = pricing.get("mode", raw.get("pricing_mode", defaults.mode.value))
    try:
        mode = PricingMode(str(mode_value).strip().lower())
    except ValueError:
        raise ValueError(f"Unknown pricing mode '{mode_value}'") from None

    project = Project(
        id=int(raw.get("id", 1)),
        title=str(raw.get("title", "") or ""),
        client_name=str(raw.get("client_name", raw.get("client", "")) or ""),
        currency_symbol=str(raw.get("currency_symbol", defaults.currency_symbol) or ""),
        pricing_mode=mode,
        markup_percent=coerce_number(pricing.get("markup_percent", defaults.markup_percent)),
        site_multiplier=coerce_number(pricing.get("site_multiplier", defaults.site_multiplier)),
        multiplier_label=str(pricing.get("multiplier_label", defaults.multiplier_label)),
        tax_percent=coerce_number(pricing.get("tax_percent", defaults.tax_percent)),
        ids=IdSequence(last=int(raw.get("last_id", 0) or 0)),
    )

    pending: List[Any] = []
    for raw_grouping in raw.get("groupings", []) or []:
        grouping = Grouping(
            id=_explicit_id(raw_grouping),
            code=clean_text(raw_grouping.get("code", "")),
            name=clean_text(raw_grouping.get("name", "")),
            collapsed=bool(raw_grouping.get("collapsed", False)),
        )
        pending.append(grouping)
        for raw_item in raw_grouping.get("items", []) or []:
            item = _item_from_dict(raw_item)
            grouping.items.append(item)
            pending.append(item)
        project.groupings.append(grouping)
    for raw_item in raw.get("items", []) or []:
        item = _item_from_dict(raw_item)
        project.items.append(item)
        pending.append(item)

    _assign_ids(project, pending)
    return project


def project_to_dict(project: Project) -> Dict[str, Any]:
    return {
        "id": project.id,
        "title": project.title,
        "client_name": project.client_name,
        "currency_symbol": project.currency_symbol,
        "pricing": {
            "mode": project.pricing_mode.value,
            "markup_percent": project.markup_percent,
            "site_multiplier": project.site_multiplier,
            "multiplier_label": project.multiplier_label,
            "tax_percent": project.tax_percent,
        },
        "last_id": project.ids.last,
        "groupings": [
            {
                "id": grouping.id,
                "code": grouping.code,
                "name": grouping.name,
                "collapsed": grouping.collapsed,
                "items": [_item_to_dict(item) for item in grouping.items],
            }
            for grouping in project.groupings
        ],
        "items": [_item_to_dict(item) for item in project.items],
    }


def _explicit_id(raw: Mapping[str, Any]) -> int:
    value = raw.get("id")
    return int(value) if value is not None else 0


def _item_from_dict(raw: Mapping[str, Any]) -> LineItem:
    kind_value = str(raw.get("kind", ItemKind.PRICED.value)).strip().lower()
    try:
        kind = ItemKind(kind_value)
    except ValueError:
        raise ValueError(f"Unknown line item kind '{kind_value}'") from None
    division_ref = raw.get("division_ref")
    return LineItem(
        id=_explicit_id(raw),
        kind=kind,
        code=str(raw.get("code", "") or ""),
        description=str(raw.get("description", "") or ""),
        unit=str(raw.get("unit", "") or ""),
        quantity=coerce_number(raw.get("quantity", 0)),
        material_rate=coerce_number(raw.get("material_rate", 0)),
        labor_rate=coerce_number(raw.get("labor_rate", 0)),
        plant_rate=coerce_number(raw.get("plant_rate", 0)),
        waste_percent=coerce_number(raw.get("waste_percent", 0)),
        division_ref=None if division_ref is None else str(division_ref),
    )


def _item_to_dict(item: LineItem) -> Dict[str, Any]:
    payload: Dict[str, Any] = {
        "id": item.id,
        "kind": item.kind.value,
        "code": item.code,
        "description": item.description,
        "unit": item.unit,
        "quantity": item.quantity,
        "material_rate": item.material_rate,
        "labor_rate": item.labor_rate,
        "plant_rate": item.plant_rate,
        "waste_percent": item.waste_percent,
    }
    if item.division_ref is not None:
        payload["division_ref"] = item.division_ref
    return payload


def _assign_ids(project: Project, entries: List[Any]) -> None:
    seen = set()
    for entry in entries:
        if entry.id:
            if entry.id in seen:
                raise ValueError(f"Duplicate id {entry.id} in project {project.id}")
            seen.add(entry.id)
    project.ids.last = max([project.ids.last, *seen])
    for entry in entries:
        if not entry.id:
            entry.id = project.ids.next()


__all__ = ["load_project", "project_from_dict", "project_to_dict", "save_project"]
