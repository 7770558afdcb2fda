"""Column configuration: which priced fields are shown and exported."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional

CANONICAL_FIELDS = (
    "unit",
    "qty",
    "waste",
    "material",
    "labor",
    "plant",
    "rate",
    "amount",
)

DEFAULT_LABELS: Dict[str, str] = {
    "unit": "Unit",
    "qty": "Quantity",
    "waste": "Waste %",
    "material": "Material Rate",
    "labor": "Labor Rate",
    "plant": "Plant Rate",
    "rate": "Total Rate",
    "amount": "Total Amount",
}

FLAT_LABELS: Dict[str, str] = {
    "unit": "UNIT",
    "qty": "QTY",
    "waste": "WASTE",
    "material": "MATERIAL",
    "labor": "LABOR",
    "plant": "PLANT",
    "rate": "RATE",
    "amount": "AMOUNT",
}


@dataclass
class ColumnSetting:
    label: str
    visible: bool = True


@dataclass
class ColumnConfig:
    """Projection of line item fields onto table and export columns.

    Changing a label or the visibility of a column never touches the stored
    line item values; a hidden column reappears unchanged once shown again.
    """

    settings: Dict[str, ColumnSetting] = field(
        default_factory=lambda: {key: ColumnSetting(DEFAULT_LABELS[key]) for key in CANONICAL_FIELDS}
    )

    @classmethod
    def grouped(cls) -> "ColumnConfig":
        config = cls()
        config.set_visible("waste", False)
        return config

    @classmethod
    def flat(cls) -> "ColumnConfig":
        config = cls({key: ColumnSetting(FLAT_LABELS[key]) for key in CANONICAL_FIELDS})
        config.set_visible("waste", False)
        config.set_visible("plant", False)
        return config

    def _setting(self, key: str) -> ColumnSetting:
        if key not in CANONICAL_FIELDS:
            raise KeyError(f"Unknown column '{key}'")
        if key not in self.settings:
            self.settings[key] = ColumnSetting(DEFAULT_LABELS[key])
        return self.settings[key]

    def set_visible(self, key: str, visible: bool) -> None:
        self._setting(key).visible = bool(visible)

    def set_label(self, key: str, label: str) -> None:
        self._setting(key).label = label

    def is_visible(self, key: str) -> bool:
        return self._setting(key).visible

    def label(self, key: str) -> str:
        return self._setting(key).label

    def visible_keys(self) -> List[str]:
        """Visible field keys in canonical order."""

        return [key for key in CANONICAL_FIELDS if self._setting(key).visible]


def parse_column_config(section: Optional[Mapping[str, Any]], preset: str = "grouped") -> ColumnConfig:
    """Build a :class:`ColumnConfig` from a preset plus per-column overrides.

    ``section`` maps field keys to either a label string, a boolean
    visibility flag or a ``{label, visible}`` mapping.
    """

    if preset == "flat":
        config = ColumnConfig.flat()
    elif preset == "grouped":
        config = ColumnConfig.grouped()
    else:
        raise ValueError(f"Unknown column preset '{preset}'")

    for key, value in (section or {}).items():
        if isinstance(value, bool):
            config.set_visible(key, value)
        elif isinstance(value, str):
            config.set_label(key, value)
        elif isinstance(value, Mapping):
            if "label" in value:
                config.set_label(key, str(value["label"]))
            if "visible" in value:
                config.set_visible(key, bool(value["visible"]))
        else:
            raise ValueError(f"Invalid setting for column '{key}': {value!r}")
    return config


__all__ = [
    "CANONICAL_FIELDS",
    "ColumnConfig",
    "ColumnSetting",
    "DEFAULT_LABELS",
    "FLAT_LABELS",
    "parse_column_config",
]
