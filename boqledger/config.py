"""Configuration loading utilities for the ledger."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Mapping

import yaml

from .catalog import MasterData, parse_master_data
from .columns import ColumnConfig, parse_column_config
from .model import PricingMode
from .serializer import ExportOptions


@dataclass
class PricingConfig:
    """Defaults applied to newly created projects."""

    mode: PricingMode = PricingMode.MARKUP
    markup_percent: float = 0.0
    site_multiplier: float = 1.0
    multiplier_label: str = "Site Multiplier"
    tax_percent: float = 0.0
    currency_symbol: str = ""


@dataclass
class OutputConfig:
    """Where exports are written."""

    directory: Path = Path("output")
    write_xlsx: bool = False

    def resolved(self, base_path: Path) -> "OutputConfig":
        return OutputConfig(
            directory=_resolve_path(self.directory, base_path),
            write_xlsx=self.write_xlsx,
        )


@dataclass
class AppConfig:
    """Container for all configuration used by the CLI and the ledger."""

    master: MasterData = field(default_factory=MasterData)
    pricing: PricingConfig = field(default_factory=PricingConfig)
    columns: ColumnConfig = field(default_factory=ColumnConfig.grouped)
    export: ExportOptions = field(default_factory=ExportOptions)
    output: OutputConfig = field(default_factory=OutputConfig)
    column_overrides: Dict[str, Any] = field(default_factory=dict)
    export_section: Dict[str, Any] = field(default_factory=dict)

    def resolved(self, base_path: Path) -> "AppConfig":
        return AppConfig(
            master=self.master,
            pricing=self.pricing,
            columns=self.columns,
            export=self.export,
            output=self.output.resolved(base_path),
            column_overrides=self.column_overrides,
            export_section=self.export_section,
        )


def load_config(path: Path) -> AppConfig:
    """Load :class:`AppConfig` from a YAML file."""

    config_path = Path(path).expanduser()
    if not config_path.exists():
        raise FileNotFoundError(f"Configuration file '{config_path}' does not exist")

    with config_path.open("r", encoding="utf-8") as stream:
        raw_config: Mapping[str, Any] = yaml.safe_load(stream) or {}

    return parse_config(raw_config).resolved(config_path.parent)


def parse_config(raw_config: Mapping[str, Any]) -> AppConfig:
    if not isinstance(raw_config, Mapping):
        raise ValueError("Configuration root must be a mapping")

    master = parse_master_data(raw_config.get("master", {}) or {})
    pricing = _parse_pricing_section(raw_config.get("pricing", {}) or {})
    export_section = dict(raw_config.get("export", {}) or {})
    column_overrides = dict(raw_config.get("columns", {}) or {})
    export = _parse_export_section(export_section, master)
    columns = parse_column_config(column_overrides, preset=export.layout)
    output = OutputConfig(**_parse_output_section(raw_config.get("output", {}) or {}))

    return AppConfig(
        master=master,
        pricing=pricing,
        columns=columns,
        export=export,
        output=output,
        column_overrides=column_overrides,
        export_section=export_section,
    )


def with_layout(config: AppConfig, layout: str) -> AppConfig:
    """Switch ``config`` to another export layout.

    Export options and columns are rebuilt from the configured sections, so
    label and visibility overrides survive the switch.
    """

    section = dict(config.export_section)
    section["layout"] = layout
    config.export = _parse_export_section(section, config.master)
    config.columns = parse_column_config(config.column_overrides, preset=layout)
    return config


def _parse_pricing_section(section: Mapping[str, Any]) -> PricingConfig:
    parsed: Dict[str, Any] = {}
    if "mode" in section:
        try:
            parsed["mode"] = PricingMode(str(section["mode"]).strip().lower())
        except ValueError:
            raise ValueError(
                f"pricing.mode must be one of: {', '.join(mode.value for mode in PricingMode)}"
            ) from None
    for key in ("markup_percent", "site_multiplier", "tax_percent"):
        if key in section:
            parsed[key] = float(section[key])
    for key in ("multiplier_label", "currency_symbol"):
        if key in section:
            parsed[key] = str(section[key])
    return PricingConfig(**parsed)


def _parse_export_section(section: Mapping[str, Any], master: MasterData) -> ExportOptions:
    layout = str(section.get("layout", "grouped"))
    base = ExportOptions.flat() if layout == "flat" else ExportOptions(layout=layout)
    overrides: Dict[str, Any] = {}
    for key in (
        "delimiter",
        "division_label",
        "code_label",
        "description_label",
        "subtotal_label",
        "grand_total_label",
        "tax_label",
        "total_label",
    ):
        if key in section:
            overrides[key] = str(section[key])
    if "decimals" in section:
        overrides["decimals"] = int(section["decimals"])
    if len(overrides.get("delimiter", base.delimiter)) != 1:
        raise ValueError("export.delimiter must be a single character")
    for key, value in overrides.items():
        setattr(base, key, value)
    base.division_names = {division.code: division.name for division in master.divisions}
    return base


def _parse_output_section(section: Mapping[str, Any]) -> Dict[str, Any]:
    parsed: Dict[str, Any] = {}
    if "directory" in section:
        parsed["directory"] = Path(section["directory"])
    if "write_xlsx" in section:
        parsed["write_xlsx"] = bool(section["write_xlsx"])
    return parsed


def _resolve_path(path: Path, base_path: Path) -> Path:
    expanded = Path(path).expanduser()
    if expanded.is_absolute():
        return expanded
    return (base_path / expanded).resolve()


__all__ = [
    "AppConfig",
    "OutputConfig",
    "PricingConfig",
    "load_config",
    "parse_config",
    "with_layout",
]
