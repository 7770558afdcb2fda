"""Command line interface for pricing and exporting an estimate."""

from __future__ import annotations

import argparse
import logging
from pathlib import Path
from typing import Iterable, Optional

import pandas as pd

from .config import AppConfig, load_config, with_layout
from .io import load_project
from .ledger import Ledger
from .model import PricingMode, Project
from .pricing import items_frame, price_project
from .reporting import export_project, format_currency

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path("config/config.yaml")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Price a bill of quantities and export it as CSV")
    parser.add_argument("--config", type=Path, default=DEFAULT_CONFIG_PATH, help="Path to YAML configuration")
    parser.add_argument("--project", type=Path, required=True, help="Project file (YAML or JSON)")
    parser.add_argument("--output-dir", type=Path, help="Directory for generated exports")
    parser.add_argument("--markup", help="Override the markup percent (switches to markup mode)")
    parser.add_argument("--multiplier", help="Override the site multiplier (switches to multiplier mode)")
    parser.add_argument("--layout", choices=("grouped", "flat"), help="Export layout")
    parser.add_argument("--xlsx", action="store_true", help="Also write an XLSX copy of the export")
    parser.add_argument("--log-level", default="INFO", help="Logging level (DEBUG, INFO, WARNING)")
    parser.add_argument("--quiet", action="store_true", help="Suppress console summary output")
    return parser


def main(argv: Optional[Iterable[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, args.log_level.upper(), logging.INFO),
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
    )

    try:
        config = load_config(args.config) if args.config.exists() else _default_config(args.config)
        _apply_overrides(config, args)
    except Exception as exc:  # pragma: no cover - CLI validation
        logger.error("Failed to load configuration: %s", exc)
        return 1

    try:
        project = load_project(args.project, config.pricing)
    except Exception as exc:
        logger.error("Failed to load project: %s", exc)
        return 1

    ledger = Ledger(project)
    if args.multiplier is not None:
        ledger.set_pricing_mode(PricingMode.MULTIPLIER)
        ledger.update_project_field("site_multiplier", args.multiplier)
    elif args.markup is not None:
        ledger.set_pricing_mode(PricingMode.MARKUP)
        ledger.update_project_field("markup_percent", args.markup)

    try:
        paths = export_project(project, config.columns, config.export, config.output)
    except Exception as exc:
        logger.exception("Failed to export project: %s", exc)
        return 1

    if not args.quiet:
        _print_summary(project)
        for kind, path in paths.items():
            print(f"{kind.upper()} export: {path}")

    return 0


def _default_config(path: Path) -> AppConfig:
    logger.warning("Configuration file '%s' not found, using defaults", path)
    return AppConfig()


def _apply_overrides(config: AppConfig, args: argparse.Namespace) -> None:
    if args.output_dir:
        config.output.directory = _resolve_override_path(args.output_dir)

    if args.layout and args.layout != config.export.layout:
        with_layout(config, args.layout)

    if args.xlsx:
        config.output.write_xlsx = True


def _resolve_override_path(path: Path) -> Path:
    path = Path(path).expanduser()
    if path.is_absolute():
        return path
    return (Path.cwd() / path).resolve()


def _print_summary(project: Project) -> None:
    summary = price_project(project)
    symbol = project.currency_symbol
    frame = items_frame(project)

    print(f"Project: {project.title or 'Untitled'} ({project.client_name or 'no client'})")
    if frame.empty:
        print("No line items.")
    else:
        table = frame.loc[:, ["grouping", "code", "description", "quantity", "rate", "amount"]].copy()
        for column in ("rate", "amount"):
            table[column] = table[column].apply(lambda value: format_currency(None if pd.isna(value) else value, symbol))
        print(table.to_string(index=False))

    print(f"Cost base:   {format_currency(summary.cost_base, symbol)}")
    if project.has_adjustment():
        print(f"Adjustment:  {format_currency(summary.adjustment, symbol)}")
    print(f"Grand total: {format_currency(summary.grand_total, symbol)}")
    if project.tax_percent:
        print(f"Tax:         {format_currency(summary.tax, symbol)}")
        print(f"Total:       {format_currency(summary.total_with_tax, symbol)}")


if __name__ == "__main__":  # pragma: no cover - manual execution entry point
    raise SystemExit(main())
