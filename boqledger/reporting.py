"""Utilities for writing project exports to disk."""

from __future__ import annotations

import io
import logging
from pathlib import Path
from typing import Dict, List, Optional

import pandas as pd

from .columns import ColumnConfig
from .config import OutputConfig
from .model import Project
from .serializer import ExportOptions, build_rows, export_filename, serialize

logger = logging.getLogger(__name__)


def format_currency(value: Optional[float], symbol: str = "") -> str:
    """On-screen amount with thousands grouping, e.g. ``₦7,800,000.00``."""

    if value is None:
        return "-"
    sign = "-" if value < 0 else ""
    return f"{sign}{symbol}{abs(value):,.2f}"


def rows_to_excel_bytes(rows: List[List[str]], sheet_name: str) -> bytes:
    """Serialize export rows into an XLSX workbook."""

    buffer = io.BytesIO()
    safe_sheet = sheet_name[:31] or "Estimate"
    frame = pd.DataFrame(rows[1:], columns=rows[0])
    with pd.ExcelWriter(buffer, engine="openpyxl") as writer:
        frame.to_excel(writer, index=False, sheet_name=safe_sheet)
    buffer.seek(0)
    return buffer.getvalue()


def export_project(
    project: Project,
    columns: ColumnConfig,
    options: ExportOptions,
    output: OutputConfig,
) -> Dict[str, Path]:
    """Write the CSV export (and optionally an XLSX copy) of ``project``."""

    output_dir = output.directory
    output_dir.mkdir(parents=True, exist_ok=True)
    logger.info("Writing exports to %s", output_dir)

    paths: Dict[str, Path] = {}

    csv_path = output_dir / export_filename(project.title)
    with csv_path.open("w", encoding="utf-8", newline="") as handle:
        handle.write(serialize(project, columns, options))
    paths["csv"] = csv_path

    if output.write_xlsx:
        xlsx_path = output_dir / export_filename(project.title, suffix=".xlsx")
        rows = build_rows(project, columns, options)
        xlsx_path.write_bytes(rows_to_excel_bytes(rows, project.title))
        paths["xlsx"] = xlsx_path

    return paths


__all__ = ["export_project", "format_currency", "rows_to_excel_bytes"]
