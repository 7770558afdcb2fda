"""Small helpers shared across the ledger package."""

from __future__ import annotations

import math
import re
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Iterable

_CURRENCY_PATTERN = re.compile(r"(?i)(ngn|czk|kč|eur|€|usd|\$|gbp|£|₦)")


def clean_text(value: Any) -> str:
    """Normalise textual values for lookups and search."""

    if value is None:
        return ""
    if isinstance(value, (int, float)):
        return str(value)
    text = str(value)
    text = re.sub(r"\s+", " ", text.strip())
    return text


def coerce_number(value: Any) -> float:
    """Coerce user input into a finite float, falling back to ``0.0``.

    Plain numbers and numeric strings are taken as-is. Otherwise whitespace,
    currency markers and thousands separators are stripped before a second
    attempt. Any other leftover character, a value that still does not
    parse, or NaN or infinity, becomes ``0.0``.
    """

    if isinstance(value, bool) or value is None:
        return 0.0
    if isinstance(value, (int, float)):
        number = float(value)
        return number if math.isfinite(number) else 0.0

    text = str(value).strip()
    try:
        number = float(text)
    except ValueError:
        number = _parse_loose(text)
    return number if math.isfinite(number) else 0.0


def _parse_loose(text: str) -> float:
    cleaned = text.replace("\u00A0", "")
    cleaned = re.sub(r"\s+", "", cleaned)
    cleaned = _CURRENCY_PATTERN.sub("", cleaned)
    if re.search(r"[^0-9,\.\-+]", cleaned):
        return 0.0
    if "," in cleaned and "." in cleaned:
        # whichever separator comes first groups thousands
        thousands = "," if cleaned.index(",") < cleaned.index(".") else "."
        cleaned = cleaned.replace(thousands, "")
    cleaned = cleaned.replace(",", ".")
    try:
        return float(cleaned)
    except ValueError:
        return 0.0


def ensure_directories(paths: Iterable[str | Path]) -> None:
    """Create directories if they do not already exist."""

    for path in paths:
        Path(path).mkdir(parents=True, exist_ok=True)


def timestamp() -> str:
    """Return an ISO-8601 UTC timestamp string."""

    return datetime.now(timezone.utc).replace(microsecond=0).isoformat().replace("+00:00", "Z")


__all__ = ["clean_text", "coerce_number", "ensure_directories", "timestamp"]
