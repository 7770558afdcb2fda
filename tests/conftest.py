from __future__ import annotations

from pathlib import Path
import sys

import pytest

# Ensure project root is on sys.path for absolute imports
ROOT = Path(__file__).resolve().parent.parent
if str(ROOT) not in sys.path:
    sys.path.append(str(ROOT))

from boqledger.ledger import Ledger
from boqledger.model import Project, new_project


@pytest.fixture
def project() -> Project:
    return new_project(1, title="Warehouse Extension", client_name="Smith Residence", currency_symbol="₦")


@pytest.fixture
def ledger(project: Project) -> Ledger:
    return Ledger(project)


@pytest.fixture
def concrete_ledger(ledger: Ledger) -> Ledger:
    """Two-item estimate used across the pricing and export tests."""

    concrete = ledger.add_grouping("Concrete Works", code="3.1")
    ledger.add_item(
        concrete.id,
        description="Grade 25 Concrete in Foundations",
        unit="m³",
        quantity=150,
        material_rate=45000,
        labor_rate=5000,
        plant_rate=2000,
    )
    masonry = ledger.add_grouping("Masonry", code="4.1")
    ledger.add_item(
        masonry.id,
        description="225mm sandcrete blockwork",
        unit="m²",
        quantity=2500,
        material_rate=850,
        labor_rate=150,
    )
    return ledger
