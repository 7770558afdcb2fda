from pathlib import Path

import pytest

from boqledger.config import PricingConfig
from boqledger.io import load_project, project_from_dict, project_to_dict, save_project
from boqledger.ledger import Ledger
from boqledger.model import ItemKind, PricingMode
from boqledger.pricing import cost_base, grand_total

ROOT = Path(__file__).resolve().parent.parent


def test_load_sample_project():
    project = load_project(ROOT / "sample_data" / "project.yaml")

    assert project.title == "Warehouse Extension"
    assert [g.name for g in project.groupings] == ["Concrete Works", "Masonry"]
    assert project.groupings[1].items[0].kind is ItemKind.SECTION
    assert cost_base(project) == 10_300_000
    assert grand_total(project) == pytest.approx(11_845_000)


def test_missing_ids_are_assigned_after_explicit_ones():
    project = project_from_dict(
        {
            "groupings": [{"id": 7, "code": "01", "name": "Preliminaries", "items": [{"description": "Setup"}]}],
            "items": [{"id": 3, "description": "Loose"}, {"description": "Another"}],
        }
    )

    ids = [project.groupings[0].id, project.groupings[0].items[0].id, *(item.id for item in project.items)]
    assert ids == [7, 8, 3, 9]
    assert project.ids.last == 9
    assert Ledger(project).add_item().id == 10


def test_duplicate_ids_rejected():
    with pytest.raises(ValueError):
        project_from_dict({"items": [{"id": 1}, {"id": 1}]})


def test_invalid_numbers_coerced_on_load():
    project = project_from_dict({"items": [{"quantity": "lots", "material_rate": "12.5"}]})

    assert project.items[0].quantity == 0.0
    assert project.items[0].material_rate == 12.5


def test_pricing_defaults_applied_when_absent():
    defaults = PricingConfig(mode=PricingMode.MULTIPLIER, site_multiplier=1.3, currency_symbol="$")

    project = project_from_dict({"title": "Shed"}, defaults)

    assert project.pricing_mode is PricingMode.MULTIPLIER
    assert project.site_multiplier == 1.3
    assert project.currency_symbol == "$"
    assert project.markup_percent == 0.0


def test_unknown_kind_and_mode_rejected():
    with pytest.raises(ValueError):
        project_from_dict({"items": [{"kind": "note"}]})
    with pytest.raises(ValueError):
        project_from_dict({"pricing": {"mode": "discount"}})


@pytest.mark.parametrize("suffix", [".json", ".yaml"])
def test_save_and_reload_preserves_project(tmp_path, concrete_ledger: Ledger, suffix):
    project = concrete_ledger.project
    concrete_ledger.add_item(description="Loose", quantity=2, plant_rate=3, division_ref="3.1")
    concrete_ledger.add_section("Notes")
    concrete_ledger.toggle_grouping(project.groupings[0].id)
    concrete_ledger.update_project_field("tax_percent", 5)

    path = save_project(project, tmp_path / f"estimate{suffix}")
    reloaded = load_project(path)

    assert reloaded == project
    assert project_to_dict(reloaded) == project_to_dict(project)


def test_load_project_errors(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_project(tmp_path / "missing.yaml")

    bogus = tmp_path / "estimate.txt"
    bogus.write_text("title: x", encoding="utf-8")
    with pytest.raises(ValueError):
        load_project(bogus)
