from __future__ import annotations

import io

import pandas as pd
import pytest

from boqledger.columns import ColumnConfig
from boqledger.ledger import Ledger
from boqledger.model import PricingMode
from boqledger.serializer import (
    ExportOptions,
    build_rows,
    export_filename,
    format_number,
    serialize,
)

GROUPED_HEADER = (
    "Division,Item Code,Description,Unit,Quantity,Material Rate,Labor Rate,"
    "Plant Rate,Total Rate,Total Amount"
)


def test_grouped_export_reproduces_canonical_shape(ledger: Ledger):
    grouping = ledger.add_grouping("Concrete Works", code="3.1")
    ledger.add_item(
        grouping.id,
        description="Grade 25 Concrete in Foundations",
        unit="m³",
        quantity=150,
        material_rate=45000,
        labor_rate=5000,
        plant_rate=2000,
    )

    text = serialize(ledger.project, ColumnConfig.grouped())

    assert text.splitlines() == [
        GROUPED_HEADER,
        "Concrete Works,3.1.1,Grade 25 Concrete in Foundations,m³,150.00,45000.00,5000.00,2000.00,52000.00,7800000.00",
        ",,GRAND TOTAL,,,,,,,7800000.00",
    ]


def test_flat_export_with_multiplier_block(ledger: Ledger):
    ledger.add_item(description="Item description", unit="Lot", quantity=1)
    ledger.set_pricing_mode(PricingMode.MULTIPLIER)
    ledger.update_project_field("site_multiplier", 1.25)

    text = serialize(ledger.project, ColumnConfig.flat(), ExportOptions.flat())

    assert text.splitlines() == [
        "S/N,Description,UNIT,QTY,MATERIAL,LABOR,RATE,AMOUNT",
        "01,Item description,Lot,1.00,0.00,0.00,0.00,0.00",
        ",Subtotal,,,,,,0.00",
        ",Site Multiplier (x1.25),,,,,,",
        ",GRAND TOTAL,,,,,,0.00",
    ]


def test_markup_block_has_labelled_adjustment(concrete_ledger: Ledger):
    concrete_ledger.update_project_field("markup_percent", 15)

    rows = build_rows(concrete_ledger.project, ColumnConfig.grouped())

    assert rows[-3][2] == "Subtotal"
    assert rows[-3][-1] == "10300000.00"
    assert rows[-2][2] == "Markup (15%)"
    assert rows[-2][-1] == "1545000.00"
    assert rows[-1][2] == "GRAND TOTAL"
    assert rows[-1][-1] == "11845000.00"


def test_no_adjustment_rows_at_identity(concrete_ledger: Ledger):
    rows = build_rows(concrete_ledger.project, ColumnConfig.grouped())

    labels = [row[2] for row in rows]
    assert "Subtotal" not in labels
    assert labels[-1] == "GRAND TOTAL"


def test_tax_rows_follow_grand_total(concrete_ledger: Ledger):
    concrete_ledger.update_project_field("tax_percent", 7.5)

    rows = build_rows(concrete_ledger.project, ColumnConfig.grouped())

    assert [row[2] for row in rows[-3:]] == ["GRAND TOTAL", "Tax (7.5%)", "TOTAL"]
    assert rows[-1][-1] == "11072500.00"


def test_section_rows_only_fill_identity_columns(concrete_ledger: Ledger):
    project = concrete_ledger.project
    concrete_ledger.add_section("Blockwork", project.groupings[1].id)

    rows = build_rows(project, ColumnConfig.grouped())
    section_row = rows[3]

    assert section_row[:3] == ["Masonry", "4.1.2", "Blockwork"]
    assert section_row[3:] == [""] * 7


def test_hidden_columns_are_omitted_and_restored(concrete_ledger: Ledger):
    columns = ColumnConfig.grouped()
    full = serialize(concrete_ledger.project, columns)

    columns.set_visible("labor", False)
    columns.set_visible("plant", False)
    reduced = build_rows(concrete_ledger.project, columns)
    assert "Labor Rate" not in reduced[0]
    assert len(reduced[1]) == len(reduced[0]) == 8

    columns.set_visible("labor", True)
    columns.set_visible("plant", True)
    assert serialize(concrete_ledger.project, columns) == full


def test_text_with_delimiter_and_quotes_is_escaped(ledger: Ledger):
    ledger.add_item(description='Say "hi", then leave', unit="m, approx", quantity=1)

    text = serialize(ledger.project, ColumnConfig.flat(), ExportOptions.flat())

    assert '"Say ""hi"", then leave"' in text
    assert '"m, approx"' in text
    parsed = pd.read_csv(io.StringIO(text), dtype=str, keep_default_na=False)
    assert parsed.loc[0, "Description"] == 'Say "hi", then leave'


def test_custom_delimiter(concrete_ledger: Ledger):
    options = ExportOptions(delimiter=";")

    text = serialize(concrete_ledger.project, ColumnConfig.grouped(), options)

    assert text.splitlines()[0] == GROUPED_HEADER.replace(",", ";")


def test_serialization_is_deterministic_and_round_trips_totals(concrete_ledger: Ledger):
    project = concrete_ledger.project
    concrete_ledger.update_project_field("markup_percent", 15)
    columns = ColumnConfig.grouped()

    first = serialize(project, columns)
    second = serialize(project, columns)
    assert first == second

    parsed = pd.read_csv(io.StringIO(first))
    items = parsed[parsed["Item Code"].notna()]
    assert items["Total Amount"].sum() == pytest.approx(10_300_000)
    grand = parsed.loc[parsed["Description"] == "GRAND TOTAL", "Total Amount"].iloc[0]
    assert grand == pytest.approx(11_845_000)


def test_empty_project_still_exports(ledger: Ledger):
    ledger.update_project_field("markup_percent", 10)

    text = serialize(ledger.project, ColumnConfig.grouped())

    assert text.splitlines() == [
        GROUPED_HEADER,
        ",,Subtotal,,,,,,,0.00",
        ",,Markup (10%),,,,,,,0.00",
        ",,GRAND TOTAL,,,,,,,0.00",
    ]


def test_flat_items_show_division_name(ledger: Ledger):
    ledger.add_grouping("Concrete Works", code="03")
    ledger.add_item(description="Lintel", quantity=1, material_rate=10, division_ref="03")
    ledger.add_item(description="Paint", quantity=1, material_rate=5, division_ref="05")
    ledger.add_item(description="Loose", quantity=1, material_rate=1)
    options = ExportOptions(division_names={"05": "Finishes"})

    rows = build_rows(ledger.project, ColumnConfig.grouped(), options)

    assert [row[0] for row in rows[1:4]] == ["Concrete Works", "Finishes", ""]


def test_format_number_fixed_decimals():
    assert format_number(7800000) == "7800000.00"
    assert format_number(1 / 3) == "0.33"
    assert format_number(-0.001) == "0.00"
    assert format_number(2.5, decimals=0) == "2"


def test_export_filename_replaces_whitespace():
    assert export_filename("Kitchen Reno  Phase 2") == "Kitchen_Reno__Phase_2.csv"
    assert export_filename("") == "untitled.csv"
    assert export_filename("Site\tPlan", suffix=".xlsx") == "Site_Plan.xlsx"


def test_unknown_layout_rejected():
    with pytest.raises(ValueError):
        ExportOptions(layout="wide")


def test_summary_values_stay_in_amount_column(concrete_ledger: Ledger):
    concrete_ledger.update_project_field("markup_percent", 15)
    columns = ColumnConfig.grouped()
    columns.set_visible("plant", False)

    rows = build_rows(concrete_ledger.project, columns)
    amount_index = rows[0].index("Total Amount")

    assert amount_index == len(rows[0]) - 1
    assert rows[-1][2] == "GRAND TOTAL"
    assert rows[-1][amount_index] == "11845000.00"


def test_hidden_amount_column_drops_summary_values(concrete_ledger: Ledger):
    concrete_ledger.update_project_field("markup_percent", 15)
    columns = ColumnConfig.grouped()
    columns.set_visible("amount", False)

    rows = build_rows(concrete_ledger.project, columns)

    assert rows[0][-1] == "Total Rate"
    assert [row[2] for row in rows[-3:]] == ["Subtotal", "Markup (15%)", "GRAND TOTAL"]
    for row in rows[-3:]:
        assert len(row) == len(rows[0])
        assert row[3:] == [""] * (len(row) - 3)


def test_all_priced_columns_hidden_keeps_summary_labels(concrete_ledger: Ledger):
    concrete_ledger.update_project_field("markup_percent", 15)
    columns = ColumnConfig.grouped()
    for key in columns.visible_keys():
        columns.set_visible(key, False)

    rows = build_rows(concrete_ledger.project, columns)

    assert rows[0] == ["Division", "Item Code", "Description"]
    assert rows[-3:] == [
        ["", "", "Subtotal"],
        ["", "", "Markup (15%)"],
        ["", "", "GRAND TOTAL"],
    ]
