"""Unit tests for the Excel report exporter."""

import pandas as pd
import pytest
from openpyxl import load_workbook

from dropship.exporters.report_exporter import export_import_results, export_sync_report
from dropship.models import ImportResult
from dropship.supplier_sync import SyncReport


@pytest.fixture
def import_results():
    return [
        ImportResult(
            success=True,
            url="https://www.temu.com/no/mus-g-601099512345678.html",
            product_id=1,
            product_name="Trådløs gaming-mus",
            images=3,
            price=158,
            variants=2,
        ),
        ImportResult(
            success=False,
            url="https://www.ebay.com/itm/1234567890",
            product_name="Gammel mus",
            error="Produktet eksisterer allerede",
        ),
    ]


@pytest.mark.unit
def test_export_import_results(tmp_path, import_results):
    output = export_import_results(import_results, str(tmp_path / "reports" / "import.xlsx"))

    assert output.exists()
    df = pd.read_excel(output, sheet_name="Imports")
    assert list(df.columns) == [
        "URL",
        "Status",
        "Produkt",
        "Produkt-ID",
        "Pris (NOK)",
        "Bilder",
        "Varianter",
        "Feil",
    ]
    assert list(df["Status"]) == ["OK", "Feilet"]
    assert df.loc[0, "Pris (NOK)"] == 158
    assert df.loc[1, "Feil"] == "Produktet eksisterer allerede"


@pytest.mark.unit
def test_export_import_results_rejects_empty(tmp_path):
    with pytest.raises(ValueError, match="empty"):
        export_import_results([], str(tmp_path / "import.xlsx"))


@pytest.mark.unit
def test_column_widths_are_capped(tmp_path):
    results = [ImportResult(success=False, url="https://www.temu.com/" + "x" * 200, error="Feil")]
    output = export_import_results(results, str(tmp_path / "import.xlsx"))

    sheet = load_workbook(output)["Imports"]
    assert sheet.column_dimensions["A"].width == 50


@pytest.mark.unit
def test_export_sync_report(tmp_path):
    report = SyncReport(store_id="default", supplier_products=3, matched=2, updated=0, dry_run=True)

    output = export_sync_report(report, str(tmp_path / "sync.xlsx"))

    row = pd.read_excel(output, sheet_name="Sync").iloc[0]
    assert row["store_id"] == "default"
    assert row["matched"] == 2
    assert bool(row["dry_run"]) is True
