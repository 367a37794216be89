"""Excel reports for import batches and supplier sync runs."""

from dataclasses import asdict
from pathlib import Path
from typing import Any

import pandas as pd
from loguru import logger

from dropship.models import ImportResult

MAX_COLUMN_WIDTH = 50


def export_import_results(
    results: list[ImportResult], output_path: str = "output/import_report.xlsx"
) -> Path:
    """Export bulk import results to Excel XLSX format.

    Args:
        results: Per-URL import outcomes
        output_path: Path to output XLSX file

    Returns:
        Path to created XLSX file

    Raises:
        ValueError: If results list is empty
    """
    if not results:
        raise ValueError("Cannot export empty import results")

    df = pd.DataFrame([_import_result_to_row(result) for result in results])
    output_file = _write_sheet(df, "Imports", output_path)

    succeeded = sum(1 for r in results if r.success)
    logger.info(f"Exported {len(results)} import results ({succeeded} succeeded) to {output_file}")
    return output_file


def export_sync_report(report: Any, output_path: str = "output/sync_report.xlsx") -> Path:
    """Export a SyncReport (or any dataclass of counters) as a one-row sheet."""
    df = pd.DataFrame([asdict(report)])
    output_file = _write_sheet(df, "Sync", output_path)
    logger.info(f"Exported sync report to {output_file}")
    return output_file


def _import_result_to_row(result: ImportResult) -> dict[str, Any]:
    return {
        "URL": result.url,
        "Status": "OK" if result.success else "Feilet",
        "Produkt": result.product_name or "",
        "Produkt-ID": result.product_id if result.product_id is not None else "",
        "Pris (NOK)": result.price if result.price is not None else "",
        "Bilder": result.images if result.images is not None else "",
        "Varianter": result.variants if result.variants is not None else "",
        "Feil": result.error or "",
    }


def _write_sheet(df: pd.DataFrame, sheet_name: str, output_path: str) -> Path:
    output_file = Path(output_path)
    output_file.parent.mkdir(parents=True, exist_ok=True)

    with pd.ExcelWriter(output_file, engine="openpyxl") as writer:
        df.to_excel(writer, sheet_name=sheet_name, index=False)

        # Auto-adjust column widths
        worksheet = writer.sheets[sheet_name]
        for column in worksheet.columns:
            max_length = max(len(str(cell.value)) if cell.value is not None else 0 for cell in column)
            worksheet.column_dimensions[column[0].column_letter].width = min(
                max_length + 2, MAX_COLUMN_WIDTH
            )

    return output_file
