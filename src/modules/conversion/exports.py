"""CSV and Excel renderings of an invoice record, regenerated on every download."""

from dataclasses import dataclass
from io import BytesIO
from typing import Callable

import pandas as pd
from openpyxl.styles import Font, PatternFill
from openpyxl.utils import get_column_letter

from src.modules.conversion.models import InvoiceRecord

DETAILS_SHEET = "Invoice Details"
LINE_ITEMS_SHEET = "Line Items"

DETAILS_COLUMNS = ["Field", "Value"]
LINE_ITEM_COLUMNS = ["Description", "Quantity", "Unit Price", "Line Total"]

HEADER_FONT = Font(bold=True)
HEADER_FILL = PatternFill(fill_type="solid", start_color="E8F5E9", end_color="E8F5E9")
MONEY_FORMAT = "#,##0.00"

DETAILS_COLUMN_WIDTHS = [20, 30]
LINE_ITEM_COLUMN_WIDTHS = [40, 10, 12, 12]

NO_SHIPPING = "-"
MONEY_FIELDS = {"Subtotal", "Tax Total", "Shipping", "Total"}


def _money(value: float) -> str:
    return f"{value:.2f}"


def _quantity(value: float) -> int | float:
    return int(value) if float(value).is_integer() else value


def _details_rows(record: InvoiceRecord, as_text: bool) -> list[tuple[str, object]]:
    def money(value: float) -> object:
        return _money(value) if as_text else round(value, 2)

    return [
        ("Vendor", record.vendor),
        ("Invoice Number", record.invoice_number),
        ("Invoice Date", record.invoice_date),
        ("Currency", record.currency),
        ("Subtotal", money(record.subtotal)),
        ("Tax Total", money(record.tax_total)),
        ("Shipping", money(record.shipping) if record.shipping > 0 else NO_SHIPPING),
        ("Total", money(record.total)),
    ]


def _line_item_frame(record: InvoiceRecord, as_text: bool) -> pd.DataFrame:
    def money(value: float) -> object:
        return _money(value) if as_text else round(value, 2)

    def quantity(value: float) -> object:
        # text keeps integral quantities as 2, not 2.0, in a mixed column
        return str(_quantity(value)) if as_text else _quantity(value)

    rows = [
        (
            item.description,
            quantity(item.quantity),
            money(item.unit_price),
            money(item.line_total),
        )
        for item in record.line_items
    ]
    return pd.DataFrame(rows, columns=LINE_ITEM_COLUMNS)


def build_invoice_details_csv(record: InvoiceRecord) -> str:
    """One row per header field: ``Field,Value``."""
    frame = pd.DataFrame(_details_rows(record, as_text=True), columns=DETAILS_COLUMNS)
    return frame.to_csv(index=False, lineterminator="\n")


def build_line_items_csv(record: InvoiceRecord) -> str:
    """One row per line item, money rendered with two decimals."""
    return _line_item_frame(record, as_text=True).to_csv(
        index=False, lineterminator="\n"
    )


def _style_sheet(worksheet, widths: list[int]) -> None:
    for cell in worksheet[1]:
        cell.font = HEADER_FONT
        cell.fill = HEADER_FILL
    for index, width in enumerate(widths, start=1):
        worksheet.column_dimensions[get_column_letter(index)].width = width


def build_excel_workbook(record: InvoiceRecord) -> bytes:
    """Two-sheet workbook mirroring the CSV exports, money cells kept numeric."""
    details = pd.DataFrame(_details_rows(record, as_text=False), columns=DETAILS_COLUMNS)
    line_items = _line_item_frame(record, as_text=False)

    buffer = BytesIO()
    with pd.ExcelWriter(buffer, engine="openpyxl") as writer:
        details.to_excel(writer, sheet_name=DETAILS_SHEET, index=False)
        line_items.to_excel(writer, sheet_name=LINE_ITEMS_SHEET, index=False)

        details_sheet = writer.sheets[DETAILS_SHEET]
        _style_sheet(details_sheet, DETAILS_COLUMN_WIDTHS)
        for field_cell, value_cell in details_sheet.iter_rows(min_row=2, max_col=2):
            if field_cell.value in MONEY_FIELDS and isinstance(
                value_cell.value, (int, float)
            ):
                value_cell.number_format = MONEY_FORMAT

        items_sheet = writer.sheets[LINE_ITEMS_SHEET]
        _style_sheet(items_sheet, LINE_ITEM_COLUMN_WIDTHS)
        for row in items_sheet.iter_rows(min_row=2, min_col=3, max_col=4):
            for cell in row:
                cell.number_format = MONEY_FORMAT

    return buffer.getvalue()


@dataclass(frozen=True)
class ExportFormat:
    file_name: str
    media_type: str
    render: Callable[[InvoiceRecord], str | bytes]


EXPORT_FORMATS: dict[str, ExportFormat] = {
    "invoice-details": ExportFormat(
        "invoice_details.csv", "text/csv; charset=utf-8", build_invoice_details_csv
    ),
    "line-items": ExportFormat(
        "line_items.csv", "text/csv; charset=utf-8", build_line_items_csv
    ),
    "excel": ExportFormat(
        "combined.xlsx",
        "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        build_excel_workbook,
    ),
}
