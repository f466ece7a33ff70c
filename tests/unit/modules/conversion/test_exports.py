"""CSV and Excel renderings of an invoice record."""

from io import BytesIO, StringIO

import pandas as pd
from openpyxl import load_workbook

from src.modules.conversion.exports import (
    DETAILS_SHEET,
    EXPORT_FORMATS,
    LINE_ITEMS_SHEET,
    build_excel_workbook,
    build_invoice_details_csv,
    build_line_items_csv,
)
from src.modules.conversion.models import InvoiceRecord
from tests.utils.fakes import SAMPLE_INVOICE


def _record(**overrides) -> InvoiceRecord:
    return InvoiceRecord.model_validate({**SAMPLE_INVOICE, **overrides})


def test_invoice_details_csv_has_one_row_per_field():
    csv = build_invoice_details_csv(_record(shipping=4.5))

    frame = pd.read_csv(StringIO(csv), dtype=str)
    values = dict(zip(frame["Field"], frame["Value"]))

    assert list(frame.columns) == ["Field", "Value"]
    assert values["Vendor"] == "Acme Supplies Ltd"
    assert values["Invoice Date"] == "15-03-2026"
    assert values["Subtotal"] == "150.00"
    assert values["Shipping"] == "4.50"
    assert values["Total"] == "180.00"


def test_zero_shipping_renders_as_dash():
    csv = build_invoice_details_csv(_record(shipping=0))

    assert "Shipping,-\n" in csv


def test_line_items_csv_keeps_integral_quantities_whole():
    csv = build_line_items_csv(_record())

    lines = csv.strip().split("\n")
    assert lines[0] == "Description,Quantity,Unit Price,Line Total"
    assert lines[1] == "Widget,2,50.00,100.00"
    assert lines[2] == "Gadget,1,50.00,50.00"


def test_line_items_csv_quotes_commas():
    record = _record(
        lineItems=[
            {"description": "Bolts, M6", "quantity": 1.5, "unitPrice": 2, "lineTotal": 3}
        ]
    )

    frame = pd.read_csv(StringIO(build_line_items_csv(record)), dtype=str)

    assert frame.loc[0, "Description"] == "Bolts, M6"
    assert frame.loc[0, "Quantity"] == "1.5"


def test_empty_line_items_yield_header_only():
    csv = build_line_items_csv(_record(lineItems=[]))

    assert csv == "Description,Quantity,Unit Price,Line Total\n"


def test_excel_workbook_mirrors_csv_exports():
    record = _record()

    workbook = load_workbook(BytesIO(build_excel_workbook(record)))

    assert workbook.sheetnames == [DETAILS_SHEET, LINE_ITEMS_SHEET]

    details = workbook[DETAILS_SHEET]
    assert details["A1"].value == "Field"
    assert details["A1"].font.bold
    rows = {row[0]: row[1] for row in details.iter_rows(min_row=2, values_only=True)}
    assert rows["Total"] == 180.0
    assert rows["Shipping"] == "-"

    items = workbook[LINE_ITEMS_SHEET]
    assert items.column_dimensions["A"].width == 40
    assert items["C2"].number_format == "#,##0.00"
    assert [cell.value for cell in items[2]] == ["Widget", 2, 50.0, 100.0]


def test_export_formats_name_their_attachments():
    assert EXPORT_FORMATS["invoice-details"].file_name == "invoice_details.csv"
    assert EXPORT_FORMATS["line-items"].file_name == "line_items.csv"
    assert EXPORT_FORMATS["excel"].file_name == "combined.xlsx"
