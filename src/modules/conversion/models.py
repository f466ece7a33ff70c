"""Typed invoice record produced by extraction and consumed by the exports."""

import re
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator

CURRENCY_SYMBOLS = {"£": "GBP", "$": "USD", "€": "EUR"}

# Accepted inputs, in the order they are tried; output is always DD-MM-YYYY
INVOICE_DATE_FORMATS = ("%d-%m-%Y", "%Y-%m-%d", "%d/%m/%Y", "%d.%m.%Y")
INVOICE_DATE_OUTPUT_FORMAT = "%d-%m-%Y"


def normalize_invoice_date(value: str) -> str:
    value = value.strip()
    for date_format in INVOICE_DATE_FORMATS:
        try:
            parsed = datetime.strptime(value, date_format)
        except ValueError:
            continue
        return parsed.strftime(INVOICE_DATE_OUTPUT_FORMAT)
    raise ValueError(f"Unrecognised invoice date: {value!r}")


class LineItem(BaseModel):
    model_config = ConfigDict(
        populate_by_name=True,
        extra="ignore",
        coerce_numbers_to_str=True,
        allow_inf_nan=False,
    )

    description: str = Field(min_length=1)
    quantity: float
    unit_price: float = Field(validation_alias="unitPrice")
    line_total: float = Field(validation_alias="lineTotal")

    @field_validator("description")
    @classmethod
    def strip_description(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Line item description is empty")
        return value


class InvoiceRecord(BaseModel):
    """Structured fields of one invoice.

    Field aliases match the camelCase JSON the extraction model is asked to
    return; stored and served copies use the snake_case names.
    """

    model_config = ConfigDict(
        populate_by_name=True,
        extra="ignore",
        coerce_numbers_to_str=True,
        allow_inf_nan=False,
    )

    vendor: str = Field(min_length=1)
    invoice_number: str = Field(validation_alias="invoiceNumber", min_length=1)
    invoice_date: str = Field(validation_alias="invoiceDate")
    currency: str
    subtotal: float
    tax_total: float = Field(validation_alias="taxTotal")
    shipping: float
    total: float
    line_items: list[LineItem] = Field(validation_alias="lineItems")

    @field_validator("vendor", "invoice_number")
    @classmethod
    def strip_text(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Value is empty")
        return value

    @field_validator("invoice_date")
    @classmethod
    def validate_invoice_date(cls, value: str) -> str:
        return normalize_invoice_date(value)

    @field_validator("currency")
    @classmethod
    def validate_currency(cls, value: str) -> str:
        value = value.strip()
        value = CURRENCY_SYMBOLS.get(value, value).upper()
        if not re.fullmatch(r"[A-Z]{3}", value):
            raise ValueError(f"Currency must be an ISO 4217 code, got {value!r}")
        return value
