"""Stand-ins for the extraction service."""

from src.modules.conversion.infrastructure.extractor import ExtractionError
from src.modules.conversion.models import InvoiceRecord

FAILING_PDF = b"%PDF-1.4 unreadable"

SAMPLE_INVOICE = {
    "vendor": "Acme Supplies Ltd",
    "invoiceNumber": "INV-1001",
    "invoiceDate": "15-03-2026",
    "currency": "GBP",
    "subtotal": 150.0,
    "taxTotal": 30.0,
    "shipping": 0,
    "total": 180.0,
    "lineItems": [
        {"description": "Widget", "quantity": 2, "unitPrice": 50.0, "lineTotal": 100.0},
        {"description": "Gadget", "quantity": 1, "unitPrice": 50.0, "lineTotal": 50.0},
    ],
}


def pdf_bytes(label: str = "invoice") -> bytes:
    return f"%PDF-1.4 {label}".encode()


class FakeInvoiceExtractor:
    """Returns SAMPLE_INVOICE, or fails for uploads equal to FAILING_PDF."""

    def __init__(self, payload: dict | None = None):
        self.payload = payload or SAMPLE_INVOICE
        self.calls = 0
        self.fail_all = False

    async def extract(self, pdf_bytes: bytes) -> InvoiceRecord:
        self.calls += 1
        if self.fail_all or pdf_bytes == FAILING_PDF:
            raise ExtractionError("Model returned no JSON")
        return InvoiceRecord.model_validate(self.payload)
