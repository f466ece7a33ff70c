"""Client for the OpenAI Responses API used to read invoice PDFs."""

import asyncio
import base64
import logging
from typing import Any

import aiohttp

from src.modules.conversion.infrastructure.extractor import (
    ExtractionError,
    parse_invoice_json,
)
from src.modules.conversion.models import InvoiceRecord
from src.utils.settings.extraction import extraction_settings

logger = logging.getLogger(__name__)

EXTRACTION_PROMPT = """You are an expert at extracting structured data from invoice PDFs.

CRITICAL RULES:
1. Extract EVERY line item - do not skip any, even if there are 50+ items
2. If a numeric field is missing, use 0
3. Calculate missing fields when possible:
   - If subtotal missing: total - tax - shipping
   - If tax missing: total - subtotal - shipping
   - For line items: lineTotal = quantity x unitPrice
4. Infer the ISO currency code from symbols (£=GBP, $=USD, €=EUR) or context
5. Write dates as DD-MM-YYYY (day first, then month, then year)
6. Return ONLY valid JSON with no other text

Return JSON with exactly this structure:
{
  "vendor": "company name",
  "invoiceNumber": "invoice ID",
  "invoiceDate": "DD-MM-YYYY",
  "currency": "GBP",
  "subtotal": 0.00,
  "taxTotal": 0.00,
  "shipping": 0.00,
  "total": 0.00,
  "lineItems": [
    {"description": "item", "quantity": 0, "unitPrice": 0.00, "lineTotal": 0.00}
  ]
}"""

_MONEY = {"type": "number"}

# Structured-output schema; strict mode needs every key required and no extras
INVOICE_JSON_SCHEMA: dict[str, Any] = {
    "type": "object",
    "properties": {
        "vendor": {"type": "string"},
        "invoiceNumber": {"type": "string"},
        "invoiceDate": {"type": "string", "description": "DD-MM-YYYY"},
        "currency": {"type": "string", "description": "ISO 4217 code"},
        "subtotal": _MONEY,
        "taxTotal": _MONEY,
        "shipping": _MONEY,
        "total": _MONEY,
        "lineItems": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "description": {"type": "string"},
                    "quantity": {"type": "number"},
                    "unitPrice": _MONEY,
                    "lineTotal": _MONEY,
                },
                "required": ["description", "quantity", "unitPrice", "lineTotal"],
                "additionalProperties": False,
            },
        },
    },
    "required": [
        "vendor",
        "invoiceNumber",
        "invoiceDate",
        "currency",
        "subtotal",
        "taxTotal",
        "shipping",
        "total",
        "lineItems",
    ],
    "additionalProperties": False,
}


class OpenAIInvoiceExtractor:
    """Sends the PDF inline to the Responses API and validates the JSON it returns."""

    def __init__(self):
        self.url = extraction_settings.OPENAI_BASE_URL.rstrip("/")
        self.model = extraction_settings.OPENAI_MODEL
        self.timeout = extraction_settings.EXTRACTION_TIMEOUT
        self.api_key = extraction_settings.OPENAI_API_KEY.get_secret_value()

    def _build_payload(self, pdf_bytes: bytes) -> dict[str, Any]:
        encoded = base64.b64encode(pdf_bytes).decode("ascii")
        return {
            "model": self.model,
            "input": [
                {
                    "role": "user",
                    "content": [
                        {
                            "type": "input_file",
                            "filename": "invoice.pdf",
                            "file_data": f"data:application/pdf;base64,{encoded}",
                        },
                        {
                            "type": "input_text",
                            "text": f"{EXTRACTION_PROMPT}\n\nIMPORTANT: Extract EVERY single line item from this invoice. Return ONLY the JSON object.",
                        },
                    ],
                }
            ],
            "text": {
                "format": {
                    "type": "json_schema",
                    "name": "invoice",
                    "strict": True,
                    "schema": INVOICE_JSON_SCHEMA,
                }
            },
        }

    async def extract(self, pdf_bytes: bytes) -> InvoiceRecord:
        if not self.api_key:
            raise ExtractionError("OPENAI_API_KEY is not configured")

        async with aiohttp.ClientSession() as session:
            try:
                async with session.post(
                    f"{self.url}/responses",
                    json=self._build_payload(pdf_bytes),
                    headers={"Authorization": f"Bearer {self.api_key}"},
                    timeout=aiohttp.ClientTimeout(total=self.timeout),
                ) as response:
                    if response.status >= 400:
                        body = await response.text()
                        logger.error(
                            f"Extraction API returned {response.status}: {body[:500]}"
                        )
                        raise ExtractionError(
                            f"Extraction API returned status {response.status}"
                        )
                    data = await response.json()
            except aiohttp.ClientError as e:
                logger.error(f"Extraction API request failed: {e}")
                raise ExtractionError(f"Extraction API unavailable: {e}") from e
            except asyncio.TimeoutError as e:
                logger.error(f"Extraction API timed out after {self.timeout}s")
                raise ExtractionError("Extraction API timed out") from e

        record = parse_invoice_json(self._output_text(data))
        logger.info(
            f"Extracted invoice {record.invoice_number} with {len(record.line_items)} line items"
        )
        return record

    @staticmethod
    def _output_text(data: dict[str, Any]) -> str:
        """Collect the assistant text from a Responses API payload."""
        if not isinstance(data, dict):
            raise ExtractionError("Unexpected extraction API payload")
        if data.get("output_text"):
            return data["output_text"]

        parts = []
        for item in data.get("output") or []:
            if item.get("type") != "message":
                continue
            for content in item.get("content") or []:
                if content.get("type") == "output_text":
                    parts.append(content.get("text", ""))
        return "".join(parts)


async def get_invoice_extractor() -> OpenAIInvoiceExtractor:
    """Get invoice extractor for dependency injection."""
    return OpenAIInvoiceExtractor()
