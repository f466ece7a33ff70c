"""Extraction seam: PDF bytes in, typed invoice record out."""

import json
from typing import Protocol

from pydantic import ValidationError

from src.modules.conversion.models import InvoiceRecord


class ExtractionError(Exception):
    """The external model failed, timed out or returned unusable output."""


class InvoiceExtractor(Protocol):
    async def extract(self, pdf_bytes: bytes) -> InvoiceRecord: ...


def parse_invoice_json(content: str) -> InvoiceRecord:
    """Parse the model's text output into an InvoiceRecord.

    The whole text is tried as JSON first, then the outermost ``{...}`` span
    (models sometimes wrap the object in prose or a code fence). Missing or
    malformed fields raise ExtractionError; nothing is filled in with defaults.
    """
    if not content or not content.strip():
        raise ExtractionError("Empty response from extraction model")

    try:
        payload = json.loads(content)
    except json.JSONDecodeError:
        start, end = content.find("{"), content.rfind("}")
        if start == -1 or end <= start:
            raise ExtractionError("No JSON object in extraction response")
        try:
            payload = json.loads(content[start : end + 1])
        except json.JSONDecodeError as e:
            raise ExtractionError(f"Invalid JSON in extraction response: {e}")

    if not isinstance(payload, dict):
        raise ExtractionError("Extraction response is not a JSON object")

    try:
        return InvoiceRecord.model_validate(payload)
    except ValidationError as e:
        raise ExtractionError(
            f"Extraction response failed validation ({e.error_count()} errors)"
        ) from e
