"""Responses API payload handling for the invoice extractor."""

import base64
import json

import pytest

from src.modules.conversion.infrastructure.extractor import ExtractionError
from src.modules.conversion.infrastructure.openai_client import (
    INVOICE_JSON_SCHEMA,
    OpenAIInvoiceExtractor,
)
from src.modules.conversion.models import InvoiceRecord, LineItem
from tests.utils.fakes import SAMPLE_INVOICE


def test_payload_inlines_pdf_as_data_url():
    extractor = OpenAIInvoiceExtractor()

    payload = extractor._build_payload(b"%PDF-1.4 test")

    content = payload["input"][0]["content"]
    file_part = next(part for part in content if part["type"] == "input_file")
    encoded = file_part["file_data"].removeprefix("data:application/pdf;base64,")
    assert base64.b64decode(encoded) == b"%PDF-1.4 test"
    assert payload["model"] == extractor.model


def _accepted_keys(model) -> set[str]:
    return {
        field.validation_alias or name for name, field in model.model_fields.items()
    }


def test_payload_requests_strict_json_schema():
    payload = OpenAIInvoiceExtractor()._build_payload(b"%PDF-1.4 test")

    text_format = payload["text"]["format"]
    assert text_format["type"] == "json_schema"
    assert text_format["strict"] is True
    assert text_format["schema"] is INVOICE_JSON_SCHEMA


def test_schema_keys_match_invoice_record():
    item_schema = INVOICE_JSON_SCHEMA["properties"]["lineItems"]["items"]

    assert set(INVOICE_JSON_SCHEMA["required"]) == _accepted_keys(InvoiceRecord)
    assert set(item_schema["required"]) == _accepted_keys(LineItem)
    assert INVOICE_JSON_SCHEMA["additionalProperties"] is False
    assert item_schema["additionalProperties"] is False


def test_output_text_shortcut_is_used():
    assert OpenAIInvoiceExtractor._output_text({"output_text": "{}"}) == "{}"


def test_output_text_is_collected_from_message_parts():
    data = {
        "output": [
            {"type": "reasoning", "content": []},
            {
                "type": "message",
                "content": [
                    {"type": "output_text", "text": json.dumps(SAMPLE_INVOICE)[:20]},
                    {"type": "output_text", "text": json.dumps(SAMPLE_INVOICE)[20:]},
                ],
            },
        ]
    }

    assert OpenAIInvoiceExtractor._output_text(data) == json.dumps(SAMPLE_INVOICE)


def test_non_object_payload_is_an_extraction_error():
    with pytest.raises(ExtractionError):
        OpenAIInvoiceExtractor._output_text(["unexpected"])


@pytest.mark.asyncio
async def test_missing_api_key_fails_without_network(monkeypatch):
    extractor = OpenAIInvoiceExtractor()
    monkeypatch.setattr(extractor, "api_key", "")

    with pytest.raises(ExtractionError):
        await extractor.extract(b"%PDF-1.4")
