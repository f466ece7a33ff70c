"""Conversion API schemas."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel

from src.api.core.messages import APIResponse, Paginated
from src.modules.conversion.models import LineItem


class ConversionCreated(BaseModel):
    conversion_id: UUID


class ConversionDetail(BaseModel):
    id: UUID
    file_name: str | None
    vendor: str
    invoice_number: str
    invoice_date: str
    currency: str
    subtotal: float
    tax_total: float
    shipping: float
    total: float
    line_items: list[LineItem]
    status: str
    created_at: datetime
    is_logged_in: bool


class ConversionSummary(BaseModel):
    model_config = {"from_attributes": True}

    id: UUID
    file_name: str | None
    vendor: str
    invoice_number: str
    invoice_date: str
    currency: str
    total: float
    created_at: datetime


class BulkFileResult(BaseModel):
    file_name: str
    success: bool
    conversion_id: UUID | None = None
    vendor: str | None = None
    invoice_number: str | None = None
    total: float | None = None
    currency: str | None = None
    error: str | None = None


class BulkConversionResult(BaseModel):
    results: list[BulkFileResult]
    successful_count: int
    failed_count: int
    credits_used: int


# Response type aliases
ConversionCreatedResponse = APIResponse[ConversionCreated]
ConversionDetailResponse = APIResponse[ConversionDetail]
ConversionHistoryResponse = APIResponse[Paginated[ConversionSummary]]
BulkConversionResponse = APIResponse[BulkConversionResult]
