"""Billing API schemas."""

from pydantic import BaseModel

from src.api.core.messages import APIResponse


class CreditPackModel(BaseModel):
    id: str
    name: str
    credits: int
    price: float
    description: str
    popular: bool


class CreditPackCatalogModel(BaseModel):
    currency: str
    packs: list[CreditPackModel]


class CheckoutSessionRequest(BaseModel):
    pack_id: str


class CheckoutSessionModel(BaseModel):
    session_id: str
    url: str


class WebhookResultModel(BaseModel):
    event_type: str
    handled: bool


# Response type aliases
CreditPackCatalogResponse = APIResponse[CreditPackCatalogModel]
CheckoutSessionResponse = APIResponse[CheckoutSessionModel]
WebhookResultResponse = APIResponse[WebhookResultModel]
