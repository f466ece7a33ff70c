"""Credits API schemas."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel

from src.api.core.messages import APIResponse, Paginated
from src.database.models.credit_transactions import TransactionType


class CreditBalanceModel(BaseModel):
    credits_balance: int


class CreditTransactionRecord(BaseModel):
    id: UUID
    amount: int
    transaction_type: TransactionType
    description: str | None
    stripe_payment_id: str | None
    created_at: datetime

    model_config = {"from_attributes": True}


# Response type aliases
CreditBalanceResponse = APIResponse[CreditBalanceModel]
CreditTransactionsResponse = APIResponse[Paginated[CreditTransactionRecord]]
