"""Credits domain router."""

from fastapi import APIRouter, Query

from src.api.core.constants import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE
from src.api.core.dependencies import CreditLedgerServiceDep, CurrentUserDep
from src.api.core.messages import APIResponse, MessageCode
from src.api.credits.schemas import (
    CreditBalanceModel,
    CreditBalanceResponse,
    CreditTransactionsResponse,
)

router = APIRouter(
    prefix="/credits",
    tags=["credits"],
)


@router.get("", response_model=CreditBalanceResponse)
async def get_credit_balance(
    user: CurrentUserDep,
    ledger: CreditLedgerServiceDep,
) -> CreditBalanceResponse:
    """Current credit balance of the signed-in user."""
    balance = await ledger.get_balance(user.id)
    return APIResponse.success(
        message_code=MessageCode.SUCCESS,
        data=CreditBalanceModel(credits_balance=balance),
    )


@router.get("/transactions", response_model=CreditTransactionsResponse)
async def get_credit_transactions(
    user: CurrentUserDep,
    ledger: CreditLedgerServiceDep,
    limit: int = Query(default=DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    offset: int = Query(default=0, ge=0),
) -> CreditTransactionsResponse:
    """Ledger entries (signup, purchases, usage), newest first."""
    page = await ledger.get_transaction_history(user.id, limit, offset)
    return APIResponse.success(message_code=MessageCode.SUCCESS, data=page)
