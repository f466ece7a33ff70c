"""Credit pack catalogue and Stripe Checkout."""

from fastapi import APIRouter, status

from src.api.billing.schemas import (
    CheckoutSessionModel,
    CheckoutSessionRequest,
    CheckoutSessionResponse,
    CreditPackCatalogResponse,
)
from src.api.core.dependencies import CurrentUserDep, StripePaymentServiceDep
from src.api.core.exceptions.base import BillToSheetException
from src.api.core.messages import APIResponse, MessageCode
from src.modules.billing.constants import CreditPackId, get_credit_pack_catalog
from src.utils.logger import get_logger

logger = get_logger(__name__)

router = APIRouter(tags=["billing"])


@router.get("/billing/catalog", response_model=CreditPackCatalogResponse)
async def get_catalog() -> CreditPackCatalogResponse:
    return APIResponse.success(
        message_code=MessageCode.SUCCESS, data=get_credit_pack_catalog()
    )


@router.post("/checkout", response_model=CheckoutSessionResponse)
async def create_checkout(
    request_data: CheckoutSessionRequest,
    user: CurrentUserDep,
    stripe_service: StripePaymentServiceDep,
) -> CheckoutSessionResponse:
    """Start a Stripe Checkout payment for one credit pack."""
    try:
        pack_id = CreditPackId(request_data.pack_id)
    except ValueError:
        raise BillToSheetException(
            MessageCode.INVALID_INPUT,
            status.HTTP_400_BAD_REQUEST,
            {
                "description": "Invalid pack",
                "allowed": [pack.value for pack in CreditPackId],
            },
        )

    try:
        session = stripe_service.create_checkout_session(user, pack_id)
    except ValueError as e:
        logger.error(f"Checkout session creation failed: {e}")
        raise BillToSheetException(
            MessageCode.EXTERNAL_SERVICE_ERROR,
            status.HTTP_502_BAD_GATEWAY,
            {"description": "Payment provider unavailable"},
        )

    return APIResponse.success(
        message_code=MessageCode.CHECKOUT_CREATED,
        data=CheckoutSessionModel(session_id=session.id, url=session.url),
    )
