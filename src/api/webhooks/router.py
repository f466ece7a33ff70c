"""Payment provider webhook endpoint."""

from fastapi import APIRouter, Request, status

from src.api.billing.schemas import WebhookResultModel, WebhookResultResponse
from src.api.core.dependencies import StripePaymentServiceDep
from src.api.core.exceptions.base import BillToSheetException
from src.api.core.messages import APIResponse, MessageCode
from src.utils.logger import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/webhooks", tags=["webhooks"])


@router.post("/payment", response_model=WebhookResultResponse)
async def payment_webhook(
    request: Request,
    stripe_service: StripePaymentServiceDep,
) -> WebhookResultResponse:
    """Verify and apply a Stripe event.

    Nothing touches the ledger before the signature checks out. Grant failures
    surface as 500 so Stripe redelivers; redelivery is safe because grants are
    idempotent on the payment reference.
    """
    payload = await request.body()
    signature = request.headers.get("stripe-signature")

    if not payload or not signature:
        raise BillToSheetException(
            MessageCode.INVALID_SIGNATURE,
            status.HTTP_400_BAD_REQUEST,
            {"description": "Missing webhook payload or stripe-signature header"},
        )

    try:
        event = stripe_service.validate_webhook_signature(payload, signature)
    except ValueError as e:
        logger.warning(f"Webhook signature verification failed: {e}")
        raise BillToSheetException(
            MessageCode.INVALID_SIGNATURE, status.HTTP_400_BAD_REQUEST
        )

    try:
        handled = await stripe_service.handle_webhook_event(event)
    except Exception as e:
        logger.error(
            f"Webhook processing error for {event['type']}: {e}", exc_info=True
        )
        raise BillToSheetException(
            MessageCode.PAYMENT_FAILED, status.HTTP_500_INTERNAL_SERVER_ERROR
        )

    if handled:
        logger.info(f"Successfully processed webhook event: {event['type']}")
    else:
        logger.debug(f"Webhook event not handled: {event['type']}")

    return APIResponse.success(
        message_code=MessageCode.WEBHOOK_PROCESSED,
        data=WebhookResultModel(event_type=event["type"], handled=handled),
    )
