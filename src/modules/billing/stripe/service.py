"""Stripe Checkout for credit packs and webhook handling."""

import stripe  # type: ignore
from stripe import StripeError  # type: ignore

from src.core.base import BaseService
from src.database.models import User
from src.modules.billing.constants import CREDIT_PACKS, CreditPackId
from src.modules.billing.ledger import CreditLedgerService
from src.modules.user.onboarding import UserOnboardingService
from src.utils.settings.app import AppSettings
from src.utils.settings.stripe import StripeSettings


class StripePaymentService(BaseService):
    def __init__(self, db):
        super().__init__(db)
        self.stripe_settings = StripeSettings()
        stripe.api_key = self.stripe_settings.STRIPE_SECRET_KEY.get_secret_value()

    def create_checkout_session(
        self, user: User, pack_id: CreditPackId
    ) -> stripe.checkout.Session:
        """Create a one-off payment session; the webhook grants the credits."""
        pack = CREDIT_PACKS[pack_id]
        app_url = AppSettings().APP_URL.rstrip("/")
        try:
            return stripe.checkout.Session.create(
                payment_method_types=["card"],
                line_items=[
                    {
                        "price_data": {
                            "currency": self.stripe_settings.STRIPE_CURRENCY,
                            "product_data": {
                                "name": pack.name,
                                "description": pack.description,
                            },
                            "unit_amount": pack.unit_amount,
                        },
                        "quantity": 1,
                    }
                ],
                mode="payment",
                success_url=f"{app_url}/dashboard?success=true",
                cancel_url=f"{app_url}/pricing?canceled=true",
                client_reference_id=user.auth_user_id,
                customer_email=user.email or None,
                metadata={
                    "user_id": user.auth_user_id,
                    "credits": str(pack.credits),
                    "pack_id": pack_id.value,
                },
            )
        except StripeError as e:
            raise ValueError(f"Failed to create checkout session: {e}")

    def validate_webhook_signature(self, payload: bytes, signature: str) -> dict:
        try:
            return stripe.Webhook.construct_event(
                payload,
                signature,
                self.stripe_settings.STRIPE_WEBHOOK_SECRET,
            )
        except Exception:
            raise ValueError("Invalid webhook data")

    async def handle_webhook_event(self, event: dict) -> bool:
        """Dispatch a verified event. Returns False for event types we ignore."""
        event_type = event["type"]
        data = event["data"]["object"]

        webhook_handlers = {
            "checkout.session.completed": self._handle_checkout_completed,
        }

        handler = webhook_handlers.get(event_type)
        if not handler:
            return False

        await handler(data)
        return True

    async def _handle_checkout_completed(self, session_data: dict) -> None:
        """Grant the purchased credits, once per payment."""
        if session_data.get("payment_status", "paid") != "paid":
            self.logger.info(
                f"Checkout {session_data.get('id')} not paid yet, skipping"
            )
            return

        metadata = session_data.get("metadata") or {}
        auth_user_id = metadata.get("user_id")
        try:
            credits = int(metadata.get("credits") or 0)
        except (TypeError, ValueError):
            credits = 0

        if not auth_user_id or credits <= 0:
            self.logger.warning(
                "Checkout session without user_id/credits metadata",
                session_id=session_data.get("id"),
            )
            return

        payment_ref = session_data.get("payment_intent") or session_data.get("id")
        customer_details = session_data.get("customer_details") or {}

        user = await UserOnboardingService(self.db).ensure_user_onboarded(
            auth_user_id, customer_details.get("email")
        )
        granted = await CreditLedgerService(self.db).grant(
            user.id,
            credits,
            payment_ref,
            description=f"Purchased {credits} credits",
        )
        if granted:
            self.logger.info(f"Added {credits} credits to user {auth_user_id}")
