"""Stripe payment services."""

from .service import StripePaymentService

__all__ = ["StripePaymentService"]
