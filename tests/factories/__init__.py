"""Test factories for BillToSheet API models."""

from .base import AsyncSQLAlchemyModelFactory
from .users import UserFactory
from .conversions import ConversionFactory
from .credit_transactions import CreditTransactionFactory

__all__ = [
    "AsyncSQLAlchemyModelFactory",
    "UserFactory",
    "ConversionFactory",
    "CreditTransactionFactory",
]
