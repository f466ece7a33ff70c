"""Database models for BillToSheet API."""

from .base import Base
from .conversions import Conversion, ConversionStatus
from .credit_transactions import CreditTransaction, TransactionType
from .users import User

__all__ = [
    # Base
    "Base",
    # Enums
    "ConversionStatus",
    "TransactionType",
    # Models
    "User",
    "Conversion",
    "CreditTransaction",
]
