"""Conversion model: one extracted invoice, owned by a user or an anonymous session."""

import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Any
from uuid import UUID

from sqlalchemy import (
    JSON,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Numeric,
    String,
    Uuid,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base


class ConversionStatus(str, Enum):
    COMPLETED = "completed"


class Conversion(Base):
    __tablename__ = "conversions"
    __table_args__ = (
        CheckConstraint(
            "(user_id IS NULL) <> (anonymous_id IS NULL)",
            name="ck_conversions_single_owner",
        ),
    )

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=True, index=True
    )
    anonymous_id: Mapped[str | None] = mapped_column(
        String, nullable=True, index=True
    )
    file_name: Mapped[str | None] = mapped_column(String, nullable=True)
    vendor: Mapped[str] = mapped_column(String, nullable=False)
    invoice_number: Mapped[str] = mapped_column(String, nullable=False)
    invoice_date: Mapped[str] = mapped_column(String, nullable=False)
    currency: Mapped[str] = mapped_column(String, nullable=False)
    subtotal: Mapped[float] = mapped_column(Numeric(12, 2, asdecimal=False))
    tax_total: Mapped[float] = mapped_column(Numeric(12, 2, asdecimal=False))
    shipping: Mapped[float] = mapped_column(Numeric(12, 2, asdecimal=False))
    total: Mapped[float] = mapped_column(Numeric(12, 2, asdecimal=False))
    extracted_data: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False)
    status: Mapped[ConversionStatus] = mapped_column(
        String, nullable=False, default=ConversionStatus.COMPLETED
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        index=True,
    )

    user = relationship("User", back_populates="conversions")
