"""User model."""

import uuid
from datetime import datetime, timezone
from uuid import UUID

from sqlalchemy import CheckConstraint, DateTime, Integer, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base


class User(Base):
    __tablename__ = "users"
    __table_args__ = (
        CheckConstraint("credits_balance >= 0", name="ck_users_credits_non_negative"),
    )

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    auth_user_id: Mapped[str] = mapped_column(
        String, unique=True, nullable=False, comment="Identity provider subject"
    )
    email: Mapped[str | None] = mapped_column(String, nullable=True)
    credits_balance: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc)
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    conversions = relationship(
        "Conversion", back_populates="user", passive_deletes=True
    )
    credit_transactions = relationship(
        "CreditTransaction", back_populates="user", passive_deletes=True
    )
