"""Credit ledger: per-user balance plus an append-only transaction log."""

from dataclasses import dataclass
from uuid import UUID

from sqlalchemy import func, select, update
from sqlalchemy.exc import IntegrityError

from src.api.core.constants import (
    ANONYMOUS_CONVERSION_LIMIT,
    CONVERSION_CREDIT_COST,
)
from src.api.core.messages import Paginated, PaginationInfo
from src.api.credits.schemas import CreditTransactionRecord
from src.core.base import BaseService
from src.core.context import CallerIdentity
from src.database.models import (
    Conversion,
    CreditTransaction,
    TransactionType,
    User,
)

REASON_USER_NOT_FOUND = "User not found"
REASON_INSUFFICIENT_CREDITS = "Insufficient credits"
REASON_FREE_LIMIT_REACHED = (
    "Free conversion limit reached. Please sign in to continue."
)


class InsufficientCreditsError(Exception):
    """The conditional decrement matched no row: balance already at zero."""

    def __init__(self, user_id: UUID):
        self.user_id = user_id
        super().__init__(f"User {user_id} has no credits left")


class UnknownUserError(Exception):
    def __init__(self, user_id: UUID):
        self.user_id = user_id
        super().__init__(f"User {user_id} does not exist")


@dataclass(frozen=True)
class Eligibility:
    allowed: bool
    reason: str | None = None
    credits_remaining: int = 0


class CreditLedgerService(BaseService):
    """Eligibility checks and atomic balance mutations.

    Every balance change is one conditional ``UPDATE`` committed together with
    its ``credit_transactions`` row, so the sum of a user's transactions always
    equals ``users.credits_balance``.
    """

    async def can_convert(self, identity: CallerIdentity) -> Eligibility:
        if identity.is_authenticated:
            balance = await self.db.scalar(
                select(User.credits_balance).where(
                    User.auth_user_id == identity.auth_user_id
                )
            )
            if balance is None:
                return Eligibility(allowed=False, reason=REASON_USER_NOT_FOUND)
            if balance < CONVERSION_CREDIT_COST:
                return Eligibility(
                    allowed=False,
                    reason=REASON_INSUFFICIENT_CREDITS,
                    credits_remaining=0,
                )
            return Eligibility(allowed=True, credits_remaining=balance)

        used = await self.count_anonymous_conversions(identity.anonymous_id)
        if used >= ANONYMOUS_CONVERSION_LIMIT:
            return Eligibility(
                allowed=False, reason=REASON_FREE_LIMIT_REACHED, credits_remaining=0
            )
        return Eligibility(
            allowed=True, credits_remaining=ANONYMOUS_CONVERSION_LIMIT - used
        )

    async def count_anonymous_conversions(self, anonymous_id: str | None) -> int:
        if not anonymous_id:
            return 0
        count = await self.db.scalar(
            select(func.count(Conversion.id)).where(
                Conversion.anonymous_id == anonymous_id
            )
        )
        return count or 0

    async def get_balance(self, user_id: UUID) -> int:
        balance = await self.db.scalar(
            select(User.credits_balance).where(User.id == user_id)
        )
        if balance is None:
            raise UnknownUserError(user_id)
        return balance

    async def deduct(self, user_id: UUID, description: str | None = None) -> int:
        """Spend one conversion credit. Returns the new balance.

        Raises InsufficientCreditsError without touching the ledger when the
        balance is already zero.
        """
        result = await self.db.execute(
            update(User)
            .where(User.id == user_id, User.credits_balance >= CONVERSION_CREDIT_COST)
            .values(credits_balance=User.credits_balance - CONVERSION_CREDIT_COST)
            .returning(User.credits_balance)
            .execution_options(synchronize_session="fetch")
        )
        new_balance = result.scalar_one_or_none()
        if new_balance is None:
            await self.db.rollback()
            raise InsufficientCreditsError(user_id)

        self.db.add(
            CreditTransaction(
                user_id=user_id,
                amount=-CONVERSION_CREDIT_COST,
                transaction_type=TransactionType.USAGE,
                description=description or "Invoice conversion",
            )
        )
        await self.db.commit()

        self.logger.info(
            f"Deducted {CONVERSION_CREDIT_COST} credit from user {user_id}",
            balance=new_balance,
        )
        return new_balance

    async def grant(
        self,
        user_id: UUID,
        amount: int,
        external_ref: str,
        description: str | None = None,
    ) -> bool:
        """Add purchased credits once per payment reference.

        Returns False (and changes nothing) when ``external_ref`` was already
        applied, including when a concurrent delivery wins the insert.
        """
        if amount <= 0:
            raise ValueError("Granted amount must be positive")
        if not external_ref:
            raise ValueError("A payment reference is required")

        already_applied = await self.db.scalar(
            select(CreditTransaction.id).where(
                CreditTransaction.stripe_payment_id == external_ref
            )
        )
        if already_applied:
            self.logger.info(f"Payment {external_ref} already granted, skipping")
            return False

        try:
            await self._increment(user_id, amount)
            self.db.add(
                CreditTransaction(
                    user_id=user_id,
                    amount=amount,
                    transaction_type=TransactionType.PURCHASE,
                    stripe_payment_id=external_ref,
                    description=description or f"Purchased {amount} credits",
                )
            )
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            self.logger.info(
                f"Payment {external_ref} granted concurrently, skipping"
            )
            return False

        self.logger.info(
            f"Granted {amount} credits to user {user_id}", payment=external_ref
        )
        return True

    async def grant_manual(
        self, user_id: UUID, amount: int, description: str | None = None
    ) -> int:
        """Operator top-up without a payment reference. Returns the new balance."""
        if amount <= 0:
            raise ValueError("Granted amount must be positive")

        new_balance = await self._increment(user_id, amount)
        self.db.add(
            CreditTransaction(
                user_id=user_id,
                amount=amount,
                transaction_type=TransactionType.MANUAL,
                description=description or f"Manual grant of {amount} credits",
            )
        )
        await self.db.commit()

        self.logger.info(f"Manually granted {amount} credits to user {user_id}")
        return new_balance

    async def _increment(self, user_id: UUID, amount: int) -> int:
        result = await self.db.execute(
            update(User)
            .where(User.id == user_id)
            .values(credits_balance=User.credits_balance + amount)
            .returning(User.credits_balance)
            .execution_options(synchronize_session="fetch")
        )
        new_balance = result.scalar_one_or_none()
        if new_balance is None:
            await self.db.rollback()
            raise UnknownUserError(user_id)
        return new_balance

    async def get_transaction_history(
        self, user_id: UUID, limit: int = 50, offset: int = 0
    ) -> Paginated[CreditTransactionRecord]:
        result = await self.db.execute(
            select(CreditTransaction)
            .where(CreditTransaction.user_id == user_id)
            .order_by(CreditTransaction.created_at.desc())
            .limit(limit)
            .offset(offset)
        )
        transactions = result.scalars().all()

        total = (
            await self.db.scalar(
                select(func.count(CreditTransaction.id)).where(
                    CreditTransaction.user_id == user_id
                )
            )
            or 0
        )

        items = [CreditTransactionRecord.model_validate(t) for t in transactions]
        return Paginated[CreditTransactionRecord](
            items=items,
            pagination=PaginationInfo(
                total=total,
                limit=limit,
                offset=offset,
                has_more=offset + len(items) < total,
            ),
        )
