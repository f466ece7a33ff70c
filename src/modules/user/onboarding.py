from sqlalchemy import select
from sqlalchemy.exc import IntegrityError

from src.api.core.constants import SIGNUP_FREE_CREDITS
from src.core.base import BaseService
from src.core.context import CallerIdentity
from src.database.models import CreditTransaction, TransactionType, User


class UserOnboardingService(BaseService):
    """Lazily mirrors identity-provider users into the local users table."""

    async def get_user(self, auth_user_id: str) -> User | None:
        result = await self.db.execute(
            select(User).where(User.auth_user_id == auth_user_id)
        )
        return result.scalar_one_or_none()

    async def get_user_by_email(self, email: str) -> User | None:
        """Email is not unique; the oldest account wins."""
        result = await self.db.execute(
            select(User).where(User.email == email).order_by(User.created_at).limit(1)
        )
        return result.scalar_one_or_none()

    async def ensure_user_onboarded(
        self, auth_user_id: str, email: str | None = None
    ) -> User:
        """Return the local user, creating it with the signup credit on first sight.

        Safe under concurrent first requests: the loser of the insert race
        rolls back and reads the winner's row, so the signup credit is granted
        exactly once.
        """
        user = await self.get_user(auth_user_id)
        if user:
            if email and user.email != email:
                user.email = email
                await self.db.commit()
            return user

        try:
            return await self._create_user(auth_user_id, email)
        except IntegrityError:
            await self.db.rollback()
            user = await self.get_user(auth_user_id)
            if user is None:
                raise
            return user

    async def ensure_identity_onboarded(self, identity: CallerIdentity) -> User:
        if not identity.is_authenticated:
            raise ValueError("Anonymous callers have no local user")
        return await self.ensure_user_onboarded(
            identity.auth_user_id, identity.email
        )

    async def _create_user(self, auth_user_id: str, email: str | None) -> User:
        user = User(
            auth_user_id=auth_user_id,
            email=email,
            credits_balance=SIGNUP_FREE_CREDITS,
        )
        self.db.add(user)
        await self.db.flush()

        self.db.add(
            CreditTransaction(
                user_id=user.id,
                amount=SIGNUP_FREE_CREDITS,
                transaction_type=TransactionType.SIGNUP,
                description="Free signup credit",
            )
        )
        await self.db.commit()
        await self.db.refresh(user)

        self.logger.info(
            f"Onboarded user {auth_user_id} with {SIGNUP_FREE_CREDITS} signup credit(s)"
        )
        return user
