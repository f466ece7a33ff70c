"""Credit ledger: eligibility, deduction, grants and history."""

import asyncio

import pytest
from sqlalchemy import func, select

from src.core.context import CallerIdentity
from src.database.models import CreditTransaction, TransactionType, User
from src.modules.billing.ledger import (
    REASON_FREE_LIMIT_REACHED,
    REASON_INSUFFICIENT_CREDITS,
    REASON_USER_NOT_FOUND,
    CreditLedgerService,
    InsufficientCreditsError,
    UnknownUserError,
)


async def _balance(db_session, user_id) -> int:
    return await db_session.scalar(
        select(User.credits_balance).where(User.id == user_id)
    )


async def _transaction_sum(db_session, user_id) -> int:
    total = await db_session.scalar(
        select(func.sum(CreditTransaction.amount)).where(
            CreditTransaction.user_id == user_id
        )
    )
    return total or 0


class TestEligibility:
    @pytest.mark.asyncio
    async def test_user_with_credits_is_allowed(self, db_session, user_factory):
        user = await user_factory.create_async(db_session, credits_balance=3)
        ledger = CreditLedgerService(db_session)

        eligibility = await ledger.can_convert(
            CallerIdentity(auth_user_id=user.auth_user_id)
        )

        assert eligibility.allowed
        assert eligibility.credits_remaining == 3

    @pytest.mark.asyncio
    async def test_user_at_zero_is_refused(self, db_session, user_factory):
        user = await user_factory.create_async(db_session, credits_balance=0)
        ledger = CreditLedgerService(db_session)

        eligibility = await ledger.can_convert(
            CallerIdentity(auth_user_id=user.auth_user_id)
        )

        assert not eligibility.allowed
        assert eligibility.reason == REASON_INSUFFICIENT_CREDITS
        assert eligibility.credits_remaining == 0

    @pytest.mark.asyncio
    async def test_unknown_user_is_refused(self, db_session):
        ledger = CreditLedgerService(db_session)

        eligibility = await ledger.can_convert(
            CallerIdentity(auth_user_id="user_missing")
        )

        assert not eligibility.allowed
        assert eligibility.reason == REASON_USER_NOT_FOUND

    @pytest.mark.asyncio
    async def test_anonymous_session_gets_one_conversion(
        self, db_session, conversion_factory
    ):
        ledger = CreditLedgerService(db_session)
        identity = CallerIdentity(anonymous_id="anon-a")

        before = await ledger.can_convert(identity)
        await conversion_factory.create_async(db_session, anonymous_id="anon-a")
        after = await ledger.can_convert(identity)

        assert before.allowed
        assert before.credits_remaining == 1
        assert not after.allowed
        assert after.reason == REASON_FREE_LIMIT_REACHED

    @pytest.mark.asyncio
    async def test_anonymous_sessions_are_counted_separately(
        self, db_session, conversion_factory
    ):
        await conversion_factory.create_async(db_session, anonymous_id="anon-a")
        ledger = CreditLedgerService(db_session)

        eligibility = await ledger.can_convert(CallerIdentity(anonymous_id="anon-b"))

        assert eligibility.allowed


class TestDeduct:
    @pytest.mark.asyncio
    async def test_deduct_records_usage(self, db_session, user_factory):
        user = await user_factory.create_async(db_session, credits_balance=2)
        ledger = CreditLedgerService(db_session)

        new_balance = await ledger.deduct(user.id, description="Invoice conversion")

        assert new_balance == 1
        assert await _balance(db_session, user.id) == 1
        usage = (
            await db_session.execute(
                select(CreditTransaction).where(CreditTransaction.user_id == user.id)
            )
        ).scalar_one()
        assert usage.amount == -1
        assert usage.transaction_type == TransactionType.USAGE

    @pytest.mark.asyncio
    async def test_deduct_at_zero_raises_and_changes_nothing(
        self, db_session, user_factory
    ):
        user = await user_factory.create_async(db_session, credits_balance=0)
        user_id = user.id
        ledger = CreditLedgerService(db_session)

        with pytest.raises(InsufficientCreditsError):
            await ledger.deduct(user_id)

        # The rollback expires loaded objects, so only the captured id is used
        assert await _balance(db_session, user_id) == 0
        assert await _transaction_sum(db_session, user_id) == 0

    @pytest.mark.asyncio
    async def test_concurrent_deducts_never_overdraw(
        self, session_factory, db_session, user_factory
    ):
        user = await user_factory.create_async(db_session, credits_balance=2)

        async def spend():
            async with session_factory() as session:
                try:
                    await CreditLedgerService(session).deduct(user.id)
                    return True
                except InsufficientCreditsError:
                    return False

        outcomes = await asyncio.gather(*(spend() for _ in range(5)))

        assert outcomes.count(True) == 2
        assert await _balance(db_session, user.id) == 0


class TestGrant:
    @pytest.mark.asyncio
    async def test_grant_is_idempotent_on_payment_reference(
        self, db_session, user_factory
    ):
        user = await user_factory.create_async(db_session, credits_balance=1)
        ledger = CreditLedgerService(db_session)

        first = await ledger.grant(user.id, 25, "pi_test_123")
        second = await ledger.grant(user.id, 25, "pi_test_123")

        assert first is True
        assert second is False
        assert await _balance(db_session, user.id) == 26

        purchases = await db_session.scalar(
            select(func.count(CreditTransaction.id)).where(
                CreditTransaction.stripe_payment_id == "pi_test_123"
            )
        )
        assert purchases == 1

    @pytest.mark.asyncio
    async def test_grant_rejects_non_positive_amounts(self, db_session, user_factory):
        user = await user_factory.create_async(db_session)
        ledger = CreditLedgerService(db_session)

        with pytest.raises(ValueError):
            await ledger.grant(user.id, 0, "pi_zero")

    @pytest.mark.asyncio
    async def test_grant_to_unknown_user_raises(self, db_session):
        from uuid import uuid4

        ledger = CreditLedgerService(db_session)

        with pytest.raises(UnknownUserError):
            await ledger.grant(uuid4(), 10, "pi_nobody")

    @pytest.mark.asyncio
    async def test_manual_grant_returns_new_balance(self, db_session, user_factory):
        user = await user_factory.create_async(db_session, credits_balance=1)
        ledger = CreditLedgerService(db_session)

        new_balance = await ledger.grant_manual(user.id, 100)

        assert new_balance == 101
        entry = (
            await db_session.execute(
                select(CreditTransaction).where(CreditTransaction.user_id == user.id)
            )
        ).scalar_one()
        assert entry.transaction_type == TransactionType.MANUAL
        assert entry.stripe_payment_id is None


class TestLedgerConsistency:
    @pytest.mark.asyncio
    async def test_transaction_sum_equals_balance(self, db_session, user_factory):
        from src.modules.user.onboarding import UserOnboardingService

        user = await UserOnboardingService(db_session).ensure_user_onboarded(
            "user_ledger_sum", "sum@example.com"
        )
        ledger = CreditLedgerService(db_session)

        await ledger.grant(user.id, 25, "pi_sum_1")
        await ledger.deduct(user.id)
        await ledger.deduct(user.id)
        await ledger.grant_manual(user.id, 5)
        await ledger.grant(user.id, 25, "pi_sum_1")

        balance = await _balance(db_session, user.id)
        assert balance == 1 + 25 - 2 + 5
        assert await _transaction_sum(db_session, user.id) == balance

    @pytest.mark.asyncio
    async def test_transaction_history_is_newest_first(self, db_session, user_factory):
        user = await user_factory.create_async(db_session, credits_balance=0)
        ledger = CreditLedgerService(db_session)
        await ledger.grant(user.id, 25, "pi_hist_1")
        await ledger.deduct(user.id)

        page = await ledger.get_transaction_history(user.id, limit=1, offset=0)

        assert page.pagination.total == 2
        assert page.pagination.has_more is True
        assert len(page.items) == 1
        assert page.items[0].transaction_type == TransactionType.USAGE
