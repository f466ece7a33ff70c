from typing import Annotated, AsyncGenerator

from fastapi import Depends, Request, status
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from src.api.core.exceptions.base import BillToSheetException
from src.api.core.messages import MessageCode
from src.core.context import CallerIdentity
from src.database.models import User
from src.modules.billing.ledger import CreditLedgerService
from src.modules.billing.stripe.service import StripePaymentService
from src.modules.conversion.access import ConversionAccessPolicy
from src.modules.conversion.application.use_cases import (
    BulkConversionService,
    ConversionHistoryService,
    ConversionService,
)
from src.modules.conversion.infrastructure.extractor import InvoiceExtractor
from src.modules.conversion.infrastructure.openai_client import get_invoice_extractor
from src.modules.conversion.retention import RetentionService
from src.modules.user.onboarding import UserOnboardingService


def get_session_factory(request: Request) -> async_sessionmaker[AsyncSession]:
    return request.app.state.session_factory


async def get_db_session(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """Get database session from app state."""
    session_factory = request.app.state.session_factory
    async with session_factory() as session:
        yield session


AsyncSessionDep = Annotated[AsyncSession, Depends(get_db_session)]
SessionFactoryDep = Annotated[
    async_sessionmaker[AsyncSession], Depends(get_session_factory)
]
ExtractorDep = Annotated[InvoiceExtractor, Depends(get_invoice_extractor)]


def get_caller_identity(request: Request) -> CallerIdentity:
    """Identity resolved by the auth middleware; anonymous when it never ran."""
    identity = getattr(request.state, "identity", None)
    return identity or CallerIdentity()


CallerIdentityDep = Annotated[CallerIdentity, Depends(get_caller_identity)]


def require_authenticated(identity: CallerIdentityDep) -> CallerIdentity:
    if not identity.is_authenticated:
        raise BillToSheetException(
            MessageCode.AUTH_REQUIRED, status.HTTP_401_UNAUTHORIZED
        )
    return identity


AuthenticatedIdentityDep = Annotated[CallerIdentity, Depends(require_authenticated)]


async def get_user_onboarding_service(db: AsyncSessionDep) -> UserOnboardingService:
    """Get user onboarding service with database session."""
    return UserOnboardingService(db)


UserOnboardingServiceDep = Annotated[
    UserOnboardingService, Depends(get_user_onboarding_service)
]


async def get_current_user(
    identity: AuthenticatedIdentityDep,
    onboarding: UserOnboardingServiceDep,
) -> User:
    """Local user row for the signed-in caller, created on first sight."""
    return await onboarding.ensure_identity_onboarded(identity)


CurrentUserDep = Annotated[User, Depends(get_current_user)]


async def get_credit_ledger_service(db: AsyncSessionDep) -> CreditLedgerService:
    """Get credit ledger service with database session."""
    return CreditLedgerService(db)


async def get_conversion_service(
    db: AsyncSessionDep, extractor: ExtractorDep
) -> ConversionService:
    """Get conversion service with database session and extractor."""
    return ConversionService(db, extractor)


async def get_bulk_conversion_service(
    session_factory: SessionFactoryDep, extractor: ExtractorDep
) -> BulkConversionService:
    """Bulk conversions open one session per file from the app's session factory."""
    return BulkConversionService(session_factory, extractor)


async def get_conversion_history_service(
    db: AsyncSessionDep,
) -> ConversionHistoryService:
    return ConversionHistoryService(db)


async def get_conversion_access_policy(db: AsyncSessionDep) -> ConversionAccessPolicy:
    return ConversionAccessPolicy(db)


async def get_retention_service(db: AsyncSessionDep) -> RetentionService:
    return RetentionService(db)


async def get_stripe_payment_service(db: AsyncSessionDep) -> StripePaymentService:
    """Get Stripe payment service with database session."""
    return StripePaymentService(db)


CreditLedgerServiceDep = Annotated[
    CreditLedgerService, Depends(get_credit_ledger_service)
]
ConversionServiceDep = Annotated[ConversionService, Depends(get_conversion_service)]
BulkConversionServiceDep = Annotated[
    BulkConversionService, Depends(get_bulk_conversion_service)
]
ConversionHistoryServiceDep = Annotated[
    ConversionHistoryService, Depends(get_conversion_history_service)
]
ConversionAccessPolicyDep = Annotated[
    ConversionAccessPolicy, Depends(get_conversion_access_policy)
]
RetentionServiceDep = Annotated[RetentionService, Depends(get_retention_service)]
StripePaymentServiceDep = Annotated[
    StripePaymentService, Depends(get_stripe_payment_service)
]
