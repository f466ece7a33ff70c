import asyncio
from dataclasses import dataclass
from uuid import UUID

from fastapi import status
from sqlalchemy import delete, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from src.api.conversion.schemas import (
    BulkConversionResult,
    BulkFileResult,
    ConversionSummary,
)
from src.api.core.exceptions.base import (
    BillToSheetException,
    ConversionFailedError,
    ConversionIneligibleError,
)
from src.api.core.messages import MessageCode, Paginated, PaginationInfo
from src.core.base import BaseService
from src.core.context import CallerIdentity
from src.database.models import Conversion, ConversionStatus
from src.modules.billing.ledger import (
    REASON_INSUFFICIENT_CREDITS,
    CreditLedgerService,
    InsufficientCreditsError,
)
from src.modules.conversion.infrastructure.extractor import (
    ExtractionError,
    InvoiceExtractor,
)
from src.modules.conversion.models import InvoiceRecord
from src.modules.user.onboarding import UserOnboardingService
from src.utils.logger import get_logger


class ConversionService(BaseService):
    """Runs one upload through eligibility, extraction, persistence and charging.

    Nothing is stored or charged unless extraction succeeds, and a credit is
    only deducted for a conversion row that has been committed.
    """

    def __init__(self, db: AsyncSession, extractor: InvoiceExtractor):
        super().__init__(db)
        self.extractor = extractor
        self.ledger = CreditLedgerService(db)
        self.onboarding = UserOnboardingService(db)

    async def convert(
        self,
        identity: CallerIdentity,
        pdf_bytes: bytes,
        file_name: str | None = None,
    ) -> Conversion:
        user_id = None
        if identity.is_authenticated:
            user = await self.onboarding.ensure_identity_onboarded(identity)
            user_id = user.id
        elif not identity.anonymous_id:
            raise ValueError("Anonymous conversions need an anonymous_id")

        eligibility = await self.ledger.can_convert(identity)
        if not eligibility.allowed:
            raise ConversionIneligibleError(
                reason=eligibility.reason or REASON_INSUFFICIENT_CREDITS,
                requires_auth=not identity.is_authenticated,
                credits_remaining=eligibility.credits_remaining,
            )

        record = await self._extract(pdf_bytes, file_name)
        conversion = await self._persist(record, user_id, identity, file_name)

        if user_id is not None:
            await self._charge(user_id, conversion.id)

        self.logger.info(
            f"Conversion {conversion.id} completed",
            authenticated=identity.is_authenticated,
            line_items=len(record.line_items),
        )
        return conversion

    async def _extract(self, pdf_bytes: bytes, file_name: str | None) -> InvoiceRecord:
        try:
            return await self.extractor.extract(pdf_bytes)
        except ExtractionError as e:
            self.logger.warning(f"Extraction failed for {file_name or 'upload'}: {e}")
            raise ConversionFailedError() from e
        except Exception as e:
            self.logger.error(
                f"Unexpected extraction error for {file_name or 'upload'}: {e}",
                exc_info=True,
            )
            raise ConversionFailedError() from e

    async def _persist(
        self,
        record: InvoiceRecord,
        user_id: UUID | None,
        identity: CallerIdentity,
        file_name: str | None,
    ) -> Conversion:
        conversion = Conversion(
            user_id=user_id,
            anonymous_id=None if user_id else identity.anonymous_id,
            file_name=file_name,
            vendor=record.vendor,
            invoice_number=record.invoice_number,
            invoice_date=record.invoice_date,
            currency=record.currency,
            subtotal=record.subtotal,
            tax_total=record.tax_total,
            shipping=record.shipping,
            total=record.total,
            extracted_data=record.model_dump(mode="json"),
            status=ConversionStatus.COMPLETED,
        )
        try:
            self.db.add(conversion)
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            self.logger.error(f"Failed to persist conversion: {e}")
            raise ConversionFailedError() from e
        return conversion

    async def _charge(self, user_id: UUID, conversion_id: UUID) -> None:
        try:
            await self.ledger.deduct(
                user_id, description=f"Invoice conversion {conversion_id}"
            )
        except InsufficientCreditsError:
            # A concurrent spend drained the balance after the eligibility check
            await self.db.execute(
                delete(Conversion).where(Conversion.id == conversion_id)
            )
            await self.db.commit()
            self.logger.warning(
                f"Discarded conversion {conversion_id}: balance drained concurrently"
            )
            raise ConversionIneligibleError(
                reason=REASON_INSUFFICIENT_CREDITS,
                requires_auth=False,
                credits_remaining=0,
            )


@dataclass(frozen=True)
class UploadedFile:
    file_name: str
    content: bytes


class BulkConversionService:
    """Converts several PDFs for one signed-in user concurrently.

    Each file runs through its own ConversionService on its own session, so a
    failing file never rolls back or blocks its siblings. The up-front balance
    check is advisory: credits are not reserved, and the ledger's conditional
    decrement is what keeps the balance from going negative.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        extractor: InvoiceExtractor,
    ):
        self.session_factory = session_factory
        self.extractor = extractor
        self.logger = get_logger(self.__class__.__name__)

    async def convert_many(
        self, identity: CallerIdentity, files: list[UploadedFile]
    ) -> BulkConversionResult:
        if not identity.is_authenticated:
            raise BillToSheetException(
                MessageCode.AUTH_REQUIRED,
                status.HTTP_401_UNAUTHORIZED,
                {"description": "Bulk conversion requires signing in"},
            )

        async with self.session_factory() as db:
            user = await UserOnboardingService(db).ensure_identity_onboarded(identity)
            balance = await CreditLedgerService(db).get_balance(user.id)

        if balance < len(files):
            raise ConversionIneligibleError(
                reason=(
                    f"Insufficient credits. You have {balance} credits "
                    f"but selected {len(files)} files."
                ),
                requires_auth=False,
                credits_remaining=balance,
            )

        results = await asyncio.gather(
            *(self._convert_one(identity, uploaded) for uploaded in files)
        )
        successful_count = sum(1 for result in results if result.success)

        self.logger.info(
            "Bulk conversion finished",
            files=len(files),
            successful=successful_count,
        )
        return BulkConversionResult(
            results=list(results),
            successful_count=successful_count,
            failed_count=len(results) - successful_count,
            credits_used=successful_count,
        )

    async def _convert_one(
        self, identity: CallerIdentity, uploaded: UploadedFile
    ) -> BulkFileResult:
        async with self.session_factory() as db:
            service = ConversionService(db, self.extractor)
            try:
                conversion = await service.convert(
                    identity, uploaded.content, uploaded.file_name
                )
            except BillToSheetException as e:
                return BulkFileResult(
                    file_name=uploaded.file_name, success=False, error=e.message
                )
            except Exception as e:
                self.logger.error(
                    f"Unexpected error converting {uploaded.file_name}: {e}",
                    exc_info=True,
                )
                return BulkFileResult(
                    file_name=uploaded.file_name,
                    success=False,
                    error=ConversionFailedError().message,
                )

        return BulkFileResult(
            file_name=uploaded.file_name,
            success=True,
            conversion_id=conversion.id,
            vendor=conversion.vendor,
            invoice_number=conversion.invoice_number,
            total=conversion.total,
            currency=conversion.currency,
        )


class ConversionHistoryService(BaseService):
    """Recent conversions of a signed-in user, newest first."""

    async def get_user_conversions(
        self, user_id: UUID, limit: int = 50, offset: int = 0
    ) -> Paginated[ConversionSummary]:
        result = await self.db.execute(
            select(Conversion)
            .where(Conversion.user_id == user_id)
            .order_by(Conversion.created_at.desc())
            .limit(limit)
            .offset(offset)
        )
        conversions = result.scalars().all()

        total = (
            await self.db.scalar(
                select(func.count(Conversion.id)).where(Conversion.user_id == user_id)
            )
            or 0
        )

        items = [ConversionSummary.model_validate(c) for c in conversions]
        return Paginated[ConversionSummary](
            items=items,
            pagination=PaginationInfo(
                total=total,
                limit=limit,
                offset=offset,
                has_more=offset + len(items) < total,
            ),
        )
