"""Retention sweep: deletes conversions past their owner class's window."""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

from sqlalchemy import and_, delete, func, select
from sqlalchemy.sql.elements import ColumnElement

from src.api.core.constants import (
    ANONYMOUS_RETENTION_DAYS,
    REGISTERED_RETENTION_DAYS,
)
from src.core.base import BaseService
from src.database.models import Conversion


@dataclass(frozen=True)
class RetentionCutoffs:
    registered: datetime
    anonymous: datetime

    @classmethod
    def at(cls, now: datetime | None = None) -> "RetentionCutoffs":
        now = now or datetime.now(timezone.utc)
        return cls(
            registered=now - timedelta(days=REGISTERED_RETENTION_DAYS),
            anonymous=now - timedelta(days=ANONYMOUS_RETENTION_DAYS),
        )


@dataclass(frozen=True)
class SweepResult:
    registered_deleted: int
    anonymous_deleted: int
    cutoffs: RetentionCutoffs
    dry_run: bool = False

    @property
    def total_deleted(self) -> int:
        return self.registered_deleted + self.anonymous_deleted

    def to_dict(self) -> dict:
        return {
            "dry_run": self.dry_run,
            "registered_deleted": self.registered_deleted,
            "anonymous_deleted": self.anonymous_deleted,
            "total_deleted": self.total_deleted,
            "retention_policy": {
                "registered_days": REGISTERED_RETENTION_DAYS,
                "anonymous_days": ANONYMOUS_RETENTION_DAYS,
            },
            "cutoffs": {
                "registered": self.cutoffs.registered.isoformat(),
                "anonymous": self.cutoffs.anonymous.isoformat(),
            },
        }


class RetentionService(BaseService):
    """Out-of-band deletion of aged conversions; the write path never expires rows."""

    @staticmethod
    def _registered_expired(cutoffs: RetentionCutoffs) -> ColumnElement[bool]:
        return and_(
            Conversion.user_id.is_not(None),
            Conversion.created_at < cutoffs.registered,
        )

    @staticmethod
    def _anonymous_expired(cutoffs: RetentionCutoffs) -> ColumnElement[bool]:
        return and_(
            Conversion.anonymous_id.is_not(None),
            Conversion.created_at < cutoffs.anonymous,
        )

    async def _count(self, condition: ColumnElement[bool]) -> int:
        return (
            await self.db.scalar(select(func.count(Conversion.id)).where(condition))
            or 0
        )

    async def sweep(
        self, now: datetime | None = None, dry_run: bool = False
    ) -> SweepResult:
        cutoffs = RetentionCutoffs.at(now)
        registered = self._registered_expired(cutoffs)
        anonymous = self._anonymous_expired(cutoffs)

        if dry_run:
            return SweepResult(
                registered_deleted=await self._count(registered),
                anonymous_deleted=await self._count(anonymous),
                cutoffs=cutoffs,
                dry_run=True,
            )

        registered_result = await self.db.execute(
            delete(Conversion)
            .where(registered)
            .execution_options(synchronize_session=False)
        )
        anonymous_result = await self.db.execute(
            delete(Conversion)
            .where(anonymous)
            .execution_options(synchronize_session=False)
        )
        await self.db.commit()

        result = SweepResult(
            registered_deleted=registered_result.rowcount or 0,
            anonymous_deleted=anonymous_result.rowcount or 0,
            cutoffs=cutoffs,
        )
        self.logger.info(
            "Retention sweep completed",
            registered_deleted=result.registered_deleted,
            anonymous_deleted=result.anonymous_deleted,
        )
        return result
