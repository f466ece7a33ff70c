"""Ownership check guarding conversion reads and downloads."""

from uuid import UUID

from fastapi import status
from sqlalchemy import select

from src.api.core.exceptions.base import BillToSheetException
from src.api.core.messages import MessageCode
from src.core.base import BaseService
from src.core.context import CallerIdentity
from src.database.models import Conversion, User


class ConversionAccessPolicy(BaseService):
    """A conversion is visible only to the identity that created it.

    Signed-in callers match on the owning user's identity-provider id; anonymous
    callers match on the ``anonymous_id`` cookie. A signed-in caller never
    gains access through a cookie it still carries.
    """

    @staticmethod
    def is_granted(
        conversion: Conversion,
        owner_auth_user_id: str | None,
        identity: CallerIdentity,
    ) -> bool:
        if identity.is_authenticated:
            return (
                conversion.user_id is not None
                and owner_auth_user_id == identity.auth_user_id
            )
        return (
            conversion.anonymous_id is not None
            and identity.anonymous_id is not None
            and conversion.anonymous_id == identity.anonymous_id
        )

    async def authorize(
        self, conversion_id: UUID, identity: CallerIdentity
    ) -> Conversion:
        """Load a conversion the caller may read; 404 if unknown, 403 if not theirs."""
        result = await self.db.execute(
            select(Conversion, User.auth_user_id)
            .outerjoin(User, Conversion.user_id == User.id)
            .where(Conversion.id == conversion_id)
        )
        row = result.first()
        if row is None:
            raise BillToSheetException(
                MessageCode.CONVERSION_NOT_FOUND, status.HTTP_404_NOT_FOUND
            )

        conversion, owner_auth_user_id = row
        if not self.is_granted(conversion, owner_auth_user_id, identity):
            self.logger.info(
                f"Denied access to conversion {conversion_id}",
                authenticated=identity.is_authenticated,
            )
            raise BillToSheetException(MessageCode.FORBIDDEN, status.HTTP_403_FORBIDDEN)

        return conversion
