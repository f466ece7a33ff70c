"""Retention sweep endpoint called by the scheduler."""

import hmac

from fastapi import APIRouter, Request, status

from src.api.core.dependencies import RetentionServiceDep
from src.api.core.exceptions.base import BillToSheetException
from src.api.core.messages import APIResponse, MessageCode
from src.utils.settings.app import AppSettings

router = APIRouter(prefix="/cleanup", tags=["cleanup"])


def _verify_cron_secret(request: Request) -> None:
    cron_secret = AppSettings().CRON_SECRET
    if not cron_secret:
        return

    expected = f"Bearer {cron_secret}"
    provided = request.headers.get("Authorization", "")
    if not hmac.compare_digest(provided.encode(), expected.encode()):
        raise BillToSheetException(
            MessageCode.AUTH_REQUIRED,
            status.HTTP_401_UNAUTHORIZED,
            {"description": "Invalid cron secret"},
        )


@router.post("")
async def run_cleanup(
    request: Request,
    retention: RetentionServiceDep,
) -> APIResponse[dict]:
    """Delete conversions past their retention window."""
    _verify_cron_secret(request)
    result = await retention.sweep()
    return APIResponse.success(
        message_code=MessageCode.CLEANUP_COMPLETED, data=result.to_dict()
    )


@router.get("")
async def preview_cleanup(retention: RetentionServiceDep) -> APIResponse[dict]:
    """Dry run: how many rows the next sweep would delete."""
    if AppSettings().is_production:
        raise BillToSheetException(MessageCode.FORBIDDEN, status.HTTP_403_FORBIDDEN)

    result = await retention.sweep(dry_run=True)
    return APIResponse.success(message_code=MessageCode.SUCCESS, data=result.to_dict())
