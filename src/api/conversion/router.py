"""Invoice conversion routes: single and bulk upload, results and downloads."""

from uuid import UUID, uuid4

from fastapi import APIRouter, File, Query, Response, UploadFile, status

from src.api.conversion.schemas import (
    BulkConversionResponse,
    ConversionCreated,
    ConversionCreatedResponse,
    ConversionDetail,
    ConversionDetailResponse,
    ConversionHistoryResponse,
)
from src.api.conversion.validators import validate_pdf_upload
from src.api.core.constants import (
    ANONYMOUS_ID_COOKIE,
    ANONYMOUS_ID_COOKIE_MAX_AGE,
    MAX_BULK_FILES,
    MAX_UPLOAD_SIZE,
    RECENT_CONVERSIONS_LIMIT,
)
from src.api.core.dependencies import (
    BulkConversionServiceDep,
    CallerIdentityDep,
    ConversionAccessPolicyDep,
    ConversionHistoryServiceDep,
    ConversionServiceDep,
    CurrentUserDep,
)
from src.api.core.exceptions.base import BillToSheetException
from src.api.core.messages import APIResponse, MessageCode
from src.core.context import CallerIdentity
from src.database.models import Conversion, ConversionStatus
from src.modules.conversion.application.use_cases import UploadedFile
from src.modules.conversion.exports import EXPORT_FORMATS
from src.modules.conversion.models import InvoiceRecord
from src.utils.settings.app import AppSettings

router = APIRouter(tags=["conversion"])


def _ensure_anonymous_id(identity: CallerIdentity, response: Response) -> CallerIdentity:
    """Mint the anonymous session cookie for a first-time anonymous caller."""
    if identity.is_authenticated or identity.anonymous_id:
        return identity

    anonymous_id = str(uuid4())
    response.set_cookie(
        key=ANONYMOUS_ID_COOKIE,
        value=anonymous_id,
        max_age=ANONYMOUS_ID_COOKIE_MAX_AGE,
        httponly=True,
        secure=AppSettings().is_production,
        samesite="lax",
    )
    return CallerIdentity(anonymous_id=anonymous_id)


def _stored_record(conversion: Conversion) -> InvoiceRecord:
    return InvoiceRecord.model_validate(conversion.extracted_data)


@router.post("/convert", response_model=ConversionCreatedResponse)
async def convert_invoice(
    response: Response,
    identity: CallerIdentityDep,
    service: ConversionServiceDep,
    file: UploadFile = File(...),
) -> ConversionCreatedResponse:
    """Extract one invoice PDF; charges one credit for signed-in callers."""
    content = await validate_pdf_upload(file, MAX_UPLOAD_SIZE)
    identity = _ensure_anonymous_id(identity, response)

    conversion = await service.convert(identity, content, file.filename)

    return APIResponse.success(
        message_code=MessageCode.CONVERSION_CREATED,
        data=ConversionCreated(conversion_id=conversion.id),
    )


@router.post("/convert/bulk", response_model=BulkConversionResponse)
async def convert_invoices_bulk(
    identity: CallerIdentityDep,
    service: BulkConversionServiceDep,
    files: list[UploadFile] = File(default=[]),
) -> BulkConversionResponse:
    """Convert several PDFs concurrently; each file succeeds or fails on its own."""
    if not identity.is_authenticated:
        raise BillToSheetException(
            MessageCode.AUTH_REQUIRED,
            status.HTTP_401_UNAUTHORIZED,
            {"description": "Bulk conversion requires signing in"},
        )
    if not files:
        raise BillToSheetException(
            MessageCode.INVALID_INPUT,
            status.HTTP_400_BAD_REQUEST,
            {"description": "No files provided"},
        )
    if len(files) > MAX_BULK_FILES:
        raise BillToSheetException(
            MessageCode.TOO_MANY_FILES,
            status.HTTP_400_BAD_REQUEST,
            {"description": f"Maximum {MAX_BULK_FILES} files per upload"},
        )

    uploads = []
    for index, file in enumerate(files, start=1):
        content = await validate_pdf_upload(file, MAX_UPLOAD_SIZE)
        uploads.append(
            UploadedFile(file_name=file.filename or f"invoice-{index}.pdf", content=content)
        )

    result = await service.convert_many(identity, uploads)
    return APIResponse.success(
        message_code=MessageCode.BULK_CONVERSION_COMPLETED, data=result
    )


@router.get("/conversions", response_model=ConversionHistoryResponse)
async def list_conversions(
    user: CurrentUserDep,
    service: ConversionHistoryServiceDep,
    limit: int = Query(
        default=RECENT_CONVERSIONS_LIMIT, ge=1, le=RECENT_CONVERSIONS_LIMIT
    ),
    offset: int = Query(default=0, ge=0),
) -> ConversionHistoryResponse:
    """Latest conversions of the signed-in user, newest first."""
    page = await service.get_user_conversions(user.id, limit, offset)
    return APIResponse.success(message_code=MessageCode.SUCCESS, data=page)


@router.get("/conversion/{conversion_id}", response_model=ConversionDetailResponse)
async def get_conversion(
    conversion_id: UUID,
    identity: CallerIdentityDep,
    access: ConversionAccessPolicyDep,
) -> ConversionDetailResponse:
    conversion = await access.authorize(conversion_id, identity)
    record = _stored_record(conversion)

    detail = ConversionDetail(
        id=conversion.id,
        file_name=conversion.file_name,
        vendor=record.vendor,
        invoice_number=record.invoice_number,
        invoice_date=record.invoice_date,
        currency=record.currency,
        subtotal=record.subtotal,
        tax_total=record.tax_total,
        shipping=record.shipping,
        total=record.total,
        line_items=record.line_items,
        status=ConversionStatus(conversion.status).value,
        created_at=conversion.created_at,
        is_logged_in=identity.is_authenticated,
    )
    return APIResponse.success(message_code=MessageCode.SUCCESS, data=detail)


@router.get("/download/{conversion_id}/{file_type}")
async def download_conversion(
    conversion_id: UUID,
    file_type: str,
    identity: CallerIdentityDep,
    access: ConversionAccessPolicyDep,
) -> Response:
    """Render the stored record as CSV or Excel on every request."""
    export = EXPORT_FORMATS.get(file_type)
    if export is None:
        raise BillToSheetException(
            MessageCode.INVALID_INPUT,
            status.HTTP_400_BAD_REQUEST,
            {
                "description": "Invalid file type",
                "allowed": sorted(EXPORT_FORMATS),
            },
        )

    conversion = await access.authorize(conversion_id, identity)
    content = export.render(_stored_record(conversion))

    return Response(
        content=content,
        media_type=export.media_type,
        headers={
            "Content-Disposition": f'attachment; filename="{export.file_name}"'
        },
    )
