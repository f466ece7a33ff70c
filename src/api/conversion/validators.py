from fastapi import UploadFile, status

from src.api.core.constants import CONVERSION_DATA_TYPES, PDF_MAGIC_BYTES
from src.api.core.exceptions.base import BillToSheetException
from src.api.core.messages import MessageCode


async def validate_pdf_upload(file: UploadFile, max_size_bytes: int) -> bytes:
    """Validate uploaded PDF content type, signature and size, return bytes."""
    content = await file.read()

    if not content:
        raise BillToSheetException(
            MessageCode.INVALID_INPUT,
            status.HTTP_400_BAD_REQUEST,
            {"description": f"File '{file.filename}' is empty"},
        )

    is_pdf_type = file.content_type in CONVERSION_DATA_TYPES or (
        file.filename is not None and file.filename.lower().endswith(".pdf")
    )
    if not is_pdf_type or not content.startswith(PDF_MAGIC_BYTES):
        raise BillToSheetException(
            MessageCode.INVALID_FILE_TYPE,
            status.HTTP_400_BAD_REQUEST,
            {"description": "Only PDF files are supported"},
        )

    if len(content) > max_size_bytes:
        raise BillToSheetException(
            MessageCode.FILE_TOO_LARGE,
            status.HTTP_400_BAD_REQUEST,
            {"description": f"Maximum file size is {max_size_bytes // (1024 * 1024)}MB"},
        )

    return content
