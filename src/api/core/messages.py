"""Centralized message codes and default messages for API responses."""

from enum import Enum
from typing import Generic, TypeVar

from pydantic import BaseModel


class MessageCode(str, Enum):
    """Centralized message codes for API responses."""

    # Success codes
    SUCCESS = "SUCCESS"

    # Authentication & Authorization
    AUTH_REQUIRED = "AUTH_REQUIRED"
    FORBIDDEN = "FORBIDDEN"
    INVALID_TOKEN = "INVALID_TOKEN"

    # Conversion
    CONVERSION_CREATED = "CONVERSION_CREATED"
    CONVERSION_FAILED = "CONVERSION_FAILED"
    CONVERSION_NOT_FOUND = "CONVERSION_NOT_FOUND"
    BULK_CONVERSION_COMPLETED = "BULK_CONVERSION_COMPLETED"
    FREE_LIMIT_REACHED = "FREE_LIMIT_REACHED"

    # Credit management
    INSUFFICIENT_CREDITS = "INSUFFICIENT_CREDITS"

    # Billing
    CHECKOUT_CREATED = "CHECKOUT_CREATED"
    INVALID_SIGNATURE = "INVALID_SIGNATURE"
    WEBHOOK_PROCESSED = "WEBHOOK_PROCESSED"
    PAYMENT_FAILED = "PAYMENT_FAILED"

    # Retention
    CLEANUP_COMPLETED = "CLEANUP_COMPLETED"

    # Validation errors
    VALIDATION_ERROR = "VALIDATION_ERROR"
    INVALID_INPUT = "INVALID_INPUT"
    FILE_TOO_LARGE = "FILE_TOO_LARGE"
    INVALID_FILE_TYPE = "INVALID_FILE_TYPE"
    TOO_MANY_FILES = "TOO_MANY_FILES"

    # Service Errors
    EXTERNAL_SERVICE_ERROR = "EXTERNAL_SERVICE_ERROR"

    # Generic errors
    INTERNAL_ERROR = "INTERNAL_ERROR"
    BAD_REQUEST = "BAD_REQUEST"
    NOT_FOUND = "NOT_FOUND"


# Default messages for each message code
DEFAULT_MESSAGES = {
    # Success messages
    MessageCode.SUCCESS: "Operation completed successfully",
    # Authentication & Authorization
    MessageCode.AUTH_REQUIRED: "Authentication required",
    MessageCode.FORBIDDEN: "Access denied",
    MessageCode.INVALID_TOKEN: "Invalid authentication token",
    # Conversion
    MessageCode.CONVERSION_CREATED: "Invoice converted successfully",
    MessageCode.CONVERSION_FAILED: "Conversion failed. Please try again.",
    MessageCode.CONVERSION_NOT_FOUND: "Conversion not found",
    MessageCode.BULK_CONVERSION_COMPLETED: "Bulk conversion completed",
    MessageCode.FREE_LIMIT_REACHED: "Free conversion limit reached. Sign up to continue.",
    # Credit management
    MessageCode.INSUFFICIENT_CREDITS: "Insufficient credits",
    # Billing
    MessageCode.CHECKOUT_CREATED: "Checkout session created",
    MessageCode.INVALID_SIGNATURE: "Invalid webhook signature",
    MessageCode.WEBHOOK_PROCESSED: "Webhook processed",
    MessageCode.PAYMENT_FAILED: "Payment provider error",
    # Retention
    MessageCode.CLEANUP_COMPLETED: "Cleanup completed",
    # Validation errors
    MessageCode.VALIDATION_ERROR: "Validation failed",
    MessageCode.INVALID_INPUT: "Invalid input provided",
    MessageCode.FILE_TOO_LARGE: "File size too large",
    MessageCode.INVALID_FILE_TYPE: "Invalid file type",
    MessageCode.TOO_MANY_FILES: "Too many files",
    # Service Errors
    MessageCode.EXTERNAL_SERVICE_ERROR: "External service error",
    # Generic errors
    MessageCode.INTERNAL_ERROR: "Internal server error",
    MessageCode.BAD_REQUEST: "Bad request",
    MessageCode.NOT_FOUND: "Resource not found",
}

T = TypeVar("T")


class PaginationInfo(BaseModel):
    """Common pagination information."""

    total: int
    limit: int
    offset: int
    has_more: bool


class Paginated(BaseModel, Generic[T]):
    """Generic paginated response wrapper."""

    items: list[T]
    pagination: PaginationInfo


class APIResponse(BaseModel, Generic[T]):
    """Base API response model with consistent structure and proper typing."""

    message_code: MessageCode
    message: str
    data: T | None = None

    @classmethod
    def success(
        cls,
        message_code: MessageCode = MessageCode.SUCCESS,
        message: str | None = None,
        data: T | None = None,
    ) -> "APIResponse[T]":
        """Create a success response."""
        return cls(
            message_code=message_code,
            message=message or DEFAULT_MESSAGES.get(message_code, "Success"),
            data=data,
        )


def get_default_message(message_code: MessageCode) -> str:
    """Get default message for a message code."""
    return DEFAULT_MESSAGES.get(message_code, "Operation completed")
