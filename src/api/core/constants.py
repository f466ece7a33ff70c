API_VERSION_HEADER = "X-BillToSheet-Version"

# JWT Configuration
JWT_ALGORITHM = "HS256"

# Anonymous session cookie
ANONYMOUS_ID_COOKIE = "anonymous_id"
ANONYMOUS_ID_COOKIE_MAX_AGE = 60 * 60 * 24 * 30  # 30 days

# Credit costs
CONVERSION_CREDIT_COST = 1

# Credits granted to a registered user on first sign-in
SIGNUP_FREE_CREDITS = 1

# Lifetime conversions allowed per anonymous session
ANONYMOUS_CONVERSION_LIMIT = 1

# Uploads
MAX_UPLOAD_SIZE = 10 * 1024 * 1024  # 10MB
MAX_BULK_FILES = 20
# A full bulk batch plus room for the multipart framing
MAX_BULK_REQUEST_SIZE = MAX_BULK_FILES * MAX_UPLOAD_SIZE + 1024 * 1024
CONVERSION_DATA_TYPES = [
    "application/pdf",
    "application/x-pdf",
]
PDF_MAGIC_BYTES = b"%PDF"

# Retention windows
REGISTERED_RETENTION_DAYS = 30
ANONYMOUS_RETENTION_DAYS = 1

# Paths that never carry an identity-provider JWT
SKIP_AUTH_PATHS = {
    "/openapi.json",
    "/docs",
    "/redoc",
    "/health",
    "/health/liveness",
    "/",
    "/webhooks/payment",
    "/cleanup",
}

# Pagination
DEFAULT_PAGE_SIZE = 10
MAX_PAGE_SIZE = 50
RECENT_CONVERSIONS_LIMIT = 50
