from pydantic_settings import BaseSettings, SettingsConfigDict

from src.api.core.constants import MAX_BULK_REQUEST_SIZE


class AppSettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    DEBUG: bool = False
    ENVIRONMENT: str = "DEV"
    API_VERSION: str = "0.1.0"
    APP_URL: str = "https://billtosheet.com"
    CORS_ORIGINS: list[str] = [
        "http://localhost:3000",
        "https://billtosheet.com",
        "https://www.billtosheet.com",
    ]

    # Shared secret sent by the cron runner as a bearer token; empty disables the check
    CRON_SECRET: str = ""

    # Must admit a full bulk upload, or valid batches are refused with 413
    MAX_REQUEST_SIZE: int = MAX_BULK_REQUEST_SIZE

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT.upper() == "PROD"

    def validate_prod(self) -> None:
        """Sanity checks for production environment."""
        if self.is_production:
            if not self.CORS_ORIGINS:
                raise ValueError("CORS_ORIGINS must be set in production")
            if not self.CRON_SECRET:
                raise ValueError("CRON_SECRET must be set in production")
            if self.MAX_REQUEST_SIZE < MAX_BULK_REQUEST_SIZE:
                raise ValueError(
                    f"MAX_REQUEST_SIZE must be at least {MAX_BULK_REQUEST_SIZE} bytes"
                )
