"""Invoice extraction (LLM inference API) settings."""

from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import SecretStr


class ExtractionSettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    OPENAI_API_KEY: SecretStr = SecretStr("")
    OPENAI_BASE_URL: str = "https://api.openai.com/v1"
    OPENAI_MODEL: str = "gpt-4.1-2025-04-14"
    EXTRACTION_TIMEOUT: int = 120


extraction_settings = ExtractionSettings()
