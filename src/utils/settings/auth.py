from pydantic_settings import BaseSettings, SettingsConfigDict


class AuthSettings(BaseSettings):
    """Identity provider token verification settings.

    The provider signs session JWTs with a shared HS256 secret; ``sub`` carries
    the provider's user id.
    """

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    AUTH_JWT_SECRET: str = ""
    AUTH_JWT_AUDIENCE: str = "authenticated"
