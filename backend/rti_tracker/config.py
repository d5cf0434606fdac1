"""Environment-driven settings for the RTI tracker API."""
from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", case_sensitive=True)

    APP_NAME: str = "RTI_Request_Tracker"
    ENV: str = "development"
    DEBUG: bool = True
    LOG_LEVEL: str = "INFO"
    # Comma-separated frontend origins.
    ALLOWED_ORIGINS: str = "http://localhost:3000,http://localhost:5173"

    DATABASE_URL: str
    DATABASE_POOL_SIZE: int = 20
    DATABASE_MAX_OVERFLOW: int = 10

    # Token revocation list and login throttling counters.
    REDIS_URL: str = "redis://localhost:6379/0"
    # Honour X-Real-IP / X-Forwarded-For only behind a trusted reverse proxy.
    TRUST_PROXY_HEADERS: bool = False

    JWT_SECRET_KEY: str = "change-me-in-production"
    JWT_ALGORITHM: str = "HS256"
    JWT_ACCESS_TOKEN_EXPIRE_MINUTES: int = 24 * 60
    JWT_LEEWAY_SECONDS: int = 30

    PASSWORD_MIN_LENGTH: int = 8
    PASSWORD_MAX_LENGTH: int = 256

    AUTH_LOGIN_IP_LIMIT_PER_MINUTE: int = 10
    # Consecutive failures after which an SPIO admin account is deactivated.
    AUTH_SPIO_MAX_FAILED_LOGINS: int = 3

    # Request attachments and response documents are stored in the database.
    MAX_UPLOAD_SIZE: int = 5 * 1024 * 1024
    ALLOWED_EXTENSIONS: str = "pdf,doc,docx"

    # Request ids carry the filing date in this timezone.
    REQUEST_ID_TIMEZONE: str = "Asia/Kolkata"

    @property
    def is_production(self) -> bool:
        return self.ENV.lower() == "production"

    @property
    def cors_origins(self) -> list[str]:
        return [origin.strip() for origin in self.ALLOWED_ORIGINS.split(",") if origin.strip()]

    @property
    def allowed_extensions_list(self) -> list[str]:
        return [ext.strip().lower() for ext in self.ALLOWED_EXTENSIONS.split(",") if ext.strip()]


@lru_cache()
def get_settings() -> Settings:
    return Settings()


settings = get_settings()
