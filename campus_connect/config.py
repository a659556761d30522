from typing import List

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    APP_NAME: str = "Campus Connect"
    APP_VERSION: str = "1.0.0"
    APP_URL: str = "http://localhost:3000"

    SECRET_KEY: str = "dev-secret-key-change-me"
    JWT_ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24
    AUTH_COOKIE_NAME: str = "access_token"

    DATABASE_URL: str = "sqlite:///campus_connect.db"
    DATABASE_ECHO: bool = False

    LOG_LEVEL: str = "INFO"
    CORS_ALLOWED_ORIGINS: str = "http://localhost:3000,http://127.0.0.1:3000"

    # Transactional email (Resend-compatible HTTP API)
    EMAIL_ENABLED: bool = False
    EMAIL_API_URL: str = "https://api.resend.com/emails"
    EMAIL_API_KEY: str = ""
    EMAIL_FROM_ADDRESS: str = "noreply@campusconnect.local"
    EMAIL_FROM_NAME: str = "Campus Connect"
    EMAIL_HOURLY_LIMIT: int = 5
    EMAIL_TIMEOUT_SECONDS: float = 10.0

    CERTIFICATE_VERIFY_LIMIT: int = 30
    CERTIFICATE_VERIFY_WINDOW_SECONDS: int = 60
    CERTIFICATE_GENERATE_LIMIT: int = 10
    CERTIFICATE_GENERATE_WINDOW_SECONDS: int = 60 * 60
    CERTIFICATE_MIN_HOURS: float = 10
    ENROLL_RATE_LIMIT: int = 10
    ENROLL_RATE_WINDOW_SECONDS: int = 60
    ADMIN_BULK_RATE_LIMIT: int = 5
    ADMIN_BULK_RATE_WINDOW_SECONDS: int = 60

    QR_CODE_TTL_SECONDS: int = 30
    CHECK_IN_WINDOW_MINUTES: int = 15
    CANCELLATION_DEADLINE_HOURS: int = 24

    @property
    def cors_origins(self) -> List[str]:
        return [origin.strip() for origin in self.CORS_ALLOWED_ORIGINS.split(",") if origin.strip()]


settings = Settings()
