"""Application configuration with environment variables."""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # Environment (dev | test | production)
    ENV: str = "dev"
    TESTING: bool = False

    # App Version (format: a.bc.de - major.feature.patch)
    VERSION: str = "0.01.00"

    # Database
    DATABASE_URL: str

    # CORS
    CORS_ORIGINS: str = "http://localhost:3000"

    # Error Tracking (optional, set in production)
    SENTRY_DSN: str = ""

    # Rate Limiting (requests per minute)
    REDIS_URL: str = "redis://localhost:6379/0"
    RATE_LIMIT_API: int = 60
    RATE_LIMIT_COMPLAINTS: int = 5

    # Object storage (s3 | local)
    STORAGE_BACKEND: str = "local"
    LOCAL_STORAGE_PATH: str = "/tmp/animalert-documents"
    S3_BUCKET: str = "animalert-documents"
    S3_REGION: str = "eu-central-1"
    S3_ENDPOINT_URL: str = ""  # LocalStack / MinIO / other S3-compatible endpoints
    S3_URL_STYLE: str = ""  # path | virtual
    AWS_ACCESS_KEY_ID: str = ""
    AWS_SECRET_ACCESS_KEY: str = ""
    UPLOAD_URL_EXPIRY_SECONDS: int = 180
    IMAGE_MAX_UPLOAD_BYTES: int = 10 * 1024 * 1024  # 10 MB
    VIDEO_MAX_UPLOAD_BYTES: int = 200 * 1024 * 1024  # 200 MB

    # Email (Resend)
    RESEND_API_KEY: str = ""
    EMAIL_FROM: str = ""
    EMAIL_ADMIN: str = ""  # Internal oversight address, cc'd on every petition
    COMPLAINT_FALLBACK_EMAIL: str = ""  # Used when the institution has no address
    EMAIL_MAX_ATTACHMENT_BYTES: int = 20 * 1024 * 1024
    EMAIL_SEND_TIMEOUT_SECONDS: float = 60.0

    # PDF rendering (Playwright / Chromium)
    PDF_RENDER_TIMEOUT_SECONDS: float = 45.0
    PDF_CHROMIUM_SANDBOX: bool = True

    # Petition numbering
    PETITION_DOC_TYPE_CODE: str = "PET"

    @property
    def cors_origins_list(self) -> list[str]:
        """Parse CORS_ORIGINS into a list."""
        return [o.strip() for o in self.CORS_ORIGINS.split(",") if o.strip()]

    @property
    def email_subject_prefix(self) -> str:
        """Subject prefix so non-production mail is never mistaken for real petitions."""
        if self.ENV == "production":
            return ""
        return f"[{self.ENV.upper()}] "


settings = Settings()
