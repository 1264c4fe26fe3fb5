"""Application configuration with environment variables."""

from decimal import Decimal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # Environment
    ENV: str = "dev"

    # App Version (format: a.bc.de - major.feature.patch)
    VERSION: str = "0.01.00"

    # Database
    DATABASE_URL: str

    # Session Token issued by the hosted auth provider (supports key rotation)
    JWT_SECRET: str = "change-this-in-production"
    JWT_SECRET_PREVIOUS: str = ""  # Set during rotation, clear after
    JWT_EXPIRES_HOURS: int = 4

    # CORS
    CORS_ORIGINS: str = "http://localhost:3000"

    # Frontend (public quote links are {FRONTEND_URL}/q/{token})
    FRONTEND_URL: str = "http://localhost:3000"

    # Platform email via Resend
    PLATFORM_RESEND_API_KEY: str = ""
    QUOTE_EMAIL_FROM: str = "hello@simplylustre.com"

    # Internal scheduled endpoints (cron jobs)
    INTERNAL_SECRET: str = ""  # Secret for /internal/scheduled/* endpoints

    # Error Tracking (optional, set in production)
    SENTRY_DSN: str = ""

    # Rate Limiting
    RATE_LIMIT_API: int = 60  # General API, requests per minute
    RATE_LIMIT_QUOTE_RESPONSE: str = "5/hour"  # Per accept token
    RATE_LIMIT_PDF: str = "20/minute"

    # VAT rate restored when an organisation re-registers without giving one
    DEFAULT_VAT_RATE: Decimal = Decimal("20.00")

    @property
    def cors_origins_list(self) -> list[str]:
        """Parse CORS_ORIGINS into a list."""
        return [o.strip() for o in self.CORS_ORIGINS.split(",") if o.strip()]

    @property
    def jwt_secrets(self) -> list[str]:
        """Returns list of valid secrets (current first, then previous if set)."""
        secrets = [self.JWT_SECRET]
        if self.JWT_SECRET_PREVIOUS:
            secrets.append(self.JWT_SECRET_PREVIOUS)
        return secrets

    @property
    def quote_link_base(self) -> str:
        """Frontend base URL without a trailing slash."""
        return self.FRONTEND_URL.rstrip("/")


settings = Settings()
