import os
from typing import Optional
from urllib.parse import quote_plus
from loguru import logger
from pydantic_settings import BaseSettings, SettingsConfigDict

# Only ever used when APP_ENV is development or testing
DEV_SECRET_KEY = "dev-only-insecure-signing-key-do-not-deploy"


class ConfigurationError(RuntimeError):
    """Raised at startup when the configuration is unusable."""


class Settings(BaseSettings):
    # --- Basic configuration ---
    APP_NAME: str = "LeadChat"
    APP_DESCRIPTION: str = "Multi-tenant backend for AI chat widgets: auth, teams and billing"
    APP_VERSION: str = "1.0.0"
    APP_ENV: str = "development"  # development, testing, production
    DEBUG: bool = True
    SECRET_KEY: Optional[str] = None
    APP_URL: str = "http://localhost:3000"

    # --- Database (MySQL/SQLModel) ---
    DB_HOST: str = "localhost"
    DB_PORT: int = 3306
    DB_USER: str = "root"
    DB_PASSWORD: str = "root"
    DB_NAME: str = "leadchat"
    DB_URL: Optional[str] = None  # Full override, e.g. sqlite+aiosqlite:///./dev.db

    @property
    def DATABASE_URL(self) -> str:
        if self.DB_URL:
            return self.DB_URL
        safe_password = quote_plus(self.DB_PASSWORD)
        return f"mysql+aiomysql://{self.DB_USER}:{safe_password}@{self.DB_HOST}:{self.DB_PORT}/{self.DB_NAME}"

    # --- Redis (session revocation store) ---
    REDIS_HOST: str = "localhost"
    REDIS_PORT: int = 6379
    REDIS_DB: int = 0

    @property
    def REDIS_URL(self) -> str:
        return f"redis://{self.REDIS_HOST}:{self.REDIS_PORT}/{self.REDIS_DB}"

    # --- Sessions ---
    SESSION_COOKIE_NAME: str = "session"
    SESSION_TTL_DAYS: int = 7
    COOKIE_SAMESITE: str = "lax"
    SESSION_REVOCATION_ENABLED: bool = False
    BCRYPT_ROUNDS: int = 10

    # --- Teams and trials ---
    INVITATION_TTL_DAYS: int = 7
    TRIAL_DAYS: int = 14

    # --- Notification service ---
    NOTIFICATION_DRIVER: str = "mock"  # mock, email
    SMTP_HOST: Optional[str] = None
    SMTP_PORT: Optional[int] = 587
    SMTP_USER: Optional[str] = None
    SMTP_PASSWORD: Optional[str] = None

    # --- Billing provider ---
    BILLING_DRIVER: str = "none"  # none, mock, stripe
    STRIPE_SECRET_KEY: Optional[str] = None
    STRIPE_API_BASE: str = "https://api.stripe.com/v1"
    STRIPE_PRICE_SOLO: str = ""
    STRIPE_PRICE_TEAM: str = ""
    STRIPE_PRICE_BROKERAGE: str = ""

    # --- Logging ---
    LOG_DIR: str = "logs"

    # --- API route prefix ---
    API_V1_PREFIX: str = "/api/v1"

    # --- Gunicorn process name (optional) ---
    GUNICORN_PROC_NAME: Optional[str] = None  # Fallback to APP_NAME when empty

    @property
    def is_production(self) -> bool:
        return self.APP_ENV.lower() == "production"

    @property
    def COOKIE_SECURE(self) -> bool:
        return self.is_production

    def resolve_secret_key(self) -> str:
        """Return the token signing secret, refusing the development fallback in production."""
        if self.SECRET_KEY:
            return self.SECRET_KEY
        if self.is_production:
            raise ConfigurationError("SECRET_KEY must be set when APP_ENV=production")
        logger.warning(
            "SECRET_KEY is not set; signing sessions with the built-in DEVELOPMENT key. "
            f"Tokens are forgeable. Never run APP_ENV={self.APP_ENV!r} like this outside a laptop."
        )
        return DEV_SECRET_KEY

    # --- Pydantic ---
    # Load env from project root .env; priority: env vars > .env > defaults
    model_config = SettingsConfigDict(
        env_file=os.environ.get("APP_ENV_FILE", ".env"),
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        env_ignore_empty=True,
    )


# Singleton settings instance
settings = Settings()
