from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict

class Settings(BaseSettings):
    PROJECT_NAME: str = "Leafy_Seedlings"

    # --- Storage ---
    # "sql" talks to DATABASE_URL through SQLAlchemy, "memory" keeps everything in-process
    STORAGE_BACKEND: Literal["sql", "memory"] = "sql"
    DATABASE_URL: str = "sqlite:///./leafy.db"
    DB_CONNECT_RETRIES: int = 10
    DB_RETRY_WAIT_SECONDS: float = 3

    # --- Sessions ---
    REDIS_URL: str | None = None
    SESSION_TTL_SECONDS: int = 24 * 60 * 60
    SESSION_COOKIE_NAME: str = "leafy.sid"

    # --- Business Rules ---
    UNIT_PRICE: int = 5000
    CURRENCY_LABEL: str = "Rp"
    MATURATION_DAYS: int = 14
    DEFAULT_BATCH_NAME: str = "Bibit Cabai"
    TIMEZONE: str = "Asia/Jakarta"
    STRICT_STATUS_TRANSITIONS: bool = True
    RESTOCK_ON_CANCEL: bool = True

    # --- Seeded admin account (skipped when unset) ---
    ADMIN_USERNAME: str | None = None
    ADMIN_PASSWORD: str | None = None

    # --- Notifications (Twilio WhatsApp) ---
    TWILIO_ACCOUNT_SID: str | None = None
    TWILIO_AUTH_TOKEN: str | None = None
    TWILIO_FROM_NUMBER: str | None = None
    ADMIN_PHONE_NUMBER: str | None = None
    NOTIFY_TIMEOUT_SECONDS: float = 5

    LOG_LEVEL: str = "INFO"

    # --- Configuration ---
    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore"  # unknown variables in .env are ignored instead of crashing
    )

settings = Settings()
