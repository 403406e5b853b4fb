from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    APP_NAME: str = "billsync"
    version: str = "0.1.0"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"
    APP_DATABASE_DSN: str = "sqlite:////tmp/billsync.db"
    REDIS_URL: str = "redis://localhost:6379"

    # Stripe
    stripe_api_key: str = ""
    stripe_webhook_secret: str = ""
    stripe_webhook_tolerance: int = 300  # seconds of allowed timestamp skew

    # Refund creation retry
    refund_max_attempts: int = 3
    refund_backoff_seconds: float = 1.0

    # Plan catalog sync
    plan_sync_page_size: int = 100
    plan_sync_cron_minutes: str = "0,30"

    # CORS
    CORS_ORIGINS: str = "http://localhost:3000,http://localhost:5173"

    @property
    def plan_sync_minutes(self) -> set[int]:
        return {int(m) for m in self.plan_sync_cron_minutes.split(",") if m.strip()}


settings = Settings()
