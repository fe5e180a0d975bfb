"""Application configuration from environment variables."""

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # App
    app_name: str = "FieldBook"
    debug: bool = True
    secret_key: str = "dev-secret-change-in-production"
    api_prefix: str = "/api/v1"
    log_level: str = "INFO"

    # Database
    database_url: str = "postgresql+asyncpg://fieldbook:fieldbook@db:5432/fieldbook"
    database_echo: bool = False

    # Redis (Celery broker for notifications)
    redis_url: str = "redis://redis:6379/0"

    # Auth
    access_token_expire_minutes: int = 60 * 24
    refresh_token_expire_days: int = 7
    jwt_algorithm: str = "HS256"

    # Local time: fixed offset, no DST (Asia/Jakarta)
    timezone_name: str = "Asia/Jakarta"
    timezone_offset_hours: int = 7

    # Operating hours for the hour grid
    opening_time: str = "08:00"
    closing_time: str = "22:00"
    slot_minutes: int = 60

    # Booking rules
    cancellation_lead_hours: int = 3

    # Telegram notifications (disabled when token or chat ids are empty)
    telegram_bot_token: str = ""
    telegram_chat_ids: str = ""
    dashboard_url: str = "http://localhost:3000/dashboard/bookings"

    model_config = {"env_prefix": "FB_", "env_file": ".env", "extra": "ignore"}

    @property
    def telegram_chat_id_list(self) -> list[str]:
        """Chat ids split on commas and whitespace."""
        return [c for c in self.telegram_chat_ids.replace(",", " ").split() if c]


settings = Settings()
