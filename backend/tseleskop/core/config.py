"""Application configuration managed via environment variables."""
from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    app_name: str = "Tseleskop Backend"
    debug: bool = False
    log_level: str = "INFO"
    database_url: str = "postgresql+psycopg2://tseleskop@localhost:5432/tseleskop"
    cors_origins: list[str] = [
        "https://celiscope.ru",
        "https://www.celiscope.ru",
        "https://api.celiscope.ru",
        "http://localhost:5173",
    ]

    opik_enabled: bool = False
    opik_api_key: str | None = None
    opik_project: str = "tseleskop"

    deepseek_api_key: str | None = None
    deepseek_api_base: str = "https://api.deepseek.com"
    deepseek_model: str = "deepseek-chat"

    jwt_access_secret: str = "change-me-access"
    jwt_refresh_secret: str = "change-me-refresh"
    jwt_algorithm: str = "HS256"
    access_token_expire_minutes: int = 30
    refresh_token_expire_days: int = 30
    refresh_cookie_name: str = "refreshToken"
    refresh_cookie_secure: bool = False
    refresh_cookie_domain: str | None = None

    aws_region: str = "eu-north-1"
    aws_access_key: str | None = None
    aws_secret_key: str | None = None
    aws_bucket_name: str | None = None
    max_upload_bytes: int = 15 * 1024 * 1024
    placeholder_image_url: str = "https://celiscope.ru/placeholder-image.jpg"

    telegram_bot_token: str | None = None
    telegram_api_base: str = "https://api.telegram.org"

    scheduler_enabled: bool = False
    scheduler_timezone: str = "UTC"
    daily_job_hour: int = 0
    daily_job_minute: int = 0
    weekly_job_day: str = "sun"
    weekly_job_hour: int = 9
    weekly_job_minute: int = 0
    jobs_run_on_startup: bool = False
    notifications_enabled: bool = False
    notifications_provider: str = "noop"


@lru_cache
def get_settings() -> Settings:
    """Return a cached Settings instance."""
    return Settings()


settings = get_settings()
