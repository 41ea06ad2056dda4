from functools import lru_cache

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="",
        extra="ignore",
    )

    app_name: str = "scriptdesk"
    environment: str = Field(default="local", validation_alias=AliasChoices("ENVIRONMENT", "SCRIPTDESK_ENVIRONMENT"))
    log_level: str = Field(default="INFO", validation_alias=AliasChoices("LOG_LEVEL", "SCRIPTDESK_LOG_LEVEL"))
    database_url: str = Field(
        default="postgresql+asyncpg://postgres:postgres@db:5432/scriptdesk",
        validation_alias=AliasChoices("DATABASE_URL", "SCRIPTDESK_DATABASE_URL"),
    )
    cors_origins: str = Field(default="*", validation_alias=AliasChoices("CORS_ORIGINS", "SCRIPTDESK_CORS_ORIGINS"))

    # AI providers. Per-user keys live on the profile; these are server-wide fallbacks.
    gemini_api_key: str | None = Field(default=None, validation_alias=AliasChoices("GEMINI_API_KEY", "SCRIPTDESK_GEMINI_API_KEY"))
    gemini_base_url: str = Field(
        default="https://generativelanguage.googleapis.com/v1beta",
        validation_alias=AliasChoices("GEMINI_BASE_URL", "SCRIPTDESK_GEMINI_BASE_URL"),
    )
    gemini_model: str = Field(default="gemini-2.5-pro", validation_alias=AliasChoices("GEMINI_MODEL", "SCRIPTDESK_GEMINI_MODEL"))
    openrouter_api_key: str | None = Field(default=None, validation_alias=AliasChoices("OPENROUTER_API_KEY", "SCRIPTDESK_OPENROUTER_API_KEY"))
    openrouter_base_url: str = Field(
        default="https://openrouter.ai/api/v1",
        validation_alias=AliasChoices("OPENROUTER_BASE_URL", "SCRIPTDESK_OPENROUTER_BASE_URL"),
    )
    openrouter_model: str = Field(default="google/gemini-2.5-pro", validation_alias=AliasChoices("OPENROUTER_MODEL", "SCRIPTDESK_OPENROUTER_MODEL"))
    openrouter_referer: str = Field(default="http://localhost", validation_alias=AliasChoices("OPENROUTER_REFERER", "SCRIPTDESK_OPENROUTER_REFERER"))
    openrouter_title: str = Field(default="Script Assistant", validation_alias=AliasChoices("OPENROUTER_TITLE", "SCRIPTDESK_OPENROUTER_TITLE"))
    default_primary_provider: str = Field(default="gemini", validation_alias=AliasChoices("DEFAULT_PRIMARY_PROVIDER", "SCRIPTDESK_DEFAULT_PRIMARY_PROVIDER"))
    ai_request_timeout_sec: float = Field(default=120.0, validation_alias=AliasChoices("AI_REQUEST_TIMEOUT_SEC", "SCRIPTDESK_AI_REQUEST_TIMEOUT_SEC"))

    # YouTube Data API
    youtube_api_key: str | None = Field(default=None, validation_alias=AliasChoices("YOUTUBE_API_KEY", "SCRIPTDESK_YOUTUBE_API_KEY"))
    youtube_videos_url: str = Field(
        default="https://www.googleapis.com/youtube/v3/videos",
        validation_alias=AliasChoices("YOUTUBE_VIDEOS_URL", "SCRIPTDESK_YOUTUBE_VIDEOS_URL"),
    )

    # Background refresh of published video stats
    redis_url: str = Field(default="redis://redis:6379/0", validation_alias=AliasChoices("REDIS_URL", "SCRIPTDESK_REDIS_URL"))
    celery_enabled: bool = Field(default=True, validation_alias=AliasChoices("CELERY_ENABLED", "SCRIPTDESK_CELERY_ENABLED"))
    stats_refresh_interval_minutes: int = Field(
        default=360,
        validation_alias=AliasChoices("STATS_REFRESH_INTERVAL_MINUTES", "SCRIPTDESK_STATS_REFRESH_INTERVAL_MINUTES"),
    )

    @property
    def async_database_url(self) -> str:
        if self.database_url.startswith("postgresql+"):
            return self.database_url
        if self.database_url.startswith("postgresql://"):
            return self.database_url.replace("postgresql://", "postgresql+asyncpg://", 1)
        return self.database_url

    @property
    def cors_origin_list(self) -> list[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
